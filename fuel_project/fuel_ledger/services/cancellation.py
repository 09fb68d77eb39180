import logging
from dataclasses import dataclass, field

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from ..checkpoints import display_name
from ..exceptions import ConflictError, MissingCheckpointSelection, NotFoundError
from ..models import FuelRecord, LPOEntry, Notification
from ..models.lpo import CASH, DRIVER_ACCOUNT
from .audit_helper import log_action
from .checkpoints import CustomCheckpoint, resolve_column
from .ledger import apply_liters, find_ledger_record, lock_record
from .numbering import next_serial_number
from .parsing import as_date, as_decimal

logger = logging.getLogger(__name__)


# ----------------------------
# Auto-cancellation matcher
# ----------------------------
def find_stale_lpos(config, truck_no, checkpoint):
    """
    Open LPO lines for the same truck whose station is attached to
    `checkpoint`. Every match is stale once cash is used there.
    Driver's-account lines never hit a checkpoint, so never match.
    """
    qs = (LPOEntry.objects.open()
          .for_truck(truck_no)
          .exclude(payment_mode=DRIVER_ACCOUNT))

    if isinstance(checkpoint, CustomCheckpoint):
        match = Q(diesel_at=checkpoint.station_name) | Q(
            checkpoint=checkpoint.name,
            custom_station_name__iexact=checkpoint.station_name,
        )
    else:
        match = Q(checkpoint=checkpoint.name) | Q(
            diesel_at__in=config.stations_at(checkpoint.name))
    return qs.filter(match)


@dataclass
class LpoResult:
    entry: LPOEntry
    record: FuelRecord = None
    cancelled_ids: list = field(default_factory=list)


class CashLpoCommand:
    """
    Create one CASH LPO line and auto-cancel every stale open LPO for
    the same truck at the same checkpoint, as a single unit of work.

    Inputs: truck, checkpoint variant, new-entry payload.
    Output: LpoResult (new entry, updated ledger, cancelled ids).
    """

    def __init__(self, config, *, truck_no, checkpoint, payload, actor=""):
        self.config = config
        self.truck_no = truck_no
        self.checkpoint = checkpoint
        self.payload = payload
        self.actor = actor

    def execute(self):
        # Validate everything before touching the database
        if self.checkpoint is None:
            raise MissingCheckpointSelection(
                "CASH entries require a cancellation point")
        column = resolve_column(self.checkpoint)
        liters = as_decimal(self.payload.get("ltrs"), "ltrs")
        if liters <= 0:
            raise ValidationError({"ltrs": "Liters must be greater than zero"})
        if not self.payload.get("lpo_no"):
            raise ValidationError({"lpo_no": "LPO number is required"})
        do_no = self.payload.get("do_sdo")
        if not do_no:
            raise ValidationError({"do_sdo": "DO/SDO number is required"})

        with transaction.atomic():
            # Lock order: ledger record first, then the stale LPO rows
            record = find_ledger_record(self.truck_no, do_no, lock=True)
            records = {record.pk: record}
            versions = {record.pk: record.version}

            stale = list(
                find_stale_lpos(self.config, self.truck_no, self.checkpoint)
                .select_for_update()
                .order_by("pk")
            )

            entry = self._build_entry(record, column, liters)
            entry.save()

            now = timezone.now()
            cancelled_ids = []
            for old in stale:
                # conditional update: a concurrent cancel wins, we abort
                updated = LPOEntry.objects.filter(
                    pk=old.pk, is_cancelled=False
                ).update(
                    is_cancelled=True,
                    cancelled_at=now,
                    cancelled_by=self.actor,
                    cancellation_reason=(
                        f"Superseded by CASH LPO {entry.lpo_no} at "
                        f"{display_name(self.checkpoint.name)}"),
                    cancelled_by_entry=entry,
                    updated_at=now,
                )
                if not updated:
                    raise ConflictError(
                        f"LPO entry {old.pk} was cancelled concurrently")

                # take the stale liters back out of its ledger
                if old.fuel_record_id and old.ledger_column:
                    target = records.get(old.fuel_record_id)
                    if target is None:
                        target = lock_record(old.fuel_record_id)
                        records[target.pk] = target
                        versions[target.pk] = target.version
                    apply_liters(target, old.ledger_column, -old.ltrs)
                cancelled_ids.append(old.pk)

            apply_liters(record, column, liters)
            for pk, ledger in records.items():
                ledger.save_versioned(versions[pk])

            self._notify(entry, stale)
            log_action(
                action="create",
                instance=entry,
                actor=self.actor,
                changes={
                    "payment_mode": CASH,
                    "checkpoint": self.checkpoint.name,
                    "ledger_column": column,
                    "ltrs": str(liters),
                    "auto_cancelled": cancelled_ids,
                },
            )
            for old in stale:
                log_action(
                    action="auto_cancel",
                    instance=old,
                    actor=self.actor,
                    changes={"cancelled_by_entry": entry.pk},
                )

        logger.info(
            "CASH LPO %s for %s at %s cancelled %d stale entries %s",
            entry.lpo_no, entry.truck_no, self.checkpoint.name,
            len(cancelled_ids), cancelled_ids,
        )
        return LpoResult(entry=entry, record=record,
                         cancelled_ids=cancelled_ids)

    def _build_entry(self, record, column, liters):
        data = self.payload
        custom = isinstance(self.checkpoint, CustomCheckpoint)
        return LPOEntry(
            sn=next_serial_number(),
            date=as_date(data.get("date")),
            lpo_no=data.get("lpo_no") or "",
            diesel_at=(data.get("diesel_at")
                       or (self.checkpoint.station_name if custom else "CASH")),
            do_sdo=data.get("do_sdo") or "",
            truck_no=self.truck_no,
            ltrs=liters,
            price_per_ltr=as_decimal(
                data.get("price_per_ltr"), "price_per_ltr",
                default=self.config.default_price),
            destinations=data.get("destinations") or "",
            payment_mode=CASH,
            journey_direction=self.checkpoint.direction,
            cancellation_point=self.checkpoint.name,
            custom_station_name=self.checkpoint.station_name if custom else "",
            custom_target_column=column if custom else "",
            checkpoint=self.checkpoint.name,
            ledger_column=column,
            fuel_record=record,
            created_by=self.actor,
        )

    def _notify(self, entry, stale):
        for old in stale:
            Notification.objects.create(
                recipient_role="station_manager",
                title=f"LPO {old.lpo_no} cancelled",
                message=(
                    f"{old.ltrs}L for {old.truck_no} at {old.diesel_at} "
                    f"was replaced by CASH LPO {entry.lpo_no}."),
                object_type="LPOEntry",
                object_id=str(old.pk),
            )


# ----------------------------
# Explicit cancellation
# ----------------------------
def cancel_lpo_entry(entry_id, *, actor="", reason=""):
    """
    Cancel one LPO line by hand and take its liters back out of
    the ledger. Cancelling twice is a conflict, not a no-op.
    """
    with transaction.atomic():
        try:
            entry = LPOEntry.objects.select_for_update().get(pk=entry_id)
        except LPOEntry.DoesNotExist:
            raise NotFoundError(f"LPO entry {entry_id} not found")
        if entry.is_cancelled:
            raise ConflictError(f"LPO entry {entry_id} is already cancelled")

        if entry.fuel_record_id and entry.ledger_column:
            record = lock_record(entry.fuel_record_id)
            expected = record.version
            apply_liters(record, entry.ledger_column, -entry.ltrs)
            record.save_versioned(expected)

        entry.is_cancelled = True
        entry.cancelled_at = timezone.now()
        entry.cancelled_by = actor
        entry.cancellation_reason = reason or "Cancelled manually"
        entry.save(update_fields=[
            "is_cancelled", "cancelled_at", "cancelled_by",
            "cancellation_reason", "updated_at",
        ])
        log_action(action="cancel", instance=entry, actor=actor,
                   changes={"reason": entry.cancellation_reason})

    logger.info("LPO entry %s cancelled by %s", entry_id, actor or "system")
    return entry
