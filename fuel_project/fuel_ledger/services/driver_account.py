import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from ..checkpoints import GOING, is_custom
from ..exceptions import NotFoundError
from ..models import DriverAccountEntry
from ..models.lpo import DRIVER_ACCOUNT
from .audit_helper import log_action
from .checkpoints import (CustomStation, checkpoint_from_selection,
                          resolve_column)
from .ledger import apply_liters, find_ledger_record, lock_record
from .parsing import as_date, as_decimal

logger = logging.getLogger(__name__)

# Fields an operator may change while the entry is still open
EDITABLE_FIELDS = (
    "date", "driver_name", "liters", "rate", "station", "payment_mode",
    "paybill_or_mobile", "approved_by", "notes",
)


def _get_locked(entry_id):
    try:
        return DriverAccountEntry.objects.select_for_update().get(pk=entry_id)
    except DriverAccountEntry.DoesNotExist:
        raise NotFoundError(f"Driver account entry {entry_id} not found")


def _custom_station_for(entry, direction):
    # rebuild the custom station stored on the entry, for its own direction
    if not entry.custom_station_name:
        return None
    side = "going" if direction == GOING else "return"
    return CustomStation.from_payload({
        "custom_station_name": entry.custom_station_name,
        f"custom_{side}_column": entry.custom_target_column,
    })


def create_driver_account_entry(config, data, *, actor=""):
    station = config.station(data.get("station"))
    entry = DriverAccountEntry(
        date=as_date(data.get("date")),
        lpo_no=data.get("lpo_no") or "",
        truck_no=(data.get("truck_no") or "").strip(),
        driver_name=data.get("driver_name") or "",
        liters=as_decimal(data.get("liters"), "liters"),
        rate=as_decimal(
            data.get("rate"), "rate",
            default=station.price_per_liter if station else config.default_price),
        station=data.get("station") or "",
        cancellation_point=data.get("cancellation_point") or "",
        custom_station_name=data.get("custom_station_name") or "",
        custom_target_column=data.get("custom_target_column") or "",
        journey_direction=data.get("journey_direction") or GOING,
        original_do_no=data.get("original_do_no") or "",
        payment_mode=data.get("payment_mode") or "CASH",
        paybill_or_mobile=data.get("paybill_or_mobile") or "",
        notes=data.get("notes") or "",
        created_by=actor or "system",
    )
    with transaction.atomic():
        entry.save()
        log_action(action="create", instance=entry, actor=actor,
                   changes={"liters": str(entry.liters),
                            "rate": str(entry.rate),
                            "amount": str(entry.amount)})
    return entry


def update_driver_account_entry(entry_id, data, *, actor=""):
    """Edit an open entry; amount is recomputed from liters x rate."""
    with transaction.atomic():
        entry = _get_locked(entry_id)
        if entry.status == "settled":
            raise ValidationError("Settled driver account entries are final")

        changes = {}
        for name in EDITABLE_FIELDS:
            if name not in data:
                continue
            value = data[name]
            if name in ("liters", "rate"):
                value = as_decimal(value, name)
            elif name == "date":
                value = as_date(value)
            old = getattr(entry, name)
            if old != value:
                changes[name] = {"old": str(old), "new": str(value)}
                setattr(entry, name, value)

        if changes:
            entry.save()
            log_action(action="update", instance=entry, actor=actor,
                       changes=changes)
    return entry


def settle_driver_account_entry(config, entry_id, *, settled_by,
                                cancellation_point=None, custom_station=None,
                                approved_by=""):
    """
    Mark an entry settled. The ledger is only touched when a checkpoint
    is supplied here or was stored on the entry at creation.
    """
    with transaction.atomic():
        entry = _get_locked(entry_id)
        entry.transition_to("settled")  # validates before any ledger write

        point = cancellation_point or entry.cancellation_point
        column = ""
        if point:
            direction = entry.journey_direction
            if custom_station is None and is_custom(point):
                custom_station = _custom_station_for(entry, direction)
            checkpoint = checkpoint_from_selection(
                DRIVER_ACCOUNT, point, direction, custom_station)
            column = resolve_column(checkpoint)

            record = find_ledger_record(
                entry.truck_no, entry.original_do_no or None, lock=True)
            expected = record.version
            apply_liters(record, column, entry.liters)
            record.save_versioned(expected)

            entry.cancellation_point = point
            entry.fuel_record = record
            entry.ledger_column = column
            if custom_station is not None:
                entry.custom_station_name = custom_station.name
                entry.custom_target_column = column

        entry.settled_at = timezone.now()
        entry.settled_by = settled_by
        if approved_by:
            entry.approved_by = approved_by
        entry.save()
        log_action(action="settle", instance=entry, actor=settled_by,
                   changes={"ledger_column": column or None})

    logger.info("Driver account entry %s settled by %s (%s)",
                entry_id, settled_by, column or "no ledger effect")
    return entry


def dispute_driver_account_entry(entry_id, *, actor="", notes=""):
    with transaction.atomic():
        entry = _get_locked(entry_id)
        entry.transition_to("disputed")
        if notes:
            entry.notes = f"{entry.notes}\n{notes}".strip()
        entry.save()
        log_action(action="dispute", instance=entry, actor=actor,
                   changes={"notes": notes or None})
    return entry


def delete_driver_account_entry(entry_id, *, actor=""):
    with transaction.atomic():
        entry = _get_locked(entry_id)
        # a settlement that hit a ledger is taken back out
        if entry.fuel_record_id and entry.ledger_column:
            record = lock_record(entry.fuel_record_id)
            expected = record.version
            apply_liters(record, entry.ledger_column, -entry.liters)
            record.save_versioned(expected)
        entry.soft_delete()
        log_action(action="delete", instance=entry, actor=actor)
    return entry
