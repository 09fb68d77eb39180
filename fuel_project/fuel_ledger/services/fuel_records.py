import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from ..checkpoints import LEDGER_COLUMNS
from ..exceptions import NotFoundError
from ..models import FuelRecord
from .audit_helper import log_action
from .parsing import as_date, as_decimal
from .yard_fuel import link_pending_yard_dispenses

logger = logging.getLogger(__name__)

JOURNEY_FIELDS = (
    "truck_no", "going_do", "return_do", "start", "from_location",
    "to_location", "original_going_from", "original_going_to",
)
# liter fields an operator may set by hand
ALLOCATION_FIELDS = LEDGER_COLUMNS + ("extra",)


def get_fuel_record(record_id, lock=False):
    qs = FuelRecord.objects.select_for_update() if lock else FuelRecord.objects
    try:
        return qs.get(pk=record_id)
    except FuelRecord.DoesNotExist:
        raise NotFoundError(f"Fuel record {record_id} not found")


def records_for_truck(truck_no):
    return FuelRecord.objects.for_truck(truck_no).order_by("-date", "-id")


def record_by_going_do(going_do):
    record = (FuelRecord.objects.filter(going_do__iexact=going_do)
              .order_by("-date", "-id").first())
    if record is None:
        raise NotFoundError(f"No fuel record for DO {going_do}")
    return record


def create_fuel_record(data, *, actor=""):
    """Open a journey ledger for a truck and its going DO."""
    going_do = (data.get("going_do") or "").strip()
    truck_no = (data.get("truck_no") or "").strip()
    if not going_do or not truck_no:
        raise ValidationError("Truck number and going DO are required")

    with transaction.atomic():
        # one live journey per truck + going DO
        if FuelRecord.objects.for_truck(truck_no).filter(
                going_do__iexact=going_do).exists():
            raise ValidationError(
                f"{truck_no} already has a fuel record for DO {going_do}")

        record = FuelRecord(date=as_date(data.get("date")))
        for name in JOURNEY_FIELDS:
            if data.get(name) is not None:
                setattr(record, name, data[name])
        for name in ALLOCATION_FIELDS:
            if name in data:
                setattr(record, name, as_decimal(data[name], name))
        record.save()
        # yard fuel handed out before the record existed
        linked = link_pending_yard_dispenses(record, actor=actor)
        log_action(action="create", instance=record, actor=actor,
                   changes={"going_do": going_do,
                            "yard_dispenses_linked": [d.pk for d in linked],
                            "total_lts": str(record.total_lts),
                            "balance": str(record.balance)})

    logger.info("Fuel record %s opened for %s (DO %s)",
                record.pk, record.truck_no, record.going_do)
    return record


def update_fuel_allocations(record_id, values, *, expected_version, actor=""):
    """
    Set liter columns by hand. `expected_version` is the version the
    caller read; a newer row means a concurrent write (ConflictError).
    """
    try:
        expected_version = int(expected_version)
    except (TypeError, ValueError):
        raise ValidationError({"version": "Version must be a whole number"})
    unknown = set(values) - set(ALLOCATION_FIELDS)
    if unknown:
        raise ValidationError(f"Not allocation fields: {sorted(unknown)}")

    with transaction.atomic():
        record = get_fuel_record(record_id)
        changes = {}
        for name, raw in values.items():
            value = as_decimal(raw, name)
            changes[name] = {"old": str(getattr(record, name)),
                             "new": str(value)}
            setattr(record, name, value)
        record.save_versioned(expected_version)
        log_action(action="update", instance=record, actor=actor,
                   changes=changes)
    return record


def update_journey(record_id, data, *, actor=""):
    """Journey details (return DO, locations); liters untouched."""
    with transaction.atomic():
        record = get_fuel_record(record_id, lock=True)
        fields = [name for name in JOURNEY_FIELDS if name in data]
        for name in fields:
            setattr(record, name, data[name] or "")
        if fields:
            record.save(update_fields=fields)
            log_action(action="update", instance=record, actor=actor,
                       changes={name: data[name] for name in fields})
    return record


def cancel_fuel_record(record_id, *, actor="", reason=""):
    with transaction.atomic():
        record = get_fuel_record(record_id, lock=True)
        if record.is_cancelled:
            raise ValidationError("Fuel record is already cancelled")
        record.cancel(cancelled_by=actor, reason=reason)
        log_action(action="cancel", instance=record, actor=actor,
                   changes={"reason": reason})
    return record


def delete_fuel_record(record_id, *, actor=""):
    with transaction.atomic():
        record = get_fuel_record(record_id)
        record.soft_delete()
        log_action(action="delete", instance=record, actor=actor)
    logger.info("Fuel record %s soft-deleted by %s",
                record_id, actor or "system")
    return record
