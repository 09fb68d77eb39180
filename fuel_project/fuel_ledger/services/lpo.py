import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from ..checkpoints import GOING, RETURNING, direction_of
from ..exceptions import NotFoundError
from ..models import LPOEntry
from ..models.lpo import CASH, DRIVER_ACCOUNT, STATION
from .audit_helper import log_action
from .cancellation import CashLpoCommand, LpoResult
from .checkpoints import (CustomStation, FixedCheckpoint,
                          checkpoint_from_selection, resolve_column)
from .driver_account import create_driver_account_entry
from .ledger import (apply_liters, find_ledger_record, lock_record,
                     matched_direction)
from .numbering import next_serial_number
from .parsing import as_date, as_decimal

logger = logging.getLogger(__name__)


def _get_locked(entry_id):
    try:
        return LPOEntry.objects.select_for_update().get(pk=entry_id)
    except LPOEntry.DoesNotExist:
        raise NotFoundError(f"LPO entry {entry_id} not found")


# ----------------------------
# Creation (dispatch by payment mode)
# ----------------------------
def create_lpo_entry(config, data, *, actor=""):
    """
    Create one LPO line.
        CASH           -> CashLpoCommand (auto-cancel + ledger)
        STATION        -> checkpoint from station config, ledger update
        DRIVER_ACCOUNT -> no ledger effect, pending driver's-account entry
    Returns an LpoResult.
    """
    truck_no = (data.get("truck_no") or "").strip()
    if not truck_no:
        raise ValidationError({"truck_no": "Truck number is required"})
    if not data.get("lpo_no"):
        raise ValidationError({"lpo_no": "LPO number is required"})
    mode = data.get("payment_mode") or STATION
    requested = data.get("journey_direction") or ""
    if requested and requested not in (GOING, RETURNING):
        raise ValidationError(
            {"journey_direction": f"Unknown journey direction '{requested}'"})

    if mode == CASH:
        point = data.get("cancellation_point")
        # raises MissingCheckpointSelection before anything is read or written
        checkpoint = checkpoint_from_selection(
            CASH, point, requested or direction_of(point) or GOING,
            CustomStation.from_payload(data),
        )
        command = CashLpoCommand(
            config, truck_no=truck_no, checkpoint=checkpoint,
            payload=data, actor=actor,
        )
        return command.execute()

    if data.get("cancellation_point"):
        raise ValidationError(
            {"cancellation_point": "Only CASH entries take a cancellation point"})

    if mode == DRIVER_ACCOUNT:
        return _create_driver_account_lpo(config, data, truck_no, actor)
    if mode == STATION:
        return _create_station_lpo(config, data, truck_no, requested, actor)
    raise ValidationError({"payment_mode": f"Unknown payment mode '{mode}'"})


def _create_station_lpo(config, data, truck_no, requested, actor):
    do_no = data.get("do_sdo")
    if not do_no:
        raise ValidationError({"do_sdo": "DO/SDO number is required"})
    custom = CustomStation.from_payload(data)
    station = None if custom else config.station(data.get("diesel_at"))
    if custom is None and station is None:
        raise NotFoundError(
            f"Station '{data.get('diesel_at')}' is not an active station")
    liters = as_decimal(data.get("ltrs"), "ltrs")

    with transaction.atomic():
        # the DO decides the leg: a return DO hit means returning
        record = find_ledger_record(truck_no, do_no, lock=True, required=False)
        matched = matched_direction(record, do_no) if record else None
        if requested and matched and requested != matched:
            raise ValidationError({
                "journey_direction":
                    f"DO {do_no} is the {matched} DO of this journey"})
        direction = requested or matched or GOING

        if custom is not None:
            checkpoint = custom.checkpoint_for(direction)
            diesel_at = custom.name
            default_price = config.default_price
        else:
            name = config.checkpoint_for_station(station.name, direction)
            # a station may serve only one direction; the other has no ledger effect
            checkpoint = FixedCheckpoint(name) if name else None
            diesel_at = station.name
            default_price = station.price_per_liter or config.default_price

        column = resolve_column(checkpoint) if checkpoint else ""
        if not column:
            record = None
        elif record is None:
            raise NotFoundError(f"No open fuel record for {truck_no} / DO {do_no}")
        else:
            expected = record.version

        entry = LPOEntry(
            sn=next_serial_number(),
            date=as_date(data.get("date")),
            lpo_no=data.get("lpo_no") or "",
            diesel_at=diesel_at,
            do_sdo=do_no,
            truck_no=truck_no,
            ltrs=liters,
            price_per_ltr=as_decimal(data.get("price_per_ltr"),
                                     "price_per_ltr", default=default_price),
            destinations=data.get("destinations") or "",
            payment_mode=STATION,
            journey_direction=direction,
            custom_station_name=custom.name if custom else "",
            custom_target_column=column if custom else "",
            checkpoint=checkpoint.name if checkpoint else "",
            ledger_column=column,
            fuel_record=record,
            created_by=actor,
        )
        entry.save()

        if record is not None:
            apply_liters(record, column, liters)
            record.save_versioned(expected)
        log_action(action="create", instance=entry, actor=actor,
                   changes={"payment_mode": STATION,
                            "checkpoint": entry.checkpoint,
                            "journey_direction": direction,
                            "ledger_column": column,
                            "ltrs": str(liters)})

    logger.info("Station LPO %s: %sL for %s at %s -> %s",
                entry.lpo_no, liters, entry.truck_no, diesel_at,
                column or "no ledger column")
    return LpoResult(entry=entry, record=record)


def _create_driver_account_lpo(config, data, truck_no, actor):
    station = config.station(data.get("diesel_at"))
    price = as_decimal(
        data.get("price_per_ltr"), "price_per_ltr",
        default=station.price_per_liter if station else config.default_price)

    with transaction.atomic():
        entry = LPOEntry(
            sn=next_serial_number(),
            date=as_date(data.get("date")),
            lpo_no=data.get("lpo_no") or "",
            diesel_at=data.get("diesel_at") or "",
            # shown as NIL everywhere; the journey link stays internal
            do_sdo="NIL",
            reference_do=data.get("reference_do") or data.get("do_sdo") or "",
            truck_no=truck_no,
            ltrs=as_decimal(data.get("ltrs"), "ltrs"),
            price_per_ltr=price,
            destinations="NIL",
            payment_mode=DRIVER_ACCOUNT,
            journey_direction=data.get("journey_direction") or GOING,
            created_by=actor,
        )
        entry.save()
        create_driver_account_entry(config, {
            "date": entry.date,
            "lpo_no": entry.lpo_no,
            "truck_no": entry.truck_no,
            "driver_name": data.get("driver_name") or "",
            "liters": entry.ltrs,
            "rate": entry.price_per_ltr,
            "station": entry.diesel_at,
            "journey_direction": entry.journey_direction,
            "original_do_no": entry.reference_do,
        }, actor=actor)
        log_action(action="create", instance=entry, actor=actor,
                   changes={"payment_mode": DRIVER_ACCOUNT,
                            "ltrs": str(entry.ltrs)})
    return LpoResult(entry=entry)


# ----------------------------
# Edits on existing lines
# ----------------------------
def amend_lpo_liters(entry_id, new_ltrs, *, actor=""):
    """Change the liters on a live LPO line; the ledger gets the delta."""
    new_ltrs = as_decimal(new_ltrs, "ltrs")
    if new_ltrs < 0:
        raise ValidationError({"ltrs": "Liters cannot be negative"})

    with transaction.atomic():
        entry = _get_locked(entry_id)
        if entry.is_cancelled:
            raise ValidationError("Cannot amend a cancelled LPO")
        old_ltrs = entry.ltrs
        delta = new_ltrs - old_ltrs

        if delta and entry.fuel_record_id and entry.ledger_column:
            record = lock_record(entry.fuel_record_id)
            expected = record.version
            apply_liters(record, entry.ledger_column, delta)
            record.save_versioned(expected)

        if entry.original_ltrs is None:
            entry.original_ltrs = old_ltrs
        entry.ltrs = new_ltrs
        entry.amended_at = timezone.now()
        entry.save()
        log_action(action="update", instance=entry, actor=actor,
                   changes={"ltrs": {"old": str(old_ltrs),
                                     "new": str(new_ltrs)}})
    return entry


def delete_lpo_entry(entry_id, *, actor=""):
    """Soft delete; a live line's liters come back out of its ledger."""
    with transaction.atomic():
        entry = _get_locked(entry_id)
        if (not entry.is_cancelled and entry.fuel_record_id
                and entry.ledger_column):
            record = lock_record(entry.fuel_record_id)
            expected = record.version
            apply_liters(record, entry.ledger_column, -entry.ltrs)
            record.save_versioned(expected)
        entry.soft_delete()
        log_action(action="delete", instance=entry, actor=actor)
    logger.info("LPO entry %s soft-deleted by %s", entry_id, actor or "system")
    return entry


def set_lpo_status(entry_id, new_status, *, actor=""):
    with transaction.atomic():
        entry = _get_locked(entry_id)
        old_status = entry.status
        entry.transition_to(new_status)
        log_action(action="status", instance=entry, actor=actor,
                   changes={"status": {"old": old_status, "new": new_status}})
    return entry


def lpo_entries_by_number(lpo_no):
    return LPOEntry.objects.filter(lpo_no=lpo_no).order_by("sn")
