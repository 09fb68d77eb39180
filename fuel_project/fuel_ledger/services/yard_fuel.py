import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from ..checkpoints import YARDS
from ..exceptions import NotFoundError
from ..models import Notification, YardFuelDispense
from .audit_helper import log_action
from .ledger import apply_liters, find_ledger_record, lock_record
from .parsing import as_date, as_decimal

logger = logging.getLogger(__name__)


def _get_locked(dispense_id):
    try:
        return YardFuelDispense.objects.select_for_update().get(pk=dispense_id)
    except YardFuelDispense.DoesNotExist:
        raise NotFoundError(f"Yard fuel dispense {dispense_id} not found")


def _link(dispense, record, *, auto):
    # caller holds the record lock and saves it
    apply_liters(record, dispense.ledger_column, dispense.liters)
    dispense.status = "linked"
    dispense.fuel_record = record
    dispense.linked_do = record.going_do
    dispense.auto_linked = auto
    dispense.save()


# ----------------------------
# Recording a dispense
# ----------------------------
def record_yard_dispense(data, *, actor=""):
    """
    Record fuel given out at a yard. The liters are credited to the
    yard column of the truck's latest open fuel record; with no open
    record the dispense waits as pending.
    """
    truck_no = (data.get("truck_no") or "").strip()
    if not truck_no:
        raise ValidationError({"truck_no": "Truck number is required"})
    yard = (data.get("yard") or "").strip().upper()
    if yard not in YARDS:
        raise ValidationError({"yard": f"Unknown yard '{data.get('yard')}'"})
    liters = as_decimal(data.get("liters"), "liters")
    if liters <= 0:
        raise ValidationError({"liters": "Liters must be greater than zero"})

    with transaction.atomic():
        dispense = YardFuelDispense(
            date=as_date(data.get("date")),
            truck_no=truck_no,
            liters=liters,
            yard=yard,
            entered_by=actor or "system",
            notes=data.get("notes") or "",
        )
        dispense.save()

        record = find_ledger_record(truck_no, lock=True, required=False)
        if record is not None:
            expected = record.version
            _link(dispense, record, auto=True)
            record.save_versioned(expected)
        else:
            Notification.objects.create(
                recipient_role="fuel_order_maker",
                title=f"Yard fuel pending for {dispense.truck_no}",
                message=(
                    f"{liters}L at {yard} has no open fuel record yet; "
                    "it will be linked when one is created."),
                object_type="YardFuelDispense",
                object_id=str(dispense.pk),
            )
        log_action(action="create", instance=dispense, actor=actor,
                   changes={"yard": yard, "liters": str(liters),
                            "fuel_record": record.pk if record else None})

    logger.info("Yard fuel %sL for %s at %s: %s", liters, dispense.truck_no,
                yard, f"linked to DO {dispense.linked_do}"
                if record else "pending")
    return dispense


def link_pending_yard_dispenses(record, *, actor=""):
    """
    Credit every pending dispense for the record's truck to `record`.
    Runs inside the caller's transaction, which holds the record row;
    returns the linked dispenses.
    """
    if record.is_cancelled:
        raise ValidationError("Cannot link yard fuel to a cancelled fuel record")

    pending = list(
        YardFuelDispense.objects.for_truck(record.truck_no)
        .filter(status="pending")
        .select_for_update()
        .order_by("pk")
    )
    if not pending:
        return []

    expected = record.version
    for dispense in pending:
        _link(dispense, record, auto=False)
        log_action(action="link", instance=dispense, actor=actor,
                   changes={"fuel_record": record.pk,
                            "going_do": record.going_do})
    record.save_versioned(expected)
    logger.info("Linked %d pending yard dispenses to fuel record %s",
                len(pending), record.pk)
    return pending


# ----------------------------
# Rejection / removal
# ----------------------------
def reject_yard_dispense(dispense_id, *, actor="", reason=""):
    """Send a pending dispense back to the yard; linked ones must be deleted."""
    if not (reason or "").strip():
        raise ValidationError({"reason": "A rejection reason is required"})

    with transaction.atomic():
        dispense = _get_locked(dispense_id)
        if dispense.status != "pending":
            raise ValidationError(
                f"Only pending dispenses can be rejected (this one is {dispense.status})")
        dispense.status = "rejected"
        dispense.rejection_reason = reason.strip()
        dispense.rejected_by = actor
        dispense.rejected_at = timezone.now()
        dispense.save()
        Notification.objects.create(
            recipient_role="yard_staff",
            title=f"Yard fuel for {dispense.truck_no} rejected",
            message=f"{dispense.liters}L at {dispense.yard}: {dispense.rejection_reason}",
            object_type="YardFuelDispense",
            object_id=str(dispense.pk),
        )
        log_action(action="reject", instance=dispense, actor=actor,
                   changes={"reason": dispense.rejection_reason})
    return dispense


def delete_yard_dispense(dispense_id, *, actor=""):
    with transaction.atomic():
        dispense = _get_locked(dispense_id)
        # linked liters come back out of the yard column
        if dispense.status == "linked":
            record = lock_record(dispense.fuel_record_id)
            expected = record.version
            apply_liters(record, dispense.ledger_column, -dispense.liters)
            record.save_versioned(expected)
        dispense.soft_delete()
        log_action(action="delete", instance=dispense, actor=actor)
    return dispense


# ----------------------------
# Queries
# ----------------------------
def pending_yard_dispenses(truck_no=None):
    qs = YardFuelDispense.objects.filter(status="pending")
    if truck_no:
        qs = qs.for_truck(truck_no)
    return qs.order_by("date", "id")

