import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django.db.models import Q

from ..checkpoints import GOING, RETURNING, column_sign
from ..exceptions import NotFoundError
from ..models import FuelRecord
from ..models.base import ZERO

logger = logging.getLogger(__name__)


# ----------------------------
# Locating the journey ledger
# ----------------------------
def find_ledger_record(truck_no, do_no=None, lock=False, required=True):
    """
    Latest open ledger record for a truck, optionally pinned to a DO
    (going or return, case-insensitive). `lock=True` must run inside
    transaction.atomic(). With `required=False` a miss returns None.
    """
    qs = FuelRecord.objects.open().for_truck(truck_no)
    if do_no:
        qs = qs.filter(Q(going_do__iexact=do_no) | Q(return_do__iexact=do_no))
    if lock:
        qs = qs.select_for_update()
    record = qs.order_by("-date", "-id").first()
    if record is None and required:
        target = f"{truck_no} / DO {do_no}" if do_no else truck_no
        raise NotFoundError(f"No open fuel record for {target}")
    return record


def matched_direction(record, do_no):
    """Journey leg a DO points at on `record`: its return DO means returning."""
    do_no = (do_no or "").strip().lower()
    if do_no and do_no != record.going_do.lower() \
            and do_no == (record.return_do or "").lower():
        return RETURNING
    return GOING


def lock_record(pk):
    # soft-deleted records can still need a reversal
    return FuelRecord.all_objects.select_for_update().get(pk=pk)


# ----------------------------
# Column arithmetic
# ----------------------------
def signed_liters(column, liters):
    """Dispensed liters as stored in `column` (draws are negative)."""
    return column_sign(column) * (liters or ZERO)


def apply_liters(record, column, liters):
    """
    Add (or with negative liters, take back) a fill-up on `column`
    and refresh the derived totals. Caller persists the record.
    """
    current = getattr(record, column) or ZERO
    setattr(record, column, current + signed_liters(column, liters))
    record.recalc_totals()
    return record


def recompute_record(record_id):
    """Re-derive total_lts/balance for one record (repair path)."""
    with transaction.atomic():
        record = lock_record(record_id)
        before = (record.total_lts, record.balance)
        record.recalc_totals()
        if before == (record.total_lts, record.balance):
            return False
        record.save_versioned(record.version)
    logger.info("Recomputed fuel record %s: %s -> %s",
                record_id, before, (record.total_lts, record.balance))
    return True


# ----------------------------
# Extra fuel detection (read-only)
# ----------------------------
@dataclass(frozen=True)
class ExtraFuelFinding:
    column: str
    standard: Decimal
    actual: Decimal
    delta: Decimal


def detect_extra_fuel(record, standards):
    """
    Compare each column with its standard allocation.
    A column is flagged when it has the same sign as its standard
    and a larger magnitude; `delta` is the excess in liters.
    """
    findings = []
    for column, standard in standards.items():
        standard = Decimal(str(standard))
        actual = getattr(record, column, None) or ZERO
        if not standard or actual * standard <= 0:
            continue
        if abs(actual) > abs(standard):
            findings.append(ExtraFuelFinding(
                column=column,
                standard=standard,
                actual=actual,
                delta=abs(actual) - abs(standard),
            ))
    return findings
