from decimal import Decimal

from django.db.models import Avg, Count, DecimalField, F, Q, Sum
from django.db.models.functions import Coalesce, TruncMonth

from ..checkpoints import display_name
from ..models import (DriverAccountEntry, FuelRecord, LPOEntry,
                      YardFuelDispense)
from ..models.base import ZERO
from ..trucks import format_truck_no_display

""" Read-only aggregations. Nothing here writes. """

_LITERS = DecimalField(max_digits=16, decimal_places=2)
_MONEY = DecimalField(max_digits=20, decimal_places=2)


def _sum(expr, output_field=_LITERS):
    # Sum() returns None on empty sets; reports want 0
    return Coalesce(Sum(expr, output_field=output_field),
                    ZERO, output_field=output_field)


# ----------------------------
# Fuel ledger reports
# ----------------------------
def route_totals(year=None):
    qs = FuelRecord.objects.open()
    if year:
        qs = qs.filter(date__year=year)
    rows = (qs.values("from_location", "to_location")
            .annotate(journeys=Count("id"),
                      total_lts=_sum("total_lts"),
                      balance=_sum("balance"))
            .order_by("from_location", "to_location"))
    return list(rows)


def truck_efficiency_bands(bands, year=None):
    """
    Average ledger balance per truck, bucketed by `bands`:
    a list of (label, low, high); low inclusive, high exclusive,
    None means unbounded.
    """
    qs = FuelRecord.objects.open()
    if year:
        qs = qs.filter(date__year=year)
    per_truck = (qs.values("truck_no_normalized")
                 .annotate(journeys=Count("id"),
                           average_balance=Avg("balance"))
                 .order_by("truck_no_normalized"))

    result = {label: [] for label, _, _ in bands}
    for row in per_truck:
        average = Decimal(str(row["average_balance"] or 0)).quantize(
            Decimal("0.01"))
        for label, low, high in bands:
            if low is not None and average < Decimal(str(low)):
                continue
            if high is not None and average >= Decimal(str(high)):
                continue
            result[label].append({
                "truck_no": format_truck_no_display(row["truck_no_normalized"]),
                "journeys": row["journeys"],
                "average_balance": average,
            })
            break
    return result


def station_cost_summary(date_from=None, date_to=None):
    qs = LPOEntry.objects.filter(is_cancelled=False)
    if date_from:
        qs = qs.filter(date__gte=date_from)
    if date_to:
        qs = qs.filter(date__lte=date_to)
    rows = (qs.values("diesel_at")
            .annotate(entries=Count("id"),
                      liters=_sum("ltrs"),
                      amount=_sum(F("ltrs") * F("price_per_ltr"), _MONEY))
            .order_by("diesel_at"))

    summary = []
    for row in rows:
        liters = row["liters"]
        row["average_price"] = (
            (row["amount"] / liters).quantize(Decimal("0.01"))
            if liters else ZERO
        )
        summary.append(row)
    return summary


def monthly_fuel_summary(year):
    rows = (FuelRecord.objects.open()
            .filter(date__year=year)
            .annotate(period=TruncMonth("date"))
            .values("period")
            .annotate(records=Count("id"),
                      total_fuel=_sum("total_lts"),
                      total_balance=_sum("balance"),
                      extra=_sum("extra"),
                      mmsa_yard=_sum("mmsa_yard"),
                      tanga_yard=_sum("tanga_yard"),
                      dar_yard=_sum("dar_yard"))
            .order_by("period"))
    return [dict(row, month=row["period"].strftime("%B")) for row in rows]


# ----------------------------
# Driver's account
# ----------------------------
def driver_account_summary(year=None):
    qs = DriverAccountEntry.objects.all()
    if year:
        qs = qs.filter(year=year)

    by_status = {
        row["status"]: row
        for row in qs.values("status").annotate(
            entries=Count("id"),
            liters=_sum("liters"),
            amount=_sum("amount", _MONEY))
    }
    monthly = list(
        qs.annotate(period=TruncMonth("date"))
        .values("period")
        .annotate(entries=Count("id"),
                  liters=_sum("liters"),
                  amount=_sum("amount", _MONEY))
        .order_by("period")
    )
    totals = qs.aggregate(entries=Count("id"), liters=_sum("liters"),
                          amount=_sum("amount", _MONEY))
    return {"totals": totals, "by_status": by_status, "monthly": monthly}


# ----------------------------
# Cancellations
# ----------------------------
def cancellation_report(lpo_no):
    """
    What happened to the lines of one LPO: which were cancelled
    (and by what), and which older lines its CASH entries cancelled.
    """
    entries = list(LPOEntry.objects.filter(lpo_no=lpo_no)
                   .select_related("cancelled_by_entry").order_by("sn"))
    cancelled = [
        {
            "id": entry.pk,
            "truck_no": entry.truck_no,
            "station": entry.diesel_at,
            "ltrs": entry.ltrs,
            "checkpoint": entry.checkpoint,
            "cancelled_at": entry.cancelled_at,
            "cancelled_by": entry.cancelled_by,
            "reason": entry.cancellation_reason,
            "replaced_by_lpo": (entry.cancelled_by_entry.lpo_no
                                if entry.cancelled_by_entry else None),
        }
        for entry in entries if entry.is_cancelled
    ]
    superseded = [
        {
            "id": old.pk,
            "lpo_no": old.lpo_no,
            "truck_no": old.truck_no,
            "station": old.diesel_at,
            "ltrs": old.ltrs,
            "replaced_by": old.cancelled_by_entry_id,
        }
        for old in LPOEntry.objects.filter(
            cancelled_by_entry__lpo_no=lpo_no).order_by("pk")
    ]
    return {
        "lpo_no": lpo_no,
        "entries": len(entries),
        "cancelled": cancelled,
        "superseded": superseded,
    }


def cancellation_statement(lpo_no):
    """Plain-text summary an operator can paste into a message."""
    report = cancellation_report(lpo_no)
    if not report["cancelled"] and not report["superseded"]:
        return f"LPO {lpo_no}: no cancellations."

    lines = [f"LPO {lpo_no} cancellations:"]
    for row in report["cancelled"]:
        where = display_name(row["checkpoint"]) if row["checkpoint"] else row["station"]
        line = f"- {row['truck_no']} {row['ltrs']}L at {where} CANCELLED"
        if row["replaced_by_lpo"]:
            line += f" (replaced by CASH LPO {row['replaced_by_lpo']})"
        lines.append(line)
    for row in report["superseded"]:
        lines.append(
            f"- cancels LPO {row['lpo_no']}: {row['truck_no']} "
            f"{row['ltrs']}L at {row['station']}")
    return "\n".join(lines)


# ----------------------------
# Yard fuel
# ----------------------------
def yard_fuel_summary(date_from=None, date_to=None):
    """Per-yard dispense counts by status; rejected dispenses carry no liters."""
    qs = YardFuelDispense.objects.all()
    if date_from:
        qs = qs.filter(date__gte=date_from)
    if date_to:
        qs = qs.filter(date__lte=date_to)
    rows = (qs.values("yard")
            .annotate(dispenses=Count("id"),
                      pending=Count("id", filter=Q(status="pending")),
                      linked=Count("id", filter=Q(status="linked")),
                      rejected=Count("id", filter=Q(status="rejected")),
                      liters=Coalesce(
                          Sum("liters", filter=~Q(status="rejected"),
                              output_field=_LITERS),
                          ZERO, output_field=_LITERS))
            .order_by("yard"))
    return list(rows)
