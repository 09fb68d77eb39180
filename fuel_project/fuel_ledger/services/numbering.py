from django.db.models import Max
from django.utils import timezone

from ..models import DriverAccountEntry, LPOEntry


def next_serial_number():
    # sn keeps counting across soft-deleted rows
    last = LPOEntry.all_objects.aggregate(last=Max("sn"))["last"]
    return (last or 0) + 1


def next_lpo_number(year=None):
    """
    Next free LPO number for the year, shared by station/cash LPOs
    and driver's-account entries. Numbering restarts at 1 each year.
    """
    year = year or timezone.localdate().year
    numbers = list(
        LPOEntry.objects.filter(date__year=year).values_list("lpo_no", flat=True)
    ) + list(
        DriverAccountEntry.objects.filter(year=year).values_list("lpo_no", flat=True)
    )
    highest = max((int(n) for n in numbers if n and n.isdigit()), default=0)
    return str(highest + 1)
