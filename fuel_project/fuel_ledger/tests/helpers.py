import datetime
from decimal import Decimal

from fuel_ledger.models import FuelRecord, FuelStation

TODAY = datetime.date(2025, 9, 17)


def make_record(truck_no="T530 DRF", going_do="DO-100", **liters):
    defaults = {"dar_yard": Decimal("550.00")}
    defaults.update(liters)
    return FuelRecord.objects.create(
        date=TODAY,
        truck_no=truck_no,
        going_do=going_do,
        start="DAR",
        from_location="DAR",
        to_location="LUBUMBASHI",
        **defaults,
    )


def make_station(name, going="", returning="", price="1450.00"):
    return FuelStation.objects.create(
        name=name,
        price_per_liter=Decimal(price),
        going_checkpoint=going,
        returning_checkpoint=returning,
    )


def lpo_payload(**overrides):
    data = {
        "date": TODAY.isoformat(),
        "lpo_no": "2445",
        "truck_no": "T530 DRF",
        "do_sdo": "DO-100",
        "ltrs": "300",
        "price_per_ltr": "1450",
        "destinations": "LUBUMBASHI",
        "journey_direction": "going",
    }
    data.update(overrides)
    return data
