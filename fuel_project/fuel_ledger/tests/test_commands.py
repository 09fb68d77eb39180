from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from fuel_ledger.checkpoints import DEFAULT_STATION_CHECKPOINTS
from fuel_ledger.models import FuelRecord, FuelStation

from .helpers import make_record, make_station


class SeedStationsTests(TestCase):

    def test_seeds_every_default_station_once(self):
        out = StringIO()
        call_command("seed_stations", "--price", "1500", stdout=out)
        self.assertEqual(FuelStation.objects.count(),
                         len(DEFAULT_STATION_CHECKPOINTS))
        infinity = FuelStation.objects.get(name="INFINITY")
        self.assertEqual(infinity.going_checkpoint, "INFINITY_GOING")
        self.assertEqual(infinity.price_per_liter, Decimal("1500.00"))
        ndola = FuelStation.objects.get(name="LAKE NDOLA")
        self.assertEqual(ndola.returning_checkpoint, "ZAMBIA_NDOLA")
        self.assertEqual(ndola.going_checkpoint, "")

        out = StringIO()
        call_command("seed_stations", stdout=out)
        self.assertIn("0 stations created", out.getvalue())

    def test_existing_station_keeps_its_price(self):
        make_station("Lake Kapiri", price="1600.00")
        call_command("seed_stations", stdout=StringIO())
        kapiri = FuelStation.objects.get(name="LAKE KAPIRI")
        self.assertEqual(kapiri.price_per_liter, Decimal("1600.00"))
        self.assertEqual(kapiri.returning_checkpoint, "ZAMBIA_KAPIRI")


class RecomputeLedgersCommandTests(TestCase):

    def test_repairs_drifted_balance(self):
        record = make_record(mbeya_going=Decimal("-450"))
        # bypass save() so the derived columns drift
        FuelRecord.objects.filter(pk=record.pk).update(balance=Decimal("0"))

        out = StringIO()
        call_command("recompute_ledgers", stdout=out)
        self.assertIn("1 fuel records corrected", out.getvalue())
        record.refresh_from_db()
        self.assertEqual(record.balance, Decimal("100.00"))
