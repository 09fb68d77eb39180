from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from fuel_ledger.models import AuditLog, Notification, YardFuelDispense
from fuel_ledger.services import (cancel_fuel_record, create_fuel_record,
                                  delete_yard_dispense,
                                  link_pending_yard_dispenses,
                                  pending_yard_dispenses,
                                  record_yard_dispense, reject_yard_dispense,
                                  yard_fuel_summary)

from .helpers import TODAY, make_record


def dispense_payload(**overrides):
    data = {
        "date": TODAY.isoformat(),
        "truck_no": "T530 DRF",
        "yard": "DAR YARD",
        "liters": "100",
    }
    data.update(overrides)
    return data


class RecordYardDispenseTests(TestCase):

    def test_credits_open_record_for_the_truck(self):
        record = make_record()
        version = record.version
        dispense = record_yard_dispense(
            dispense_payload(truck_no="t530-drf", yard="dar yard"),
            actor="yard1")

        self.assertEqual(dispense.status, "linked")
        self.assertTrue(dispense.auto_linked)
        self.assertEqual(dispense.fuel_record, record)
        self.assertEqual(dispense.linked_do, "DO-100")
        self.assertEqual(dispense.entered_by, "yard1")
        record.refresh_from_db()
        self.assertEqual(record.dar_yard, Decimal("650.00"))
        self.assertEqual(record.total_lts, Decimal("650.00"))
        self.assertEqual(record.balance, Decimal("650.00"))
        self.assertEqual(record.version, version + 1)
        self.assertTrue(AuditLog.objects.filter(
            action="create", object_id=str(dispense.pk)).exists())

    def test_without_open_record_it_waits(self):
        dispense = record_yard_dispense(dispense_payload(truck_no="T777 ABC"))
        self.assertEqual(dispense.status, "pending")
        self.assertIsNone(dispense.fuel_record)
        self.assertTrue(Notification.objects.filter(
            recipient_role="fuel_order_maker",
            object_id=str(dispense.pk)).exists())
        self.assertEqual(list(pending_yard_dispenses("t777abc")), [dispense])

    def test_cancelled_record_is_skipped(self):
        record = make_record()
        cancel_fuel_record(record.pk, actor="manager", reason="wrong DO")
        dispense = record_yard_dispense(dispense_payload())
        self.assertEqual(dispense.status, "pending")
        record.refresh_from_db()
        self.assertEqual(record.dar_yard, Decimal("550.00"))

    def test_bad_input_is_rejected(self):
        for overrides in ({"yard": "MOMBASA PORT"}, {"liters": "0"},
                          {"liters": "-5"}, {"truck_no": ""}):
            with self.subTest(overrides=overrides):
                with self.assertRaises(ValidationError):
                    record_yard_dispense(dispense_payload(**overrides))
        self.assertEqual(YardFuelDispense.objects.count(), 0)


class PendingLinkTests(TestCase):

    def setUp(self):
        self.first = record_yard_dispense(dispense_payload(
            truck_no="T777 ABC", yard="TANGA YARD", liters="200"))
        self.second = record_yard_dispense(dispense_payload(
            truck_no="T777-ABC", yard="DAR YARD", liters="50"))

    def test_new_fuel_record_picks_up_pending_dispenses(self):
        record = create_fuel_record({
            "date": TODAY.isoformat(),
            "truck_no": "T777 ABC",
            "going_do": "DO-777",
        }, actor="maker")

        self.assertEqual(record.tanga_yard, Decimal("200.00"))
        self.assertEqual(record.dar_yard, Decimal("50.00"))
        self.assertEqual(record.total_lts, Decimal("250.00"))
        record.refresh_from_db()
        self.assertEqual(record.total_lts, Decimal("250.00"))

        for dispense in (self.first, self.second):
            dispense.refresh_from_db()
            self.assertEqual(dispense.status, "linked")
            self.assertFalse(dispense.auto_linked)
            self.assertEqual(dispense.linked_do, "DO-777")
        self.assertFalse(pending_yard_dispenses("T777 ABC").exists())

    def test_rejected_dispense_is_not_linked(self):
        reject_yard_dispense(self.second.pk, actor="maker",
                             reason="Not our truck")
        record = create_fuel_record({
            "date": TODAY.isoformat(),
            "truck_no": "T777 ABC",
            "going_do": "DO-777",
        })
        self.assertEqual(record.dar_yard, Decimal("0.00"))
        self.assertEqual(record.tanga_yard, Decimal("200.00"))

    def test_cancelled_record_cannot_take_yard_fuel(self):
        record = make_record(truck_no="T777 ABC", going_do="DO-777")
        record.cancel(cancelled_by="manager")
        with self.assertRaises(ValidationError):
            link_pending_yard_dispenses(record)


class RejectAndDeleteTests(TestCase):

    def setUp(self):
        self.record = make_record()

    def test_reject_needs_a_reason(self):
        dispense = record_yard_dispense(dispense_payload(truck_no="T777 ABC"))
        with self.assertRaises(ValidationError):
            reject_yard_dispense(dispense.pk, actor="maker", reason="  ")

        dispense = reject_yard_dispense(dispense.pk, actor="maker",
                                        reason="Duplicate slip")
        self.assertEqual(dispense.status, "rejected")
        self.assertEqual(dispense.rejected_by, "maker")
        self.assertIsNotNone(dispense.rejected_at)
        self.assertTrue(Notification.objects.filter(
            recipient_role="yard_staff", object_id=str(dispense.pk)).exists())

    def test_linked_dispense_cannot_be_rejected(self):
        dispense = record_yard_dispense(dispense_payload())
        with self.assertRaises(ValidationError):
            reject_yard_dispense(dispense.pk, actor="maker", reason="typo")

    def test_delete_takes_liters_back_out(self):
        dispense = record_yard_dispense(dispense_payload(liters="120"))
        delete_yard_dispense(dispense.pk, actor="manager")

        self.assertFalse(
            YardFuelDispense.objects.filter(pk=dispense.pk).exists())
        self.assertTrue(
            YardFuelDispense.all_objects.filter(pk=dispense.pk).exists())
        self.record.refresh_from_db()
        self.assertEqual(self.record.dar_yard, Decimal("550.00"))
        self.assertEqual(self.record.balance, Decimal("550.00"))

    def test_physical_delete_is_blocked(self):
        dispense = record_yard_dispense(dispense_payload())
        with self.assertRaises(ValidationError):
            dispense.delete()


class YardFuelSummaryTests(TestCase):

    def test_rejected_liters_are_left_out(self):
        make_record()
        record_yard_dispense(dispense_payload(liters="100"))
        pending = record_yard_dispense(dispense_payload(
            truck_no="T777 ABC", liters="40"))
        record_yard_dispense(dispense_payload(
            truck_no="T888 XYZ", liters="60"))
        reject_yard_dispense(pending.pk, actor="maker", reason="Duplicate")
        record_yard_dispense(dispense_payload(yard="MMSA YARD", liters="30"))

        rows = {row["yard"]: row for row in yard_fuel_summary()}
        dar = rows["DAR YARD"]
        self.assertEqual(dar["dispenses"], 3)
        self.assertEqual(dar["linked"], 1)
        self.assertEqual(dar["pending"], 1)
        self.assertEqual(dar["rejected"], 1)
        self.assertEqual(dar["liters"], Decimal("160.00"))
        self.assertEqual(rows["MMSA YARD"]["liters"], Decimal("30.00"))
        self.assertNotIn("TANGA YARD", rows)
