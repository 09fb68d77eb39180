from decimal import Decimal

from django.contrib import admin
from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase

from fuel_ledger.admin import LPOEntryAdmin, YardFuelDispenseAdmin
from fuel_ledger.models import (AuditLog, DriverAccountEntry, FuelRecord,
                                LPOEntry, YardFuelDispense)
from fuel_ledger.services import (create_driver_account_entry,
                                  create_lpo_entry, load_config_snapshot,
                                  settle_driver_account_entry)

from .helpers import TODAY, lpo_payload, make_record, make_station


class AdminTestCase(TestCase):

    def setUp(self):
        self.admin_user = get_user_model().objects.create_superuser(
            "boss", "boss@example.com", "pw")
        self.client.force_login(self.admin_user)
        make_station("LAKE CHILABOMBWE", going="ZAMBIA_GOING", price="1500.00")
        self.config = load_config_snapshot()

    def run_action(self, model, action, *pks):
        url = f"/admin/fuel_ledger/{model}/"
        return self.client.post(url, {
            "action": action, "_selected_action": [str(pk) for pk in pks]})

    def driver_entry(self, truck_no="T991 EFN", **extra):
        data = {
            "date": TODAY.isoformat(),
            "lpo_no": "17",
            "truck_no": truck_no,
            "liters": "40",
            "station": "LAKE CHILABOMBWE",
        }
        data.update(extra)
        return create_driver_account_entry(self.config, data, actor="maker")


class DriverAccountAdminTests(AdminTestCase):

    def test_soft_delete_reverses_settled_liters(self):
        record = make_record(truck_no="T991 EFN", going_do="DO-300")
        entry = self.driver_entry(original_do_no="DO-300")
        settle_driver_account_entry(self.config, entry.pk, settled_by="boss",
                                    cancellation_point="ZAMBIA_GOING")
        record.refresh_from_db()
        self.assertEqual(record.zambia_going, Decimal("-40.00"))

        response = self.run_action(
            "driveraccountentry", "soft_delete_driver_accounts", entry.pk)
        self.assertEqual(response.status_code, 302)
        self.assertFalse(
            DriverAccountEntry.objects.filter(pk=entry.pk).exists())
        record.refresh_from_db()
        self.assertEqual(record.zambia_going, Decimal("0.00"))
        self.assertEqual(record.balance, Decimal("550.00"))
        self.assertTrue(AuditLog.objects.filter(
            action="delete", object_id=str(entry.pk), actor="boss").exists())

    def test_settle_without_a_fuel_record_is_reported(self):
        entry = self.driver_entry(truck_no="T404 NOP",
                                  cancellation_point="ZAMBIA_GOING")
        response = self.run_action(
            "driveraccountentry", "settle_driver_accounts", entry.pk)
        self.assertEqual(response.status_code, 302)
        entry.refresh_from_db()
        self.assertEqual(entry.status, "pending")
        self.assertIsNone(entry.settled_at)


class FuelRecordAdminTests(AdminTestCase):

    def test_soft_delete_goes_through_the_service(self):
        record = make_record()
        response = self.run_action(
            "fuelrecord", "soft_delete_fuel_records", record.pk)
        self.assertEqual(response.status_code, 302)
        self.assertFalse(FuelRecord.objects.filter(pk=record.pk).exists())
        self.assertTrue(AuditLog.objects.filter(
            action="delete", object_id=str(record.pk), actor="boss").exists())

    def test_cancel_twice_reports_instead_of_failing(self):
        record = make_record()
        self.run_action("fuelrecord", "cancel_fuel_records", record.pk)
        record.refresh_from_db()
        self.assertTrue(record.is_cancelled)
        self.assertEqual(record.cancelled_by, "boss")

        response = self.run_action(
            "fuelrecord", "cancel_fuel_records", record.pk)
        self.assertEqual(response.status_code, 302)
        self.assertEqual(AuditLog.objects.filter(
            action="cancel", object_id=str(record.pk)).count(), 1)


class LpoEntryAdminTests(AdminTestCase):

    def setUp(self):
        super().setUp()
        make_station("MBEYA MAIN", going="MBEYA_GOING")
        make_record(mbeya_going=Decimal("-500"))
        self.request = RequestFactory().get("/admin/fuel_ledger/lpoentry/")
        self.request.user = self.admin_user
        self.model_admin = LPOEntryAdmin(LPOEntry, admin.site)

    def test_entries_cannot_be_added_from_admin(self):
        self.assertFalse(self.model_admin.has_add_permission(self.request))
        response = self.client.get("/admin/fuel_ledger/lpoentry/add/")
        self.assertEqual(response.status_code, 403)

    def test_ledger_fields_are_read_only(self):
        entry = create_lpo_entry(load_config_snapshot(),
                                 lpo_payload(diesel_at="MBEYA MAIN")).entry
        readonly = self.model_admin.get_readonly_fields(self.request, entry)
        for name in ("ltrs", "payment_mode", "truck_no", "do_sdo",
                     "diesel_at", "cancellation_point", "journey_direction"):
            self.assertIn(name, readonly)

    def test_change_form_post_leaves_liters_alone(self):
        entry = create_lpo_entry(load_config_snapshot(),
                                 lpo_payload(diesel_at="MBEYA MAIN")).entry
        self.client.post(f"/admin/fuel_ledger/lpoentry/{entry.pk}/change/", {
            "ltrs": "9999", "payment_mode": "CASH", "truck_no": "T1 A",
            "date": TODAY.isoformat(), "price_per_ltr": "1450",
        })
        entry.refresh_from_db()
        self.assertEqual(entry.ltrs, Decimal("300.00"))
        self.assertEqual(entry.truck_no, "T530 DRF")
        self.assertEqual(entry.fuel_record.mbeya_going, Decimal("-800.00"))


class YardFuelAdminTests(AdminTestCase):

    def test_dispenses_cannot_be_added_from_admin(self):
        request = RequestFactory().get("/admin/fuel_ledger/yardfueldispense/")
        request.user = self.admin_user
        model_admin = YardFuelDispenseAdmin(YardFuelDispense, admin.site)
        self.assertFalse(model_admin.has_add_permission(request))
        self.assertIn("liters", model_admin.get_readonly_fields(request))
