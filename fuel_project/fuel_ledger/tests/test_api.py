import json
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from fuel_ledger.models import LPOEntry, StaffRole

from .helpers import lpo_payload, make_record, make_station


class ApiTestCase(TestCase):

    def setUp(self):
        User = get_user_model()
        self.maker = User.objects.create_user("maker", password="pw")
        StaffRole.objects.create(user=self.maker, role="fuel_order_maker")
        self.manager = User.objects.create_user("manager", password="pw")
        StaffRole.objects.create(user=self.manager, role="manager")
        self.viewer = User.objects.create_user("viewer", password="pw")
        StaffRole.objects.create(user=self.viewer, role="viewer")

        make_station("MBEYA MAIN", going="MBEYA_GOING")
        self.record = make_record(mbeya_going=Decimal("-500"))

    def post_json(self, url, data):
        return self.client.post(url, data=json.dumps(data),
                                content_type="application/json")


class AuthTests(ApiTestCase):

    def test_anonymous_is_rejected(self):
        response = self.client.get("/api/fuel-records/")
        self.assertEqual(response.status_code, 401)

    def test_viewer_can_read_but_not_cancel(self):
        self.client.force_login(self.viewer)
        self.assertEqual(self.client.get("/api/lpo-entries/").status_code, 200)
        response = self.client.post("/api/lpo-entries/1/cancel/")
        self.assertEqual(response.status_code, 403)

    def test_viewer_cannot_settle(self):
        self.client.force_login(self.viewer)
        response = self.client.post("/api/driver-accounts/1/settle/")
        self.assertEqual(response.status_code, 403)


class LpoApiTests(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.client.force_login(self.maker)
        response = self.post_json("/api/lpo-entries/",
                                  lpo_payload(diesel_at="MBEYA MAIN"))
        self.assertEqual(response.status_code, 201)
        self.existing_id = response.json()["entry"]["id"]

    def test_cash_without_point_is_a_400(self):
        response = self.post_json("/api/lpo-entries/", lpo_payload(
            lpo_no="2446", payment_mode="CASH"))
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["ok"])
        self.assertEqual(LPOEntry.objects.count(), 1)

    def test_cash_auto_cancels(self):
        response = self.post_json("/api/lpo-entries/", lpo_payload(
            lpo_no="2446", truck_no="t530drf", payment_mode="CASH",
            cancellation_point="MBEYA_GOING", ltrs="350"))
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["cancelled_ids"], [self.existing_id])
        self.assertEqual(Decimal(body["fuel_record"]["mbeya_going"]),
                         Decimal("-850.00"))

    def test_double_cancel_is_a_409(self):
        url = f"/api/lpo-entries/{self.existing_id}/cancel/"
        self.assertEqual(self.post_json(url, {"reason": "typo"}).status_code, 200)
        self.assertEqual(self.post_json(url, {}).status_code, 409)

    def test_unknown_entry_is_a_404(self):
        response = self.post_json("/api/lpo-entries/999999/cancel/", {})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(
            self.client.get("/api/lpo-entries/999999/").status_code, 404)

    def test_status_and_amend(self):
        url = f"/api/lpo-entries/{self.existing_id}/"
        response = self.client.patch(url, data=json.dumps({"ltrs": "250"}),
                                     content_type="application/json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Decimal(response.json()["ltrs"]), Decimal("250.00"))

        response = self.post_json(f"{url}status/", {"status": "sent"})
        self.assertEqual(response.json()["status"], "sent")
        response = self.post_json(f"{url}status/", {"status": "pending"})
        self.assertEqual(response.status_code, 400)

    def test_cancellation_report(self):
        self.post_json(f"/api/lpo-entries/{self.existing_id}/cancel/", {})
        response = self.client.get(
            "/api/lpo-entries/cancellation-report/2445/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["cancelled"]), 1)
        self.assertIn("CANCELLED", response.json()["statement"])

    def test_next_number(self):
        response = self.client.get("/api/lpo-entries/next-number/?year=2025")
        self.assertEqual(response.json()["next_lpo_no"], "2446")

    def test_csv_export_hides_driver_account_do(self):
        self.post_json("/api/lpo-entries/", lpo_payload(
            lpo_no="2446", diesel_at="MBEYA MAIN",
            payment_mode="DRIVER_ACCOUNT", do_sdo="DO-100"))
        response = self.client.get("/api/exports/lpo-entries.csv?lpo_no=2446")
        self.assertEqual(response["Content-Type"], "text/csv")
        lines = response.content.decode().strip().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertIn(",NIL,", lines[1])
        self.assertNotIn("DO-100", lines[1])

        response = self.client.get("/api/exports/driver-accounts.csv")
        self.assertIn("NIL", response.content.decode())


class FuelRecordApiTests(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.client.force_login(self.maker)

    def test_list_filters_by_truck(self):
        make_record(truck_no="T999 ZZZ", going_do="DO-9")
        response = self.client.get("/api/fuel-records/?truck_no=t530-drf")
        body = response.json()
        self.assertEqual(body["count"], 1)
        self.assertEqual(body["results"][0]["id"], self.record.pk)

    def test_extra_fuel(self):
        response = self.client.get(
            f"/api/fuel-records/{self.record.pk}/extra-fuel/")
        findings = response.json()["findings"]
        self.assertEqual([f["column"] for f in findings], ["mbeya_going"])
        self.assertEqual(Decimal(findings[0]["delta"]), Decimal("50"))

    def test_stale_version_is_a_409(self):
        url = f"/api/fuel-records/{self.record.pk}/"
        version = self.record.version
        ok = self.client.patch(url, data=json.dumps(
            {"allocations": {"extra": "20"}, "version": version}),
            content_type="application/json")
        self.assertEqual(ok.status_code, 200)
        stale = self.client.patch(url, data=json.dumps(
            {"allocations": {"extra": "30"}, "version": version}),
            content_type="application/json")
        self.assertEqual(stale.status_code, 409)

    def test_missing_record_is_a_404(self):
        self.assertEqual(
            self.client.get("/api/fuel-records/999999/").status_code, 404)

    def test_reports(self):
        response = self.client.get("/api/reports/route-totals/?year=2025")
        self.assertEqual(response.json()["data"][0]["journeys"], 1)
        self.assertEqual(
            self.client.get("/api/reports/monthly/").status_code, 400)
        self.assertEqual(
            self.client.get("/api/reports/nope/").status_code, 404)
        response = self.client.get("/api/reports/truck-efficiency/")
        self.assertEqual(len(response.json()["data"]["on_target"]), 1)


class DriverAccountApiTests(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.client.force_login(self.maker)
        response = self.post_json("/api/driver-accounts/", {
            "date": "2025-09-17",
            "lpo_no": "17",
            "truck_no": "T530 DRF",
            "liters": "40",
            "rate": "1500",
            "station": "MBEYA MAIN",
        })
        self.assertEqual(response.status_code, 201)
        self.entry_id = response.json()["id"]

    def test_manager_settles(self):
        self.client.force_login(self.manager)
        response = self.post_json(
            f"/api/driver-accounts/{self.entry_id}/settle/", {})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "settled")
        self.assertEqual(response.json()["settled_by"], "manager")

        again = self.post_json(
            f"/api/driver-accounts/{self.entry_id}/settle/", {})
        self.assertEqual(again.status_code, 400)

    def test_maker_cannot_settle(self):
        response = self.post_json(
            f"/api/driver-accounts/{self.entry_id}/settle/", {})
        self.assertEqual(response.status_code, 403)

    def test_dispute(self):
        self.client.force_login(self.manager)
        response = self.post_json(
            f"/api/driver-accounts/{self.entry_id}/dispute/",
            {"notes": "Wrong truck"})
        self.assertEqual(response.json()["status"], "disputed")


class FuelRecordCancelApiTests(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.client.force_login(self.maker)

    def test_cancel_then_cancel_again(self):
        url = f"/api/fuel-records/{self.record.pk}/cancel/"
        response = self.post_json(url, {"reason": "Trip called off"})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["is_cancelled"])
        self.assertEqual(response.json()["cancellation_reason"],
                         "Trip called off")

        again = self.post_json(url, {})
        self.assertEqual(again.status_code, 400)
        self.assertIn("already cancelled", str(again.json()["error"]))

    def test_viewer_cannot_cancel(self):
        self.client.force_login(self.viewer)
        response = self.post_json(
            f"/api/fuel-records/{self.record.pk}/cancel/", {})
        self.assertEqual(response.status_code, 403)

    def test_lookup_by_going_do(self):
        response = self.client.get("/api/fuel-records/by-do/do-100/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["id"], self.record.pk)
        self.assertEqual(
            self.client.get("/api/fuel-records/by-do/DO-404/").status_code, 404)


class MalformedInputApiTests(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.client.force_login(self.maker)

    def test_non_numeric_version_is_a_400(self):
        response = self.client.patch(
            f"/api/fuel-records/{self.record.pk}/",
            data=json.dumps({"allocations": {"extra": "20"}, "version": "v2"}),
            content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("version", response.json()["error"])
        self.record.refresh_from_db()
        self.assertEqual(self.record.extra, Decimal("0.00"))

    def test_json_list_body_is_a_400(self):
        response = self.client.post(
            "/api/lpo-entries/", data=json.dumps([lpo_payload()]),
            content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(LPOEntry.objects.count(), 0)

        response = self.client.patch(
            f"/api/fuel-records/{self.record.pk}/", data="[1, 2]",
            content_type="application/json")
        self.assertEqual(response.status_code, 400)


class YardFuelApiTests(ApiTestCase):

    def setUp(self):
        super().setUp()
        User = get_user_model()
        self.yard_user = User.objects.create_user("yard", password="pw")
        StaffRole.objects.create(user=self.yard_user, role="yard_staff")

    def dispense(self, **overrides):
        data = {"date": "2025-09-17", "truck_no": "T530 DRF",
                "yard": "DAR YARD", "liters": "80"}
        data.update(overrides)
        return self.post_json("/api/yard-fuel/", data)

    def test_yard_staff_records_and_ledger_moves(self):
        self.client.force_login(self.yard_user)
        response = self.dispense()
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["status"], "linked")
        self.assertEqual(body["ledger_column"], "dar_yard")
        self.record.refresh_from_db()
        self.assertEqual(self.record.dar_yard, Decimal("630.00"))

    def test_viewer_cannot_record(self):
        self.client.force_login(self.viewer)
        self.assertEqual(self.dispense().status_code, 403)

    def test_pending_then_rejected(self):
        self.client.force_login(self.yard_user)
        dispense_id = self.dispense(truck_no="T777 ABC").json()["id"]
        pending = self.client.get("/api/yard-fuel/pending/").json()["results"]
        self.assertEqual([d["id"] for d in pending], [dispense_id])

        url = f"/api/yard-fuel/{dispense_id}/reject/"
        # yard staff cannot reject their own slips
        self.assertEqual(self.post_json(url, {"reason": "x"}).status_code, 403)

        self.client.force_login(self.maker)
        self.assertEqual(self.post_json(url, {}).status_code, 400)
        response = self.post_json(url, {"reason": "Wrong truck"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "rejected")

    def test_unknown_yard_is_a_400(self):
        self.client.force_login(self.yard_user)
        self.assertEqual(self.dispense(yard="KIGOMA").status_code, 400)

    def test_delete_and_summary(self):
        self.client.force_login(self.maker)
        dispense_id = self.dispense().json()["id"]
        summary = self.client.get("/api/reports/yard-fuel/").json()["data"]
        self.assertEqual(Decimal(summary[0]["liters"]), Decimal("80.00"))

        response = self.client.delete(f"/api/yard-fuel/{dispense_id}/")
        self.assertEqual(response.status_code, 200)
        self.record.refresh_from_db()
        self.assertEqual(self.record.dar_yard, Decimal("550.00"))
        self.assertEqual(
            self.client.get(f"/api/yard-fuel/{dispense_id}/").status_code, 404)
