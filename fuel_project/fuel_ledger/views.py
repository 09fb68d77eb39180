import json
from dataclasses import asdict
from functools import wraps

from django.core.exceptions import ValidationError
from django.core.paginator import Paginator
from django.forms.models import model_to_dict
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .models import (DriverAccountEntry, FuelRecord, LPOEntry,
                     YardFuelDispense, has_role)
from .services import (amend_lpo_liters, cancel_fuel_record, cancel_lpo_entry,
                       cancellation_report, cancellation_statement,
                       create_driver_account_entry, create_fuel_record,
                       create_lpo_entry, delete_driver_account_entry,
                       delete_fuel_record, delete_lpo_entry,
                       delete_yard_dispense,
                       detect_extra_fuel, dispute_driver_account_entry,
                       driver_account_summary, monthly_fuel_summary,
                       next_lpo_number, pending_yard_dispenses,
                       record_by_going_do, record_yard_dispense,
                       records_for_truck, reject_yard_dispense,
                       route_totals, set_lpo_status,
                       settle_driver_account_entry, station_cost_summary,
                       truck_efficiency_bands, update_driver_account_entry,
                       update_fuel_allocations, update_journey,
                       yard_fuel_summary)
from .services.checkpoints import CustomStation
from .services.exports import (DRIVER_ACCOUNT_EXPORT_FIELDS,
                               LPO_EXPORT_FIELDS, driver_account_export_row,
                               lpo_export_row, write_csv)

PAGE_SIZE = 50

MANAGERS = ("admin", "manager")
ORDER_MAKERS = ("admin", "manager", "fuel_order_maker")
YARD_WRITERS = ORDER_MAKERS + ("yard_staff",)


# ---------- helpers ----------
def api_login_required(*roles):
    """401 for anonymous users; 403 when `roles` is given and none match."""
    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            if not request.user.is_authenticated:
                return JsonResponse(
                    {"ok": False, "error": "Authentication required"},
                    status=401)
            if roles and not has_role(request.user, *roles):
                return JsonResponse(
                    {"ok": False, "error": "Permission denied"}, status=403)
            return view(request, *args, **kwargs)
        return wrapper
    return decorator


def _payload(request):
    # JSON body when sent as JSON, form data otherwise
    if request.content_type == "application/json":
        try:
            data = json.loads(request.body or b"{}")
        except ValueError:
            raise ValidationError("Request body is not valid JSON")
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data
    return request.POST.dict()


def _actor(request):
    return request.user.get_username()


def _year(request):
    year = request.GET.get("year")
    if year and not year.isdigit():
        raise ValidationError({"year": "Year must be a number"})
    return int(year) if year else None


def _paginate(request, queryset, serialize):
    page = Paginator(queryset, PAGE_SIZE).get_page(request.GET.get("page"))
    return {
        "count": page.paginator.count,
        "page": page.number,
        "pages": page.paginator.num_pages,
        "results": [serialize(obj) for obj in page.object_list],
    }


def fuel_record_json(record):
    data = model_to_dict(record)
    data.update(id=record.pk, total_lts=record.total_lts,
                balance=record.balance, version=record.version,
                month=record.month)
    return data


def lpo_entry_json(entry):
    data = model_to_dict(entry, exclude=["reference_do"])
    data.update(id=entry.pk, amount=entry.amount,
                cancelled_at=entry.cancelled_at)
    if entry.is_driver_account:
        data.update(do_sdo="NIL", destinations="NIL")
    return data


def driver_account_json(entry):
    data = model_to_dict(entry, exclude=["original_do_no"])
    data.update(id=entry.pk, amount=entry.amount, year=entry.year,
                month=entry.month, settled_at=entry.settled_at)
    return data


def yard_dispense_json(dispense):
    data = model_to_dict(dispense)
    data.update(id=dispense.pk, ledger_column=dispense.ledger_column,
                rejected_at=dispense.rejected_at,
                created_at=dispense.created_at)
    return data


# ---------- fuel records ----------
@require_http_methods(["GET", "POST"])
@api_login_required()
def fuel_records(request):
    if request.method == "POST":
        record = create_fuel_record(_payload(request), actor=_actor(request))
        return JsonResponse(fuel_record_json(record), status=201)

    if request.GET.get("truck_no"):
        qs = records_for_truck(request.GET["truck_no"])
    else:
        qs = FuelRecord.objects.all()
    if request.GET.get("going_do"):
        qs = qs.filter(going_do__iexact=request.GET["going_do"])
    if request.GET.get("month"):
        qs = qs.filter(month__iexact=request.GET["month"])
    return JsonResponse(_paginate(request, qs, fuel_record_json))


@require_http_methods(["GET", "PATCH", "DELETE"])
@api_login_required()
def fuel_record_detail(request, record_id):
    if request.method == "GET":
        record = get_object_or_404(FuelRecord, pk=record_id)
        return JsonResponse(fuel_record_json(record))

    if not has_role(request.user, *ORDER_MAKERS):
        return JsonResponse(
            {"ok": False, "error": "Permission denied"}, status=403)

    if request.method == "DELETE":
        delete_fuel_record(record_id, actor=_actor(request))
        return JsonResponse({"ok": True})

    data = _payload(request)
    allocations = data.pop("allocations", None)
    expected_version = data.pop("version", None)
    # liters first: the journey save bumps the version
    if allocations:
        if expected_version is None:
            raise ValidationError({"version": "Required when changing liters"})
        update_fuel_allocations(record_id, allocations,
                                expected_version=expected_version,
                                actor=_actor(request))
    if data:
        update_journey(record_id, data, actor=_actor(request))
    record = get_object_or_404(FuelRecord, pk=record_id)
    return JsonResponse(fuel_record_json(record))


@require_GET
@api_login_required()
def fuel_record_extra_fuel(request, record_id):
    record = get_object_or_404(FuelRecord, pk=record_id)
    findings = detect_extra_fuel(
        record, request.fuel_config.standard_allocations)
    return JsonResponse({
        "record": record.pk,
        "findings": [asdict(finding) for finding in findings],
    })


@require_POST
@api_login_required(*ORDER_MAKERS)
def fuel_record_cancel(request, record_id):
    data = _payload(request)
    record = cancel_fuel_record(record_id, actor=_actor(request),
                                reason=data.get("reason", ""))
    return JsonResponse(fuel_record_json(record))


@require_GET
@api_login_required()
def fuel_record_by_do(request, going_do):
    return JsonResponse(fuel_record_json(record_by_going_do(going_do)))


# ---------- LPO entries ----------
@require_http_methods(["GET", "POST"])
@api_login_required()
def lpo_entries(request):
    if request.method == "POST":
        if not has_role(request.user, *ORDER_MAKERS):
            return JsonResponse(
                {"ok": False, "error": "Permission denied"}, status=403)
        result = create_lpo_entry(
            request.fuel_config, _payload(request), actor=_actor(request))
        return JsonResponse({
            "entry": lpo_entry_json(result.entry),
            "cancelled_ids": result.cancelled_ids,
            "fuel_record": (fuel_record_json(result.record)
                            if result.record else None),
        }, status=201)

    qs = LPOEntry.objects.all()
    if request.GET.get("lpo_no"):
        qs = qs.filter(lpo_no=request.GET["lpo_no"])
    if request.GET.get("truck_no"):
        qs = qs.for_truck(request.GET["truck_no"])
    if request.GET.get("station"):
        qs = qs.filter(diesel_at__iexact=request.GET["station"])
    if request.GET.get("include_cancelled") in ("0", "false"):
        qs = qs.open()
    return JsonResponse(_paginate(request, qs, lpo_entry_json))


@require_http_methods(["GET", "PATCH", "DELETE"])
@api_login_required()
def lpo_entry_detail(request, entry_id):
    if request.method == "GET":
        entry = get_object_or_404(LPOEntry, pk=entry_id)
        return JsonResponse(lpo_entry_json(entry))

    if not has_role(request.user, *ORDER_MAKERS):
        return JsonResponse(
            {"ok": False, "error": "Permission denied"}, status=403)
    if request.method == "DELETE":
        delete_lpo_entry(entry_id, actor=_actor(request))
        return JsonResponse({"ok": True})

    data = _payload(request)
    if "ltrs" not in data:
        raise ValidationError({"ltrs": "This field is required"})
    entry = amend_lpo_liters(entry_id, data["ltrs"], actor=_actor(request))
    return JsonResponse(lpo_entry_json(entry))


@require_POST
@api_login_required(*ORDER_MAKERS)
def lpo_entry_cancel(request, entry_id):
    data = _payload(request)
    entry = cancel_lpo_entry(entry_id, actor=_actor(request),
                             reason=data.get("reason", ""))
    return JsonResponse(lpo_entry_json(entry))


@require_POST
@api_login_required(*ORDER_MAKERS)
def lpo_entry_status(request, entry_id):
    data = _payload(request)
    entry = set_lpo_status(entry_id, data.get("status"), actor=_actor(request))
    return JsonResponse({"id": entry.pk, "status": entry.status})


@require_GET
@api_login_required()
def lpo_cancellation_report(request, lpo_no):
    report = cancellation_report(lpo_no)
    report["statement"] = cancellation_statement(lpo_no)
    return JsonResponse(report)


@require_GET
@api_login_required()
def lpo_next_number(request):
    return JsonResponse({"next_lpo_no": next_lpo_number(_year(request))})


# ---------- driver's account ----------
@require_http_methods(["GET", "POST"])
@api_login_required()
def driver_accounts(request):
    if request.method == "POST":
        if not has_role(request.user, *ORDER_MAKERS):
            return JsonResponse(
                {"ok": False, "error": "Permission denied"}, status=403)
        entry = create_driver_account_entry(
            request.fuel_config, _payload(request), actor=_actor(request))
        return JsonResponse(driver_account_json(entry), status=201)

    qs = DriverAccountEntry.objects.all()
    if request.GET.get("status"):
        qs = qs.filter(status=request.GET["status"])
    if request.GET.get("truck_no"):
        qs = qs.for_truck(request.GET["truck_no"])
    if request.GET.get("year"):
        qs = qs.filter(year=request.GET["year"])
    return JsonResponse(_paginate(request, qs, driver_account_json))


@require_http_methods(["GET", "PATCH", "DELETE"])
@api_login_required()
def driver_account_detail(request, entry_id):
    if request.method == "GET":
        entry = get_object_or_404(DriverAccountEntry, pk=entry_id)
        return JsonResponse(driver_account_json(entry))

    if not has_role(request.user, *MANAGERS):
        return JsonResponse(
            {"ok": False, "error": "Permission denied"}, status=403)
    if request.method == "DELETE":
        delete_driver_account_entry(entry_id, actor=_actor(request))
        return JsonResponse({"ok": True})

    entry = update_driver_account_entry(
        entry_id, _payload(request), actor=_actor(request))
    return JsonResponse(driver_account_json(entry))


@require_POST
@api_login_required(*MANAGERS)
def driver_account_settle(request, entry_id):
    data = _payload(request)
    entry = settle_driver_account_entry(
        request.fuel_config,
        entry_id,
        settled_by=_actor(request),
        cancellation_point=data.get("cancellation_point") or None,
        custom_station=CustomStation.from_payload(data),
        approved_by=data.get("approved_by", ""),
    )
    return JsonResponse(driver_account_json(entry))


@require_POST
@api_login_required(*MANAGERS)
def driver_account_dispute(request, entry_id):
    data = _payload(request)
    entry = dispute_driver_account_entry(
        entry_id, actor=_actor(request), notes=data.get("notes", ""))
    return JsonResponse(driver_account_json(entry))


# ---------- yard fuel ----------
@require_http_methods(["GET", "POST"])
@api_login_required()
def yard_fuel(request):
    if request.method == "POST":
        if not has_role(request.user, *YARD_WRITERS):
            return JsonResponse(
                {"ok": False, "error": "Permission denied"}, status=403)
        dispense = record_yard_dispense(_payload(request), actor=_actor(request))
        return JsonResponse(yard_dispense_json(dispense), status=201)

    qs = YardFuelDispense.objects.all()
    if request.GET.get("truck_no"):
        qs = qs.for_truck(request.GET["truck_no"])
    if request.GET.get("yard"):
        qs = qs.filter(yard__iexact=request.GET["yard"])
    if request.GET.get("status"):
        qs = qs.filter(status=request.GET["status"])
    return JsonResponse(_paginate(request, qs, yard_dispense_json))


@require_GET
@api_login_required()
def yard_fuel_pending(request):
    qs = pending_yard_dispenses(request.GET.get("truck_no"))
    return JsonResponse({"results": [yard_dispense_json(d) for d in qs]})


@require_http_methods(["GET", "DELETE"])
@api_login_required()
def yard_fuel_detail(request, dispense_id):
    if request.method == "GET":
        dispense = get_object_or_404(YardFuelDispense, pk=dispense_id)
        return JsonResponse(yard_dispense_json(dispense))

    if not has_role(request.user, *ORDER_MAKERS):
        return JsonResponse(
            {"ok": False, "error": "Permission denied"}, status=403)
    delete_yard_dispense(dispense_id, actor=_actor(request))
    return JsonResponse({"ok": True})


@require_POST
@api_login_required(*ORDER_MAKERS)
def yard_fuel_reject(request, dispense_id):
    data = _payload(request)
    dispense = reject_yard_dispense(dispense_id, actor=_actor(request),
                                    reason=data.get("reason", ""))
    return JsonResponse(yard_dispense_json(dispense))


# ---------- reports ----------
@require_GET
@api_login_required()
def report(request, name):
    config = request.fuel_config
    year = _year(request)
    if name == "route-totals":
        data = route_totals(year)
    elif name == "truck-efficiency":
        data = truck_efficiency_bands(config.efficiency_bands, year)
    elif name == "station-costs":
        data = station_cost_summary(request.GET.get("from"),
                                    request.GET.get("to"))
    elif name == "monthly":
        if year is None:
            raise ValidationError({"year": "This report needs a year"})
        data = monthly_fuel_summary(year)
    elif name == "driver-accounts":
        data = driver_account_summary(year)
    elif name == "yard-fuel":
        data = yard_fuel_summary(request.GET.get("from"),
                                 request.GET.get("to"))
    else:
        return JsonResponse(
            {"ok": False, "error": f"Unknown report '{name}'"}, status=404)
    return JsonResponse({"report": name, "data": data})


# ---------- exports ----------
def _csv_response(filename):
    response = HttpResponse(content_type="text/csv")
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


@require_GET
@api_login_required()
def export_lpo_entries(request):
    qs = LPOEntry.objects.all().order_by("date", "sn")
    if request.GET.get("lpo_no"):
        qs = qs.filter(lpo_no=request.GET["lpo_no"])
    response = _csv_response("lpo_entries.csv")
    write_csv(response, LPO_EXPORT_FIELDS, (lpo_export_row(e) for e in qs))
    return response


@require_GET
@api_login_required()
def export_driver_accounts(request):
    qs = DriverAccountEntry.objects.all().order_by("date", "id")
    year = _year(request)
    if year:
        qs = qs.filter(year=year)
    response = _csv_response("driver_accounts.csv")
    write_csv(response, DRIVER_ACCOUNT_EXPORT_FIELDS,
              (driver_account_export_row(e) for e in qs))
    return response
