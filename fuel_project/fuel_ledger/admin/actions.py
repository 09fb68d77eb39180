from django.contrib import admin, messages
from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.utils.translation import gettext_lazy as _

from ..exceptions import ConflictError
from ..services import (cancel_fuel_record, cancel_lpo_entry,
                        delete_driver_account_entry, delete_fuel_record,
                        delete_lpo_entry, delete_yard_dispense,
                        reject_yard_dispense, set_lpo_status,
                        settle_driver_account_entry)
from ..services.config import load_config_snapshot

# ---------- Admin actions ----------


def _run_each(modeladmin, request, queryset, verb, func):
    """
    Apply `func(obj)` to every selected row, one service call
    (and one transaction) per row, and report per-row failures.
    """
    total = queryset.count()
    success = 0
    failures = 0
    for obj in queryset:
        try:
            func(obj)
            success += 1
        except (ValidationError, ConflictError, ObjectDoesNotExist) as exc:
            failures += 1
            modeladmin.message_user(
                request,
                _("Could not %(verb)s %(obj)s: %(err)s") % {
                    "verb": verb, "obj": obj, "err": exc},
                level=messages.ERROR,
            )

    # Final summary message
    modeladmin.message_user(
        request,
        _("%(verb)s %(success)d of %(total)d. %(failures)d failed.") % {
            "verb": verb.capitalize(),
            "success": success,
            "total": total,
            "failures": failures,
        },
        level=messages.SUCCESS if failures == 0 else messages.WARNING,
    )


@admin.action(description="Mark selected LPO entries as Sent")
def mark_lpo_as_sent(modeladmin, request, queryset):
    actor = request.user.get_username()
    _run_each(modeladmin, request, queryset.filter(status="pending"), "send",
              lambda entry: set_lpo_status(entry.pk, "sent", actor=actor))


@admin.action(description="Mark selected LPO entries as Completed")
def mark_lpo_as_completed(modeladmin, request, queryset):
    actor = request.user.get_username()
    _run_each(modeladmin, request, queryset.filter(status="sent"), "complete",
              lambda entry: set_lpo_status(entry.pk, "completed", actor=actor))


@admin.action(description="Cancel selected LPO entries")
def cancel_lpo_entries(modeladmin, request, queryset):
    actor = request.user.get_username()
    _run_each(modeladmin, request, queryset, "cancel",
              lambda entry: cancel_lpo_entry(
                  entry.pk, actor=actor, reason="Cancelled from admin"))


@admin.action(description="Soft-delete selected LPO entries")
def soft_delete_lpo_entries(modeladmin, request, queryset):
    actor = request.user.get_username()
    _run_each(modeladmin, request, queryset, "delete",
              lambda entry: delete_lpo_entry(entry.pk, actor=actor))


@admin.action(description="Settle selected driver account entries")
def settle_driver_accounts(modeladmin, request, queryset):
    actor = request.user.get_username()
    config = load_config_snapshot()
    _run_each(modeladmin, request, queryset.exclude(status="settled"), "settle",
              lambda entry: settle_driver_account_entry(
                  config, entry.pk, settled_by=actor))


@admin.action(description="Soft-delete selected driver account entries")
def soft_delete_driver_accounts(modeladmin, request, queryset):
    # settled entries give their liters back to the ledger
    actor = request.user.get_username()
    _run_each(modeladmin, request, queryset, "delete",
              lambda entry: delete_driver_account_entry(entry.pk, actor=actor))


@admin.action(description="Cancel selected fuel records")
def cancel_fuel_records(modeladmin, request, queryset):
    actor = request.user.get_username()
    _run_each(modeladmin, request, queryset, "cancel",
              lambda record: cancel_fuel_record(
                  record.pk, actor=actor, reason="Cancelled from admin"))


@admin.action(description="Soft-delete selected fuel records")
def soft_delete_fuel_records(modeladmin, request, queryset):
    actor = request.user.get_username()
    _run_each(modeladmin, request, queryset, "delete",
              lambda record: delete_fuel_record(record.pk, actor=actor))


@admin.action(description="Reject selected pending yard dispenses")
def reject_yard_dispenses(modeladmin, request, queryset):
    actor = request.user.get_username()
    _run_each(modeladmin, request, queryset.filter(status="pending"), "reject",
              lambda dispense: reject_yard_dispense(
                  dispense.pk, actor=actor, reason="Rejected from admin"))


@admin.action(description="Soft-delete selected yard dispenses")
def soft_delete_yard_dispenses(modeladmin, request, queryset):
    actor = request.user.get_username()
    _run_each(modeladmin, request, queryset, "delete",
              lambda dispense: delete_yard_dispense(dispense.pk, actor=actor))
