from django.contrib import admin

from ..models import LPOEntry
from .actions import (cancel_lpo_entries, mark_lpo_as_completed,
                      mark_lpo_as_sent, soft_delete_lpo_entries)


# Register `LPOEntry` model
@admin.register(LPOEntry)
class LPOEntryAdmin(admin.ModelAdmin):
    list_display = (
        "sn",
        "date",
        "lpo_no",
        "diesel_at",
        "truck_no",
        "do_sdo",
        "ltrs",
        "price_per_ltr",
        "payment_mode",
        "checkpoint",
        "status",
        "is_cancelled",
    )
    list_filter = ("payment_mode", "status", "is_cancelled", "diesel_at")
    search_fields = ("lpo_no", "truck_no", "truck_no_normalized", "do_sdo")
    # anything that moves ledger liters goes through the LPO services
    readonly_fields = (
        "lpo_no", "truck_no", "do_sdo", "diesel_at", "ltrs", "payment_mode",
        "journey_direction", "cancellation_point", "custom_station_name",
        "custom_target_column", "status",
        "checkpoint", "ledger_column", "fuel_record", "is_cancelled",
        "cancelled_at", "cancelled_by", "cancellation_reason",
        "cancelled_by_entry", "original_ltrs", "amended_at",
    )
    actions = [mark_lpo_as_sent, mark_lpo_as_completed,
               cancel_lpo_entries, soft_delete_lpo_entries]

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("fuel_record", "cancelled_by_entry")

    # entries are raised through the API so the ledger is updated with them
    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
