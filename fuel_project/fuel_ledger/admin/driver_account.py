from django.contrib import admin

from ..models import DriverAccountEntry
from .actions import settle_driver_accounts, soft_delete_driver_accounts


@admin.register(DriverAccountEntry)
class DriverAccountEntryAdmin(admin.ModelAdmin):
    list_display = (
        "date",
        "lpo_no",
        "truck_no",
        "driver_name",
        "liters",
        "rate",
        "amount",
        "station",
        "status",
        "settled_by",
    )
    list_filter = ("status", "year", "month", "payment_mode")
    search_fields = ("lpo_no", "truck_no", "driver_name")
    readonly_fields = ("amount", "settled_at", "settled_by",
                       "fuel_record", "ledger_column")
    actions = [settle_driver_accounts, soft_delete_driver_accounts]

    def has_delete_permission(self, request, obj=None):
        return False
