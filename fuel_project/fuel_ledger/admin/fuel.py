from django.contrib import admin

from ..models import FuelRecord, FuelStation
from .actions import cancel_fuel_records, soft_delete_fuel_records


@admin.register(FuelStation)
class FuelStationAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "location",
        "price_per_liter",
        "going_checkpoint",
        "returning_checkpoint",
        "is_active",
    )
    list_filter = ("is_active", "going_checkpoint", "returning_checkpoint")
    search_fields = ("name", "location")


# Register `FuelRecord` model
@admin.register(FuelRecord)
class FuelRecordAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "date",
        "truck_no",
        "going_do",
        "return_do",
        "from_location",
        "to_location",
        "total_lts",
        "balance",
        "is_cancelled",
    )
    list_filter = ("month", "is_cancelled", "date")
    search_fields = ("truck_no", "truck_no_normalized", "going_do", "return_do")
    # derived fields stay out of the form
    readonly_fields = ("truck_no_normalized", "total_lts", "balance",
                       "version", "created_at", "updated_at")
    actions = [cancel_fuel_records, soft_delete_fuel_records]

    # rows are soft-deleted through the actions above
    def has_delete_permission(self, request, obj=None):
        return False
