from django.contrib import admin

from ..models import YardFuelDispense
from .actions import reject_yard_dispenses, soft_delete_yard_dispenses


@admin.register(YardFuelDispense)
class YardFuelDispenseAdmin(admin.ModelAdmin):
    list_display = (
        "date",
        "yard",
        "truck_no",
        "liters",
        "status",
        "linked_do",
        "auto_linked",
        "entered_by",
    )
    list_filter = ("status", "yard", "auto_linked", "date")
    search_fields = ("truck_no", "truck_no_normalized", "linked_do")
    # liters reach the ledger through the yard fuel services only
    readonly_fields = (
        "date", "truck_no", "truck_no_normalized", "liters", "yard",
        "entered_by", "status", "fuel_record", "linked_do", "auto_linked",
        "rejection_reason", "rejected_by", "rejected_at",
        "created_at", "updated_at",
    )
    actions = [reject_yard_dispenses, soft_delete_yard_dispenses]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
