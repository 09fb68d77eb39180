from django.contrib import admin
from django.core.exceptions import PermissionDenied

"""Base admin for rows written only by the services (audit log, notifications)."""
class ReadOnlyAdmin(admin.ModelAdmin):
    list_per_page = 50
    ordering = ("-created_at",)
    date_hierarchy = "created_at"

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def save_model(self, request, obj, form, change):
        raise PermissionDenied(
            f"{self.model._meta.verbose_name} rows are written by the ledger services.")

    # no delete_selected or other bulk actions
    def get_actions(self, request):
        return {}
