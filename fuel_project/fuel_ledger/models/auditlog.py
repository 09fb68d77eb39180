from django.conf import settings  # To access global project settings
from django.db import models


# ---------- Audit / Event log ----------
class AuditLog(models.Model):
    """Who did what to which ledger, LPO or driver's-account row."""
    # Which user performed the action
    # (Nullable for background jobs and management commands)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    # Identity string handed over by the auth layer ("system" for jobs)
    actor = models.CharField(max_length=150, blank=True)
    # create, update, cancel, auto_cancel, settle, dispute, delete
    action = models.CharField(max_length=50)
    # e.g. "LPOEntry", "FuelRecord", "DriverAccountEntry"
    object_type = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    # before/after details of what changed, in JSON format
    changes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)
        indexes = [
            models.Index(fields=["object_type", "object_id"]),
            models.Index(fields=["created_at"]),
        ]

    def __str__(self):
        time = self.created_at
        return (f"[{time:%Y-%m-%d %H:%M}] {self.actor} {self.action} "
                f"{self.object_type}({self.object_id})")
