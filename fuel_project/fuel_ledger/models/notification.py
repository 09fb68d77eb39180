from django.db import models


# ---------- Notification (recorded only; delivery is external) ----------
class Notification(models.Model):
    # Role that should see it (see StaffRole.ROLE_CHOICES)
    recipient_role = models.CharField(max_length=30)
    title = models.CharField(max_length=200)
    message = models.TextField()
    # Object the notification is about
    object_type = models.CharField(max_length=100, blank=True)
    object_id = models.CharField(max_length=100, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)
        indexes = [models.Index(fields=["recipient_role", "is_read"])]

    def __str__(self):
        return f"{self.recipient_role}: {self.title}"
