from django.conf import settings
from django.db import models


# ---------- Staff role ----------
class StaffRole(models.Model):
    """Role of a back-office user; drives what the JSON API lets them do."""

    ROLE_CHOICES = [
        ("admin", "Admin"),  # full control, user administration
        ("manager", "Manager"),  # approves, settles, cancels
        ("fuel_order_maker", "Fuel order maker"),  # raises LPOs
        ("station_manager", "Station manager"),  # sees own station's LPOs
        ("yard_staff", "Yard staff"),  # records yard fuel dispenses
        ("driver", "Driver"),  # sees own truck only
        ("viewer", "Viewer"),  # read-only access
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="staff_role",
    )
    role = models.CharField(
        max_length=20, choices=ROLE_CHOICES, default="viewer")
    # Suspend access without deleting the record
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.user} ({self.role})"


def has_role(user, *roles):
    """Superusers pass every check; everyone else needs an active role."""
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    return StaffRole.objects.filter(
        user=user, role__in=roles, is_active=True).exists()
