from decimal import Decimal

from django.db import models
from django.utils import timezone

from ..managers import AllRowsManager, LiveManager

ZERO = Decimal("0.00")


def liters_field(**kwargs):
    kwargs.setdefault("default", ZERO)
    return models.DecimalField(max_digits=12, decimal_places=2, **kwargs)


# ---------- Soft delete ----------
class SoftDeleteModel(models.Model):
    """
    Rows are flagged, never physically removed,
    so historical reports keep their numbers.
    """
    is_deleted = models.BooleanField(default=False, db_index=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    # First manager is the default one: live rows only
    objects = LiveManager()
    all_objects = AllRowsManager()

    class Meta:
        abstract = True

    def soft_delete(self):
        self.is_deleted = True
        self.deleted_at = timezone.now()
        # bypass save() so derived fields and versioning stay untouched
        type(self).all_objects.filter(pk=self.pk).update(
            is_deleted=True, deleted_at=self.deleted_at
        )
