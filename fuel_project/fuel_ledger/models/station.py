from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..checkpoints import (FIXED_GOING_CHOICES, FIXED_RETURNING_CHOICES,
                           normalize_station_name)


# ---------- Fuel station (configuration) ----------
class FuelStation(models.Model):
    """
    A station trucks can draw diesel at.
    Active stations populate the fixed-station branch of the
    checkpoint resolver; a station may serve one checkpoint per direction.
    """
    # Stored upper-case with single spaces ("LAKE NDOLA")
    name = models.CharField(max_length=100, unique=True)
    location = models.CharField(max_length=100, blank=True)
    price_per_liter = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    is_active = models.BooleanField(default=True)

    # Which checkpoint a fill-up here counts against, per direction
    going_checkpoint = models.CharField(
        max_length=20, choices=FIXED_GOING_CHOICES, blank=True
    )
    returning_checkpoint = models.CharField(
        max_length=20, choices=FIXED_RETURNING_CHOICES, blank=True
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("name",)
        indexes = [models.Index(fields=["is_active"])]

    def __str__(self):
        return self.name

    def clean(self):
        if self.price_per_liter is not None and self.price_per_liter < 0:
            raise ValidationError("Price per liter cannot be negative")

    def save(self, *args, **kwargs):
        self.name = normalize_station_name(self.name)
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
