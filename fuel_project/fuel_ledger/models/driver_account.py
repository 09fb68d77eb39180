from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..checkpoints import (CHECKPOINT_CHOICES, COLUMN_CHOICES,
                           DIRECTION_CHOICES, GOING, direction_of)
from ..trucks import normalize_truck_no
from .base import ZERO, SoftDeleteModel, liters_field
from .fuel_record import FuelRecord

DRIVER_PAYMENT_MODE_CHOICES = [
    ("TIGO_LIPA", "Tigo Lipa"),
    ("VODA_LIPA", "Voda Lipa"),
    ("SELCOM", "Selcom"),
    ("CASH", "Cash"),
    ("STATION", "Station"),
]

DRIVER_ACCOUNT_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("settled", "Settled"),
    ("disputed", "Disputed"),
]


# ---------- Driver's account (misuse / theft fuel) ----------
class DriverAccountEntry(SoftDeleteModel):
    """
    Fuel charged to the driver instead of the journey.
    Kept apart from the normal LPO flow; only touches a fuel ledger
    when an operator supplies a checkpoint at settlement.
    """

    date = models.DateField()
    month = models.CharField(max_length=20, blank=True)
    year = models.PositiveIntegerField(null=True, blank=True)
    lpo_no = models.CharField(max_length=40)
    truck_no = models.CharField(max_length=20)
    truck_no_normalized = models.CharField(
        max_length=20, db_index=True, editable=False)
    driver_name = models.CharField(max_length=150, blank=True)

    # amount = liters x rate, recomputed on every save
    liters = liters_field()
    rate = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"))
    amount = models.DecimalField(
        max_digits=16, decimal_places=2, default=Decimal("0.00"),
        editable=False)

    station = models.CharField(max_length=100)
    # Optional: most driver's-account fuel settles against no checkpoint
    cancellation_point = models.CharField(
        max_length=20, choices=CHECKPOINT_CHOICES, blank=True)
    custom_station_name = models.CharField(max_length=100, blank=True)
    custom_target_column = models.CharField(
        max_length=20, choices=COLUMN_CHOICES, blank=True)
    journey_direction = models.CharField(
        max_length=10, choices=DIRECTION_CHOICES, default=GOING)
    # Reference DO, never shown in exports
    original_do_no = models.CharField(max_length=40, blank=True)

    payment_mode = models.CharField(
        max_length=20, choices=DRIVER_PAYMENT_MODE_CHOICES, default="CASH")
    paybill_or_mobile = models.CharField(max_length=40, blank=True)

    status = models.CharField(
        max_length=10, choices=DRIVER_ACCOUNT_STATUS_CHOICES,
        default="pending")
    settled_at = models.DateTimeField(null=True, blank=True)
    settled_by = models.CharField(max_length=150, blank=True)
    approved_by = models.CharField(max_length=150, blank=True)
    notes = models.TextField(blank=True)

    # Ledger effect, only set when settled against a checkpoint
    fuel_record = models.ForeignKey(
        FuelRecord,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="driver_account_entries",
    )
    ledger_column = models.CharField(
        max_length=20, choices=COLUMN_CHOICES, blank=True)

    created_by = models.CharField(max_length=150)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-date", "-id")
        verbose_name_plural = "driver account entries"
        indexes = [
            models.Index(fields=["year", "month"]),
            models.Index(fields=["truck_no_normalized", "year"]),
            models.Index(fields=["lpo_no"]),
            models.Index(fields=["status"]),
        ]

    def __str__(self):
        return f"DA {self.lpo_no} {self.truck_no} {self.liters}L [{self.status}]"

    def clean(self):
        if self.liters is not None and self.liters < 0:
            raise ValidationError("Liters cannot be negative")
        if self.rate is not None and self.rate < 0:
            raise ValidationError("Rate cannot be negative")
        if self.cancellation_point and (
            direction_of(self.cancellation_point) != self.journey_direction
        ):
            raise ValidationError(
                "Cancellation point does not match journey direction")

        # Settled entries are final
        if self.pk and self.status == "settled":
            orig = DriverAccountEntry.all_objects.get(pk=self.pk)
            if orig.status == "settled":
                changed_fields = [
                    field for field in ("liters", "rate", "truck_no", "lpo_no")
                    if getattr(orig, field) != getattr(self, field)
                ]
                if changed_fields:
                    raise ValidationError(
                        f"Cannot modify {changed_fields} on a settled entry."
                    )

    def save(self, *args, **kwargs):
        self.truck_no_normalized = normalize_truck_no(self.truck_no)
        self.full_clean()
        if not self.month:
            self.month = self.date.strftime("%B")
        if not self.year:
            self.year = self.date.year
        # never stored as authoritative: always liters x rate
        self.amount = ((self.liters or ZERO) * (self.rate or ZERO)).quantize(
            Decimal("0.01"))

        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = set(update_fields) | {
                "amount", "truck_no_normalized", "month", "year", "updated_at",
            }
        return super().save(*args, **kwargs)

    def transition_to(self, new_status):
        allowed = {
            "pending": ["settled", "disputed"],
            "disputed": ["settled"],
            "settled": [],
        }
        if new_status not in allowed.get(self.status, []):
            raise ValidationError(
                f"Cannot go from {self.status} to {new_status}")
        self.status = new_status
