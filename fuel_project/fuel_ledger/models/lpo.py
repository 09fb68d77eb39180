from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..checkpoints import (CHECKPOINT_CHOICES, COLUMN_CHOICES,
                           DIRECTION_CHOICES, GOING, column_sign,
                           direction_of, is_custom, normalize_station_name)
from ..exceptions import MissingCheckpointSelection
from ..trucks import normalize_truck_no
from .base import ZERO, SoftDeleteModel, liters_field
from .fuel_record import FuelRecord

STATION = "STATION"
CASH = "CASH"
DRIVER_ACCOUNT = "DRIVER_ACCOUNT"

PAYMENT_MODE_CHOICES = [
    (STATION, "Station"),
    (CASH, "Cash"),
    (DRIVER_ACCOUNT, "Driver's account"),
]

LPO_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("sent", "Sent"),
    ("completed", "Completed"),
]


# ---------- Local purchase order line ----------
class LPOEntry(SoftDeleteModel):
    """
    One diesel purchase order line for one truck at one station.

    CASH entries name the checkpoint they pay for (`cancellation_point`)
    and auto-cancel any open LPO for the same truck at that checkpoint.
    STATION entries take their checkpoint from the station configuration.
    DRIVER_ACCOUNT entries never touch a fuel ledger.
    """

    sn = models.PositiveIntegerField(default=0)
    date = models.DateField()
    lpo_no = models.CharField(max_length=40)
    # Station the diesel is drawn at, stored normalized ("LAKE NDOLA")
    diesel_at = models.CharField(max_length=100)
    do_sdo = models.CharField(max_length=40, blank=True)
    truck_no = models.CharField(max_length=20)
    truck_no_normalized = models.CharField(
        max_length=20, db_index=True, editable=False)
    ltrs = liters_field()
    price_per_ltr = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"))
    destinations = models.CharField(max_length=200, blank=True)

    payment_mode = models.CharField(
        max_length=20, choices=PAYMENT_MODE_CHOICES, default=STATION)
    journey_direction = models.CharField(
        max_length=10, choices=DIRECTION_CHOICES, default=GOING)
    # Mandatory for CASH entries only
    cancellation_point = models.CharField(
        max_length=20, choices=CHECKPOINT_CHOICES, blank=True)

    # Unlisted (custom) station details
    custom_station_name = models.CharField(max_length=100, blank=True)
    custom_target_column = models.CharField(
        max_length=20, choices=COLUMN_CHOICES, blank=True)

    # Resolution result: which checkpoint / ledger column the liters hit
    checkpoint = models.CharField(
        max_length=20, choices=CHECKPOINT_CHOICES, blank=True)
    ledger_column = models.CharField(
        max_length=20, choices=COLUMN_CHOICES, blank=True)
    fuel_record = models.ForeignKey(
        FuelRecord,
        null=True,
        blank=True,
        # keep ledger history intact
        on_delete=models.PROTECT,
        related_name="lpo_entries",
    )

    # Journey link kept for driver's-account lines; never exported
    reference_do = models.CharField(max_length=40, blank=True)

    status = models.CharField(
        max_length=10, choices=LPO_STATUS_CHOICES, default="pending")
    """ Workflow:
        pending   = created, not yet sent to the station
        sent      = forwarded to the station
        completed = fuel dispensed """

    # Cancellation
    is_cancelled = models.BooleanField(default=False, db_index=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.CharField(max_length=150, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    # The CASH entry that superseded this one
    cancelled_by_entry = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="cancelled_entries",
    )

    # Amendment tracking
    original_ltrs = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True)
    amended_at = models.DateTimeField(null=True, blank=True)

    created_by = models.CharField(max_length=150, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-date", "-sn")
        indexes = [
            models.Index(fields=["lpo_no", "date"]),
            models.Index(fields=["diesel_at", "date"]),
            models.Index(fields=["truck_no_normalized", "checkpoint"]),
            models.Index(fields=["do_sdo"]),
        ]

    def __str__(self):
        return f"LPO {self.lpo_no} {self.truck_no} {self.ltrs}L @ {self.diesel_at}"

    @property
    def amount(self):
        return (self.ltrs or ZERO) * (self.price_per_ltr or ZERO)

    @property
    def is_driver_account(self):
        return self.payment_mode == DRIVER_ACCOUNT

    @property
    def ledger_liters(self):
        """Signed liters this entry contributes to its ledger column."""
        if not self.ledger_column:
            return ZERO
        return column_sign(self.ledger_column) * (self.ltrs or ZERO)

    def clean(self):
        if self.ltrs is not None and self.ltrs < 0:
            raise ValidationError("Liters cannot be negative")
        if self.price_per_ltr is not None and self.price_per_ltr < 0:
            raise ValidationError("Price cannot be negative")

        # CASH must say which checkpoint it pays for
        if self.payment_mode == CASH and not self.cancellation_point:
            raise MissingCheckpointSelection(
                "CASH entries require a cancellation point")
        # and nothing else may carry one
        if self.payment_mode != CASH and self.cancellation_point:
            raise ValidationError(
                "Only CASH entries can carry a cancellation point")

        if self.cancellation_point:
            if direction_of(self.cancellation_point) != self.journey_direction:
                raise ValidationError(
                    "Cancellation point does not match journey direction")
            if is_custom(self.cancellation_point) and not self.custom_station_name:
                raise ValidationError(
                    "Custom cancellation points need a custom station name")

        if not self.is_driver_account and not self.do_sdo:
            raise ValidationError("DO/SDO number is required")

    def save(self, *args, **kwargs):
        self.truck_no_normalized = normalize_truck_no(self.truck_no)
        self.diesel_at = normalize_station_name(self.diesel_at)
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)

    def transition_to(self, new_status):
        # Current state vs. allowed next states
        allowed = {
            "pending": ["sent"],
            "sent": ["completed"],
            "completed": [],
        }
        if self.is_cancelled:
            raise ValidationError("Cannot change status of a cancelled LPO")
        if new_status not in allowed.get(self.status, []):
            raise ValidationError(
                f"Cannot go from {self.status} to {new_status}")
        self.status = new_status
        self.save(update_fields=["status", "updated_at"])
