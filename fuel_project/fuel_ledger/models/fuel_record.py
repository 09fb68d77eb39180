from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from ..checkpoints import CHECKPOINT_COLUMNS, LEDGER_COLUMNS, YARD_COLUMNS
from ..exceptions import ConflictError
from ..trucks import normalize_truck_no
from .base import ZERO, SoftDeleteModel, liters_field


# ---------- Fuel ledger record (one truck journey) ----------
class FuelRecord(SoftDeleteModel):
    """
    Per-journey fuel ledger for one truck.

    Yard allocations and `extra` are credits (positive liters).
    Every checkpoint column holds liters drawn on the route as a
    negative magnitude. `total_lts` and `balance` are derived:
        total_lts = yard columns + extra
        balance   = straight signed sum of every liter field
    """

    # Journey identity
    date = models.DateField()
    month = models.CharField(max_length=20, blank=True)
    truck_no = models.CharField(max_length=20)
    truck_no_normalized = models.CharField(
        max_length=20, db_index=True, editable=False)
    going_do = models.CharField(max_length=40)
    return_do = models.CharField(max_length=40, blank=True)
    start = models.CharField(max_length=100)
    from_location = models.CharField(max_length=100)
    to_location = models.CharField(max_length=100)
    # going leg locations kept before an EXPORT DO rewrites from/to
    original_going_from = models.CharField(max_length=100, blank=True)
    original_going_to = models.CharField(max_length=100, blank=True)

    # Fuel beyond the standard allocation
    extra = liters_field()

    # Yard allocations
    mmsa_yard = liters_field()
    tanga_yard = liters_field()
    dar_yard = liters_field()

    # Going checkpoints
    dar_going = liters_field()
    moro_going = liters_field()
    mbeya_going = liters_field()
    tdm_going = liters_field()
    zambia_going = liters_field()
    congo_fuel = liters_field()

    # Returning checkpoints
    zambia_return = liters_field()
    tunduma_return = liters_field()
    mbeya_return = liters_field()
    moro_return = liters_field()
    dar_return = liters_field()
    tanga_return = liters_field()

    # Derived, never edited directly
    total_lts = liters_field(editable=False)
    balance = liters_field(editable=False)

    # Journey abandoned: record stays for history,
    # LPOs no longer resolve against it
    is_cancelled = models.BooleanField(default=False)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    cancelled_by = models.CharField(max_length=150, blank=True)

    # Optimistic concurrency marker, bumped on every write
    version = models.PositiveIntegerField(default=0, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-date", "-id")
        indexes = [
            models.Index(fields=["truck_no_normalized", "date"]),
            models.Index(fields=["going_do"]),
            models.Index(fields=["return_do"]),
            models.Index(fields=["month"]),
        ]

    def __str__(self):
        return f"{self.truck_no} DO {self.going_do} ({self.date})"

    def liter_values(self):
        """{column: liters} for every ledger column."""
        return {column: getattr(self, column) or ZERO
                for column in LEDGER_COLUMNS}

    def recalc_totals(self):
        """ Keep derived totals in sync with the liter columns """
        values = self.liter_values()
        self.total_lts = sum(
            (values[c] for c in YARD_COLUMNS), ZERO) + (self.extra or ZERO)
        self.balance = self.total_lts + sum(
            (values[c] for c in CHECKPOINT_COLUMNS), ZERO)

    def clean(self):
        if not self.going_do:
            raise ValidationError("Going DO is required")
        # sign convention: yards credit, checkpoints draw
        errors = {}
        for column in YARD_COLUMNS:
            value = getattr(self, column)
            if value is not None and value < 0:
                errors[column] = "Yard allocation cannot be negative"
        for column in CHECKPOINT_COLUMNS:
            value = getattr(self, column)
            if value is not None and value > 0:
                errors[column] = (
                    "Checkpoint liters are stored as negative magnitudes")
        if errors:
            raise ValidationError(errors)

    def save(self, *args, **kwargs):
        self.truck_no_normalized = normalize_truck_no(self.truck_no)
        # converts raw input (str/float) to Decimal/date and calls clean()
        self.full_clean()
        if not self.month:
            self.month = self.date.strftime("%B")
        self.recalc_totals()
        if self.pk:
            self.version += 1

        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            # derived fields always travel with whatever changed
            kwargs["update_fields"] = set(update_fields) | {
                "total_lts", "balance", "version",
                "truck_no_normalized", "month", "updated_at",
            }
        return super().save(*args, **kwargs)

    def save_versioned(self, expected_version):
        """
        Persist liter columns only if the row is still at
        `expected_version`; otherwise someone else wrote in between.
        """
        self.recalc_totals()
        self.clean()
        values = self.liter_values()
        values.update(
            extra=self.extra, total_lts=self.total_lts, balance=self.balance)
        updated = FuelRecord.all_objects.filter(
            pk=self.pk, version=expected_version
        ).update(
            version=expected_version + 1,
            updated_at=timezone.now(),
            **values,
        )
        if not updated:
            raise ConflictError(
                f"Fuel record {self.pk} was modified concurrently; "
                "reload and retry."
            )
        self.version = expected_version + 1
        return self

    def cancel(self, *, cancelled_by="", reason=""):
        self.is_cancelled = True
        self.cancelled_at = timezone.now()
        self.cancelled_by = cancelled_by
        self.cancellation_reason = reason
        self.save(update_fields=[
            "is_cancelled", "cancelled_at", "cancelled_by",
            "cancellation_reason",
        ])
