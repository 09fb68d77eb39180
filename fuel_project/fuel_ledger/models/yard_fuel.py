from django.core.exceptions import ValidationError
from django.db import models

from ..checkpoints import YARD_CHOICES, YARDS
from ..trucks import normalize_truck_no
from .base import SoftDeleteModel, liters_field
from .fuel_record import FuelRecord

YARD_DISPENSE_STATUS_CHOICES = [
    ("pending", "Pending"),  # no open fuel record for the truck yet
    ("linked", "Linked"),  # liters credited to a fuel record's yard column
    ("rejected", "Rejected"),  # sent back to the yard
]


# ---------- Yard fuel dispense ----------
class YardFuelDispense(SoftDeleteModel):
    """
    Fuel handed out at one of the company yards.
    Credited to the truck's open fuel record, or held as pending
    until that record is opened.
    """

    date = models.DateField()
    truck_no = models.CharField(max_length=20)
    truck_no_normalized = models.CharField(
        max_length=20, db_index=True, editable=False)
    liters = liters_field()
    yard = models.CharField(max_length=20, choices=YARD_CHOICES)
    entered_by = models.CharField(max_length=150)
    notes = models.TextField(blank=True)

    status = models.CharField(
        max_length=10, choices=YARD_DISPENSE_STATUS_CHOICES, default="pending")
    fuel_record = models.ForeignKey(
        FuelRecord,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="yard_dispenses",
    )
    linked_do = models.CharField(max_length=40, blank=True)
    # linked on entry rather than when the record was opened later
    auto_linked = models.BooleanField(default=False)

    rejection_reason = models.CharField(max_length=255, blank=True)
    rejected_by = models.CharField(max_length=150, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-date", "-id")
        indexes = [
            models.Index(fields=["truck_no_normalized", "status"]),
            models.Index(fields=["yard", "date"]),
        ]

    def __str__(self):
        return f"{self.yard} {self.truck_no} {self.liters}L [{self.status}]"

    @property
    def ledger_column(self):
        return YARDS[self.yard]

    def clean(self):
        if self.liters is not None and self.liters <= 0:
            raise ValidationError({"liters": "Liters must be greater than zero"})
        if self.status == "linked" and self.fuel_record_id is None:
            raise ValidationError("A linked dispense needs a fuel record")

    def save(self, *args, **kwargs):
        self.truck_no_normalized = normalize_truck_no(self.truck_no)
        self.full_clean()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = set(update_fields) | {
                "truck_no_normalized", "updated_at"}
        return super().save(*args, **kwargs)
