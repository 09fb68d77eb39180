from django.core.exceptions import ValidationError
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .models import DriverAccountEntry, FuelRecord, LPOEntry, YardFuelDispense

""" Ledger history is never physically removed: use soft_delete(). """


# pre_delete fires just before Django deletes a row,
# including cascades and queryset.delete()
@receiver(pre_delete, sender=FuelRecord)
def prevent_delete_fuel_record(sender, instance, **kwargs):
    raise ValidationError("Fuel records can only be soft-deleted.")


@receiver(pre_delete, sender=LPOEntry)
def prevent_delete_lpo_entry(sender, instance, **kwargs):
    raise ValidationError("LPO entries can only be soft-deleted.")


@receiver(pre_delete, sender=DriverAccountEntry)
def prevent_delete_driver_account_entry(sender, instance, **kwargs):
    # a settled entry may have moved ledger liters
    raise ValidationError(
        "Driver account entries can only be soft-deleted.")


@receiver(pre_delete, sender=YardFuelDispense)
def prevent_delete_yard_dispense(sender, instance, **kwargs):
    raise ValidationError("Yard fuel dispenses can only be soft-deleted.")
