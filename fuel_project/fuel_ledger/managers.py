from django.db import models

from .trucks import normalize_truck_no


# -----------------------------------------
# Hide soft-deleted rows from default queries
# -----------------------------------------
class LiveQuerySet(models.QuerySet):
    def for_truck(self, truck_no):
        # Case/space/hyphen-insensitive truck match
        return self.filter(truck_no_normalized=normalize_truck_no(truck_no))

    def open(self):
        # Only for models with an is_cancelled flag (FuelRecord, LPOEntry)
        return self.filter(is_cancelled=False)


# Default manager: `Model.objects` never returns is_deleted rows
class LiveManager(models.Manager):

    def get_queryset(self):
        return LiveQuerySet(self.model, using=self._db).filter(
            is_deleted=False)

    def for_truck(self, truck_no):
        return self.get_queryset().for_truck(truck_no)

    def open(self):
        return self.get_queryset().open()


# `Model.all_objects` sees every row, deleted or not
# (archival reporting, soft-delete bookkeeping)
class AllRowsManager(models.Manager):

    def get_queryset(self):
        return LiveQuerySet(self.model, using=self._db)

    def for_truck(self, truck_no):
        return self.get_queryset().for_truck(truck_no)
