from decimal import Decimal

from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import transaction

from fuel_ledger.checkpoints import (DEFAULT_STATION_CHECKPOINTS, GOING,
                                     direction_of)
from fuel_ledger.models import FuelStation


class Command(BaseCommand):
    help = "Creates the default fuel stations and attaches their checkpoints."

    # Define command-line argument
    def add_arguments(self, parser):
        parser.add_argument(
            "--price",
            type=str,
            default=None,
            help="Price per liter for new stations "
                 "(default: FUEL_DEFAULT_PRICE_PER_LITER)",
        )

    def handle(self, *args, **options):
        price = Decimal(options["price"] or settings.FUEL_DEFAULT_PRICE_PER_LITER)
        created = 0

        with transaction.atomic():
            for name, checkpoint in DEFAULT_STATION_CHECKPOINTS.items():
                side = ("going_checkpoint" if direction_of(checkpoint) == GOING
                        else "returning_checkpoint")
                station, was_created = FuelStation.objects.get_or_create(
                    name=name,
                    defaults={"price_per_liter": price, side: checkpoint},
                )
                if was_created:
                    created += 1
                elif not getattr(station, side):
                    # existing station: only fill in a missing checkpoint
                    setattr(station, side, checkpoint)
                    station.save()

        self.stdout.write(self.style.SUCCESS(
            f"{created} stations created, "
            f"{len(DEFAULT_STATION_CHECKPOINTS) - created} already present."))
