import logging
from dataclasses import dataclass, field
from decimal import Decimal

from django.conf import settings

from ..checkpoints import GOING, normalize_station_name
from ..models import FuelStation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StationInfo:
    name: str
    price_per_liter: Decimal
    going_checkpoint: str = ""
    returning_checkpoint: str = ""


@dataclass(frozen=True)
class ConfigSnapshot:
    """
    Read-only view of the station table and fuel settings,
    taken once per request and handed to every service call.
    """
    stations: dict = field(default_factory=dict)  # normalized name -> StationInfo
    standard_allocations: dict = field(default_factory=dict)
    efficiency_bands: tuple = ()
    default_price: Decimal = Decimal("0.00")

    def station(self, name):
        return self.stations.get(normalize_station_name(name))

    def checkpoint_for_station(self, name, direction):
        info = self.station(name)
        if info is None:
            return ""
        if direction == GOING:
            return info.going_checkpoint
        return info.returning_checkpoint

    def stations_at(self, checkpoint_name):
        """Names of the active stations attached to a checkpoint."""
        return sorted(
            info.name for info in self.stations.values()
            if checkpoint_name in (info.going_checkpoint,
                                   info.returning_checkpoint)
        )


def load_config_snapshot():
    stations = {
        station.name: StationInfo(
            name=station.name,
            price_per_liter=station.price_per_liter,
            going_checkpoint=station.going_checkpoint,
            returning_checkpoint=station.returning_checkpoint,
        )
        for station in FuelStation.objects.filter(is_active=True)
    }
    logger.debug("Loaded fuel config with %d active stations", len(stations))
    return ConfigSnapshot(
        stations=stations,
        standard_allocations={
            column: Decimal(str(liters))
            for column, liters in settings.FUEL_STANDARD_ALLOCATIONS.items()
        },
        efficiency_bands=tuple(settings.FUEL_EFFICIENCY_BANDS),
        default_price=Decimal(str(settings.FUEL_DEFAULT_PRICE_PER_LITER)),
    )
