from dataclasses import dataclass

from django.core.exceptions import ValidationError

from ..checkpoints import (CUSTOM_GOING, CUSTOM_RETURN, FIXED_CHECKPOINTS,
                           GOING, RETURNING, columns_for_direction,
                           direction_of, is_custom, normalize_station_name)
from ..exceptions import MissingCheckpointSelection
from ..models.lpo import CASH


# ----------------------------
# Checkpoint variants
# ----------------------------
@dataclass(frozen=True)
class FixedCheckpoint:
    name: str

    @property
    def direction(self):
        return direction_of(self.name)


@dataclass(frozen=True)
class CustomCheckpoint:
    station_name: str
    direction: str
    target_column: str = ""

    @property
    def name(self):
        return CUSTOM_GOING if self.direction == GOING else CUSTOM_RETURN


@dataclass(frozen=True)
class CustomStation:
    """
    An unlisted station (small lake stations in Zambia and the like).
    Each direction is enabled independently and carries its own column:
    "Custom1" is the going side, "Custom2" the returning side.
    """
    name: str
    going_enabled: bool = False
    going_column: str = ""
    return_enabled: bool = False
    return_column: str = ""

    @classmethod
    def from_payload(cls, data):
        name = normalize_station_name(data.get("custom_station_name"))
        if not name:
            return None
        going_column = data.get("custom_going_column") or ""
        return_column = data.get("custom_return_column") or ""
        # a chosen column implies the direction is enabled
        return cls(
            name=name,
            going_enabled=_flag(data.get("custom_going_enabled")) or bool(going_column),
            going_column=going_column,
            return_enabled=_flag(data.get("custom_return_enabled")) or bool(return_column),
            return_column=return_column,
        )

    def checkpoint_for(self, direction):
        if direction == GOING:
            enabled, column = self.going_enabled, self.going_column
        elif direction == RETURNING:
            enabled, column = self.return_enabled, self.return_column
        else:
            raise ValidationError(f"Unknown journey direction '{direction}'")

        if not enabled:
            raise ValidationError(
                f"Custom station {self.name} is not enabled "
                f"for {direction} journeys")
        if not column:
            raise MissingCheckpointSelection(
                f"Custom station {self.name} needs a ledger column "
                f"for {direction} journeys")
        return CustomCheckpoint(self.name, direction, column)


def _flag(value):
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


# ----------------------------
# Resolver
# ----------------------------
def resolve_column(checkpoint):
    """
    Ledger column a checkpoint's liters land in.
    Pure: the caller performs the ledger update.
    """
    if isinstance(checkpoint, FixedCheckpoint):
        try:
            return FIXED_CHECKPOINTS[checkpoint.name][1]
        except KeyError:
            raise ValidationError(f"Unknown checkpoint '{checkpoint.name}'")

    if isinstance(checkpoint, CustomCheckpoint):
        if not checkpoint.target_column:
            raise MissingCheckpointSelection(
                f"No ledger column chosen for custom station "
                f"{checkpoint.station_name} ({checkpoint.direction})")
        if checkpoint.target_column not in columns_for_direction(
                checkpoint.direction):
            raise ValidationError(
                f"Column {checkpoint.target_column} is not a "
                f"{checkpoint.direction} checkpoint column")
        return checkpoint.target_column

    raise TypeError(f"Not a checkpoint: {checkpoint!r}")


def checkpoint_from_selection(payment_mode, cancellation_point, direction,
                              custom_station=None):
    """
    Turn the user's selection into a checkpoint variant.
    Returns None when nothing was selected and none is required.
    """
    # fail fast: never default a CASH entry's checkpoint
    if payment_mode == CASH and not cancellation_point:
        raise MissingCheckpointSelection(
            "CASH entries require a cancellation point")
    if not cancellation_point:
        return None

    point_direction = direction_of(cancellation_point)
    if point_direction is None:
        raise ValidationError(
            f"Unknown cancellation point '{cancellation_point}'")
    if point_direction != direction:
        raise ValidationError(
            f"{cancellation_point} is not a {direction} checkpoint")

    if is_custom(cancellation_point):
        if custom_station is None:
            raise MissingCheckpointSelection(
                "Custom cancellation points need custom station details")
        return custom_station.checkpoint_for(direction)
    return FixedCheckpoint(cancellation_point)
