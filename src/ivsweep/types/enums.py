"""Enumerations shared across the channel model, filters and sweeps."""

from enum import Enum


class Quantity(Enum):
    """A quantity an SMU channel can source or measure."""

    VOLTAGE = "voltage"
    CURRENT = "current"

    @property
    def unit(self) -> str:
        return "V" if self is Quantity.VOLTAGE else "A"

    @property
    def complement(self) -> "Quantity":
        """The quantity measured when this one is sourced."""
        return Quantity.CURRENT if self is Quantity.VOLTAGE else Quantity.VOLTAGE


# the source kind of a channel is just the quantity it forces
Source = Quantity


class FilterMode(Enum):
    """Averaging policy applied to readings of one quantity on one channel."""

    NONE = "none"
    MEAN_REPEAT = "mean_repeat"
    MEAN_MOVING = "mean_moving"
    MEDIAN_REPEAT = "median_repeat"
    MEDIAN_MOVING = "median_moving"

    @classmethod
    def from_name(cls, name: str) -> "FilterMode":
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(
                f"Invalid filter mode: {name}. "
                + f"Available modes: {', '.join(m.name for m in cls)}"
            ) from None
