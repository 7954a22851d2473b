"""Configuration types for sweeps."""

from dataclasses import dataclass, field
from numbers import Integral
from typing import Literal

import numpy as np
from mashumaro import DataClassDictMixin

from ivsweep.util.list_gen import gen_symmetric_list

from .enums import Source
from .errors import SweepConfigError


@dataclass(kw_only=True, repr=False)
class SweepConfig(DataClassDictMixin):
    """One channel's part of a sweep.

    Attributes
    ----------
    channel : int
        Channel to drive.
    source : Source
        Quantity to source on that channel.
    values : np.ndarray
        Bias values, in the order they are applied.
    delay_ms : int
        Settling time after each bias change, in milliseconds.
    symmetric : bool
        If True the sweep runs out through `values` and back again, without
        repeating the turning point.
    """

    channel: int
    source: Source
    values: np.ndarray = field(
        metadata={"serialize": tuple, "deserialize": np.array}
    )
    delay_ms: int = 0
    symmetric: bool = False

    def __post_init__(self):
        self.values = np.asarray(self.values, dtype=float).ravel()
        self.validate()

    def validate(self) -> None:
        validators = {
            "delay_ms": (
                not isinstance(self.delay_ms, bool)
                and isinstance(self.delay_ms, Integral)
                and self.delay_ms >= 0,
                "Sweep delay must be a non-negative integer number of milliseconds",
            ),
            "source": (isinstance(self.source, Source), "Invalid source kind"),
        }
        for param, (valid, message) in validators.items():
            if not valid:
                raise SweepConfigError(f"{message} (got {getattr(self, param)})")
        self.delay_ms = int(self.delay_ms)

    @property
    def sequence(self) -> np.ndarray:
        """Bias values actually applied, including the return leg if symmetric."""
        if self.symmetric:
            return gen_symmetric_list(self.values)
        return self.values

    @property
    def delay(self) -> float:
        """Delay in seconds."""
        return self.delay_ms / 1000

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(channel={self.channel}, "
            + f"source={self.source.value}, n_values={len(self.values)}, "
            + f"delay_ms={self.delay_ms}, symmetric={self.symmetric})"
        )


@dataclass(kw_only=True, repr=False)
class SweepPlan(DataClassDictMixin):
    """A full multi-channel sweep: which strategy to use and the per-channel configs."""

    kind: Literal["nested", "combo"] = "nested"
    sweeps: list[SweepConfig] = field(default_factory=list)

    def __repr__(self):
        return f"{self.__class__.__name__}(kind={self.kind}, sweeps={self.sweeps})"
