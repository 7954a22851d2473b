"""Read filters: turning raw instrument samples into one stable reading.

Each `ReadFilter` wraps two callables supplied by the device:

- ``raw_source()`` takes one raw reading from the instrument.
- ``hardware_setup(count)`` pushes the on-board averaging configuration the filter
  needs (already bound to the channel, quantity and hardware averaging mode).

Instruments usually only average with a mean in hardware. Mean filters therefore
configure the instrument and pass its (pre-averaged) readings straight through, while
median filters switch hardware averaging off and combine raw samples themselves.

| Filter               | Hardware averaging      | Client-side                     |
|----------------------|-------------------------|---------------------------------|
| `BypassFilter`       | off, count 1            | raw sample                      |
| `MeanRepeatFilter`   | repeat mean, count N    | raw (pre-averaged) sample       |
| `MeanMovingFilter`   | moving mean, count N    | raw (pre-averaged) sample       |
| `MedianRepeatFilter` | off, count 1            | median of N fresh samples       |
| `MedianMovingFilter` | off, count 1            | median of last N samples        |

After `set_count` or `set_up`, `clear` must be called before the next `get_value`.
The moving median also drops its window by itself if that was skipped, so samples
taken under different hardware configurations are never mixed.

Median-moving warm-up: after a clear each `get_value` draws one fresh sample and
returns the median of every sample held so far, so the first N-1 readings are medians
over 1..N-1 samples and the window is full from the N-th reading on.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from functools import partial
from typing import Callable

import numpy as np
from loguru import logger

from ivsweep.types import FilterMode, check_count


class ReadFilter(ABC):
    """Base class for all read filters.

    Parameters
    ----------
    raw_source : Callable[[], float]
        Takes one raw reading from the instrument.
    hardware_setup : Callable[[int], None]
        Applies the instrument averaging configuration for the given count.
    """

    mode: FilterMode  # override in subclass
    hardware_mode: FilterMode = FilterMode.NONE  # averaging asked of the instrument

    def __init__(
        self,
        raw_source: Callable[[], float],
        hardware_setup: Callable[[int], None],
    ):
        self._raw_source = raw_source
        self._hardware_setup = hardware_setup
        self._count = 1

    def set_count(self, count: int) -> None:
        self._count = check_count(count)

    def get_count(self) -> int:
        return self._count

    def set_up(self) -> None:
        """Push this filter's averaging configuration to the instrument."""
        self._hardware_setup(self._hardware_count())

    def clear(self) -> None:
        """Discard any buffered samples."""
        pass

    def _hardware_count(self) -> int:
        return 1

    @abstractmethod
    def get_value(self) -> float:
        """Return one filtered reading."""
        ...

    def __repr__(self):
        return f"{self.__class__.__name__}(count={self._count})"


class BypassFilter(ReadFilter):
    mode = FilterMode.NONE

    def get_value(self) -> float:
        return self._raw_source()


class MeanRepeatFilter(BypassFilter):
    """Instrument averages N fresh samples per reading."""

    mode = FilterMode.MEAN_REPEAT
    hardware_mode = FilterMode.MEAN_REPEAT

    def _hardware_count(self) -> int:
        return self._count


class MeanMovingFilter(BypassFilter):
    """Instrument keeps a moving mean over its last N samples."""

    mode = FilterMode.MEAN_MOVING
    hardware_mode = FilterMode.MEAN_MOVING

    def _hardware_count(self) -> int:
        return self._count


class MedianRepeatFilter(ReadFilter):
    """Median of N freshly drawn raw samples."""

    mode = FilterMode.MEDIAN_REPEAT

    def get_value(self) -> float:
        samples = [self._raw_source() for _ in range(self._count)]
        return float(np.median(samples))


class MedianMovingFilter(ReadFilter):
    """Median over a sliding window of the last N raw samples."""

    mode = FilterMode.MEDIAN_MOVING

    def __init__(self, raw_source, hardware_setup):
        super().__init__(raw_source, hardware_setup)
        self._window: deque[float] = deque(maxlen=self._count)
        self._stale = False

    def set_count(self, count: int) -> None:
        super().set_count(count)
        self._window = deque(self._window, maxlen=self._count)
        self._stale = True

    def set_up(self) -> None:
        super().set_up()
        self._stale = True

    def clear(self) -> None:
        self._window.clear()
        self._stale = False

    def get_value(self) -> float:
        if self._stale:
            logger.debug("{} not cleared after reconfiguration, clearing.", self)
            self.clear()
        self._window.append(self._raw_source())
        return float(np.median(self._window))

    def get_window(self) -> list[float]:
        return list(self._window)


FILTER_TYPES: dict[FilterMode, type[ReadFilter]] = {
    FilterMode.NONE: BypassFilter,
    FilterMode.MEAN_REPEAT: MeanRepeatFilter,
    FilterMode.MEAN_MOVING: MeanMovingFilter,
    FilterMode.MEDIAN_REPEAT: MedianRepeatFilter,
    FilterMode.MEDIAN_MOVING: MedianMovingFilter,
}


def create_filter(
    mode: FilterMode,
    raw_source: Callable[[], float],
    apply_averaging: Callable[[FilterMode, int], None],
) -> ReadFilter:
    """Build the filter for a mode.

    Parameters
    ----------
    mode : FilterMode
        Filter to build.
    raw_source : Callable[[], float]
        Raw read for one channel/quantity.
    apply_averaging : Callable[[FilterMode, int], None]
        Instrument averaging setter for the same channel/quantity; it is bound to
        the hardware mode the filter needs.
    """
    filter_cls = FILTER_TYPES[mode]
    return filter_cls(raw_source, partial(apply_averaging, filter_cls.hardware_mode))
