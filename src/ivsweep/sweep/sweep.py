"""Multi-channel sweep strategies.

A sweep is built up from `SweepConfig` entries (one per channel) and then `run`. Every
configuration is validated against the device before any command is sent, so a bad
channel index, an empty value list or (for combo sweeps) mismatched lengths never
leave a channel half-configured.

Strategies
----------
`NestedSweep`
    Cartesian product. The first config is the outermost loop, the last config
    varies fastest.
`ComboSweep`
    Lock-step. Every config must have the same number of values; step ``i`` sets
    every channel to its ``i``-th value.
`ChannelSweep`
    Nested sweep of a single channel that records that channel's `IVPoint` only,
    used by `MCSMU.do_sweep`.

Each configured channel is prepared before the loop with its output off: select the
source, commit the first bias and only then turn the output on.

Results are returned in production order. If an ``on_update`` callback is given it
is called from an `UpdatePump` worker thread, so a slow or failing callback never
holds up the measurement loop.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Generic, Optional, Sequence, TypeVar

from loguru import logger

from ivsweep.types import (
    IVPoint,
    MCIVPoint,
    Source,
    SweepConfig,
    SweepConfigError,
    SweepInterruptedError,
    validate_sweep_configs,
)
from ivsweep.util import ResultList, gen_linear_sweep_list, gen_log_sweep_list

from .pump import UpdatePump

if TYPE_CHECKING:
    from ivsweep.device.smu import MCSMU

P = TypeVar("P", IVPoint, MCIVPoint)


class Sweep(ABC, Generic[P]):
    """Base class for sweeps over the channels of an `MCSMU`.

    Parameters
    ----------
    smu : MCSMU
        Device to sweep.
    abort_event : threading.Event, optional
        Setting this event aborts the sweep at the next inter-step wait with a
        `SweepInterruptedError`. A fresh event is created if not given.
    """

    def __init__(self, smu: MCSMU, abort_event: Optional[threading.Event] = None):
        self.smu = smu
        self.sweeps: list[SweepConfig] = []
        self.abort_event = abort_event if abort_event is not None else threading.Event()

    # ------------------------------------------------------------------------------
    # configuration
    # ------------------------------------------------------------------------------

    def add_config(self, config: SweepConfig) -> SweepConfig:
        self.sweeps.append(config)
        return config

    def add_sweep(
        self,
        channel: int,
        source: Source,
        values: Sequence[float],
        delay_ms: int = 0,
        symmetric: bool = False,
    ) -> SweepConfig:
        """Add a sweep of ``values`` on ``channel``."""
        return self.add_config(
            SweepConfig(
                channel=channel,
                source=Source(source),
                values=values,
                delay_ms=delay_ms,
                symmetric=symmetric,
            )
        )

    def add_linear_sweep(
        self,
        channel: int,
        source: Source,
        start: float,
        stop: float,
        num_steps: int,
        delay_ms: int = 0,
        symmetric: bool = False,
    ) -> SweepConfig:
        return self.add_sweep(
            channel,
            source,
            gen_linear_sweep_list(start, stop, num_steps),
            delay_ms,
            symmetric,
        )

    def add_log_sweep(
        self,
        channel: int,
        source: Source,
        start: float,
        stop: float,
        num_steps: int,
        delay_ms: int = 0,
        symmetric: bool = False,
    ) -> SweepConfig:
        return self.add_sweep(
            channel,
            source,
            gen_log_sweep_list(start, stop, num_steps),
            delay_ms,
            symmetric,
        )

    def clear(self) -> None:
        self.sweeps.clear()

    def abort(self) -> None:
        """Ask a running sweep to stop at its next wait."""
        self.abort_event.set()

    @abstractmethod
    def validate(self) -> int:
        """Check the configs against the device, returning the number of points."""

    def get_num_points(self) -> int:
        return self.validate()

    # ------------------------------------------------------------------------------
    # running
    # ------------------------------------------------------------------------------

    def run(self, on_update: Optional[Callable[[int, P], Any]] = None) -> list[P]:
        """Run the sweep and return every point in production order.

        Parameters
        ----------
        on_update : Callable[[int, P], Any], optional
            Called as ``on_update(index, point)`` for every point, on a worker
            thread. Exceptions it raises are logged and otherwise ignored. All
            points have been delivered by the time `run` returns or raises.

        Raises
        ------
        ChannelRangeError, SweepConfigError
            Before any hardware interaction.
        CommunicationError
            On a transport failure (remaining steps are abandoned).
        SweepInterruptedError
            If the sweep was aborted.
        """
        num_points = self.validate()
        results: list[P] = []
        pump = UpdatePump(results, on_update) if on_update is not None else None
        logger.info(
            "Starting {} over channel(s) {} ({} point(s))",
            self.__class__.__name__,
            [conf.channel for conf in self.sweeps],
            num_points,
        )
        if pump is not None:
            pump.start()
        try:
            self._execute(results, pump)
        except Exception as err:
            logger.error(
                "{} aborted after {} of {} point(s): {}",
                self.__class__.__name__,
                len(results),
                num_points,
                err,
            )
            raise
        finally:
            if pump is not None:
                pump.close()
        logger.info("{} finished, {} point(s)", self.__class__.__name__, len(results))
        return results

    def run_into(self, result_list: ResultList) -> list[P]:
        """Run the sweep, appending one row per point to ``result_list``."""
        if len(result_list.columns) != self._row_width():
            raise ValueError(
                f"ResultList has {len(result_list.columns)} columns, "
                + f"expected {self._row_width()}"
            )
        return self.run(lambda _, point: result_list.add_data(*self._row(point)))

    @abstractmethod
    def _execute(self, results: list[P], pump: Optional[UpdatePump]) -> None:
        ...

    # ------------------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------------------

    def _prepare_channel(self, config: SweepConfig) -> None:
        channel = config.channel
        self.smu.turn_off(channel)
        self.smu.set_source(config.source, channel)
        self.smu.set_bias(float(config.sequence[0]), channel)
        self.smu.turn_on(channel)

    def _wait(self, delay: float) -> None:
        if self.abort_event.wait(delay):
            raise SweepInterruptedError(
                f"{self.__class__.__name__} was interrupted during a wait"
            )

    def _record(self, results: list[P], pump: Optional[UpdatePump], point: P) -> None:
        results.append(point)
        if pump is not None:
            pump.notify()

    def _measure(self) -> P:
        return self.smu.get_mciv_point()

    def _row(self, point: P) -> list[float]:
        return point.flatten()

    def _row_width(self) -> int:
        return 2 * self.smu.num_channels

    def __repr__(self):
        return f"{self.__class__.__name__}(sweeps={self.sweeps!r})"


class NestedSweep(Sweep[MCIVPoint]):
    """Cartesian sweep, the last config varies fastest."""

    def validate(self) -> int:
        return validate_sweep_configs(self.sweeps, self.smu.num_channels)

    def _execute(self, results, pump):
        for config in self.sweeps:
            self._prepare_channel(config)
        self._step(0, results, pump)

    def _step(self, depth: int, results, pump) -> None:
        if depth == len(self.sweeps):
            self._record(results, pump, self._measure())
            return
        config = self.sweeps[depth]
        for value in config.sequence:
            self.smu.set_bias(float(value), config.channel)
            self._wait(config.delay)
            self._step(depth + 1, results, pump)


class ComboSweep(Sweep[MCIVPoint]):
    """Lock-step sweep, every config steps together."""

    def validate(self) -> int:
        return validate_sweep_configs(
            self.sweeps, self.smu.num_channels, lockstep=True
        )

    def _execute(self, results, pump):
        for config in self.sweeps:
            self._prepare_channel(config)
        sequences = [config.sequence for config in self.sweeps]
        for i in range(len(sequences[0])):
            for config, sequence in zip(self.sweeps, sequences):
                self.smu.set_bias(float(sequence[i]), config.channel)
                self._wait(config.delay)
            self._record(results, pump, self._measure())


class ChannelSweep(NestedSweep):
    """Single-channel sweep returning that channel's IV points."""

    def validate(self) -> int:
        if len(self.sweeps) > 1:
            raise SweepConfigError("A ChannelSweep takes a single sweep")
        return super().validate()

    def _measure(self) -> IVPoint:  # type: ignore[override]
        return self.smu.get_iv_point(self.sweeps[0].channel)

    def _row(self, point: IVPoint) -> list[float]:
        return list(point.as_tuple())

    def _row_width(self) -> int:
        return 2
