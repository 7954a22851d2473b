"""Multi-channel SMU channel model.

`MCSMU` wraps an instrument driver (anything implementing
`ivsweep.types.SMUTransportProtocol`) and provides:

1. Channel checks - every per-channel call validates the channel index before any
   command is sent.
2. A default-channel facade - every per-channel method takes ``channel=None``, meaning
   the device's default channel.
3. Read filters - one `ReadFilter` per (channel, quantity, mode), built once; changing
   the filter mode selects one and re-synchronises the instrument's averaging.
4. Sweeps - nested and combo multi-channel sweeps plus single-channel sweeps, see
   `ivsweep.sweep`.
5. Per-channel views - `get_channel(c)` returns a `VirtualSMU` usable anywhere a
   single-channel SMU is expected.

The object calling into an `MCSMU` (normally the sweep thread) is the only writer of
channel state, so no locking is done here. Running two sweeps on one device at the
same time is not supported.

Examples
--------
```python
from ivsweep.device import MCSMU, MockSMU
from ivsweep.types import FilterMode, Source

smu = MCSMU(MockSMU(num_channels=2))
smu.open()
smu.set_filter_mode(FilterMode.MEDIAN_REPEAT, channel=1)
smu.set_filter_count(5, channel=1)

sweep = smu.create_nested_sweep()
sweep.add_linear_sweep(0, Source.VOLTAGE, 0, 1, 11, delay_ms=10)
sweep.add_linear_sweep(1, Source.VOLTAGE, -1, 1, 3)
points = sweep.run(lambda i, p: print(i, p))
```
"""

from __future__ import annotations

from functools import partial
from typing import Callable, Iterator, Optional, Sequence

from loguru import logger

from ivsweep.filters import ReadFilter, create_filter
from ivsweep.sweep import ChannelSweep, ComboSweep, NestedSweep
from ivsweep.types import (
    FilterMode,
    IVPoint,
    MCIVPoint,
    Quantity,
    Source,
    SweepConfig,
    SMUTransportProtocol,
    check_channel,
    check_count,
)
from ivsweep.util import ResultList, gen_linear_sweep_list, gen_log_sweep_list
from ivsweep.util.results import Column

from .virtual import VirtualSMU


class MCSMU:
    """Channel model over a (possibly multi-channel) SMU driver.

    Parameters
    ----------
    transport : SMUTransportProtocol
        Instrument driver.
    filter_mode : FilterMode, optional
        Filter mode applied to every channel on `open`, by default `FilterMode.NONE`.
    filter_count : int, optional
        Filter count applied to every channel on `open`, by default 1.
    """

    def __init__(
        self,
        transport: SMUTransportProtocol,
        filter_mode: FilterMode = FilterMode.NONE,
        filter_count: int = 1,
    ):
        if not isinstance(transport, SMUTransportProtocol):
            raise TypeError(
                f"{transport.__class__.__name__} does not implement SMUTransportProtocol"
            )
        self.transport = transport
        self._num_channels = int(transport.num_channels)
        if self._num_channels < 1:
            raise ValueError("An SMU needs at least one channel")
        self._default_channel = 0

        n = self._num_channels
        self._source = [Source.VOLTAGE] * n
        self._bias = [0.0] * n
        self._output = [False] * n
        self._four_probe = [False] * n
        self._integration_time: list[Optional[float]] = [None] * n
        self._limits: list[dict[Quantity, Optional[float]]] = [
            {q: None for q in Quantity} for _ in range(n)
        ]
        self._ranges: list[dict[Quantity, Optional[float]]] = [
            {q: None for q in Quantity} for _ in range(n)
        ]

        self._filter_mode = [filter_mode] * n
        self._filter_count = [check_count(filter_count)] * n
        self._filters: dict[tuple[int, Quantity, FilterMode], ReadFilter] = {}
        for channel in range(n):
            for quantity in Quantity:
                for mode in FilterMode:
                    self._filters[(channel, quantity, mode)] = create_filter(
                        mode,
                        partial(self.transport.read_raw, channel, quantity),
                        partial(self._apply_averaging, channel, quantity),
                    )
        self._active: dict[tuple[int, Quantity], ReadFilter] = {
            (ch, q): self._filters[(ch, q, filter_mode)]
            for ch in range(n)
            for q in Quantity
        }
        for f in self._active.values():
            f.set_count(self._filter_count[0])

    # ------------------------------------------------------------------------------
    # life-cycle
    # ------------------------------------------------------------------------------

    def open(self) -> None:
        """Open the driver and push the initial filter configuration to every channel."""
        self.transport.open()
        for channel in range(self._num_channels):
            self._reset_filters(channel)
        logger.info(
            "Opened {} with {} channel(s)",
            self.transport.__class__.__name__,
            self._num_channels,
        )

    def close(self) -> None:
        self.transport.close()

    def is_connected(self) -> bool:
        return self.transport.is_connected()

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            self.turn_off_all()
        finally:
            self.close()

    # ------------------------------------------------------------------------------
    # channels
    # ------------------------------------------------------------------------------

    @property
    def num_channels(self) -> int:
        return self._num_channels

    def get_num_channels(self) -> int:
        return self._num_channels

    def _resolve(self, channel: Optional[int]) -> int:
        if channel is None:
            return self._default_channel
        return check_channel(channel, self._num_channels)

    def set_default_channel(self, channel: int) -> None:
        self._default_channel = check_channel(channel, self._num_channels)

    def get_default_channel(self) -> int:
        return self._default_channel

    def get_channel(self, channel: int) -> VirtualSMU:
        """Single-channel view of one channel."""
        return VirtualSMU(self, check_channel(channel, self._num_channels))

    def get_channels(self) -> list[VirtualSMU]:
        return [VirtualSMU(self, ch) for ch in range(self._num_channels)]

    def __iter__(self) -> Iterator[VirtualSMU]:
        return iter(self.get_channels())

    def __len__(self) -> int:
        return self._num_channels

    # ------------------------------------------------------------------------------
    # source
    # ------------------------------------------------------------------------------

    def set_source(self, source: Source, channel: Optional[int] = None) -> None:
        channel = self._resolve(channel)
        source = Source(source)
        self.transport.select_source(channel, source)
        self._source[channel] = source

    def get_source(self, channel: Optional[int] = None) -> Source:
        return self._source[self._resolve(channel)]

    def set_bias(self, level: float, channel: Optional[int] = None) -> None:
        """Set the level of whichever quantity the channel is sourcing."""
        channel = self._resolve(channel)
        self.transport.set_bias(channel, self._source[channel], level)
        self._bias[channel] = level

    def get_bias(self, channel: Optional[int] = None) -> float:
        return self._bias[self._resolve(channel)]

    def set_voltage(self, voltage: float, channel: Optional[int] = None) -> None:
        """Source a voltage on the channel (switches it to voltage sourcing)."""
        channel = self._resolve(channel)
        self.set_source(Source.VOLTAGE, channel)
        self.set_bias(voltage, channel)

    def set_current(self, current: float, channel: Optional[int] = None) -> None:
        """Source a current on the channel (switches it to current sourcing)."""
        channel = self._resolve(channel)
        self.set_source(Source.CURRENT, channel)
        self.set_bias(current, channel)

    def turn_on(self, channel: Optional[int] = None) -> None:
        self.set_output(True, channel)

    def turn_off(self, channel: Optional[int] = None) -> None:
        self.set_output(False, channel)

    def set_output(self, state: bool, channel: Optional[int] = None) -> None:
        channel = self._resolve(channel)
        self.transport.set_output_enabled(channel, bool(state))
        self._output[channel] = bool(state)

    def is_on(self, channel: Optional[int] = None) -> bool:
        return self._output[self._resolve(channel)]

    def turn_on_all(self) -> None:
        for channel in range(self._num_channels):
            self.turn_on(channel)

    def turn_off_all(self) -> None:
        for channel in range(self._num_channels):
            self.turn_off(channel)

    # ------------------------------------------------------------------------------
    # measurement
    # ------------------------------------------------------------------------------

    def get_voltage(self, channel: Optional[int] = None) -> float:
        channel = self._resolve(channel)
        return self._active[(channel, Quantity.VOLTAGE)].get_value()

    def get_current(self, channel: Optional[int] = None) -> float:
        channel = self._resolve(channel)
        return self._active[(channel, Quantity.CURRENT)].get_value()

    def get_value(self, quantity: Quantity, channel: Optional[int] = None) -> float:
        if Quantity(quantity) is Quantity.VOLTAGE:
            return self.get_voltage(channel)
        return self.get_current(channel)

    def get_source_value(self, channel: Optional[int] = None) -> float:
        """Measured value of the sourced quantity."""
        channel = self._resolve(channel)
        return self.get_value(self._source[channel], channel)

    def get_measure_value(self, channel: Optional[int] = None) -> float:
        """Measured value of the complementary (non-sourced) quantity."""
        channel = self._resolve(channel)
        return self.get_value(self._source[channel].complement, channel)

    def get_iv_point(self, channel: Optional[int] = None) -> IVPoint:
        channel = self._resolve(channel)
        return IVPoint(self.get_voltage(channel), self.get_current(channel))

    def get_mciv_point(self) -> MCIVPoint:
        """IV point of every channel on the device."""
        point = MCIVPoint()
        for channel in range(self._num_channels):
            point.add_channel(channel, self.get_iv_point(channel))
        return point

    # ------------------------------------------------------------------------------
    # sense / limits / ranges / integration time
    # ------------------------------------------------------------------------------

    def use_four_probe(self, four_probe: bool, channel: Optional[int] = None) -> None:
        channel = self._resolve(channel)
        self.transport.set_four_probe(channel, bool(four_probe))
        self._four_probe[channel] = bool(four_probe)

    def is_using_four_probe(self, channel: Optional[int] = None) -> bool:
        return self._four_probe[self._resolve(channel)]

    def set_limit(
        self, quantity: Quantity, value: float, channel: Optional[int] = None
    ) -> None:
        """Set the compliance limit on a quantity."""
        channel = self._resolve(channel)
        quantity = Quantity(quantity)
        self.transport.set_limit(channel, quantity, value)
        self._limits[channel][quantity] = value

    def get_limit(
        self, quantity: Quantity, channel: Optional[int] = None
    ) -> Optional[float]:
        return self._limits[self._resolve(channel)][Quantity(quantity)]

    def set_limits(
        self,
        voltage_limit: float,
        current_limit: float,
        channel: Optional[int] = None,
    ) -> None:
        channel = self._resolve(channel)
        self.set_limit(Quantity.VOLTAGE, voltage_limit, channel)
        self.set_limit(Quantity.CURRENT, current_limit, channel)

    def set_output_limit(self, value: float, channel: Optional[int] = None) -> None:
        """Set the compliance limit on the quantity that is not being sourced."""
        channel = self._resolve(channel)
        self.set_limit(self._source[channel].complement, value, channel)

    def get_output_limit(self, channel: Optional[int] = None) -> Optional[float]:
        channel = self._resolve(channel)
        return self.get_limit(self._source[channel].complement, channel)

    def set_range(
        self,
        quantity: Quantity,
        value: Optional[float],
        channel: Optional[int] = None,
    ) -> None:
        """Set the range for a quantity, None for auto-ranging."""
        channel = self._resolve(channel)
        quantity = Quantity(quantity)
        self.transport.set_range(channel, quantity, value)
        self._ranges[channel][quantity] = value

    def get_range(
        self, quantity: Quantity, channel: Optional[int] = None
    ) -> Optional[float]:
        """Range of a quantity, None if auto-ranging."""
        return self._ranges[self._resolve(channel)][Quantity(quantity)]

    def use_auto_range(self, quantity: Quantity, channel: Optional[int] = None) -> None:
        self.set_range(quantity, None, channel)

    def is_range_auto(self, quantity: Quantity, channel: Optional[int] = None) -> bool:
        return self.get_range(quantity, channel) is None

    def use_auto_ranges(self, channel: Optional[int] = None) -> None:
        channel = self._resolve(channel)
        for quantity in Quantity:
            self.use_auto_range(quantity, channel)

    def set_integration_time(self, time: float, channel: Optional[int] = None) -> None:
        """Set measurement integration time, in seconds."""
        channel = self._resolve(channel)
        if time <= 0:
            raise ValueError(f"Integration time must be positive (got {time})")
        self.transport.set_integration_time(channel, time)
        self._integration_time[channel] = time

    def get_integration_time(self, channel: Optional[int] = None) -> Optional[float]:
        return self._integration_time[self._resolve(channel)]

    # ------------------------------------------------------------------------------
    # filtering
    # ------------------------------------------------------------------------------

    def _apply_averaging(
        self, channel: int, quantity: Quantity, mode: FilterMode, count: int
    ) -> None:
        logger.trace(
            "Applying hardware averaging on channel {} ({}): {} x{}",
            channel,
            quantity.value,
            mode.name,
            count,
        )
        self.transport.apply_averaging(channel, quantity, mode, count)

    def _reset_filters(self, channel: int) -> None:
        self._configure_filters(
            channel, self._filter_mode[channel], self._filter_count[channel]
        )

    def _push_filters(self, channel: int, mode: FilterMode, count: int) -> None:
        # count, then hardware set-up, then clear: the instrument must be configured
        # before the next raw read and the buffer empty before the first one
        filters = [self._filters[(channel, q, mode)] for q in Quantity]
        for f in filters:
            f.set_count(count)
        for f in filters:
            f.set_up()
        for f in filters:
            f.clear()

    def _configure_filters(self, channel: int, mode: FilterMode, count: int) -> None:
        """Push a filter mode and count, committing them only once the hardware took them.

        On failure the previous selection is pushed again and the error re-raised.
        """
        old_mode = self._filter_mode[channel]
        old_count = self._filter_count[channel]
        try:
            self._push_filters(channel, mode, count)
        except Exception:
            logger.error(
                "Channel {} rejected filter {} x{}, restoring {} x{}",
                channel,
                mode.name,
                count,
                old_mode.name,
                old_count,
            )
            if (mode, count) != (old_mode, old_count):
                self._push_filters(channel, old_mode, old_count)
            raise
        for quantity in Quantity:
            self._active[(channel, quantity)] = self._filters[(channel, quantity, mode)]
        self._filter_mode[channel] = mode
        self._filter_count[channel] = count

    def set_filter_mode(self, mode: FilterMode, channel: Optional[int] = None) -> None:
        """Select the averaging filter used for both quantities on a channel."""
        channel = self._resolve(channel)
        mode = FilterMode(mode)
        self._configure_filters(channel, mode, self._filter_count[channel])
        logger.debug("Channel {} filter mode -> {}", channel, mode.name)

    def get_filter_mode(self, channel: Optional[int] = None) -> FilterMode:
        return self._filter_mode[self._resolve(channel)]

    def set_filter_count(self, count: int, channel: Optional[int] = None) -> None:
        channel = self._resolve(channel)
        check_count(count)
        self._configure_filters(channel, self._filter_mode[channel], count)
        logger.debug("Channel {} filter count -> {}", channel, count)

    def get_filter_count(self, channel: Optional[int] = None) -> int:
        return self._filter_count[self._resolve(channel)]

    def set_averaging(
        self, mode: FilterMode, count: int, channel: Optional[int] = None
    ) -> None:
        """Set filter mode and count together, configuring the instrument once."""
        channel = self._resolve(channel)
        mode = FilterMode(mode)
        check_count(count)
        self._configure_filters(channel, mode, count)
        logger.debug("Channel {} averaging -> {} x{}", channel, mode.name, count)

    def get_filter(self, quantity: Quantity, channel: Optional[int] = None) -> ReadFilter:
        """The active filter for a quantity on a channel."""
        return self._active[(self._resolve(channel), Quantity(quantity))]

    # ------------------------------------------------------------------------------
    # sweeps
    # ------------------------------------------------------------------------------

    def create_nested_sweep(self) -> NestedSweep:
        """Sweep where the first configured channel varies slowest."""
        return NestedSweep(self)

    def create_combo_sweep(self) -> ComboSweep:
        """Sweep where every configured channel steps together."""
        return ComboSweep(self)

    def run_nested_sweep(
        self,
        configs: Sequence[SweepConfig],
        on_update: Optional[Callable[[int, MCIVPoint], None]] = None,
    ) -> list[MCIVPoint]:
        sweep = self.create_nested_sweep()
        for conf in configs:
            sweep.add_config(conf)
        return sweep.run(on_update)

    def run_combo_sweep(
        self,
        configs: Sequence[SweepConfig],
        on_update: Optional[Callable[[int, MCIVPoint], None]] = None,
    ) -> list[MCIVPoint]:
        sweep = self.create_combo_sweep()
        for conf in configs:
            sweep.add_config(conf)
        return sweep.run(on_update)

    def do_sweep(
        self,
        source: Source,
        values: Sequence[float],
        delay_ms: int = 0,
        symmetric: bool = False,
        on_update: Optional[Callable[[int, IVPoint], None]] = None,
        channel: Optional[int] = None,
    ) -> list[IVPoint]:
        """Sweep a single channel, returning that channel's IV points."""
        channel = self._resolve(channel)
        sweep = ChannelSweep(self)
        sweep.add_sweep(channel, source, values, delay_ms, symmetric)
        return sweep.run(on_update)

    def do_linear_sweep(
        self,
        source: Source,
        start: float,
        stop: float,
        num_steps: int,
        delay_ms: int = 0,
        symmetric: bool = False,
        on_update: Optional[Callable[[int, IVPoint], None]] = None,
        channel: Optional[int] = None,
    ) -> list[IVPoint]:
        return self.do_sweep(
            source,
            gen_linear_sweep_list(start, stop, num_steps),
            delay_ms,
            symmetric,
            on_update,
            channel,
        )

    def do_log_sweep(
        self,
        source: Source,
        start: float,
        stop: float,
        num_steps: int,
        delay_ms: int = 0,
        symmetric: bool = False,
        on_update: Optional[Callable[[int, IVPoint], None]] = None,
        channel: Optional[int] = None,
    ) -> list[IVPoint]:
        return self.do_sweep(
            source,
            gen_log_sweep_list(start, stop, num_steps),
            delay_ms,
            symmetric,
            on_update,
            channel,
        )

    def create_sweep_list(self) -> ResultList:
        """Empty ResultList with a voltage and a current column per channel."""
        columns = []
        for channel in range(self._num_channels):
            columns.append(Column(f"Voltage {channel}", "V"))
            columns.append(Column(f"Current {channel}", "A"))
        return ResultList(*columns)

    def __repr__(self):
        return (
            f"{self.__class__.__name__}({self.transport.__class__.__name__}, "
            + f"channels={self._num_channels}, default={self._default_channel})"
        )
