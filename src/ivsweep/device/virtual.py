"""Single-channel view of one channel of a multi-channel SMU."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional, Sequence

from ivsweep.types import FilterMode, IVPoint, Quantity, Source

if TYPE_CHECKING:
    from ivsweep.filters import ReadFilter

    from .smu import MCSMU


class VirtualSMU:
    """One channel of an `MCSMU`, exposed as a standalone single-channel SMU.

    Every call is forwarded to the parent device with the bound channel, so code
    written for single-channel SMUs (implementing `SMUProtocol`) can drive any channel
    of a multi-channel instrument. The view holds no state of its own.

    Parameters
    ----------
    device : MCSMU
        Parent device.
    channel : int
        Channel on the parent device (already validated by `MCSMU.get_channel`).
    """

    num_channels = 1

    def __init__(self, device: MCSMU, channel: int):
        self.device = device
        self.channel = channel

    def get_voltage(self) -> float:
        return self.device.get_voltage(self.channel)

    def get_current(self) -> float:
        return self.device.get_current(self.channel)

    def set_voltage(self, voltage: float) -> None:
        self.device.set_voltage(voltage, self.channel)

    def set_current(self, current: float) -> None:
        self.device.set_current(current, self.channel)

    def set_bias(self, level: float) -> None:
        self.device.set_bias(level, self.channel)

    def get_bias(self) -> float:
        return self.device.get_bias(self.channel)

    def turn_on(self) -> None:
        self.device.turn_on(self.channel)

    def turn_off(self) -> None:
        self.device.turn_off(self.channel)

    def set_output(self, state: bool) -> None:
        self.device.set_output(state, self.channel)

    def is_on(self) -> bool:
        return self.device.is_on(self.channel)

    def set_source(self, source: Source) -> None:
        self.device.set_source(source, self.channel)

    def get_source(self) -> Source:
        return self.device.get_source(self.channel)

    def get_source_value(self) -> float:
        return self.device.get_source_value(self.channel)

    def get_measure_value(self) -> float:
        return self.device.get_measure_value(self.channel)

    def get_iv_point(self) -> IVPoint:
        return self.device.get_iv_point(self.channel)

    def use_four_probe(self, four_probe: bool) -> None:
        self.device.use_four_probe(four_probe, self.channel)

    def is_using_four_probe(self) -> bool:
        return self.device.is_using_four_probe(self.channel)

    def set_limit(self, quantity: Quantity, value: float) -> None:
        self.device.set_limit(quantity, value, self.channel)

    def get_limit(self, quantity: Quantity) -> Optional[float]:
        return self.device.get_limit(quantity, self.channel)

    def set_limits(self, voltage_limit: float, current_limit: float) -> None:
        self.device.set_limits(voltage_limit, current_limit, self.channel)

    def set_output_limit(self, value: float) -> None:
        self.device.set_output_limit(value, self.channel)

    def get_output_limit(self) -> Optional[float]:
        return self.device.get_output_limit(self.channel)

    def set_range(self, quantity: Quantity, value: Optional[float]) -> None:
        self.device.set_range(quantity, value, self.channel)

    def get_range(self, quantity: Quantity) -> Optional[float]:
        return self.device.get_range(quantity, self.channel)

    def use_auto_range(self, quantity: Quantity) -> None:
        self.device.use_auto_range(quantity, self.channel)

    def is_range_auto(self, quantity: Quantity) -> bool:
        return self.device.is_range_auto(quantity, self.channel)

    def use_auto_ranges(self) -> None:
        self.device.use_auto_ranges(self.channel)

    def set_integration_time(self, time: float) -> None:
        self.device.set_integration_time(time, self.channel)

    def get_integration_time(self) -> Optional[float]:
        return self.device.get_integration_time(self.channel)

    def set_filter_mode(self, mode: FilterMode) -> None:
        self.device.set_filter_mode(mode, self.channel)

    def get_filter_mode(self) -> FilterMode:
        return self.device.get_filter_mode(self.channel)

    def set_filter_count(self, count: int) -> None:
        self.device.set_filter_count(count, self.channel)

    def get_filter_count(self) -> int:
        return self.device.get_filter_count(self.channel)

    def set_averaging(self, mode: FilterMode, count: int) -> None:
        self.device.set_averaging(mode, count, self.channel)

    def get_filter(self, quantity: Quantity) -> ReadFilter:
        return self.device.get_filter(quantity, self.channel)

    def do_sweep(
        self,
        source: Source,
        values: Sequence[float],
        delay_ms: int = 0,
        symmetric: bool = False,
        on_update: Optional[Callable[[int, IVPoint], None]] = None,
    ) -> list[IVPoint]:
        return self.device.do_sweep(
            source, values, delay_ms, symmetric, on_update, channel=self.channel
        )

    def do_linear_sweep(
        self,
        source: Source,
        start: float,
        stop: float,
        num_steps: int,
        delay_ms: int = 0,
        symmetric: bool = False,
        on_update: Optional[Callable[[int, IVPoint], None]] = None,
    ) -> list[IVPoint]:
        return self.device.do_linear_sweep(
            source, start, stop, num_steps, delay_ms, symmetric, on_update, self.channel
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
    ) -> list[IVPoint]:
        return self.device.do_log_sweep(
            source, start, stop, num_steps, delay_ms, symmetric, on_update, self.channel
        )

    def __repr__(self):
        return f"{self.__class__.__name__}(channel={self.channel} of {self.device!r})"
