"""Simulated N-channel SMU driving a resistive load.

`MockSMU` implements `SMUTransportProtocol` without any hardware. Each channel is
connected to a resistor: sourcing a voltage reads back ``V`` and ``V / R``, sourcing
a current reads back ``I * R`` and ``I``. A channel with its output off reads zero.
Gaussian noise can be added, and is reduced by the square root of the count while
hardware mean averaging is on.

Every transport call is appended to `MockSMU.calls` as ``(method, args)`` so tests can
check exactly what reached the "instrument". Readings can also be scripted with
`queue_readings`, and failures injected with `fail_on`.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable, Optional

import numpy as np

from ivsweep.device.device import Device
from ivsweep.types import (
    CommunicationError,
    DeviceError,
    FilterMode,
    Quantity,
    Source,
    UnsupportedConfigError,
)

HARDWARE_MODES = (FilterMode.NONE, FilterMode.MEAN_REPEAT, FilterMode.MEAN_MOVING)


class MockSMU(Device):
    """Mock multi-channel SMU.

    Parameters
    ----------
    num_channels : int, optional
        Number of channels, by default 1.
    resistance : float, optional
        Load resistance on every channel in Ohms, by default 1 kOhm.
    noise_sigma : float, optional
        Standard deviation of the noise added to each raw reading, by default 0.
    seed : int, optional
        Seed for the noise generator.
    supported_averaging : Iterable[FilterMode], optional
        Hardware averaging modes the mock accepts, by default all three.
    """

    def __init__(
        self,
        num_channels: int = 1,
        resistance: float = 1e3,
        noise_sigma: float = 0.0,
        seed: Optional[int] = None,
        supported_averaging: Iterable[FilterMode] = HARDWARE_MODES,
        **config,
    ):
        super().__init__(**config)
        if num_channels < 1:
            raise ValueError("MockSMU needs at least one channel")
        self.num_channels = num_channels
        self.resistance = float(resistance)
        self.noise_sigma = float(noise_sigma)
        self.supported_averaging = set(supported_averaging)
        self._rng = np.random.default_rng(seed)
        self._connected = False

        self._source = [Source.VOLTAGE] * num_channels
        self._bias = [0.0] * num_channels
        self._output = [False] * num_channels
        self._four_probe = [False] * num_channels
        self._averaging = [
            {q: (FilterMode.NONE, 1) for q in Quantity} for _ in range(num_channels)
        ]
        self._limits = [{q: None for q in Quantity} for _ in range(num_channels)]
        self._ranges = [{q: None for q in Quantity} for _ in range(num_channels)]
        self._integration_time = [None] * num_channels

        self.calls: list[tuple[str, tuple]] = []
        self._scripted: dict[tuple[int, Quantity], deque[float]] = {}
        self._failures: dict[str, tuple[int, Exception]] = {}

    # ------------------------------------------------------------------------------
    # test hooks
    # ------------------------------------------------------------------------------

    def queue_readings(
        self, channel: int, quantity: Quantity, values: Iterable[float]
    ) -> None:
        """Script raw readings, returned in order before the load model is used."""
        self._scripted.setdefault((channel, quantity), deque()).extend(
            float(v) for v in values
        )

    def fail_on(
        self, method: str, after: int = 0, exc: Optional[Exception] = None
    ) -> None:
        """Make ``method`` raise after it has succeeded ``after`` more times."""
        self._failures[method] = (
            after,
            exc if exc is not None else CommunicationError(f"Simulated failure in {method}"),
        )

    def calls_to(self, method: str) -> list[tuple]:
        return [args for name, args in self.calls if name == method]

    def reset_calls(self) -> None:
        self.calls.clear()

    def _log(self, method: str, *args) -> None:
        if method in self._failures:
            remaining, exc = self._failures[method]
            if remaining <= 0:
                del self._failures[method]
                raise exc
            self._failures[method] = (remaining - 1, exc)
        self.calls.append((method, args))

    # ------------------------------------------------------------------------------
    # life-cycle
    # ------------------------------------------------------------------------------

    def open(self) -> None:
        self._log("open")
        self._connected = True

    def close(self) -> None:
        self._log("close")
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected

    # ------------------------------------------------------------------------------
    # SMUTransportProtocol
    # ------------------------------------------------------------------------------

    def read_raw(self, channel: int, quantity: Quantity) -> float:
        self._log("read_raw", channel, quantity)
        if not self._connected:
            raise DeviceError("MockSMU not connected")
        scripted = self._scripted.get((channel, quantity))
        if scripted:
            return scripted.popleft()
        return self._model(channel, quantity)

    def apply_averaging(
        self, channel: int, quantity: Quantity, mode: FilterMode, count: int
    ) -> None:
        if mode not in self.supported_averaging:
            raise UnsupportedConfigError(
                f"MockSMU does not support {mode.name} hardware averaging"
            )
        self._log("apply_averaging", channel, quantity, mode, count)
        self._averaging[channel][quantity] = (mode, count)

    def set_bias(self, channel: int, source: Source, value: float) -> None:
        self._log("set_bias", channel, source, value)
        self._bias[channel] = float(value)

    def set_output_enabled(self, channel: int, enabled: bool) -> None:
        self._log("set_output_enabled", channel, enabled)
        self._output[channel] = enabled

    def select_source(self, channel: int, source: Source) -> None:
        self._log("select_source", channel, source)
        self._source[channel] = source

    def set_four_probe(self, channel: int, four_probe: bool) -> None:
        self._log("set_four_probe", channel, four_probe)
        self._four_probe[channel] = four_probe

    def set_limit(self, channel: int, quantity: Quantity, value: float) -> None:
        self._log("set_limit", channel, quantity, value)
        self._limits[channel][quantity] = value

    def set_range(
        self, channel: int, quantity: Quantity, value: Optional[float]
    ) -> None:
        self._log("set_range", channel, quantity, value)
        self._ranges[channel][quantity] = value

    def set_integration_time(self, channel: int, time: float) -> None:
        self._log("set_integration_time", channel, time)
        self._integration_time[channel] = time

    # ------------------------------------------------------------------------------
    # simulation
    # ------------------------------------------------------------------------------

    def get_averaging(self, channel: int, quantity: Quantity) -> tuple[FilterMode, int]:
        return self._averaging[channel][quantity]

    def is_output_enabled(self, channel: int) -> bool:
        return self._output[channel]

    def _model(self, channel: int, quantity: Quantity) -> float:
        if not self._output[channel]:
            return 0.0
        bias = self._bias[channel]
        if self._source[channel] is Source.VOLTAGE:
            voltage, current = bias, bias / self.resistance
        else:
            voltage, current = bias * self.resistance, bias
        value = voltage if quantity is Quantity.VOLTAGE else current

        limit = self._limits[channel][quantity]
        if limit is not None and quantity is not self._source[channel]:
            value = float(np.clip(value, -abs(limit), abs(limit)))

        if self.noise_sigma > 0:
            mode, count = self._averaging[channel][quantity]
            sigma = self.noise_sigma
            if mode is not FilterMode.NONE:
                sigma /= np.sqrt(count)
            value += float(self._rng.normal(0.0, sigma))
        return value

    def __repr__(self):
        return f"MockSMU(num_channels={self.num_channels}, resistance={self.resistance})"
