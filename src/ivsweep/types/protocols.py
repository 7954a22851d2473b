"""Protocols for SMU transports and single-channel SMUs.

The Protocol Pattern
-------------------
Instead of inheriting from a common base, hardware drivers only need to provide the
methods listed here. This keeps the transport layer (command text, VISA sessions)
separate from the channel model, the read filters and the sweep engine, which only
ever talk to an object satisfying `SMUTransportProtocol`.

1. `SMUTransportProtocol`
   - Implemented by instrument drivers (`K2450`, `K2600B`, `MockSMU`)
   - Raw, unfiltered reads and plain configuration writes
   - Channel indices are assumed to be valid already

2. `SMUProtocol`
   - The single-channel contract seen by upstream code
   - Satisfied both by `MCSMU` (via its default channel) and by `VirtualSMU`

Both are `@runtime_checkable`, so ``isinstance(driver, SMUTransportProtocol)`` can be
used to validate a driver before wrapping it.

Example
-------
    class MyDriver(Device):
        num_channels = 1

        def read_raw(self, channel, quantity):
            ...

    smu = MCSMU(MyDriver())

See Also
--------
ivsweep.device.smu : Channel model built on a transport
ivsweep.device.virtual : Per-channel view implementing `SMUProtocol`
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol, Sequence, runtime_checkable

from .enums import FilterMode, Quantity, Source
from .points import IVPoint


@runtime_checkable
class SMUTransportProtocol(Protocol):
    """Methods an instrument driver must provide.

    Every method may raise `CommunicationError` on a transport failure.
    """

    num_channels: int
    """Number of channels on the instrument (constant)."""

    read_raw: Callable[[int, Quantity], float]
    """Take one raw, unfiltered reading of a quantity on a channel."""

    apply_averaging: Callable[[int, Quantity, FilterMode, int], None]
    """Configure on-board averaging for a quantity on a channel.

    Only `FilterMode.NONE`, `FilterMode.MEAN_REPEAT` and `FilterMode.MEAN_MOVING`
    are ever requested. Raises `UnsupportedConfigError` if the hardware cannot do it.
    """

    set_bias: Callable[[int, Source, float], None]
    """Set the sourced level on a channel (Volts or Amps, depending on source)."""

    set_output_enabled: Callable[[int, bool], None]
    """Turn a channel's output on or off."""

    select_source: Callable[[int, Source], None]
    """Select whether a channel sources voltage or current."""

    set_four_probe: Callable[[int, bool], None]
    """Select four-probe (remote sense) or two-probe measurement."""

    set_limit: Callable[[int, Quantity, float], None]
    """Set the compliance limit for a quantity on a channel."""

    set_range: Callable[[int, Quantity, Optional[float]], None]
    """Set the range for a quantity on a channel, None for auto-ranging."""

    set_integration_time: Callable[[int, float], None]
    """Set the measurement integration time, in seconds."""


@runtime_checkable
class SMUProtocol(Protocol):
    """Single-channel SMU contract used by upstream code."""

    get_voltage: Callable[[], float]
    get_current: Callable[[], float]
    set_voltage: Callable[[float], None]
    set_current: Callable[[float], None]
    set_bias: Callable[[float], None]
    get_bias: Callable[[], float]
    turn_on: Callable[[], None]
    turn_off: Callable[[], None]
    is_on: Callable[[], bool]
    set_source: Callable[[Source], None]
    get_source: Callable[[], Source]
    get_source_value: Callable[[], float]
    get_measure_value: Callable[[], float]
    set_filter_mode: Callable[[FilterMode], None]
    get_filter_mode: Callable[[], FilterMode]
    set_filter_count: Callable[[int], None]
    get_filter_count: Callable[[], int]
    get_iv_point: Callable[[], IVPoint]
    do_sweep: Callable[..., Sequence[IVPoint]]
