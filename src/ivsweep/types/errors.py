"""Exception hierarchy for device and sweep failures.

Everything raised by the channel model, the filters and the sweep engine derives
from `DeviceError`, which is a `RuntimeError` so that callers written against the
plain driver classes (which raise `RuntimeError`) keep working.

Validation errors (`RangeError`, `SweepConfigError`) are always raised before any
command is sent to the instrument.
"""


class DeviceError(RuntimeError):
    """Base exception for SMU device errors."""

    pass


class RangeError(DeviceError, ValueError):
    """A channel index or averaging count is out of range."""

    pass


class ChannelRangeError(RangeError, IndexError):
    """Channel index outside ``[0, num_channels)``."""

    def __init__(self, channel: int, num_channels: int):
        self.channel = channel
        self.num_channels = num_channels
        super().__init__(
            f"Channel {channel} does not exist for this SMU "
            + f"(valid channels: 0 to {num_channels - 1})"
        )


class InvalidCountError(RangeError):
    """Averaging count below 1."""

    pass


class SweepConfigError(DeviceError, ValueError):
    """Sweep configuration cannot be run (empty, mismatched lengths...)."""

    pass


class CommunicationError(DeviceError, IOError):
    """Read or write to the instrument failed."""

    pass


class UnsupportedConfigError(DeviceError):
    """Instrument cannot apply the requested configuration."""

    pass


class SweepInterruptedError(DeviceError):
    """Inter-step wait was interrupted, sweep timing can no longer be trusted."""

    pass
