"""Validation of channel indices, averaging counts and sweep configurations.

All checks here run before anything is written to an instrument, so a failed
check never leaves a channel partially configured.
"""

from __future__ import annotations

from numbers import Integral
from typing import TYPE_CHECKING, Sequence

from .errors import ChannelRangeError, InvalidCountError, SweepConfigError

if TYPE_CHECKING:
    from .config import SweepConfig


def check_channel(channel: int, num_channels: int) -> int:
    """Raise `ChannelRangeError` unless ``0 <= channel < num_channels``.

    Returns the channel so the check can be used inline.
    """
    if isinstance(channel, bool) or not isinstance(channel, Integral):
        raise ChannelRangeError(channel, num_channels)
    channel = int(channel)
    if not 0 <= channel < num_channels:
        raise ChannelRangeError(channel, num_channels)
    return channel


def check_count(count: int) -> int:
    """Raise `InvalidCountError` unless count is an integer >= 1."""
    if isinstance(count, bool) or not isinstance(count, Integral) or count < 1:
        raise InvalidCountError(f"Averaging count must be an integer >= 1 (got {count})")
    return int(count)


def validate_sweep_configs(
    configs: Sequence[SweepConfig], num_channels: int, lockstep: bool = False
) -> int:
    """Validate a list of sweep configs against a device.

    Parameters
    ----------
    configs : Sequence[SweepConfig]
        Configs in the order they will be run.
    num_channels : int
        Number of channels on the device the sweep will drive.
    lockstep : bool, optional
        If True (combo sweeps), all effective sequences must be the same length.

    Returns
    -------
    int
        Number of points the sweep will produce.

    Raises
    ------
    SweepConfigError
        Empty config list, empty value sequence or mismatched lengths.
    ChannelRangeError
        A config addresses a channel the device does not have.
    """
    if len(configs) == 0:
        raise SweepConfigError("No sweeps have been configured")

    for conf in configs:
        check_channel(conf.channel, num_channels)
        if len(conf.values) == 0:
            raise SweepConfigError(f"Empty sweep on channel {conf.channel}")

    lengths = [len(conf.sequence) for conf in configs]
    if lockstep:
        if any(n != lengths[0] for n in lengths):
            raise SweepConfigError(
                f"Each sweep must be of the same length (got lengths {lengths})"
            )
        return lengths[0]

    n_points = 1
    for n in lengths:
        n_points *= n
    return n_points
