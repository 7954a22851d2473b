"""Measurement points produced by reads and sweeps."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Mapping


@dataclass(frozen=True)
class IVPoint:
    """Voltage and current read from one channel over the same settling interval."""

    voltage: float
    current: float

    def as_tuple(self) -> tuple[float, float]:
        return self.voltage, self.current


class MCIVPoint(Mapping[int, IVPoint]):
    """One instant of a multi-channel sweep: channel index -> IVPoint."""

    __slots__ = ("_channels",)

    def __init__(self, channels: Mapping[int, IVPoint] | None = None):
        self._channels: dict[int, IVPoint] = {}
        for channel, point in (channels or {}).items():
            self.add_channel(channel, point)

    def add_channel(self, channel: int, point: IVPoint) -> None:
        if channel in self._channels:
            raise ValueError(f"Channel {channel} already recorded in this point")
        self._channels[channel] = point

    def get_channel(self, channel: int) -> IVPoint:
        return self._channels[channel]

    @property
    def channels(self) -> Mapping[int, IVPoint]:
        return MappingProxyType(self._channels)

    def __getitem__(self, channel: int) -> IVPoint:
        return self._channels[channel]

    def __iter__(self) -> Iterator[int]:
        return iter(self._channels)

    def __len__(self) -> int:
        return len(self._channels)

    def flatten(self) -> list[float]:
        """[V0, I0, V1, I1, ...] ordered by channel index."""
        row = []
        for channel in sorted(self._channels):
            row.extend(self._channels[channel].as_tuple())
        return row

    def __repr__(self):
        inner = ", ".join(
            f"{ch}: ({p.voltage:.6g} V, {p.current:.6g} A)"
            for ch, p in sorted(self._channels.items())
        )
        return f"{self.__class__.__name__}({{{inner}}})"
