"""Keithley 2600B series SourceMeter transport (TSP over VISA).

Two channels, addressed as ``smua`` (0) and ``smub`` (1). The on-board filter is
per channel rather than per quantity, so averaging either quantity reconfigures both.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from ivsweep.types import FilterMode, Quantity, Source, UnsupportedConfigError

from .visa import VisaSMU

CHANNELS = ("smua", "smub")
TSP_SYMBOL = {Quantity.VOLTAGE: "v", Quantity.CURRENT: "i"}
TSP_SOURCE_FUNC = {Source.VOLTAGE: 1, Source.CURRENT: 0}  # OUTPUT_DCVOLTS, OUTPUT_DCAMPS
TSP_FILTER_TYPE = {FilterMode.MEAN_MOVING: 0, FilterMode.MEAN_REPEAT: 1}
MAX_AVERAGING_COUNT = 100


class K2600B(VisaSMU):
    """Keithley 2600B series dual-channel SourceMeter."""

    idn_filter = "Model 26"
    error_query = "print(errorqueue.count)"
    num_channels = 2

    def _initialise(self) -> None:
        self._communicate("reset()")
        self._communicate("errorqueue.clear()")
        for smu in CHANNELS:
            self._communicate(f"{smu}.source.output = 0", check_errors=True)
            self._communicate(f"{smu}.measure.filter.enable = 0")
            self._communicate(f"{smu}.measure.filter.count = 1")
        self.line_frequency = self._query_float("print(localnode.linefreq)")
        logger.debug(f"2600B line frequency {self.line_frequency} Hz")

    @staticmethod
    def _is_no_error(response: str) -> bool:
        try:
            return float(response) == 0
        except ValueError:
            return False

    def read_raw(self, channel: int, quantity: Quantity) -> float:
        return self._query_float(
            f"print({CHANNELS[channel]}.measure.{TSP_SYMBOL[quantity]}())"
        )

    def apply_averaging(
        self, channel: int, quantity: Quantity, mode: FilterMode, count: int
    ) -> None:
        smu = CHANNELS[channel]
        if mode is FilterMode.NONE:
            self._communicate(f"{smu}.measure.filter.count = 1")
            self._communicate(f"{smu}.measure.filter.enable = 0")
            return
        if mode not in TSP_FILTER_TYPE:
            raise UnsupportedConfigError(f"2600B has no {mode.name} hardware averaging")
        if count > MAX_AVERAGING_COUNT:
            raise UnsupportedConfigError(
                f"2600B filter count must be <= {MAX_AVERAGING_COUNT} (got {count})"
            )
        self._communicate(f"{smu}.measure.filter.count = {count:d}")
        self._communicate(f"{smu}.measure.filter.type = {TSP_FILTER_TYPE[mode]}")
        self._communicate(f"{smu}.measure.filter.enable = 1")

    def set_bias(self, channel: int, source: Source, value: float) -> None:
        self._communicate(
            f"{CHANNELS[channel]}.source.level{TSP_SYMBOL[source]} = {value:e}"
        )

    def set_output_enabled(self, channel: int, enabled: bool) -> None:
        self._communicate(f"{CHANNELS[channel]}.source.output = {int(enabled)}")

    def select_source(self, channel: int, source: Source) -> None:
        self._communicate(
            f"{CHANNELS[channel]}.source.func = {TSP_SOURCE_FUNC[source]}"
        )

    def set_four_probe(self, channel: int, four_probe: bool) -> None:
        self._communicate(f"{CHANNELS[channel]}.sense = {int(four_probe)}")

    def set_limit(self, channel: int, quantity: Quantity, value: float) -> None:
        self._communicate(
            f"{CHANNELS[channel]}.source.limit{TSP_SYMBOL[quantity]} = {value:e}"
        )

    def set_range(
        self, channel: int, quantity: Quantity, value: Optional[float]
    ) -> None:
        smu = CHANNELS[channel]
        sym = TSP_SYMBOL[quantity]
        if value is None:
            self._communicate(f"{smu}.measure.autorange{sym} = 1")
            self._communicate(f"{smu}.source.autorange{sym} = 1")
            return
        self._communicate(f"{smu}.measure.autorange{sym} = 0")
        self._communicate(f"{smu}.source.autorange{sym} = 0")
        self._communicate(f"{smu}.source.range{sym} = {abs(value):e}")
        self._communicate(f"{smu}.measure.range{sym} = {abs(value):e}")

    def set_integration_time(self, channel: int, time: float) -> None:
        nplc = time * self.line_frequency
        if not 0.001 <= nplc <= 25:
            raise UnsupportedConfigError(
                f"NPLC must be between 0.001 and 25 (got {nplc:.4g})"
            )
        self._communicate(f"{CHANNELS[channel]}.measure.nplc = {nplc:f}")
