"""Keithley 2450 SourceMeter transport (SCPI over VISA).

Single channel; the channel argument of every transport method is always 0 (the
channel model checks it before calling in).
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from ivsweep.types import FilterMode, Quantity, Source, UnsupportedConfigError

from .visa import VisaSMU

SCPI_FUNC = {Quantity.VOLTAGE: "VOLT", Quantity.CURRENT: "CURR"}
SCPI_AVERAGING = {FilterMode.MEAN_REPEAT: "REP", FilterMode.MEAN_MOVING: "MOV"}
MAX_AVERAGING_COUNT = 100


class K2450(VisaSMU):
    """Keithley 2450 SourceMeter.

    Examples
    --------
    ```python
    smu = MCSMU(K2450("USB0::0x05E6::0x2450::04567890::INSTR"))
    smu.open()
    ```
    """

    idn_filter = "MODEL 2450"
    error_query = "SYST:ERR?"
    num_channels = 1

    def _initialise(self) -> None:
        self._communicate("*RST", check_errors=True)
        self._communicate("*CLS", check_errors=True)
        self._communicate(":SOUR:FUNC VOLT", check_errors=True)
        self._communicate(':SENS:FUNC "CURR"', check_errors=True)
        self._communicate(":OUTP OFF", check_errors=True)
        self.line_frequency = self._query_float(":SYST:LFR?")
        logger.debug(f"2450 line frequency {self.line_frequency} Hz")

    def read_raw(self, channel: int, quantity: Quantity) -> float:
        return self._query_float(f":MEAS:{SCPI_FUNC[quantity]}?")

    def apply_averaging(
        self, channel: int, quantity: Quantity, mode: FilterMode, count: int
    ) -> None:
        func = SCPI_FUNC[quantity]
        if mode is FilterMode.NONE:
            self._communicate(f":SENS:{func}:AVER OFF")
            self._communicate(f":SENS:{func}:AVER:COUNT 1")
            return
        if mode not in SCPI_AVERAGING:
            raise UnsupportedConfigError(f"2450 has no {mode.name} hardware averaging")
        if count > MAX_AVERAGING_COUNT:
            raise UnsupportedConfigError(
                f"2450 averaging count must be <= {MAX_AVERAGING_COUNT} (got {count})"
            )
        self._communicate(f":SENS:{func}:AVER:TCON {SCPI_AVERAGING[mode]}")
        self._communicate(f":SENS:{func}:AVER:COUNT {count}")
        self._communicate(f":SENS:{func}:AVER ON")

    def set_bias(self, channel: int, source: Source, value: float) -> None:
        self._communicate(f":SOUR:{SCPI_FUNC[source]} {value:e}")

    def set_output_enabled(self, channel: int, enabled: bool) -> None:
        self._communicate(f":OUTP {'ON' if enabled else 'OFF'}")

    def select_source(self, channel: int, source: Source) -> None:
        self._communicate(f":SOUR:FUNC {SCPI_FUNC[source]}")

    def set_four_probe(self, channel: int, four_probe: bool) -> None:
        state = "ON" if four_probe else "OFF"
        for func in SCPI_FUNC.values():
            self._communicate(f":SENS:{func}:RSEN {state}")

    def set_limit(self, channel: int, quantity: Quantity, value: float) -> None:
        # the limit on a quantity is set under the complementary source function
        if quantity is Quantity.CURRENT:
            self._communicate(f":SOUR:VOLT:ILIM {value:e}")
        else:
            self._communicate(f":SOUR:CURR:VLIM {value:e}")

    def set_range(
        self, channel: int, quantity: Quantity, value: Optional[float]
    ) -> None:
        func = SCPI_FUNC[quantity]
        if value is None:
            self._communicate(f":SENS:{func}:RANG:AUTO ON")
            return
        self._communicate(f":SENS:{func}:RANG:AUTO OFF")
        self._communicate(f":SENS:{func}:RANG {abs(value):e}")

    def set_integration_time(self, channel: int, time: float) -> None:
        nplc = time * self.line_frequency
        if not 0.01 <= nplc <= 10:
            raise UnsupportedConfigError(
                f"NPLC must be between 0.01 and 10 (got {nplc:.4g})"
            )
        for func in SCPI_FUNC.values():
            self._communicate(f":SENS:{func}:NPLC {nplc:g}")
