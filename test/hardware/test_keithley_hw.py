"""Tests against connected Keithley instruments.

Skipped unless the instrument answers on the VISA bus. The outputs are driven
to at most 1 V with a 1 mA compliance, so the tests are safe with the terminals
open or across any load above 1 kOhm.
"""

import numpy as np
import pytest
from loguru import logger

from ivsweep.types import (
    FilterMode,
    Quantity,
    Source,
    SweepInterruptedError,
    UnsupportedConfigError,
)
from ivsweep.util.check_hw import list_visa_devices

pytestmark = pytest.mark.hardware


@pytest.mark.usefixtures("client_log")
def test_device_discovery():
    devices = list_visa_devices(detailed=False)
    for addr, idn in devices.items():
        logger.info(f"  {addr}: {idn}")
        assert isinstance(addr, str)
        assert isinstance(idn, str)


@pytest.mark.usefixtures("client_log")
class TestK2450Hardware:
    def test_voltage_source_readback(self, smu2450):
        smu2450.set_limit(Quantity.CURRENT, 1e-3)
        for voltage in [0.0, 0.5, -0.5, 0.0]:
            smu2450.set_voltage(voltage)
            smu2450.turn_on()
            assert abs(smu2450.get_voltage() - voltage) < 0.01

    def test_sweep(self, smu2450):
        smu2450.set_limit(Quantity.CURRENT, 1e-3)
        points = smu2450.do_linear_sweep(Source.VOLTAGE, -1, 1, 11, delay_ms=20)
        voltages = np.array([p.voltage for p in points])
        np.testing.assert_allclose(voltages, np.linspace(-1, 1, 11), atol=0.01)

    @pytest.mark.parametrize(
        "mode",
        [FilterMode.MEAN_REPEAT, FilterMode.MEAN_MOVING, FilterMode.MEDIAN_REPEAT],
    )
    def test_filter_modes(self, smu2450, mode):
        smu2450.set_averaging(mode, 3)
        smu2450.set_voltage(0.25)
        smu2450.turn_on()
        assert abs(smu2450.get_voltage() - 0.25) < 0.01

    def test_integration_time(self, smu2450):
        smu2450.set_integration_time(1 / smu2450.transport.line_frequency)
        with pytest.raises(UnsupportedConfigError):
            smu2450.set_integration_time(1.0)  # above 10 NPLC

    def test_abort(self, smu2450):
        sweep = smu2450.create_nested_sweep()
        sweep.add_sweep(0, Source.VOLTAGE, [0.0] * 50, delay_ms=100)
        with pytest.raises(SweepInterruptedError):
            sweep.run(lambda i, p: sweep.abort() if i == 2 else None)


@pytest.mark.usefixtures("client_log")
class TestK2600BHardware:
    def test_combo_sweep(self, smu2600b):
        for channel in smu2600b:
            channel.set_limit(Quantity.CURRENT, 1e-3)
        sweep = smu2600b.create_combo_sweep()
        sweep.add_linear_sweep(0, Source.VOLTAGE, 0, 1, 5, delay_ms=20)
        sweep.add_linear_sweep(1, Source.VOLTAGE, 1, 0, 5, delay_ms=20)
        points = sweep.run()
        assert len(points) == 5
        np.testing.assert_allclose(
            [p[0].voltage for p in points], np.linspace(0, 1, 5), atol=0.01
        )
        np.testing.assert_allclose(
            [p[1].voltage for p in points], np.linspace(1, 0, 5), atol=0.01
        )

    def test_channels_independent(self, smu2600b):
        smu2600b.set_voltage(0.5, 0)
        smu2600b.turn_on(0)
        smu2600b.turn_off(1)
        assert smu2600b.is_on(0) and not smu2600b.is_on(1)
        assert abs(smu2600b.get_voltage(0) - 0.5) < 0.01
