import threading
import time

import numpy as np
import pytest

from ivsweep.device import MCSMU, MockSMU
from ivsweep.sweep import ComboSweep, NestedSweep
from ivsweep.types import (
    ChannelRangeError,
    CommunicationError,
    MCIVPoint,
    Source,
    SweepConfig,
    SweepConfigError,
    SweepInterruptedError,
)


def sourced(points, channel):
    return [p[channel].voltage for p in points]


class TestNestedSweep:
    def test_point_count_is_product(self):
        smu = MCSMU(MockSMU(num_channels=3))
        smu.open()
        sweep = smu.create_nested_sweep()
        sweep.add_sweep(0, Source.VOLTAGE, [0, 1])
        sweep.add_sweep(1, Source.VOLTAGE, [0, 1, 2])
        sweep.add_sweep(2, Source.VOLTAGE, [0, 1, 2, 3])
        assert sweep.get_num_points() == 24
        assert len(sweep.run()) == 24

    def test_last_config_varies_fastest(self, smu2):
        sweep = smu2.create_nested_sweep()
        sweep.add_sweep(0, Source.VOLTAGE, [1, 2])
        sweep.add_sweep(1, Source.VOLTAGE, [10, 20, 30])
        points = sweep.run()
        assert sourced(points, 0) == pytest.approx([1, 1, 1, 2, 2, 2])
        assert sourced(points, 1) == pytest.approx([10, 20, 30] * 2)

    def test_points_cover_all_device_channels(self, smu2):
        sweep = smu2.create_nested_sweep()
        sweep.add_sweep(1, Source.VOLTAGE, [1.0])
        (point,) = sweep.run()
        assert isinstance(point, MCIVPoint)
        assert list(point) == [0, 1]
        assert point[0].voltage == 0.0  # channel 0 not swept, output off

    def test_bias_committed_before_enable(self, smu2, mock2):
        sweep = smu2.create_nested_sweep()
        sweep.add_sweep(0, Source.CURRENT, [1e-3, 2e-3])
        sweep.add_sweep(1, Source.VOLTAGE, [0.5])
        sweep.run()
        # each channel prepared before the loop: off, source, first bias, on
        assert mock2.calls[:8] == [
            ("set_output_enabled", (0, False)),
            ("select_source", (0, Source.CURRENT)),
            ("set_bias", (0, Source.CURRENT, 1e-3)),
            ("set_output_enabled", (0, True)),
            ("set_output_enabled", (1, False)),
            ("select_source", (1, Source.VOLTAGE)),
            ("set_bias", (1, Source.VOLTAGE, 0.5)),
            ("set_output_enabled", (1, True)),
        ]

    def test_current_source_values(self, smu2):
        sweep = smu2.create_nested_sweep()
        sweep.add_sweep(0, Source.CURRENT, [1e-3, 2e-3])
        points = sweep.run()
        assert [p[0].current for p in points] == pytest.approx([1e-3, 2e-3])
        assert [p[0].voltage for p in points] == pytest.approx([1.0, 2.0])

    def test_symmetric(self, smu2):
        sweep = smu2.create_nested_sweep()
        sweep.add_sweep(0, Source.VOLTAGE, [0, 1, 2], symmetric=True)
        points = sweep.run()
        assert sourced(points, 0) == pytest.approx([0, 1, 2, 1, 0])

    def test_delay(self, smu2):
        sweep = smu2.create_nested_sweep()
        sweep.add_sweep(0, Source.VOLTAGE, [0, 1, 2], delay_ms=20)
        start = time.perf_counter()
        sweep.run()
        assert time.perf_counter() - start >= 0.055

    def test_linear_and_log(self, smu2):
        sweep = smu2.create_nested_sweep()
        lin = sweep.add_linear_sweep(0, Source.VOLTAGE, 0, 1, 5)
        log = sweep.add_log_sweep(1, Source.VOLTAGE, 1e-3, 1, 4)
        np.testing.assert_allclose(lin.values, [0, 0.25, 0.5, 0.75, 1])
        np.testing.assert_allclose(log.values, [1e-3, 1e-2, 1e-1, 1])
        assert len(sweep.run()) == 20

    def test_run_nested_sweep_with_configs(self, smu2):
        configs = [
            SweepConfig(channel=1, source=Source.VOLTAGE, values=[0.0, 1.0]),
            SweepConfig(channel=0, source=Source.VOLTAGE, values=[2.0, 3.0]),
        ]
        points = smu2.run_nested_sweep(configs)
        assert sourced(points, 1) == pytest.approx([0, 0, 1, 1])
        assert sourced(points, 0) == pytest.approx([2, 3, 2, 3])


class TestComboSweep:
    def test_lock_step(self, smu2):
        sweep = smu2.create_combo_sweep()
        sweep.add_sweep(0, Source.VOLTAGE, [0, 1, 2])
        sweep.add_sweep(1, Source.CURRENT, [0, 1e-3, 2e-3])
        points = sweep.run()
        assert len(points) == 3
        assert sourced(points, 0) == pytest.approx([0, 1, 2])
        assert [p[1].current for p in points] == pytest.approx([0, 1e-3, 2e-3])

    def test_length_mismatch_before_any_write(self, smu2, mock2):
        sweep = smu2.create_combo_sweep()
        sweep.add_sweep(0, Source.VOLTAGE, [0, 1, 2])
        sweep.add_sweep(1, Source.VOLTAGE, [0, 1])
        with pytest.raises(SweepConfigError):
            sweep.run()
        assert mock2.calls == []

    def test_symmetric_lengths_compared_after_expansion(self, smu2):
        sweep = smu2.create_combo_sweep()
        sweep.add_sweep(0, Source.VOLTAGE, [0, 1, 2], symmetric=True)
        sweep.add_sweep(1, Source.VOLTAGE, [0, 1, 2, 3, 4])
        assert len(sweep.run()) == 5

    def test_run_combo_sweep(self, smu2):
        configs = [
            SweepConfig(channel=0, source=Source.VOLTAGE, values=[1.0, 2.0]),
            SweepConfig(channel=1, source=Source.VOLTAGE, values=[3.0, 4.0]),
        ]
        points = smu2.run_combo_sweep(configs)
        assert sourced(points, 1) == pytest.approx([3, 4])


class TestValidation:
    @pytest.mark.parametrize("factory", [NestedSweep, ComboSweep])
    def test_empty_sweep_list(self, smu2, mock2, factory):
        with pytest.raises(SweepConfigError):
            factory(smu2).run()
        assert mock2.calls == []

    @pytest.mark.parametrize("factory", [NestedSweep, ComboSweep])
    def test_empty_values(self, smu2, mock2, factory):
        sweep = factory(smu2)
        sweep.add_sweep(0, Source.VOLTAGE, [])
        with pytest.raises(SweepConfigError):
            sweep.run()
        assert mock2.calls == []

    @pytest.mark.parametrize("factory", [NestedSweep, ComboSweep])
    def test_bad_channel_anywhere(self, smu2, mock2, factory):
        sweep = factory(smu2)
        sweep.add_sweep(0, Source.VOLTAGE, [0, 1])
        sweep.add_sweep(2, Source.VOLTAGE, [0, 1])
        with pytest.raises(ChannelRangeError):
            sweep.run()
        assert mock2.calls == []

    def test_negative_delay(self, smu2):
        with pytest.raises(SweepConfigError):
            smu2.create_nested_sweep().add_sweep(0, Source.VOLTAGE, [0], delay_ms=-1)


class TestFailures:
    def test_communication_error_aborts(self, smu2, mock2):
        sweep = smu2.create_nested_sweep()
        sweep.add_sweep(0, Source.VOLTAGE, [0, 1, 2, 3])
        delivered = []
        # two reads per channel per point, two channels
        mock2.fail_on("read_raw", after=8)
        with pytest.raises(CommunicationError):
            sweep.run(lambda i, p: delivered.append(i))
        assert delivered == [0, 1]

    def test_abort_interrupts_wait(self, smu2):
        abort = threading.Event()
        sweep = NestedSweep(smu2, abort_event=abort)
        sweep.add_sweep(0, Source.VOLTAGE, list(range(100)), delay_ms=50)
        delivered = []

        def on_update(i, p):
            delivered.append(i)
            if i == 1:
                sweep.abort()

        start = time.perf_counter()
        with pytest.raises(SweepInterruptedError):
            sweep.run(on_update)
        assert time.perf_counter() - start < 2.0
        assert delivered[:2] == [0, 1]
        assert len(delivered) < 100

    def test_partial_results_kept_in_result_list(self, smu2, mock2):
        results = smu2.create_sweep_list()
        sweep = smu2.create_nested_sweep()
        sweep.add_sweep(0, Source.VOLTAGE, [0, 1, 2])
        mock2.fail_on("set_bias", after=2)
        with pytest.raises(CommunicationError):
            sweep.run_into(results)
        assert len(results) == 1


class TestResultListSink:
    def test_columns(self, smu2):
        results = smu2.create_sweep_list()
        assert results.get_titles() == [
            "Voltage 0 [V]",
            "Current 0 [A]",
            "Voltage 1 [V]",
            "Current 1 [A]",
        ]

    def test_rows(self, smu2):
        results = smu2.create_sweep_list()
        sweep = smu2.create_combo_sweep()
        sweep.add_sweep(1, Source.VOLTAGE, [1.0, 2.0])
        sweep.run_into(results)
        data = results.to_array()
        assert data.shape == (2, 4)
        np.testing.assert_allclose(data[:, 2], [1.0, 2.0])
        np.testing.assert_allclose(data[:, 3], [1e-3, 2e-3])
        np.testing.assert_allclose(results.get_column("Voltage 0"), [0.0, 0.0])

    def test_column_count_checked(self, smu2):
        from ivsweep.util import ResultList

        sweep = smu2.create_nested_sweep()
        sweep.add_sweep(0, Source.VOLTAGE, [1.0])
        with pytest.raises(ValueError):
            sweep.run_into(ResultList("V", "I"))
