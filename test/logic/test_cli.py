from unittest.mock import patch

import click.testing
import pytest
import simplejson as json

from ivsweep.cli import cli


@pytest.fixture
def cli_runner():
    return click.testing.CliRunner()


@pytest.fixture
def plan_file(tmp_path):
    def write(plan):
        path = tmp_path / "plan.json"
        path.write_text(json.dumps(plan))
        return str(path)

    return write


NESTED_PLAN = {
    "kind": "nested",
    "sweeps": [
        {"channel": 0, "source": "voltage", "values": [0, 1]},
        {"channel": 1, "source": "voltage", "values": [0, 1, 2]},
    ],
}


class TestTree:
    def test_tree(self, cli_runner):
        result = cli_runner.invoke(cli, ["--tree"])
        assert result.exit_code == 0
        for name in ["sweep", "read", "zero", "visa", "station", "install", "list"]:
            assert f"└── {name}" in result.output

    def test_station_subtree(self, cli_runner):
        result = cli_runner.invoke(cli, ["station", "--tree"])
        assert result.exit_code == 0
        assert "sweep" not in result.output
        assert "└── list" in result.output


class TestSweepCLI:
    def test_nested_on_mock(self, cli_runner, plan_file):
        result = cli_runner.invoke(cli, ["sweep", plan_file(NESTED_PLAN), "--mock", "2"])
        assert result.exit_code == 0, result.output
        lines = result.output.strip().splitlines()
        assert lines[0].startswith("index")
        assert len(lines) == 1 + 6 + 1
        assert lines[-1] == "6 point(s)"

    def test_combo_on_mock(self, cli_runner, plan_file):
        plan = {
            "kind": "combo",
            "sweeps": [
                {"channel": 0, "source": "voltage", "values": [0, 1, 2]},
                {"channel": 1, "source": "current", "values": [0, 1e-3, 2e-3]},
            ],
        }
        result = cli_runner.invoke(cli, ["sweep", plan_file(plan), "-m", "2"])
        assert result.exit_code == 0, result.output
        assert "3 point(s)" in result.output

    def test_combo_mismatch_reports_error(self, cli_runner, plan_file):
        plan = {
            "kind": "combo",
            "sweeps": [
                {"channel": 0, "source": "voltage", "values": [0, 1, 2]},
                {"channel": 1, "source": "voltage", "values": [0, 1]},
            ],
        }
        result = cli_runner.invoke(cli, ["sweep", plan_file(plan), "-m", "2"])
        assert result.exit_code == 1
        assert "same length" in result.output

    def test_bad_channel_reports_error(self, cli_runner, plan_file):
        result = cli_runner.invoke(cli, ["sweep", plan_file(NESTED_PLAN), "-m", "1"])
        assert result.exit_code == 1
        assert "Channel 1 does not exist" in result.output

    def test_invalid_plan(self, cli_runner, plan_file):
        plan = {"kind": "spiral", "sweeps": []}
        result = cli_runner.invoke(cli, ["sweep", plan_file(plan), "-m", "1"])
        assert result.exit_code == 2
        assert "Invalid sweep plan" in result.output

    def test_needs_exactly_one_target(self, cli_runner, plan_file):
        path = plan_file(NESTED_PLAN)
        result = cli_runner.invoke(cli, ["sweep", path])
        assert result.exit_code == 2
        assert "exactly one of --station or --mock" in result.output
        result = cli_runner.invoke(cli, ["sweep", path, "-m", "2", "-s", "Mock"])
        assert result.exit_code == 2

    def test_station(self, cli_runner, plan_file, tmp_path):
        config = tmp_path / "stations.ini"
        result = cli_runner.invoke(cli, ["station", "install", "-c", str(config)])
        assert result.exit_code == 0
        result = cli_runner.invoke(
            cli, ["sweep", plan_file(NESTED_PLAN), "-s", "mock", "-c", str(config)]
        )
        assert result.exit_code == 0, result.output
        assert "6 point(s)" in result.output

    def test_unknown_station(self, cli_runner, plan_file, tmp_path):
        result = cli_runner.invoke(
            cli,
            [
                "sweep",
                plan_file(NESTED_PLAN),
                "-s",
                "Nope",
                "-c",
                str(tmp_path / "stations.ini"),
            ],
        )
        assert result.exit_code == 2
        assert "not found" in result.output


class TestReadZero:
    def test_read(self, cli_runner):
        result = cli_runner.invoke(cli, ["read", "--mock", "2"])
        assert result.exit_code == 0
        assert "Channel 0:" in result.output
        assert "Channel 1:" in result.output
        assert "(off)" in result.output

    def test_zero(self, cli_runner):
        result = cli_runner.invoke(cli, ["zero", "--mock", "3"])
        assert result.exit_code == 0
        assert "zeroed and disabled" in result.output

    def test_zero_mock_needs_channel(self, cli_runner):
        result = cli_runner.invoke(cli, ["zero", "--mock", "0"])
        assert result.exit_code == 2


class TestStationCLI:
    def test_list_empty(self, cli_runner, tmp_path):
        result = cli_runner.invoke(
            cli, ["station", "list", "-c", str(tmp_path / "none.ini")]
        )
        assert result.exit_code == 0
        assert "No stations found" in result.output

    def test_install_then_list(self, cli_runner, tmp_path):
        config = str(tmp_path / "stations.ini")
        result = cli_runner.invoke(cli, ["station", "install", "-c", config])
        assert result.exit_code == 0
        assert "Stations file written" in result.output
        result = cli_runner.invoke(cli, ["station", "list", "-c", config])
        assert "Mock (MockSMU)" in result.output


class TestVisaCLI:
    @patch("ivsweep.cli.base.list_visa_devices")
    def test_no_devices(self, mock_list, cli_runner):
        mock_list.return_value = {}
        result = cli_runner.invoke(cli, ["visa"])
        assert result.exit_code == 0
        assert "No VISA devices found" in result.output

    @patch("ivsweep.cli.base.list_visa_devices")
    def test_lists_devices(self, mock_list, cli_runner):
        mock_list.return_value = {
            "USB0::1::INSTR": {
                "idn": "KEITHLEY INSTRUMENTS,MODEL 2450,0,1",
                "status": "Available",
                "error": None,
            }
        }
        result = cli_runner.invoke(cli, ["visa", "-m", "2450"])
        assert result.exit_code == 0
        assert "USB0::1::INSTR" in result.output
        assert "MODEL 2450" in result.output
        mock_list.assert_called_once_with(filter_string=None, model_filter="2450")
