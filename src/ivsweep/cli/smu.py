import click
import simplejson as json
from loguru import logger
from mashumaro.exceptions import InvalidFieldValue, MissingField

from ivsweep.device import MCSMU, MockSMU
from ivsweep.system import build_smu, load_station_config
from ivsweep.types import DeviceError, MCIVPoint, SweepPlan
from ivsweep.util import format_error_response


def smu_options(f):
    """Add the options choosing which SMU to talk to."""
    f = click.option(
        "--mock",
        "-m",
        type=int,
        default=None,
        help="Use a simulated SMU with this many channels instead of a station",
    )(f)
    f = click.option(
        "--config",
        "-c",
        "config_path",
        type=click.Path(dir_okay=False),
        default=None,
        help="Stations INI file (default: ~/.ivsweep/stations.ini)",
    )(f)
    f = click.option(
        "--station", "-s", default=None, help="Station name from the stations file"
    )(f)
    return f


def get_smu(station, config_path, mock) -> MCSMU:
    if (station is None) == (mock is None):
        raise click.UsageError("Give exactly one of --station or --mock")
    if mock is not None:
        if mock < 1:
            raise click.UsageError("--mock needs at least one channel")
        return MCSMU(MockSMU(num_channels=mock))
    try:
        return build_smu(load_station_config(station, config_path))
    except ValueError as e:
        raise click.UsageError(str(e))


def format_point(index: int, point: MCIVPoint) -> str:
    cols = [f"{index:5d}"]
    for channel, iv in point.items():
        cols.append(f"{iv.voltage: .6e} V {iv.current: .6e} A")
    return "  ".join(cols)


@click.command()
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False))
@smu_options
def sweep(plan_file, station, config_path, mock):
    """Run a sweep plan (JSON) and print one row per point.

    The plan file holds the sweep kind and one entry per swept channel:

    \b
    {"kind": "nested",
     "sweeps": [{"channel": 0, "source": "voltage",
                 "values": [0, 0.5, 1], "delay_ms": 10, "symmetric": false}]}
    """
    with open(plan_file) as f:
        try:
            plan = SweepPlan.from_dict(json.load(f))
        except (InvalidFieldValue, MissingField, ValueError, TypeError) as e:
            raise click.UsageError(f"Invalid sweep plan {plan_file}: {e}")

    smu = get_smu(station, config_path, mock)
    header = ["index"] + [
        f"V{ch} [V] I{ch} [A]" for ch in range(smu.num_channels)
    ]
    try:
        with smu:
            click.echo("  ".join(header))
            run = smu.run_combo_sweep if plan.kind == "combo" else smu.run_nested_sweep
            points = run(plan.sweeps, lambda i, p: click.echo(format_point(i, p)))
    except DeviceError as e:
        logger.error("Sweep failed: {}", format_error_response())
        raise click.ClickException(str(e))
    click.echo(f"{len(points)} point(s)")


@click.command()
@smu_options
def read(station, config_path, mock):
    """Read voltage and current on every channel."""
    smu = get_smu(station, config_path, mock)
    try:
        smu.open()
        try:
            for channel, point in smu.get_mciv_point().items():
                click.echo(
                    f"Channel {channel}: {point.voltage:.6f} V  {point.current:.6e} A"
                    + f"  ({'on' if smu.is_on(channel) else 'off'})"
                )
        finally:
            smu.close()
    except DeviceError as e:
        raise click.ClickException(str(e))


@click.command()
@smu_options
def zero(station, config_path, mock):
    """Zero the bias on every channel and turn the outputs off."""
    smu = get_smu(station, config_path, mock)
    try:
        smu.open()
        try:
            for channel in smu:
                channel.set_bias(0.0)
                channel.turn_off()
        finally:
            smu.close()
    except DeviceError as e:
        raise click.ClickException(str(e))
    click.echo("SMU outputs zeroed and disabled")
