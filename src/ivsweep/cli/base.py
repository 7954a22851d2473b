from typing import Optional

import click

from ivsweep.util import start_client_log
from ivsweep.util.check_hw import list_visa_devices


def print_tree(cmd, prefix="", parent_ctx=None):
    """Print command tree starting from given command."""
    ctx = click.Context(cmd, info_name=cmd.name, parent=parent_ctx)

    # Only print root name if no parent
    if not parent_ctx:
        click.echo(cmd.name)

    for sub in sorted(cmd.list_commands(ctx)):
        sub_cmd = cmd.get_command(ctx, sub)
        click.echo(f"{prefix}└── {sub}")
        if isinstance(sub_cmd, click.Group):
            print_tree(sub_cmd, prefix + "    ", ctx)


def tree_option(f):
    """Add --tree option to command."""

    def callback(ctx, param, value):
        if not value or ctx.resilient_parsing:
            return
        print_tree(ctx.command)
        ctx.exit()

    return click.option(
        "--tree",
        is_flag=True,
        help="Show command tree from this point",
        expose_value=False,
        is_eager=True,
        callback=callback,
    )(f)


@click.group()
@tree_option
@click.option(
    "--log-level",
    "-ll",
    default=None,
    help="Log to stderr at this level (TRACE, DEBUG, INFO, WARNING, ERROR)",
)
@click.option(
    "--log-path",
    "-lp",
    default=None,
    help="Also log to this file",
)
def cli(log_level: Optional[str], log_path: Optional[str]):
    """ivsweep - multi-channel source-measure unit sweeps.

    - Nested and lock-step (combo) sweeps over any number of SMU channels

    - Software median / hardware mean read filtering

    - Keithley 2450 and 2600B drivers plus a simulated instrument
    """
    if log_level or log_path:
        start_client_log(
            log_to_file=bool(log_path),
            log_to_stdout=bool(log_level),
            log_path=log_path,
            clear_prev=False,
            log_level=(log_level or "INFO").upper(),
        )


@cli.command()
@click.option(
    "--filter",
    "-f",
    "filter_string",
    default=None,
    help='Only list resources containing this string (e.g. "USB", "GPIB")',
)
@click.option(
    "--model",
    "-m",
    default=None,
    help='Only list devices whose IDN contains this (e.g. "MODEL 2450")',
)
def visa(filter_string, model):
    """List all available VISA devices.

    Shows information about each connected VISA instrument:

    - VISA resource address

    - Device identification string

    - Connection status
    """
    devices = list_visa_devices(filter_string=filter_string, model_filter=model)

    click.echo("\nAvailable VISA devices:")
    click.echo("----------------------")

    if not devices:
        click.echo("No VISA devices found")
        click.echo("")
        return

    for addr, info in devices.items():
        click.echo(f"\nAddress: {addr}")
        click.echo(f"IDN: {info['idn']}")
        click.echo(f"Status: {info['status']}")
        if info["error"]:
            click.echo(f"Error: {info['error']}")
    click.echo("")


@cli.group()
@tree_option
def station():
    """Manage station (instrument) configurations."""
    pass


@station.command(name="list")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Stations INI file (default: ~/.ivsweep/stations.ini)",
)
def list_stations(config_path):
    """List configured stations."""
    from ivsweep.system import list_available_stations

    stations = list_available_stations(config_path)

    click.echo("\nConfigured stations:")
    click.echo("-------------------")
    if not stations:
        click.echo("No stations found")
        click.echo("")
        return
    for name, driver in stations.items():
        click.echo(f"  {name} ({driver})")
    click.echo("")


@station.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Stations INI file (default: ~/.ivsweep/stations.ini)",
)
def install(config_path):
    """Create the stations file with an example mock station."""
    from ivsweep.system import create_default_stations_file

    path = create_default_stations_file(config_path)
    click.echo(f"Stations file written to {path}")
