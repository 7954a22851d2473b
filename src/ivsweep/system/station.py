"""Station (instrument) configuration handling.

A station is one SMU set-up described in an INI file, one section per station:

[Mock]
driver = MockSMU
num_channels = 2
resistance = 1e3
noise_sigma = 0
filter_mode = MEDIAN_REPEAT
filter_count = 5

[Bench2450]
driver = K2450
address = USB0::0x05E6::0x2450::04567890::INSTR
timeout = 2000
filter_mode = MEAN_REPEAT
filter_count = 10

Keys
----
driver : str
    Required. One of `DRIVERS` (``MockSMU``, ``K2450``, ``K2600B``).
address : str
    VISA address (Keithley drivers). Omit to auto-discover.
timeout : int
    VISA timeout in ms (Keithley drivers).
num_channels, resistance, noise_sigma, seed
    Mock load parameters.
filter_mode : str
    `FilterMode` name applied to every channel on open, default ``NONE``.
filter_count : int
    Filter count applied to every channel on open, default 1.
default_channel : int
    Default channel of the `MCSMU`, default 0.

The default file is ``~/.ivsweep/stations.ini``.
"""

from __future__ import annotations

from configparser import ConfigParser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Type, Union

from loguru import logger

from ivsweep.device import K2450, K2600B, MCSMU, Device, MockSMU
from ivsweep.types import FilterMode
from ivsweep.util.defaults import DEFAULT_FILTER_COUNT, DEFAULT_FILTER_MODE

DRIVERS: dict[str, Type[Device]] = {
    "MockSMU": MockSMU,
    "K2450": K2450,
    "K2600B": K2600B,
}

MOCK_KEYS = {"num_channels": int, "resistance": float, "noise_sigma": float, "seed": int}
VISA_KEYS = {"timeout": int}


def default_stations_path() -> Path:
    return Path.home() / ".ivsweep" / "stations.ini"


@dataclass
class StationConfig:
    """Station configuration loaded from an INI file.

    Attributes
    ----------
    name : str
        Section name of the station
    driver : Type[Device]
        Driver class to instantiate
    driver_params : dict[str, Any]
        Keyword arguments for the driver
    filter_mode : FilterMode
        Filter mode applied on open
    filter_count : int
        Filter count applied on open
    default_channel : int
        Default channel of the channel model
    """

    name: str
    driver: Type[Device]
    driver_params: dict[str, Any] = field(default_factory=dict)
    filter_mode: FilterMode = FilterMode.NONE
    filter_count: int = 1
    default_channel: int = 0


def validate_station_config(config: ConfigParser, section: str) -> tuple[bool, str]:
    """Validate a station section.

    Returns
    -------
    tuple[bool, str]
        (is_valid, error_message)
    """
    sect = config[section]
    if "driver" not in sect:
        return False, "Missing required field: driver"
    if sect["driver"] not in DRIVERS:
        return False, f"Invalid driver: {sect['driver']}"

    try:
        FilterMode.from_name(sect.get("filter_mode", DEFAULT_FILTER_MODE))
    except ValueError as e:
        return False, str(e)

    typed_keys = {"filter_count": int, "default_channel": int}
    typed_keys.update(MOCK_KEYS if sect["driver"] == "MockSMU" else VISA_KEYS)
    for key, typ in typed_keys.items():
        if key in sect:
            try:
                typ(sect[key])
            except ValueError:
                return False, f"Invalid value for {key}: {sect[key]}"

    if int(sect.get("filter_count", str(DEFAULT_FILTER_COUNT))) < 1:
        return False, "filter_count must be >= 1"

    if sect["driver"] == "MockSMU":
        num_channels = int(sect.get("num_channels", "1"))
    else:
        num_channels = DRIVERS[sect["driver"]].num_channels
    default_channel = int(sect.get("default_channel", "0"))
    if not 0 <= default_channel < num_channels:
        return False, (
            f"default_channel {default_channel} out of range for "
            + f"{sect['driver']} with {num_channels} channel(s)"
        )
    return True, ""


def _create_station_config(config: ConfigParser, section: str) -> StationConfig:
    is_valid, msg = validate_station_config(config, section)
    if not is_valid:
        raise ValueError(f"Invalid station configuration [{section}]: {msg}")

    sect = config[section]
    driver_name = sect["driver"]
    params: dict[str, Any] = {}
    if driver_name == "MockSMU":
        for key, typ in MOCK_KEYS.items():
            if key in sect:
                params[key] = typ(sect[key])
    else:
        params["visa_address"] = sect.get("address") or None
        for key, typ in VISA_KEYS.items():
            if key in sect:
                params[key] = typ(sect[key])

    station = StationConfig(
        name=section,
        driver=DRIVERS[driver_name],
        driver_params=params,
        filter_mode=FilterMode.from_name(sect.get("filter_mode", DEFAULT_FILTER_MODE)),
        filter_count=int(sect.get("filter_count", str(DEFAULT_FILTER_COUNT))),
        default_channel=int(sect.get("default_channel", "0")),
    )
    logger.debug(f"Loaded station {section}: {station}")
    return station


def load_station_config(
    name: str, path: Optional[Union[str, Path]] = None
) -> StationConfig:
    """Load a station configuration by (case-insensitive) section name.

    Parameters
    ----------
    name : str
        Station name
    path : str | Path, optional
        INI file, by default ``~/.ivsweep/stations.ini``

    Raises
    ------
    ValueError
        If the station is missing or invalid.
    """
    path = Path(path) if path is not None else default_stations_path()
    config = ConfigParser()
    if path.exists():
        config.read(path)
        for section in config.sections():
            if section.lower() == name.lower():
                return _create_station_config(config, section)
    raise ValueError(f"Station '{name}' not found in {path}")


def list_available_stations(path: Optional[Union[str, Path]] = None) -> dict[str, str]:
    """Map of station name to driver name for every section in the file."""
    path = Path(path) if path is not None else default_stations_path()
    config = ConfigParser()
    if path.exists():
        config.read(path)
    return {s: config[s].get("driver", "?") for s in config.sections()}


def create_default_stations_file(path: Optional[Union[str, Path]] = None) -> Path:
    """Write a stations file holding a two-channel mock station.

    Existing sections are kept.
    """
    path = Path(path) if path is not None else default_stations_path()
    config = ConfigParser()
    if path.exists():
        config.read(path)
    if "Mock" not in config.sections():
        config["Mock"] = {
            "driver": "MockSMU",
            "num_channels": "2",
            "resistance": "1e3",
            "noise_sigma": "0",
            "filter_mode": "NONE",
            "filter_count": "1",
        }
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        config.write(f)
    logger.debug(f"Wrote stations file {path}")
    return path


def build_smu(station: StationConfig) -> MCSMU:
    """Instantiate the driver of a station and wrap it in an (unopened) `MCSMU`."""
    transport = station.driver(**station.driver_params)
    smu = MCSMU(transport, station.filter_mode, station.filter_count)
    smu.set_default_channel(station.default_channel)
    return smu
