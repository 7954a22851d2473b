"""
Station configuration: which SMU driver to use and how to set it up.

See Also
--------
ivsweep.system.station : INI format and loaders
"""

from .station import (
    DRIVERS,
    StationConfig,
    build_smu,
    create_default_stations_file,
    default_stations_path,
    list_available_stations,
    load_station_config,
    validate_station_config,
)

__all__ = [
    "DRIVERS",
    "StationConfig",
    "build_smu",
    "create_default_stations_file",
    "default_stations_path",
    "list_available_stations",
    "load_station_config",
    "validate_station_config",
]
