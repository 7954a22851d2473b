"""Device base class for instrument drivers.

All instrument drivers (transports) in ivsweep inherit from `Device`, which checks
configuration keyword arguments and defines the open/close life-cycle. Drivers then
implement the methods of `ivsweep.types.SMUTransportProtocol` so they can be wrapped
by an `MCSMU`:

1. `Device` (this class) - config checking, life-cycle
2. Drivers (`MockSMU`, `K2450`, `K2600B`) - instrument-specific commands
3. `MCSMU` - channel checks, read filters and sweeps over any driver
"""

from __future__ import annotations

from typing import Type

from loguru import logger


class Device:
    """Base class for all instrument drivers.

    Attributes
    ----------
    required_config : dict[str, Type]
        Configuration keys a driver must be given, and their types.
    num_channels : int
        Number of source-measure channels on the instrument.

    Examples
    --------
    ```python
    class MySMU(Device):
        required_config = {"visa_address": str}
        num_channels = 1

        def open(self):
            ...
    ```
    """

    required_config: dict[str, Type] = {}
    num_channels: int = 1

    def __init__(self, **config_kwargs):
        for key, value in config_kwargs.items():
            setattr(self, key, value)
        for key, typ in self.required_config.items():
            if not hasattr(self, key):
                self._config_error(f"missing required config key: {key}")
            if not isinstance(getattr(self, key), typ):
                self._config_error(
                    f"config key {key} has wrong type: "
                    + f"{type(getattr(self, key))} (expected {typ})"
                )

    def _config_error(self, message: str) -> None:
        message = f"Device {self.__class__.__name__} {message}"
        logger.error(message)
        raise ValueError(message)

    def open(self) -> None:
        raise NotImplementedError()

    def close(self) -> None:
        raise NotImplementedError()

    def is_connected(self) -> bool:
        raise NotImplementedError()
