"""
Core types: enums, points, configs, protocols and errors.

The ivsweep.types package holds everything that is shared between the channel
model, the read filters and the sweep engine:

1. Enumerations (enums.py)
    - `Quantity`/`Source`, `FilterMode`

2. Points (points.py)
    - `IVPoint`, `MCIVPoint`

3. Configuration (config.py)
    - `SweepConfig`, `SweepPlan` (mashumaro dataclasses)

4. Protocols (protocols.py)
    - `SMUTransportProtocol` for drivers, `SMUProtocol` for single-channel views

5. Errors and validation (errors.py, validation.py)

Examples
--------
Creating a sweep configuration:
```python
from ivsweep.types import Source, SweepConfig
conf = SweepConfig(channel=0, source=Source.VOLTAGE, values=[0, 1, 2], symmetric=True)
conf.sequence  # array([0., 1., 2., 1., 0.])
```
"""

from .config import SweepConfig, SweepPlan
from .enums import FilterMode, Quantity, Source
from .errors import (
    ChannelRangeError,
    CommunicationError,
    DeviceError,
    InvalidCountError,
    RangeError,
    SweepConfigError,
    SweepInterruptedError,
    UnsupportedConfigError,
)
from .points import IVPoint, MCIVPoint
from .protocols import SMUProtocol, SMUTransportProtocol
from .validation import check_channel, check_count, validate_sweep_configs

__all__ = [
    "ChannelRangeError",
    "CommunicationError",
    "DeviceError",
    "FilterMode",
    "IVPoint",
    "InvalidCountError",
    "MCIVPoint",
    "Quantity",
    "RangeError",
    "SMUProtocol",
    "SMUTransportProtocol",
    "Source",
    "SweepConfig",
    "SweepConfigError",
    "SweepInterruptedError",
    "SweepPlan",
    "UnsupportedConfigError",
    "check_channel",
    "check_count",
    "validate_sweep_configs",
]
