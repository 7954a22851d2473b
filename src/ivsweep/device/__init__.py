# -*- coding: utf-8 -*-
"""
Instrument drivers and the SMU channel model.

This module provides:

- `Device`, the base class of every instrument driver
- Drivers implementing `SMUTransportProtocol`: `MockSMU`, `K2450`, `K2600B`
- `MCSMU`, the multi-channel channel model wrapping a driver
- `VirtualSMU`, a single-channel view of one `MCSMU` channel

Examples
--------
```python
from ivsweep.device import K2600B, MCSMU
smu = MCSMU(K2600B("TCPIP0::192.168.0.5::INSTR"))
smu.open()
smu.get_channel(1).set_voltage(0.5)
```

See Also
--------
ivsweep.sweep : Sweep engine
ivsweep.system : Station configuration
"""

from .device import Device
from .keithley import K2450, K2600B, VisaSMU
from .mock import MockSMU
from .smu import MCSMU
from .virtual import VirtualSMU

__all__ = [
    "Device",
    "K2450",
    "K2600B",
    "MCSMU",
    "MockSMU",
    "VirtualSMU",
    "VisaSMU",
]
