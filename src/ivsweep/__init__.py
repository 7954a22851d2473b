"""
ivsweep - coordination of multi-channel source-measure units.

Subpackages
-----------
types
    Enums, points, sweep configs, protocols and errors
filters
    Read filters (bypass, mean, median)
device
    Instrument drivers, the `MCSMU` channel model and `VirtualSMU`
sweep
    Nested/combo sweep engine and the update pump
system
    Station (instrument) configuration
util
    Logging, sweep list generation, VISA discovery, result lists
cli
    Command-line interface

Examples
--------
```python
from ivsweep.device import MCSMU, MockSMU
from ivsweep.types import Source

with MCSMU(MockSMU(num_channels=2)) as smu:
    sweep = smu.create_nested_sweep()
    sweep.add_linear_sweep(0, Source.VOLTAGE, 0, 1, 5)
    sweep.add_linear_sweep(1, Source.CURRENT, 0, 1e-6, 3)
    points = sweep.run()
```
"""

from ._version import __version__

__all__ = ["__version__"]
