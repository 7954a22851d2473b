"""
Sweep engine and update pump.

Sweeps are normally created from a device:
```python
sweep = smu.create_combo_sweep()
sweep.add_linear_sweep(0, Source.VOLTAGE, 0, 1, 11)
sweep.add_linear_sweep(1, Source.CURRENT, 0, 1e-6, 11)
points = sweep.run()
```
"""

from .pump import UpdatePump, log_callback_exception
from .sweep import ChannelSweep, ComboSweep, NestedSweep, Sweep

__all__ = [
    "ChannelSweep",
    "ComboSweep",
    "NestedSweep",
    "Sweep",
    "UpdatePump",
    "log_callback_exception",
]
