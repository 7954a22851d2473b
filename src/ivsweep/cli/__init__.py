"""
Command-line interface for ivsweep.

The CLI is built using the Click framework and provides a hierarchical
command structure with consistent help documentation.

Examples
--------
Running a sweep plan on a simulated two-channel SMU:
```bash
$ ivsweep sweep plan.json --mock 2
```

Running it on a configured station:
```bash
$ ivsweep sweep plan.json --station Bench2450
```

Listing available VISA devices:
```bash
$ ivsweep visa
```

See Also
--------
ivsweep.system : Station configuration


CLI Tree
--------

```
$ ivsweep --tree
cli
└── read
└── station
    └── install
    └── list
└── sweep
└── visa
└── zero
```
"""

from .base import cli, tree_option
from .smu import read, sweep, zero

cli.add_command(sweep)
cli.add_command(read)
cli.add_command(zero)

__all__ = ["cli", "tree_option"]
