# -*- coding: utf-8 -*-
"""
Utility functions and constants for ivsweep.

This module provides:

- Logging configuration and management
- Sweep value list generation
- VISA device discovery
- An in-memory tabular result collection

Examples
--------
Generating a sweep:
```python
from ivsweep.util import gen_linear_sweep_list, gen_symmetric_list
volts = gen_symmetric_list(gen_linear_sweep_list(0, 1, 11))
```

See Also
--------
ivsweep.util.logging : Logging configuration
ivsweep.util.list_gen : Sweep list generation
ivsweep.util.results : ResultList
"""

from .defaults import (
    DEFAULT_FILTER_COUNT,
    DEFAULT_FILTER_MODE,
    DEFAULT_LOGLEVEL,
    SINGLE_LINE_ERR_LOG,
    TEST_LOGLEVEL,
)
from .list_gen import (
    gen_centred_sweep_list,
    gen_linear_sweep_list,
    gen_log_sweep_list,
    gen_symmetric_list,
)
from .logging import (
    clear_log,
    format_error_response,
    get_log_filename,
    log_default_path_client,
    shutdown_client_log,
    start_client_log,
)
from .results import Column, ResultList

__all__ = [
    "DEFAULT_FILTER_COUNT",
    "DEFAULT_FILTER_MODE",
    "DEFAULT_LOGLEVEL",
    "SINGLE_LINE_ERR_LOG",
    "TEST_LOGLEVEL",
    "Column",
    "ResultList",
    "clear_log",
    "format_error_response",
    "gen_centred_sweep_list",
    "gen_linear_sweep_list",
    "gen_log_sweep_list",
    "gen_symmetric_list",
    "get_log_filename",
    "log_default_path_client",
    "shutdown_client_log",
    "start_client_log",
]
