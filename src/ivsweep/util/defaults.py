# -*- coding: utf-8 -*-

DEFAULT_LOGLEVEL = "INFO"
TEST_LOGLEVEL = "TRACE"
SINGLE_LINE_ERR_LOG = False  # reformat tracebacks into a single line for logs

DEFAULT_FILTER_MODE = "NONE"
DEFAULT_FILTER_COUNT = 1
DEFAULT_VISA_TIMEOUT = 2000  # ms
PUMP_JOIN_TIMEOUT = None  # seconds, None waits for the consumer to drain
