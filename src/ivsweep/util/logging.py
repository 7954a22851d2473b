# -*- coding: utf-8 -*-
"""
Log setup for scripts, the CLI and the test-suite.

ivsweep modules log through loguru's global ``logger``; nothing is configured on
import. Call `start_client_log` once from the entry point to choose sinks, and
`shutdown_client_log` before exiting so queued records from the sweep and pump
threads are flushed.

Levels used across the package:

- TRACE: every instrument command and query reply
- DEBUG: filter mode/count changes, station loading
- INFO: connections, sweep start and finish
- ERROR: failed sweeps, update callbacks that raised
"""

import os
import pathlib
import sys
import traceback
from typing import Optional

from loguru import logger

from .defaults import DEFAULT_LOGLEVEL, SINGLE_LINE_ERR_LOG

LOG_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    + "{thread.name: <20} | <cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    + "<level>{message}</level>"
)

_log_path: Optional[str] = None


def format_error_response() -> str:
    """Traceback of the exception being handled, on one line if configured."""
    err_str = traceback.format_exc()
    if SINGLE_LINE_ERR_LOG:
        return "\t".join(line.strip() for line in err_str.splitlines())
    return err_str


def start_client_log(
    log_to_file: bool = True,
    log_to_stdout: bool = False,
    log_path: Optional[str] = None,
    clear_prev: bool = True,
    log_level: str = DEFAULT_LOGLEVEL,
) -> None:
    """Replace loguru's default sink with a log file and/or stderr.

    Parameters
    ----------
    log_to_file : bool, optional
        Write to ``log_path``, by default True.
    log_to_stdout : bool, optional
        Write (coloured) to stderr, by default False.
    log_path : str, optional
        Log file, by default ``~/.ivsweep/client.log``.
    clear_prev : bool, optional
        Delete an existing log file first, by default True.
    log_level : str, optional
        Minimum level for both sinks.
    """
    global _log_path
    log_path = os.path.abspath(log_path) if log_path else log_default_path_client()

    if clear_prev:
        clear_log(log_path)

    logger.remove()

    if log_to_file:
        pathlib.Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path, level=log_level, format=LOG_FORMAT, enqueue=True, colorize=False
        )
        _log_path = log_path
    if log_to_stdout:
        logger.add(
            sys.stderr, level=log_level, format=LOG_FORMAT, enqueue=True, colorize=True
        )
    if log_to_file:
        logger.info("Client log started at {}", log_path)
    else:
        logger.info("Client log started.")


def log_default_path_client() -> str:
    return str(pathlib.Path.home().joinpath(".ivsweep", "client.log"))


def clear_log(log_path: str) -> None:
    """Delete the log file at ``log_path``, if it exists."""
    if not os.path.exists(log_path):
        return
    try:
        os.remove(log_path)
    except PermissionError:
        logger.error("Could not clear log file {}, permission denied", log_path)


def shutdown_client_log() -> None:
    """Flush queued records and remove every sink."""
    global _log_path
    logger.info("Closing down client log.")
    logger.complete()
    logger.remove()
    _log_path = None


def get_log_filename() -> str:
    """Path of the current log file, empty if not logging to a file."""
    return _log_path or ""
