"""VISA bus discovery for the Keithley drivers and the ``ivsweep visa`` command."""

from typing import Dict, Optional

import pyvisa
from loguru import logger

from .defaults import DEFAULT_VISA_TIMEOUT

# serial ports that never host an SMU but can hang on *IDN?
SKIPPED_RESOURCES = ("/dev/ttyS", "COM", "ASRL/dev/ttyS")


def _query_idn(resource_manager: pyvisa.ResourceManager, resource: str) -> str:
    inst = resource_manager.open_resource(resource)
    try:
        inst.timeout = DEFAULT_VISA_TIMEOUT
        inst.read_termination = "\n"
        inst.write_termination = "\n"
        return inst.query("*IDN?").strip()
    finally:
        try:
            inst.close()
        except (pyvisa.errors.Error, OSError) as e:
            logger.trace(f"Ignoring error closing {resource}: {e}")


def list_visa_devices(
    filter_string: Optional[str] = None,
    model_filter: Optional[str] = None,
    detailed: bool = True,
    resource_manager: Optional[pyvisa.ResourceManager] = None,
) -> Dict[str, Dict[str, str]] | Dict[str, str]:
    """List VISA instruments and their identification strings.

    Parameters
    ----------
    filter_string : str, optional
        Only look at resources whose address contains this (e.g. "USB", "GPIB").
    model_filter : str, optional
        Only keep instruments whose ``*IDN?`` contains this (e.g. "MODEL 2450").
    detailed : bool, optional
        If True (default), map address -> ``{"idn", "status", "error"}`` and include
        resources that failed to answer. If False, map address -> IDN string for
        responding instruments only.
    resource_manager : pyvisa.ResourceManager, optional
        Manager to use, by default a new one (closed again before returning).
    """
    owns_rm = resource_manager is None
    rm = pyvisa.ResourceManager() if owns_rm else resource_manager

    devices = {}
    try:
        for resource in rm.list_resources():
            if any(skip in resource for skip in SKIPPED_RESOURCES):
                continue
            if filter_string and filter_string not in resource:
                continue
            try:
                idn = _query_idn(rm, resource)
            except (pyvisa.errors.Error, OSError, ValueError) as e:
                logger.debug(f"No answer from {resource}: {e}")
                if detailed:
                    devices[resource] = {"idn": "", "status": "error", "error": str(e)}
                continue

            if model_filter and model_filter not in idn:
                continue
            logger.debug(f"Found device at {resource}: {idn}")
            if detailed:
                devices[resource] = {"idn": idn, "status": "connected", "error": ""}
            else:
                devices[resource] = idn
    finally:
        if owns_rm:
            rm.close()
    return devices


def check_smu_available(
    smu_address: Optional[str] = None, model_filter: str = "MODEL 2450"
) -> bool:
    """True if an SMU (a specific one, if ``smu_address`` is given) is on the bus."""
    try:
        devices = list_visa_devices(model_filter=model_filter, detailed=False)
    except (pyvisa.errors.Error, OSError, ValueError) as e:
        # no VISA backend installed, or the bus could not be listed
        logger.error(f"Error checking for SMU: {e}")
        return False
    if smu_address:
        return smu_address in devices
    return len(devices) > 0
