"""Common VISA plumbing for the Keithley SMU drivers.

`VisaSMU` owns the pyvisa resource, does the identity check on `open` and funnels
every command through `_communicate`, which logs the command text and turns any
pyvisa/OS failure into a `CommunicationError`. Subclasses supply the command dialect.
"""

from __future__ import annotations

from typing import Optional

import pyvisa
from loguru import logger

from ivsweep.device.device import Device
from ivsweep.types import CommunicationError, DeviceError
from ivsweep.util.check_hw import list_visa_devices
from ivsweep.util.defaults import DEFAULT_VISA_TIMEOUT

ERROR_MESSAGES = {
    "not_connected": "Device not connected",
    "unexpected_device": "Unexpected device ID: {idn}",
    "connection_failed": "Failed to connect to instrument: {error}",
    "not_found": "No {model} devices found",
}


class VisaSMU(Device):
    """Base class for SMUs talking over VISA.

    Parameters
    ----------
    visa_address : str, optional
        VISA resource address of the instrument. If None, the first instrument
        whose ``*IDN?`` contains `idn_filter` is used.
    resource_manager : pyvisa.ResourceManager, optional
        PyVISA ResourceManager instance. If None, one is created (and closed again
        by `close`).
    timeout : int, optional
        VISA timeout in ms.
    """

    idn_filter: str = ""  # substring expected in the *IDN? reply
    error_query: Optional[str] = None  # query returning the next device error

    def __init__(
        self,
        visa_address: Optional[str] = None,
        resource_manager: Optional[pyvisa.ResourceManager] = None,
        timeout: int = DEFAULT_VISA_TIMEOUT,
    ):
        super().__init__()
        self.rm = resource_manager
        self.inst = None
        self.timeout = timeout
        self._owns_rm = False
        self.line_frequency = 50.0

        if self.rm is None:
            self.rm = pyvisa.ResourceManager()
            self._owns_rm = True

        if visa_address is None:
            devices = list_visa_devices(
                model_filter=self.idn_filter, detailed=False, resource_manager=self.rm
            )
            if not devices:
                raise DeviceError(ERROR_MESSAGES["not_found"].format(model=self.idn_filter))
            visa_address = next(iter(devices.keys()))
            logger.info(
                f"Auto-discovered {self.__class__.__name__} at {visa_address}: "
                + f"{devices[visa_address]}"
            )
        self.visa_address = visa_address

    # ------------------------------------------------------------------------------
    # connection
    # ------------------------------------------------------------------------------

    def open(self) -> None:
        """Open the VISA session, check the identity and put the instrument in a
        safe default state (outputs off)."""
        try:
            self.inst = self.rm.open_resource(self.visa_address)
            self.inst.timeout = self.timeout
            self.inst.read_termination = "\n"
            self.inst.write_termination = "\n"
        except (pyvisa.errors.Error, OSError) as e:
            self.inst = None
            raise CommunicationError(
                ERROR_MESSAGES["connection_failed"].format(error=e)
            ) from e

        try:
            idn = self._communicate("*IDN?", query=True)
            if self.idn_filter.lower() not in idn.lower():
                raise DeviceError(ERROR_MESSAGES["unexpected_device"].format(idn=idn))
            self._initialise()
        except DeviceError:
            self._close_connection()
            raise
        logger.info(f"Connected to {self.__class__.__name__} at {self.visa_address}")

    def close(self) -> None:
        """Turn every output off and close the session."""
        if self.inst:
            try:
                for channel in range(self.num_channels):
                    self.set_output_enabled(channel, False)
            except DeviceError as e:
                logger.error(f"Error closing instrument: {e}")
            finally:
                self._close_connection()

        if self._owns_rm and self.rm:
            try:
                self.rm.close()
            except (pyvisa.errors.Error, OSError) as e:
                logger.error(f"Error closing resource manager: {e}")
            finally:
                self.rm = None
                self._owns_rm = False

    def is_connected(self) -> bool:
        return self.inst is not None

    def _close_connection(self) -> None:
        if self.inst:
            try:
                self.inst.close()
            except (pyvisa.errors.Error, OSError) as e:
                logger.trace(f"Ignoring error while closing VISA session: {e}")
            self.inst = None

    def _initialise(self) -> None:
        """Instrument-specific start-up sequence, run after the identity check."""

    # ------------------------------------------------------------------------------
    # communication
    # ------------------------------------------------------------------------------

    def _communicate(
        self, command: str, query: bool = False, check_errors: bool = False
    ) -> Optional[str]:
        """Send a command (or query) to the instrument.

        Raises
        ------
        CommunicationError
            If the device is not connected, the transfer fails, or (with
            ``check_errors``) the instrument reports an error.
        """
        if not self.inst:
            raise CommunicationError(ERROR_MESSAGES["not_connected"])
        try:
            logger.trace(f"{'Querying' if query else 'Writing'}: {command}")
            if query:
                result = self.inst.query(command).strip()
                logger.trace(f"Query result: {result}")
            else:
                self.inst.write(command)
                result = None
        except (pyvisa.errors.Error, OSError) as e:
            logger.trace(f"Communication error with command {command}: {e}")
            raise CommunicationError(
                f"{'query' if query else 'command'} {command} failed: {e}"
            ) from e
        if check_errors:
            self._check_error(command)
        return result

    def _query_float(self, command: str) -> float:
        response = self._communicate(command, query=True)
        try:
            return float(response)
        except (TypeError, ValueError) as e:
            raise CommunicationError(
                f"Unexpected response to {command}: {response!r}"
            ) from e

    def _check_error(self, command: str) -> None:
        if self.error_query is None:
            return
        error = self._communicate(self.error_query, query=True)
        if not self._is_no_error(error):
            raise CommunicationError(
                f"Error executing command: {command}\nDevice error: {error}"
            )

    @staticmethod
    def _is_no_error(response: str) -> bool:
        return response.startswith("0")

    def __repr__(self):
        return f"{self.__class__.__name__}({self.visa_address!r})"
