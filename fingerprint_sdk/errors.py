"""Exception types raised by the fingerprint SDK."""
from __future__ import annotations

from typing import Optional


class ScannerError(RuntimeError):
    """Base class for all scanner SDK errors."""
    pass


class OperationError(ScannerError):
    """A device operation did not succeed.

    Raised by ``OperationResult.unwrap()``; the subclass tells which
    failure occurred.
    """

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message


class NotConnectedError(OperationError):
    """Operation attempted (or in flight) while the device was disconnected."""
    pass


class BusyError(OperationError):
    """Operation attempted while another one was pending."""
    pass


class OperationTimeoutError(OperationError):
    """Device did not answer within the operation window."""
    pass


class DeviceReportedError(OperationError):
    """Device explicitly reported a failure (``ERROR:<message>``)."""
    pass


class TransportError(OperationError):
    """Write or open failed at the byte-stream level."""
    pass


class DeviceNotFoundError(ScannerError):
    """Raised when no matching serial device could be found."""
    pass


class MultipleDevicesError(ScannerError):
    """Raised when more than one matching serial device is found."""
    def __init__(self, message, devices):
        super().__init__(message)
        self.devices = devices
