"""Immutable data models shared by the session and its callers.

Results are frozen dataclasses so they can be handed across threads
without copying.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Type

from .errors import (
    BusyError,
    DeviceReportedError,
    NotConnectedError,
    OperationError,
    OperationTimeoutError,
    TransportError,
)


class ConnectionState(Enum):
    """Connection state of the device session."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class OperationKind(Enum):
    """Logical request that can be issued to the device."""
    ENROLL = "enroll"
    VERIFY = "verify"
    DELETE = "delete"


class ErrorKind(Enum):
    """Why an operation failed."""
    NOT_CONNECTED = "not_connected"
    BUSY = "busy"
    TIMEOUT = "timeout"
    DEVICE_ERROR = "device_error"
    TRANSPORT_ERROR = "transport_error"


_ERROR_TYPES: Dict[ErrorKind, Type[OperationError]] = {
    ErrorKind.NOT_CONNECTED: NotConnectedError,
    ErrorKind.BUSY: BusyError,
    ErrorKind.TIMEOUT: OperationTimeoutError,
    ErrorKind.DEVICE_ERROR: DeviceReportedError,
    ErrorKind.TRANSPORT_ERROR: TransportError,
}


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one device operation.

    Attributes:
        kind: Which operation produced this result
        ok: True if the operation succeeded
        template_id: Template id reported by the device (enroll/verify),
            or the id that was deleted
        error: Failure category, None on success
        message: Human readable failure reason (device message for
            DEVICE_ERROR), None on success
    """
    kind: OperationKind
    ok: bool
    template_id: Optional[int] = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, kind: OperationKind, template_id: Optional[int] = None) -> OperationResult:
        return cls(kind=kind, ok=True, template_id=template_id)

    @classmethod
    def failure(cls, kind: OperationKind, error: ErrorKind, message: Optional[str] = None) -> OperationResult:
        return cls(kind=kind, ok=False, error=error, message=message)

    def unwrap(self) -> Optional[int]:
        """Return the template id, or raise the error matching this failure.

        Raises:
            OperationError: subclass selected by ``error``
        """
        if self.ok:
            return self.template_id
        raise _ERROR_TYPES[self.error](self.message)
