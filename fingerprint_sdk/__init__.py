"""Fingerprint Scanner SDK - serial device session for a fingerprint sensor."""

from .config import SessionConfig
from .device import DeviceSession, next_template_id
from .errors import (
    ScannerError,
    OperationError,
    NotConnectedError,
    BusyError,
    OperationTimeoutError,
    DeviceReportedError,
    TransportError,
    DeviceNotFoundError,
    MultipleDevicesError,
)
from .models import ConnectionState, ErrorKind, OperationKind, OperationResult
from .transport import LineTransport, SerialLineTransport

__all__ = [
    "SessionConfig",
    "DeviceSession",
    "next_template_id",
    "ScannerError",
    "OperationError",
    "NotConnectedError",
    "BusyError",
    "OperationTimeoutError",
    "DeviceReportedError",
    "TransportError",
    "DeviceNotFoundError",
    "MultipleDevicesError",
    "ConnectionState",
    "ErrorKind",
    "OperationKind",
    "OperationResult",
    "LineTransport",
    "SerialLineTransport",
]
