"""Device layer for the fingerprint scanner.

This module provides:
- Connection, reconnection and request arbitration (DeviceSession)
- The single in-flight operation slot (PendingOperation)
- Serial port discovery (find_device_ports, find_single_device_port)
- Template id allocation (next_template_id)
"""

from .session import DeviceSession
from .pending import PendingOperation
from .port_finder import (
    ARDUINO_VIDS,
    DevicePortInfo,
    find_device_ports,
    find_single_device_port,
    is_scanner_port,
)
from .templates import next_template_id, validate_template_id

__all__ = [
    'DeviceSession',
    'PendingOperation',

    # Finder
    'ARDUINO_VIDS',
    'DevicePortInfo',
    'find_device_ports',
    'find_single_device_port',
    'is_scanner_port',

    # Templates
    'next_template_id',
    'validate_template_id',
]
