"""Session configuration.

Defaults mirror the scanner firmware: 9600 baud, 60 s to enroll (two finger
placements), 15 s to verify, 5 s delete window and a fixed 5 s reconnect
interval. Replies arriving within 2 s of the next command after a timeout
are treated as late answers to the timed-out command.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_BAUDRATE = 9600
DEFAULT_RECONNECT_INTERVAL = 5.0  # seconds
DEFAULT_ENROLL_TIMEOUT = 60.0  # seconds
DEFAULT_VERIFY_TIMEOUT = 15.0  # seconds
DEFAULT_DELETE_WINDOW = 5.0  # seconds
DEFAULT_STALE_GRACE = 2.0  # seconds

ENV_PORT = "ARDUINO_PORT"
ENV_BAUDRATE = "ARDUINO_BAUD_RATE"
ENV_RECONNECT_INTERVAL = "SCANNER_RECONNECT_INTERVAL"


@dataclass(frozen=True)
class SessionConfig:
    """Settings consumed by DeviceSession.

    Attributes:
        port: Serial port path (e.g. 'COM3', '/dev/ttyACM0'), or None to
            auto-detect on every connection attempt
        baudrate: Serial baud rate
        reconnect_interval: Seconds between connection attempts
        enroll_timeout: Seconds to wait for SUCCESS/ERROR after ENROLL
        verify_timeout: Seconds to wait for FOUND/ERROR after VERIFY
        delete_window: Seconds an ERROR may still arrive after DELETE
        stale_grace: Seconds after the first command following a timeout
            during which a reply of the timed-out kind is treated as late
    """
    port: Optional[str] = None
    baudrate: int = DEFAULT_BAUDRATE
    reconnect_interval: float = DEFAULT_RECONNECT_INTERVAL
    enroll_timeout: float = DEFAULT_ENROLL_TIMEOUT
    verify_timeout: float = DEFAULT_VERIFY_TIMEOUT
    delete_window: float = DEFAULT_DELETE_WINDOW
    stale_grace: float = DEFAULT_STALE_GRACE

    def __post_init__(self):
        if self.baudrate <= 0:
            raise ValueError(f"baudrate must be positive, got {self.baudrate}")
        for name in ("reconnect_interval", "enroll_timeout", "verify_timeout", "delete_window", "stale_grace"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> SessionConfig:
        """Build a config from environment variables.

        Reads ARDUINO_PORT, ARDUINO_BAUD_RATE and SCANNER_RECONNECT_INTERVAL.
        Unset or empty variables fall back to the defaults; keyword
        overrides win over both.

        Raises:
            ValueError: if a numeric variable cannot be parsed
        """
        if environ is None:
            environ = os.environ

        values = {}
        port = environ.get(ENV_PORT)
        if port:
            values["port"] = port
        baudrate = environ.get(ENV_BAUDRATE)
        if baudrate:
            values["baudrate"] = int(baudrate)
        interval = environ.get(ENV_RECONNECT_INTERVAL)
        if interval:
            values["reconnect_interval"] = float(interval)

        values.update(overrides)
        return cls(**values)
