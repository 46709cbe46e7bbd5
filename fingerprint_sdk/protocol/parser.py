"""Protocol parser for fingerprint scanner serial communication.

Turns each line received from the scanner into a DecodedEvent.
Pure functions with no side effects.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Type of event reported by the firmware."""
    ENROLL_SUCCESS = "enroll_success"
    MATCH_FOUND = "match_found"
    DEVICE_ERROR = "device_error"
    STATUS_REPORT = "status_report"
    COUNT_REPORT = "count_report"
    NOISE = "noise"


@dataclass(frozen=True)
class DecodedEvent:
    """A parsed line from the firmware.

    Attributes:
        event_type: Type of event
        value: Template id (ENROLL_SUCCESS, MATCH_FOUND), enrolled count
            (COUNT_REPORT), message/status text (DEVICE_ERROR,
            STATUS_REPORT) or None for NOISE
        raw: The trimmed line the event was decoded from
    """
    event_type: EventType
    value: Union[int, str, None] = None
    raw: str = ""

    @property
    def is_noise(self) -> bool:
        return self.event_type is EventType.NOISE


PREFIX_SUCCESS = "SUCCESS:"
PREFIX_FOUND = "FOUND:"
PREFIX_ERROR = "ERROR:"
PREFIX_STATUS = "STATUS:"
PREFIX_COUNT = "COUNT:"

_INT_PREFIXES = (
    (PREFIX_SUCCESS, EventType.ENROLL_SUCCESS),
    (PREFIX_FOUND, EventType.MATCH_FOUND),
    (PREFIX_COUNT, EventType.COUNT_REPORT),
)
_TEXT_PREFIXES = (
    (PREFIX_ERROR, EventType.DEVICE_ERROR),
    (PREFIX_STATUS, EventType.STATUS_REPORT),
)


class EventParser:
    """Parser for the scanner's line protocol.

    Handles five frame types:
    - SUCCESS:<id> - enrollment stored under template id
    - FOUND:<id> - fingerprint matched template id
    - ERROR:<message> - operation failed
    - STATUS:<text> - ambient status report
    - COUNT:<n> - number of enrolled templates

    Anything else (boot banners, prompts like "Place finger") is noise.
    """

    @staticmethod
    def parse_line(line: str) -> DecodedEvent:
        """Parse a single line from the serial stream.

        Args:
            line: Raw line from serial (with or without newline)

        Returns:
            DecodedEvent; NOISE for unknown or malformed lines, never raises

        Examples:
            >>> EventParser.parse_line("FOUND:12\\r\\n")
            DecodedEvent(event_type=<EventType.MATCH_FOUND: 'match_found'>, value=12, raw='FOUND:12')
            >>> EventParser.parse_line("Waiting for finger").is_noise
            True
        """
        line = line.strip()

        if not line:
            return DecodedEvent(EventType.NOISE, raw=line)

        for prefix, event_type in _INT_PREFIXES:
            if line.startswith(prefix):
                value = EventParser._parse_int(line[len(prefix):])
                if value is None:
                    logger.warning(f"Malformed {prefix} payload, ignoring line: {line!r}")
                    return DecodedEvent(EventType.NOISE, raw=line)
                return DecodedEvent(event_type, value, raw=line)

        for prefix, event_type in _TEXT_PREFIXES:
            if line.startswith(prefix):
                return DecodedEvent(event_type, line[len(prefix):].strip(), raw=line)

        return DecodedEvent(EventType.NOISE, raw=line)

    @staticmethod
    def _parse_int(payload: str) -> Optional[int]:
        """Parse a decimal integer payload, None if it is not one."""
        payload = payload.strip()
        if not payload:
            return None
        try:
            return int(payload, 10)
        except ValueError:
            return None
