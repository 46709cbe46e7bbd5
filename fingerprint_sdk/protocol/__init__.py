"""Protocol layer for serial communication with the scanner firmware."""

from .parser import EventParser, DecodedEvent, EventType
from .serializer import CommandSerializer

__all__ = [
    "EventParser",
    "DecodedEvent",
    "EventType",
    "CommandSerializer",
]
