"""Transport layer for fingerprint scanner communication."""

from .base import LineTransport
from .buffer import LineBuffer
from .serial import SerialLineTransport

__all__ = ["LineTransport", "LineBuffer", "SerialLineTransport"]
