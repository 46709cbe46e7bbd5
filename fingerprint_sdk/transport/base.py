"""Abstract base class for the line transport.

The LineTransport interface owns the physical byte stream to the scanner
and exposes it as newline-delimited text. It has no protocol knowledge:
it does not know which lines are commands or events.

Key principles:
- open/close are idempotent and never raise on I/O failure
- Pub/sub pattern for received lines and connection changes
- Swappable (serial port in production, fakes in tests)
"""
from __future__ import annotations

import logging
import queue
import threading
from abc import ABC, abstractmethod
from typing import Callable, Iterator, List, Optional

logger = logging.getLogger(__name__)


class LineTransport(ABC):
    """Abstract transport interface for the scanner byte stream.

    Subclasses implement the I/O methods and call ``_notify_line`` and
    ``_notify_connection`` to publish to subscribers.
    """

    def __init__(self):
        self._line_callbacks: List[Callable[[str], None]] = []
        self._connection_callbacks: List[Callable[[bool], None]] = []
        self._callback_lock = threading.Lock()

    @abstractmethod
    def open(self, port: str, baudrate: int) -> bool:
        """Open the connection.

        Idempotent: returns True if already open.

        Returns:
            True if the connection is open, False if opening failed
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the underlying resource.

        Safe to call multiple times.
        """
        pass

    @abstractmethod
    def is_open(self) -> bool:
        pass

    @abstractmethod
    def write_line(self, text: str) -> bool:
        """Send one line (newline is appended).

        Returns:
            True if written, False if not open or the write failed
        """
        pass

    def subscribe_lines(self, callback: Callable[[str], None]) -> Callable[[], None]:
        """Subscribe to received lines.

        Lines are trimmed, non-empty and delivered in arrival order from the
        reader thread; callbacks should not block.

        Returns:
            Unsubscribe function to remove this callback
        """
        return self._subscribe(self._line_callbacks, callback)

    def subscribe_connection(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        """Subscribe to connection established (True) / lost (False) changes.

        Returns:
            Unsubscribe function to remove this callback
        """
        return self._subscribe(self._connection_callbacks, callback)

    def iter_lines(self) -> Iterator[str]:
        """Lazily yield received lines until the connection closes.

        Example:
            >>> for line in transport.iter_lines():
            ...     print(line)
        """
        lines: queue.Queue[Optional[str]] = queue.Queue()

        def on_connection(connected: bool) -> None:
            if not connected:
                lines.put(None)

        unsubscribe_lines = self.subscribe_lines(lines.put)
        unsubscribe_connection = self.subscribe_connection(on_connection)
        try:
            if not self.is_open():
                return
            while True:
                line = lines.get()
                if line is None:
                    return
                yield line
        finally:
            unsubscribe_lines()
            unsubscribe_connection()

    def _subscribe(self, callbacks: list, callback) -> Callable[[], None]:
        with self._callback_lock:
            callbacks.append(callback)

        def unsubscribe():
            with self._callback_lock:
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def _notify_line(self, line: str) -> None:
        with self._callback_lock:
            callbacks = list(self._line_callbacks)

        for callback in callbacks:
            try:
                callback(line)
            except Exception as e:
                logger.error(f"Error in line callback: {e}")

    def _notify_connection(self, connected: bool) -> None:
        with self._callback_lock:
            callbacks = list(self._connection_callbacks)

        for callback in callbacks:
            try:
                callback(connected)
            except Exception as e:
                logger.error(f"Error in connection callback: {e}")

    def __enter__(self) -> LineTransport:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager support - close on exit."""
        self.close()
