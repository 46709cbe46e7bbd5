"""Line framing buffer for the transport layer.

Provides a thread-safe FIFO byte buffer that yields newline-terminated
lines, with drop-oldest behavior on overflow.
"""
import threading
import logging
from typing import List

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 64 * 1024  # 64KB


class LineBuffer:
    """Thread-safe byte buffer that splits the stream into lines."""

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE):
        """Initialize buffer.

        Args:
            max_size: Maximum buffered bytes. If exceeded, oldest data is dropped.
        """
        self._max_size = max_size
        self._buffer = bytearray()
        self._lock = threading.Lock()
        self._overflow_count = 0

    def write(self, data: bytes) -> None:
        """Append data to buffer, dropping oldest bytes if it would overflow."""
        if not data:
            return

        with self._lock:
            if len(data) >= self._max_size:
                self._buffer = bytearray(data[-self._max_size:])
                self._overflow_count += 1
                logger.warning("Line buffer overflow: input chunk larger than buffer, data lost.")
                return

            new_len = len(self._buffer) + len(data)
            if new_len > self._max_size:
                drop_count = new_len - self._max_size
                del self._buffer[:drop_count]
                self._overflow_count += 1
                if self._overflow_count % 100 == 1:
                    logger.warning(f"Line buffer overflow: dropped {drop_count} bytes of old data.")

            self._buffer.extend(data)

    def read_line(self) -> bytes:
        """Read a single line ending in \\n.

        Returns:
            Line bytes including \\n, or empty bytes if no complete line.
        """
        with self._lock:
            idx = self._buffer.find(b'\n')
            if idx == -1:
                return b""

            end = idx + 1
            line = bytes(self._buffer[:end])
            del self._buffer[:end]
            return line

    def read_lines(self) -> List[bytes]:
        """Drain every complete line currently buffered."""
        lines = []
        while True:
            line = self.read_line()
            if not line:
                return lines
            lines.append(line)

    @property
    def size(self) -> int:
        """Current number of bytes in buffer."""
        with self._lock:
            return len(self._buffer)

    @property
    def overflow_count(self) -> int:
        with self._lock:
            return self._overflow_count

    def clear(self) -> None:
        """Clear buffer."""
        with self._lock:
            self._buffer.clear()
