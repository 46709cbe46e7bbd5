"""Serial port transport for the fingerprint scanner.

The scanner is a microcontroller on a USB serial adapter that:
- Accepts newline-terminated ASCII commands
- Emits newline-terminated ASCII events and progress chatter
- Disappears without warning when unplugged or reset

This module handles:
- Serial port lifecycle
- A reader thread that frames the byte stream into lines
- Connection-lost detection on read/write errors

Note: This is a LINE STREAM layer. It does not interpret lines.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

import serial

from .base import LineTransport
from .buffer import LineBuffer

logger = logging.getLogger(__name__)

READ_TIMEOUT = 0.1  # seconds
WRITE_TIMEOUT = 1.0  # seconds
READ_CHUNK_SIZE = 256  # bytes
LINE_ENCODING = "ascii"


class SerialLineTransport(LineTransport):
    """Line transport over a pyserial port.

    Example:
        >>> transport = SerialLineTransport()
        >>> transport.subscribe_lines(lambda line: print(f"Line: {line}"))
        <function>
        >>> transport.open("/dev/ttyACM0", 9600)
        True
        >>> transport.write_line("VERIFY")
        True
        >>> transport.close()
    """

    def __init__(self,
                 timeout: float = READ_TIMEOUT,
                 write_timeout: float = WRITE_TIMEOUT,
                 chunk_size: int = READ_CHUNK_SIZE):
        """Initialize serial transport.

        Args:
            timeout: Read timeout in seconds (reader thread wake-up interval)
            write_timeout: Seconds a write may stall before the connection
                is treated as lost
            chunk_size: Maximum bytes to read per chunk
        """
        super().__init__()
        self._timeout = timeout
        self._write_timeout = write_timeout
        self._chunk_size = chunk_size

        self._serial: Optional[serial.Serial] = None
        self._port: Optional[str] = None
        self._connected = False

        self._active = False
        self._reader_thread: Optional[threading.Thread] = None
        self._buffer = LineBuffer()

        # Serializes open/close/error handling
        self._state_lock = threading.RLock()
        self._write_lock = threading.Lock()

    @property
    def port(self) -> Optional[str]:
        """Port of the current (or last) connection."""
        return self._port

    def open(self, port: str, baudrate: int) -> bool:
        """Open the serial port and start the reader thread."""
        with self._state_lock:
            if self._connected:
                logger.debug(f"Already connected to {self._port}")
                return True

            try:
                self._serial = serial.Serial(
                    port=port,
                    baudrate=baudrate,
                    timeout=self._timeout,
                    write_timeout=self._write_timeout,
                )
                self._serial.reset_input_buffer()
                self._serial.reset_output_buffer()
            except serial.SerialException as e:
                logger.error(f"Failed to open {port}: {e}")
                self._serial = None
                return False
            except Exception as e:
                logger.error(f"Unexpected error opening {port}: {e}")
                self._serial = None
                return False

            logger.info(f"Connected to scanner on {port} @ {baudrate} baud")
            self._port = port
            self._buffer.clear()
            self._active = True
            self._connected = True
            self._start_reader_thread()

        self._notify_connection(True)
        return True

    def close(self) -> None:
        """Close the serial port and stop the reader thread."""
        with self._state_lock:
            if not self._connected:
                return

            self._active = False
            self._connected = False
            reader = self._reader_thread
            self._reader_thread = None

        if reader and reader.is_alive() and reader is not threading.current_thread():
            reader.join(timeout=1.0)

        with self._state_lock:
            self._close_serial()

        logger.info("Disconnected from scanner")
        self._notify_connection(False)

    def is_open(self) -> bool:
        return self._connected and self._serial is not None

    def write_line(self, text: str) -> bool:
        """Encode and send one command line."""
        ser = self._serial
        if not self.is_open() or ser is None:
            logger.warning(f"Cannot send {text!r}, not connected")
            return False

        data = (text.rstrip("\r\n") + "\n").encode(LINE_ENCODING)
        try:
            with self._write_lock:
                ser.write(data)
                ser.flush()
            logger.debug(f"Sent: {text!r}")
            return True
        except serial.SerialException as e:
            logger.error(f"Send error: {e}")
            self._handle_error(e)
            return False
        except Exception as e:
            logger.error(f"Unexpected send error: {e}")
            self._handle_error(e)
            return False

    # Internal methods

    def _start_reader_thread(self) -> None:
        self._reader_thread = threading.Thread(
            target=self._reader_loop,
            daemon=True,
            name="ScannerReader"
        )
        self._reader_thread.start()

    def _reader_loop(self) -> None:
        """Read raw bytes, frame them into lines and dispatch to callbacks."""
        logger.debug("Reader thread started")
        ser = self._serial

        while self._active and ser is not None:
            try:
                chunk = ser.read(self._chunk_size)
            except serial.SerialException as e:
                if self._active:
                    logger.error(f"Serial read error: {e}")
                    self._handle_error(e)
                break
            except Exception as e:
                if self._active:
                    logger.error(f"Reader error: {e}")
                    self._handle_error(e)
                break

            if not chunk:
                continue

            self._buffer.write(chunk)
            for raw in self._buffer.read_lines():
                line = raw.decode(LINE_ENCODING, errors="ignore").strip()
                if line:
                    logger.debug(f"Received: {line!r}")
                    self._notify_line(line)

        logger.debug("Reader thread exiting")

    def _close_serial(self) -> None:
        if self._serial:
            try:
                self._serial.close()
            except Exception as e:
                logger.error(f"Error closing serial port: {e}")
            finally:
                self._serial = None

    def _handle_error(self, error: Exception) -> None:
        """Handle a fatal I/O error (e.g. device unplugged) by closing resources.

        Does not join the reader thread to avoid deadlock when called from it.
        """
        with self._state_lock:
            if not self._connected:
                return
            logger.warning(f"Handling connection error: {error}")
            self._active = False
            self._connected = False
            self._reader_thread = None
            self._close_serial()

        logger.info("Connection closed due to error")
        self._notify_connection(False)
