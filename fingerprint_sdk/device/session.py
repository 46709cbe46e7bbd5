"""Device session: the single owner of the scanner connection.

The scanner handles one command at a time and answers asynchronously with
event lines. DeviceSession turns that into blocking request/response calls:

- Connection state machine (DISCONNECTED -> CONNECTING -> CONNECTED)
- Background reconnect loop with a fixed retry interval
- One pending operation slot; concurrent callers get BUSY, never a queue
- Per-operation timeouts; late events for expired operations are dropped

Example:
    >>> session = DeviceSession(config=SessionConfig(port="/dev/ttyACM0"))
    >>> session.start()
    >>> session.wait_connected(timeout=10)
    True
    >>> session.enroll(7)
    OperationResult(kind=<OperationKind.ENROLL: 'enroll'>, ok=True, template_id=7, ...)
    >>> session.stop()
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional

from ..config import SessionConfig
from ..errors import ScannerError
from ..models import ConnectionState, ErrorKind, OperationKind, OperationResult
from ..protocol import CommandSerializer, DecodedEvent, EventParser, EventType
from ..transport import LineTransport, SerialLineTransport
from .pending import PendingOperation
from .port_finder import find_single_device_port
from .templates import validate_template_id

logger = logging.getLogger(__name__)


class DeviceSession:
    """High-level interface to the fingerprint scanner.

    Owns the transport exclusively: nothing else should write to it while
    the session is running. Construct one per physical device and share it
    by reference.
    """

    def __init__(self,
                 transport: Optional[LineTransport] = None,
                 config: Optional[SessionConfig] = None):
        """Initialize session.

        Args:
            transport: Line transport to own, or None for a SerialLineTransport
            config: Session settings, or None for defaults
        """
        self._transport = transport or SerialLineTransport()
        self._config = config or SessionConfig()

        self._state = ConnectionState.DISCONNECTED
        self._pending: Optional[PendingOperation] = None
        # Last timed-out operation whose reply may still arrive
        self._stale: Optional[PendingOperation] = None
        self._stale_until: Optional[float] = None
        self._lock = threading.RLock()
        self._connected_event = threading.Event()

        # Reconnect loop
        self._running = False
        self._reconnect_thread: Optional[threading.Thread] = None
        self._stop_reconnect = threading.Event()

        # Ambient device reports
        self._last_status: Optional[str] = None
        self._last_count: Optional[int] = None

        self._state_callbacks: List[Callable[[ConnectionState], None]] = []
        self._callback_lock = threading.Lock()

        self._unsubscribe = [
            self._transport.subscribe_lines(self._on_line),
            self._transport.subscribe_connection(self._on_transport_connection),
        ]

    # --- Lifecycle ---

    def start(self) -> None:
        """Start the reconnect loop; returns without waiting for a connection."""
        with self._lock:
            if self._running:
                return
            self._running = True
            self._stop_reconnect.clear()
        logger.info("Device session started")
        self._start_reconnect()

    def stop(self) -> None:
        """Stop reconnecting, fail any pending operation and close the transport."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._stop_reconnect.set()
            # The loop clears _reconnect_thread itself when it exits
            thread = self._reconnect_thread

        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=1.0)

        self._transport.close()
        self._handle_connection_lost("session stopped")
        logger.info("Device session stopped")

    def close(self) -> None:
        """Stop the session and detach from the transport for good."""
        self.stop()
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []

    def __enter__(self) -> DeviceSession:
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # --- Operations ---

    def enroll(self, template_id: int) -> OperationResult:
        """Enroll a fingerprint under template_id.

        Blocks until the device reports SUCCESS/ERROR or enroll_timeout
        elapses. The id in a successful result is the one the device
        reported, which is authoritative if it differs from the request.

        Raises:
            ValueError: if template_id is not a positive int
        """
        validate_template_id(template_id)
        return self._run(OperationKind.ENROLL, template_id, self._config.enroll_timeout)

    def verify(self) -> OperationResult:
        """Scan a finger and return the matched template id.

        A DEVICE_ERROR result usually means no match.
        """
        return self._run(OperationKind.VERIFY, None, self._config.verify_timeout)

    def delete(self, template_id: int) -> OperationResult:
        """Delete the template stored under template_id.

        The firmware never acknowledges a delete, so success means no ERROR
        arrived within delete_window.

        Raises:
            ValueError: if template_id is not a positive int
        """
        validate_template_id(template_id)
        return self._run(OperationKind.DELETE, template_id, self._config.delete_window)

    # --- Status Interface ---

    @property
    def state(self) -> ConnectionState:
        return self._state

    def connection_status(self) -> ConnectionState:
        """CONNECTED or DISCONNECTED; a connection attempt counts as disconnected."""
        if self._state is ConnectionState.CONNECTED:
            return ConnectionState.CONNECTED
        return ConnectionState.DISCONNECTED

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def is_busy(self) -> bool:
        return self._pending is not None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_status(self) -> Optional[str]:
        """Latest STATUS report from the device, None if none seen yet."""
        return self._last_status

    @property
    def last_count(self) -> Optional[int]:
        """Latest enrolled-template COUNT report, None if none seen yet."""
        return self._last_count

    def wait_connected(self, timeout: Optional[float] = None) -> bool:
        """Block until connected; True if connected before timeout."""
        return self._connected_event.wait(timeout)

    def subscribe_connection(self,
                             callback: Callable[[ConnectionState], None]
                             ) -> Callable[[], None]:
        """Subscribe to CONNECTED / DISCONNECTED transitions.

        Returns:
            Unsubscribe function (call to remove subscription)
        """
        with self._callback_lock:
            self._state_callbacks.append(callback)

        def unsubscribe():
            with self._callback_lock:
                if callback in self._state_callbacks:
                    self._state_callbacks.remove(callback)

        return unsubscribe

    # --- Request arbitration ---

    def _run(self, kind: OperationKind, template_id: Optional[int], timeout: float) -> OperationResult:
        command = CommandSerializer.serialize(kind, template_id)

        with self._lock:
            if self._state is not ConnectionState.CONNECTED:
                logger.warning(f"Rejecting {command}: device not connected")
                return OperationResult.failure(kind, ErrorKind.NOT_CONNECTED, "device not connected")
            if self._pending is not None:
                logger.warning(f"Rejecting {command}: {self._pending.kind.value} in progress")
                return OperationResult.failure(
                    kind, ErrorKind.BUSY, f"{self._pending.kind.value} already in progress")
            # The reader thread needs this lock to deliver events, so nothing
            # can resolve the operation before it is stored below.
            if not self._transport.write_line(command):
                return OperationResult.failure(kind, ErrorKind.TRANSPORT_ERROR, f"failed to send {command}")
            operation = PendingOperation(kind, template_id)
            self._pending = operation
            if self._stale is not None and self._stale_until is None:
                self._stale_until = time.monotonic() + self._config.stale_grace

        logger.info(f"Sent {command}, waiting up to {timeout}s")
        if not operation.wait(timeout):
            self._expire(operation, timeout)

        result = operation.result
        if result.ok:
            logger.info(f"{kind.value} succeeded (template id {result.template_id})")
        else:
            logger.warning(f"{kind.value} failed: {result.error.value} ({result.message})")
        return result

    def _expire(self, operation: PendingOperation, timeout: float) -> None:
        """Free the slot after the operation window elapsed without an answer."""
        with self._lock:
            if self._pending is operation:
                self._pending = None
            if operation.kind is OperationKind.DELETE:
                operation.resolve(OperationResult.success(OperationKind.DELETE, operation.template_id))
            elif operation.resolve(OperationResult.failure(
                    operation.kind, ErrorKind.TIMEOUT, f"no response within {timeout}s")):
                self._stale = operation
                self._stale_until = None

    def _on_line(self, line: str) -> None:
        """Transport callback: decode a line and route the event."""
        event = EventParser.parse_line(line)

        if event.is_noise:
            logger.debug(f"Device: {line}")
            return
        if event.event_type is EventType.STATUS_REPORT:
            self._last_status = event.value
            logger.info(f"Device status: {event.value}")
            return
        if event.event_type is EventType.COUNT_REPORT:
            self._last_count = event.value
            logger.info(f"Device reports {event.value} enrolled templates")
            return

        with self._lock:
            if self._is_late_reply(event):
                logger.warning(f"Discarding {event.raw!r}: late reply to timed-out {self._stale.kind.value}")
                self._clear_stale()
                return
            operation = self._pending
            if operation is None or not operation.accepts(event.event_type):
                logger.warning(f"Discarding {event.raw!r}: no pending operation expects it")
                return
            self._pending = None
            operation.resolve(self._result_for(operation, event))

    def _is_late_reply(self, event: DecodedEvent) -> bool:
        """True if event most likely answers the last timed-out operation.

        The protocol has no request ids. An enroll success naming the
        timed-out id is late unless the pending enroll asked for that id;
        otherwise the first reply of the timed-out kind within stale_grace
        of the next command is late.
        """
        stale = self._stale
        if stale is None or not stale.accepts(event.event_type):
            return False
        pending = self._pending
        if pending is None:
            return True
        if event.event_type is EventType.ENROLL_SUCCESS and event.value == stale.template_id:
            return pending.kind is not OperationKind.ENROLL or pending.template_id != event.value
        return self._stale_until is not None and time.monotonic() <= self._stale_until

    def _clear_stale(self) -> None:
        self._stale = None
        self._stale_until = None

    @staticmethod
    def _result_for(operation: PendingOperation, event: DecodedEvent) -> OperationResult:
        if event.event_type is EventType.DEVICE_ERROR:
            return OperationResult.failure(operation.kind, ErrorKind.DEVICE_ERROR, event.value)

        if event.event_type is EventType.ENROLL_SUCCESS and event.value != operation.template_id:
            logger.warning(
                f"Device stored template {event.value}, requested {operation.template_id}; "
                f"using the device's id"
            )
        return OperationResult.success(operation.kind, event.value)

    # --- Connection management ---

    def _on_transport_connection(self, connected: bool) -> None:
        if not connected:
            self._handle_connection_lost("connection lost")
            return

        with self._lock:
            if self._state is ConnectionState.CONNECTED:
                return
            self._set_state(ConnectionState.CONNECTED)
        logger.info("Scanner connected")
        self._notify_state(ConnectionState.CONNECTED)

    def _handle_connection_lost(self, reason: str) -> None:
        """Mark disconnected, fail the pending operation and resume reconnecting."""
        with self._lock:
            was_connected = self._state is ConnectionState.CONNECTED
            if self._state is not ConnectionState.CONNECTING or not self._running:
                self._set_state(ConnectionState.DISCONNECTED)
            operation = self._pending
            self._pending = None
            if operation is not None:
                operation.resolve(OperationResult.failure(operation.kind, ErrorKind.NOT_CONNECTED, reason))
            # A reconnected device starts fresh
            self._clear_stale()

        if was_connected:
            logger.warning(f"Scanner disconnected: {reason}")
            self._notify_state(ConnectionState.DISCONNECTED)
        self._start_reconnect()

    def _set_state(self, state: ConnectionState) -> None:
        self._state = state
        if state is ConnectionState.CONNECTED:
            self._connected_event.set()
        else:
            self._connected_event.clear()

    def _start_reconnect(self) -> None:
        """Start the reconnect thread unless stopped or one is already running."""
        with self._lock:
            if not self._running or self._reconnect_thread is not None:
                return
            if self._state is ConnectionState.CONNECTED:
                return
            self._reconnect_thread = threading.Thread(
                target=self._reconnect_loop,
                daemon=True,
                name="ScannerReconnect"
            )
            self._reconnect_thread.start()

    def _reconnect_loop(self) -> None:
        """Attempt to connect now and every reconnect_interval until connected.

        Runs until the session is stopped or connected. A loop still blocked
        in open() when the session is restarted resumes instead of a second
        loop being started.
        """
        logger.info("Reconnect loop started")
        while not self._reconnect_finished():
            self._attempt_connect()
            if self._reconnect_finished():
                break
            logger.info(f"Scanner not connected, retrying in {self._config.reconnect_interval}s")
            self._stop_reconnect.wait(self._config.reconnect_interval)
        logger.info("Reconnect loop stopped")

    def _reconnect_finished(self) -> bool:
        """Release the reconnect slot if the loop has nothing left to do."""
        with self._lock:
            if self._running and self._state is not ConnectionState.CONNECTED:
                return False
            if self._reconnect_thread is threading.current_thread():
                self._reconnect_thread = None
            return True

    def _attempt_connect(self) -> None:
        with self._lock:
            if self._state is not ConnectionState.DISCONNECTED:
                return
            self._set_state(ConnectionState.CONNECTING)

        opened = False
        port = self._resolve_port()
        if port is not None:
            try:
                opened = self._transport.open(port, self._config.baudrate)
            except Exception as e:
                logger.error(f"Unexpected error opening {port}: {e}")

        if opened and not self._running:
            # stop() ran while the port was opening
            self._transport.close()
            return

        with self._lock:
            if self._state is not ConnectionState.CONNECTING:
                # Transport already reported the outcome
                return
            if opened and self._transport.is_open():
                self._set_state(ConnectionState.CONNECTED)
            else:
                self._set_state(ConnectionState.DISCONNECTED)
                return
        logger.info("Scanner connected")
        self._notify_state(ConnectionState.CONNECTED)

    def _resolve_port(self) -> Optional[str]:
        if self._config.port:
            return self._config.port
        try:
            info = find_single_device_port()
        except ScannerError as e:
            logger.warning(f"Scanner port auto-detection failed: {e}")
            return None
        logger.info(f"Auto-detected scanner on {info.port}")
        return info.port

    def _notify_state(self, state: ConnectionState) -> None:
        with self._callback_lock:
            callbacks = list(self._state_callbacks)

        for callback in callbacks:
            try:
                callback(state)
            except Exception as e:
                logger.error(f"Error in connection callback: {e}")
