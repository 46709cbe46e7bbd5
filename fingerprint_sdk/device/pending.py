"""The single in-flight operation slot of a DeviceSession."""
from __future__ import annotations

import threading
from typing import FrozenSet, Optional

from ..models import OperationKind, OperationResult
from ..protocol import EventType

# Terminal events each operation waits for
_EXPECTED_EVENTS = {
    OperationKind.ENROLL: frozenset({EventType.ENROLL_SUCCESS, EventType.DEVICE_ERROR}),
    OperationKind.VERIFY: frozenset({EventType.MATCH_FOUND, EventType.DEVICE_ERROR}),
    OperationKind.DELETE: frozenset({EventType.DEVICE_ERROR}),
}


class PendingOperation:
    """One outstanding request, fulfilled exactly once.

    The first call to ``resolve`` wins; later calls are ignored and return
    False, so a timeout and a late device event can never both complete it.
    """

    def __init__(self, kind: OperationKind, template_id: Optional[int] = None):
        self.kind = kind
        self.template_id = template_id
        self._done = threading.Event()
        self._lock = threading.Lock()
        self._result: Optional[OperationResult] = None

    @property
    def expected_events(self) -> FrozenSet[EventType]:
        return _EXPECTED_EVENTS[self.kind]

    def accepts(self, event_type: EventType) -> bool:
        return event_type in self.expected_events

    def resolve(self, result: OperationResult) -> bool:
        """Store the result; returns False if already resolved."""
        with self._lock:
            if self._result is not None:
                return False
            self._result = result
        self._done.set()
        return True

    def wait(self, timeout: float) -> bool:
        """Block until resolved or timeout elapses; True if resolved."""
        return self._done.wait(timeout)

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def result(self) -> Optional[OperationResult]:
        return self._result

    def __repr__(self) -> str:
        return f"PendingOperation(kind={self.kind.value}, template_id={self.template_id}, done={self.done})"
