"""Tests for PendingOperation."""
import threading
import unittest

from fingerprint_sdk.device.pending import PendingOperation
from fingerprint_sdk.models import ErrorKind, OperationKind, OperationResult
from fingerprint_sdk.protocol import EventType


class TestPendingOperation(unittest.TestCase):

    def test_resolves_exactly_once(self):
        op = PendingOperation(OperationKind.VERIFY)
        first = OperationResult.success(OperationKind.VERIFY, 3)
        second = OperationResult.failure(OperationKind.VERIFY, ErrorKind.TIMEOUT)

        self.assertTrue(op.resolve(first))
        self.assertFalse(op.resolve(second))
        self.assertIs(op.result, first)
        self.assertTrue(op.done)

    def test_wait_times_out(self):
        op = PendingOperation(OperationKind.ENROLL, 2)
        self.assertFalse(op.wait(0.01))
        self.assertIsNone(op.result)

    def test_wait_wakes_on_resolve(self):
        op = PendingOperation(OperationKind.ENROLL, 2)
        timer = threading.Timer(0.02, op.resolve, args=(OperationResult.success(OperationKind.ENROLL, 2),))
        timer.start()
        self.assertTrue(op.wait(1.0))
        timer.join()

    def test_expected_events(self):
        enroll = PendingOperation(OperationKind.ENROLL, 1)
        self.assertTrue(enroll.accepts(EventType.ENROLL_SUCCESS))
        self.assertTrue(enroll.accepts(EventType.DEVICE_ERROR))
        self.assertFalse(enroll.accepts(EventType.MATCH_FOUND))

        verify = PendingOperation(OperationKind.VERIFY)
        self.assertTrue(verify.accepts(EventType.MATCH_FOUND))
        self.assertFalse(verify.accepts(EventType.ENROLL_SUCCESS))

        delete = PendingOperation(OperationKind.DELETE, 1)
        self.assertEqual(delete.expected_events, frozenset({EventType.DEVICE_ERROR}))


if __name__ == '__main__':
    unittest.main()
