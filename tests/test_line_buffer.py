"""Tests for LineBuffer framing."""
import unittest

from fingerprint_sdk.transport.buffer import LineBuffer


class TestLineBuffer(unittest.TestCase):

    def test_partial_line_waits_for_newline(self):
        buf = LineBuffer()
        buf.write(b"SUCC")
        self.assertEqual(buf.read_line(), b"")
        buf.write(b"ESS:7\n")
        self.assertEqual(buf.read_line(), b"SUCCESS:7\n")
        self.assertEqual(buf.size, 0)

    def test_read_lines_drains_complete_lines_only(self):
        buf = LineBuffer()
        buf.write(b"FOUND:1\r\nSTATUS:OK\nCOU")
        self.assertEqual(buf.read_lines(), [b"FOUND:1\r\n", b"STATUS:OK\n"])
        self.assertEqual(buf.size, 3)

    def test_overflow_drops_oldest(self):
        buf = LineBuffer(max_size=8)
        buf.write(b"abcdef")
        with self.assertLogs("fingerprint_sdk.transport.buffer", level="WARNING"):
            buf.write(b"gh\nij")
        self.assertEqual(buf.size, 8)
        self.assertEqual(buf.read_line(), b"defgh\n")
        self.assertEqual(buf.overflow_count, 1)

    def test_oversized_chunk_keeps_tail(self):
        buf = LineBuffer(max_size=4)
        with self.assertLogs("fingerprint_sdk.transport.buffer", level="WARNING"):
            buf.write(b"123456\n")
        self.assertEqual(buf.read_line(), b"456\n")
        self.assertEqual(buf.overflow_count, 1)

    def test_clear(self):
        buf = LineBuffer()
        buf.write(b"noise")
        buf.clear()
        self.assertEqual(buf.size, 0)


if __name__ == '__main__':
    unittest.main()
