"""Tests for serial port discovery."""
import unittest
from unittest.mock import MagicMock, patch

from fingerprint_sdk.device.port_finder import (
    DevicePortInfo,
    find_device_ports,
    find_single_device_port,
    is_scanner_port,
)
from fingerprint_sdk.errors import DeviceNotFoundError, MultipleDevicesError


def make_port(device, vid=None, pid=None, product=None):
    port = MagicMock()
    port.device = device
    port.vid = vid
    port.pid = pid
    port.manufacturer = None
    port.product = product
    port.serial_number = None
    port.hwid = f"USB VID:PID={vid or 0:04X}:{pid or 0:04X}"
    return port


UNO = make_port("/dev/ttyACM0", vid=0x2341, pid=0x0043, product="Arduino Uno")
CH340 = make_port("/dev/ttyUSB0", vid=0x1A86, pid=0x7523, product="USB Serial")
BLUETOOTH = make_port("/dev/ttyS0")


class TestIsScannerPort(unittest.TestCase):

    def info(self, **kwargs):
        values = dict(port="COM3", vid=None, pid=None, manufacturer=None,
                      product=None, serial_number=None, hwid="")
        values.update(kwargs)
        return DevicePortInfo(**values)

    def test_known_vid(self):
        self.assertTrue(is_scanner_port(self.info(vid=0x2341)))
        self.assertFalse(is_scanner_port(self.info(vid=0x1234)))
        self.assertFalse(is_scanner_port(self.info()))

    def test_product_substring(self):
        info = self.info(vid=0x2341, product="Arduino Mega 2560")
        self.assertTrue(is_scanner_port(info, product_substring="mega"))
        self.assertFalse(is_scanner_port(info, product_substring="uno"))
        self.assertFalse(is_scanner_port(self.info(vid=0x2341), product_substring="uno"))

    def test_vids_none_ignores_vendor(self):
        self.assertTrue(is_scanner_port(self.info(vid=0x1234), vids=None))


@patch('fingerprint_sdk.device.port_finder.list_ports.comports')
class TestFindPorts(unittest.TestCase):

    def test_find_device_ports(self, mock_comports):
        mock_comports.return_value = [UNO, BLUETOOTH, CH340]

        ports = [info.port for info in find_device_ports()]

        self.assertEqual(ports, ["/dev/ttyACM0", "/dev/ttyUSB0"])

    def test_custom_matcher(self, mock_comports):
        mock_comports.return_value = [UNO, BLUETOOTH, CH340]

        ports = find_device_ports(matcher=lambda info: info.port == "/dev/ttyS0")

        self.assertEqual([info.port for info in ports], ["/dev/ttyS0"])

    def test_single_port(self, mock_comports):
        mock_comports.return_value = [UNO, BLUETOOTH]

        info = find_single_device_port()

        self.assertEqual(info.port, "/dev/ttyACM0")
        self.assertEqual(info.vid, 0x2341)
        self.assertEqual(info.product, "Arduino Uno")

    def test_no_port(self, mock_comports):
        mock_comports.return_value = [BLUETOOTH]
        with self.assertRaises(DeviceNotFoundError):
            find_single_device_port()

    def test_multiple_ports(self, mock_comports):
        mock_comports.return_value = [UNO, CH340]
        with self.assertRaises(MultipleDevicesError) as ctx:
            find_single_device_port()
        self.assertEqual(len(ctx.exception.devices), 2)


if __name__ == '__main__':
    unittest.main()
