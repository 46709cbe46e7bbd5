from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Optional

from serial.tools import list_ports

from ..errors import DeviceNotFoundError, MultipleDevicesError

logger = logging.getLogger(__name__)

# USB vendor ids of the boards and USB-serial bridges scanners ship on
ARDUINO_VIDS: FrozenSet[int] = frozenset({
    0x2341,  # Arduino SA
    0x2A03,  # Arduino.org
    0x1A86,  # QinHeng CH340/CH341
    0x10C4,  # Silicon Labs CP210x
    0x0403,  # FTDI
})


@dataclass(frozen=True)
class DevicePortInfo:
    """
    Representation of one serial port as seen by pyserial.

    Attributes:
        port: Port name to open with pyserial (e.g. 'COM3', '/dev/ttyACM0').
        vid: USB Vendor ID (integer) or None if unknown.
        pid: USB Product ID (integer) or None if unknown.
        manufacturer: USB manufacturer string, if available.
        product: USB product string, if available.
        serial_number: USB serial string, if available.
        hwid: Raw hardware ID string from pyserial (for debugging).
    """
    port: str
    vid: Optional[int]
    pid: Optional[int]
    manufacturer: Optional[str]
    product: Optional[str]
    serial_number: Optional[str]
    hwid: str


def _port_to_info(port) -> DevicePortInfo:
    """Convert pyserial's ListPortInfo to DevicePortInfo."""
    return DevicePortInfo(
        port=port.device,
        vid=port.vid,
        pid=port.pid,
        manufacturer=port.manufacturer,
        product=port.product,
        serial_number=port.serial_number,
        hwid=port.hwid,
    )


def is_scanner_port(
    info: DevicePortInfo,
    *,
    vids: Optional[FrozenSet[int]] = ARDUINO_VIDS,
    product_substring: Optional[str] = None,
) -> bool:
    """
    Decide whether a port looks like the scanner's microcontroller.

    All checks are AND-combined; if a criterion is None, it is ignored.
    """
    if vids is not None and info.vid not in vids:
        return False

    if product_substring is not None:
        if not info.product:
            return False
        if product_substring.lower() not in info.product.lower():
            return False

    return True


def find_device_ports(
    *,
    matcher: Optional[Callable[[DevicePortInfo], bool]] = None,
    vids: Optional[FrozenSet[int]] = ARDUINO_VIDS,
    product_substring: Optional[str] = None,
) -> List[DevicePortInfo]:
    """
    Find all candidate scanner ports on this machine.

    Pass a custom `matcher(info) -> bool` or use the built-in criteria.
    """
    results: List[DevicePortInfo] = []

    for port in list_ports.comports():
        info = _port_to_info(port)
        if matcher is not None:
            matched = matcher(info)
        else:
            matched = is_scanner_port(info, vids=vids, product_substring=product_substring)
        if matched:
            results.append(info)

    return results


def find_single_device_port(
    *,
    matcher: Optional[Callable[[DevicePortInfo], bool]] = None,
    vids: Optional[FrozenSet[int]] = ARDUINO_VIDS,
    product_substring: Optional[str] = None,
) -> DevicePortInfo:
    """
    Find exactly one scanner port.

    Behaviour:
        - 0 matches  -> DeviceNotFoundError
        - 1 match    -> return it
        - >1 matches -> log error and raise MultipleDevicesError
    """
    matches = find_device_ports(
        matcher=matcher,
        vids=vids,
        product_substring=product_substring,
    )

    if not matches:
        raise DeviceNotFoundError("No matching serial device found")

    if len(matches) > 1:
        logger.error(
            "Multiple matching serial devices found; refusing to choose automatically. "
            "Devices: %s",
            matches,
        )
        raise MultipleDevicesError(
            f"Multiple matching serial devices found ({len(matches)} devices)",
            devices=matches,
        )

    return matches[0]
