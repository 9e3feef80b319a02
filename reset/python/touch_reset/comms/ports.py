"""
touch_reset/comms/ports.py

Serial port enumeration.

Responsibilities:
- List the serial ports currently visible to the OS (the live enumerator)
- Emulate a board re-enumerating into its bootloader (the dry-run enumerator)
- Describe ports for humans (used by the CLI --list)

Both enumerators have the same shape (see PortsMapper in types.py), so the
reset controller never needs to know which one it is polling.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set, Tuple

import serial.tools.list_ports

from touch_reset.comms.types import EnumerationError

logger = logging.getLogger(__name__)

# Mock bootloader port reported in dry-run mode when no port is touched.
EMULATED_NEW_PORT = "newport"
# Targets ending with this suffix get a mock bootloader port in dry-run mode.
EMULATED_TOUCH_SUFFIX = "999"


def list_serial_ports() -> Set[str]:
    """Return device names for all detected serial ports."""
    try:
        ports = serial.tools.list_ports.comports()
    except Exception as e:
        raise EnumerationError(f"listing serial ports: {e}") from e
    return {p.device for p in ports}


def describe_serial_ports() -> List[Tuple[str, str]]:
    """
    Return (device, description) pairs sorted by device name.
    The description folds in the manufacturer when pyserial reports one.
    """
    try:
        ports = list(serial.tools.list_ports.comports())
    except Exception as e:
        raise EnumerationError(f"listing serial ports: {e}") from e

    out = []
    for p in ports:
        desc = p.description or ""
        if p.manufacturer and p.manufacturer not in desc:
            desc = f"{desc} ({p.manufacturer})" if desc else p.manufacturer
        out.append((p.device, desc))
    return sorted(out)


def emulated_bootloader_port(port_to_touch: str) -> Optional[str]:
    """
    Port name a board would come back as in dry-run mode, or None if the
    emulated board never shows a new port.
    """
    if port_to_touch == "":
        return EMULATED_NEW_PORT
    if port_to_touch.endswith(EMULATED_TOUCH_SUFFIX):
        return port_to_touch + "0"
    return None


class EmulatedPortsMapper:
    """
    Dry-run stand-in for list_serial_ports().

    The first call is the pre-touch snapshot: only the target port (if any)
    is visible. Every later call also reports the emulated bootloader port,
    so the reset loop sees it appear and then survive the stability check.
    """

    def __init__(self, port_to_touch: str) -> None:
        self.port_to_touch = port_to_touch
        self.new_port = emulated_bootloader_port(port_to_touch)
        self.calls = 0

    def __call__(self) -> Set[str]:
        self.calls += 1

        ports = set()
        if self.port_to_touch:
            ports.add(self.port_to_touch)
        if self.calls > 1 and self.new_port is not None:
            ports.add(self.new_port)

        logger.debug("emulated ports (call %d): %s", self.calls, sorted(ports))
        return ports
