"""
touch_reset/comms/types.py

Comms-owned types shared by the toucher, the port enumerators and the
reset controller.

Important:
  A "port set" is just a set of device names (e.g. "/dev/ttyACM0", "COM5").
  It carries no identity beyond the string and is produced fresh on every
  enumeration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Set


# Zero-argument function returning the currently visible serial ports.
# A set is expected; any iterable of names (list, dict keys) is accepted
# and turned into a set by the reset controller. Raising is how an
# enumerator reports failure.
PortsMapper = Callable[[], Iterable[str]]


# -----------------------------
# Errors
# -----------------------------

class ResetError(Exception):
    """Base class for every failure raised by this package."""


class TouchError(ResetError):
    """The 1200-bps touch sequence failed."""


class OpenError(TouchError):
    """The port could not be opened at the touch baud rate."""


class ControlLineError(TouchError):
    """DTR could not be cleared. The port has been closed anyway."""


class EnumerationError(ResetError):
    """Listing the available serial ports failed."""


# -----------------------------
# Progress callbacks
# -----------------------------

@dataclass
class ResetProgressCallbacks:
    """
    Optional observer hooks for a reset.

    All hooks are called synchronously from the reset loop and must not
    block. Exceptions raised by a hook are not caught.

    - touching_port(port): the 1200-bps touch of `port` is about to happen
    - waiting_for_new_serial(): polling for the bootloader port has started
    - bootloader_port_found(port): the wait is over; `port` is "" on timeout
    - debug(msg): diagnostics, not meant for end users
    """
    touching_port: Optional[Callable[[str], None]] = None
    waiting_for_new_serial: Optional[Callable[[], None]] = None
    bootloader_port_found: Optional[Callable[[str], None]] = None
    debug: Optional[Callable[[str], None]] = None

    def on_touching_port(self, port: str) -> None:
        if self.touching_port is not None:
            self.touching_port(port)

    def on_waiting_for_new_serial(self) -> None:
        if self.waiting_for_new_serial is not None:
            self.waiting_for_new_serial()

    def on_bootloader_port_found(self, port: str) -> None:
        if self.bootloader_port_found is not None:
            self.bootloader_port_found(port)

    def on_debug(self, msg: str) -> None:
        if self.debug is not None:
            self.debug(msg)


def format_ports(ports: Set[str]) -> str:
    """Stable, sorted rendering of a port set for debug messages."""
    return "[" + ", ".join(sorted(ports)) + "]"
