"""
touch_reset/comms/touch.py

The 1200-bps touch.

Many Arduino (and compatible) boards watch for their CDC port being opened
at 1200 baud and then closed. That arms a watchdog reset into the
bootloader.

Responsibilities:
- Open the port at the touch baud rate
- Drop DTR before closing (skipped on Windows, where closing is enough)
- Always close the port, including on the error path
- Wait for the reset to happen before anyone scans ports again

This module does not look for the bootloader port. controller/reset.py does.
"""

from __future__ import annotations

import logging
import sys
import time
from typing import Any, Callable, Optional

import serial  # pyserial

from touch_reset.comms.types import ControlLineError, OpenError

logger = logging.getLogger(__name__)

TOUCH_BAUD = 1200

# Scanning for ports can open them or otherwise assert DTR, which cancels
# the watchdog reset if it happens within ~250 ms of the touch.
TOUCH_SETTLE_S = 0.5


def needs_dtr_clear(platform: Optional[str] = None) -> bool:
    """True if DTR must be dropped explicitly before closing on `platform`."""
    if platform is None:
        platform = sys.platform
    return not platform.startswith("win")


def touch_1200bps(
    port: str,
    *,
    baud: int = TOUCH_BAUD,
    clear_dtr: Optional[bool] = None,
    settle_s: float = TOUCH_SETTLE_S,
    serial_factory: Optional[Callable[..., Any]] = None,
) -> None:
    """
    Open `port` at 1200 baud, drop DTR, close it, then wait `settle_s`.

    clear_dtr=None decides from the running platform (see needs_dtr_clear).
    serial_factory defaults to serial.Serial and is called as
    serial_factory(port=..., baudrate=...).

    Raises OpenError or ControlLineError. Neither is retried here.
    """
    if clear_dtr is None:
        clear_dtr = needs_dtr_clear()
    if serial_factory is None:
        serial_factory = serial.Serial

    logger.debug("opening %s at %d baud", port, baud)
    try:
        ser = serial_factory(port=port, baudrate=baud)
    except (serial.SerialException, OSError, ValueError) as e:
        raise OpenError(f"opening port at {baud}bps: {e}") from e

    if clear_dtr:
        try:
            ser.dtr = False
        except (serial.SerialException, OSError, ValueError) as e:
            _close_quietly(ser)
            raise ControlLineError(f"setting DTR to OFF: {e}") from e

    _close_quietly(ser)
    logger.debug("closed %s, settling for %.2fs", port, settle_s)

    time.sleep(settle_s)


def _close_quietly(ser: Any) -> None:
    try:
        ser.close()
    except Exception as e:
        logger.debug("ignoring error while closing port: %s", e)
