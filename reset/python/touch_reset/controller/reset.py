"""
Reset-and-detect controller.

This module implements the piece that turns a 1200-bps touch into a usable
upload port: it snapshots the visible serial ports, optionally touches the
target port, then polls until a new port shows up and stays up.

Enumeration is pluggable (PortsMapper). In dry-run mode the live enumerator
is replaced by EmulatedPortsMapper and no serial port is ever opened, so
the whole state machine runs without hardware.

Everything runs synchronously on the calling thread. The only waits are
explicit sleeps, and the loop is bounded by the deadline.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional, Set

from touch_reset.comms.ports import EmulatedPortsMapper, list_serial_ports
from touch_reset.comms.touch import TOUCH_SETTLE_S, touch_1200bps
from touch_reset.comms.types import (
    PortsMapper,
    ResetProgressCallbacks,
    TouchError,
    format_ports,
)
from touch_reset.controller.states import ResetState
from touch_reset.utils.deadline import Deadline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResetTimings:
    """
    Delays used by a reset, in seconds.

    timeout_s:          how long to wait for the bootloader port
    dry_run_timeout_s:  same, in dry-run mode (kept short for tests/CI)
    debounce_s:         delay before re-checking a newly seen port. Opening a
                        port too soon after it appears gives "Resource busy"
                        on macOS, and some bootloaders flap their port at first
    poll_interval_s:    delay between snapshots
    touch_settle_s:     wait after closing the touched port
    """
    timeout_s: float = 10.0
    dry_run_timeout_s: float = 0.1
    debounce_s: float = 1.0
    poll_interval_s: float = 0.25
    touch_settle_s: float = TOUCH_SETTLE_S

    def __post_init__(self) -> None:
        if self.timeout_s <= 0 or self.dry_run_timeout_s <= 0:
            raise ValueError("ResetTimings timeouts must be > 0")
        for name in ("debounce_s", "poll_interval_s", "touch_settle_s"):
            if getattr(self, name) < 0:
                raise ValueError(f"ResetTimings.{name} must be >= 0")


class ResetController:
    """
    One reset of one board.

    The ResetController class:
    - Takes the pre-touch snapshot that new ports are diffed against
    - Touches the target port if it is currently visible
    - Polls the enumerator on a fixed interval until a deadline
    - Debounces: a new port only counts if it is still there after a delay,
      relative to the same baseline it was first seen against
    - Reports progress through ResetProgressCallbacks

    `state` and `found_port` stay readable after run() returns or raises.
    """

    def __init__(
        self,
        port_to_touch: str = "",
        wait: bool = False,
        dry_run: bool = False,
        ports_mapper: Optional[PortsMapper] = None,
        cb: Optional[ResetProgressCallbacks] = None,
        timings: Optional[ResetTimings] = None,
        toucher: Optional[Callable[[str], None]] = None,
    ) -> None:

        self.port_to_touch = port_to_touch or ""
        self.wait = bool(wait)
        self.dry_run = bool(dry_run)
        self.cb = cb if cb is not None else ResetProgressCallbacks()
        self.timings = timings if timings is not None else ResetTimings()

        # Dry-run always polls the emulator, whatever the caller passed in
        if self.dry_run:
            self.ports_mapper: PortsMapper = EmulatedPortsMapper(self.port_to_touch)
        elif ports_mapper is not None:
            self.ports_mapper = ports_mapper
        else:
            self.ports_mapper = list_serial_ports

        if toucher is None:
            toucher = partial(touch_1200bps, settle_s=self.timings.touch_settle_s)
        self._toucher = toucher

        self.state = ResetState.IDLE
        self.found_port = ""
        self._ran = False

    def run(self) -> str:
        """
        Perform the reset. Returns the bootloader port, or "" if waiting was
        not requested or no stable new port appeared before the deadline.

        Enumeration errors always propagate. Touch errors propagate only
        when not waiting.
        """
        if self._ran:
            raise RuntimeError("ResetController.run() can only be called once")
        self._ran = True

        last = self._snapshot()
        self._debug(f"LAST: {format_ports(last)}")

        port = self.port_to_touch
        if port and port in last:
            self._touch(port)

        if not self.wait:
            return ""

        return self._wait_for_new_port(last)

    # -----------------------------
    # Touch
    # -----------------------------

    def _touch(self, port: str) -> None:
        self._debug(f"TOUCH: {port}")
        self.cb.on_touching_port(port)

        if not self.dry_run:
            try:
                self._toucher(port)
            except TouchError as e:
                if not self.wait:
                    raise
                # The board may still reset even if the driver reported an
                # error, so keep going and look for the new port.
                logger.warning("1200-bps touch of %s failed, waiting anyway: %s", port, e)
                self._debug(f"1200-bps touch failed, waiting anyway: {e}")

        self.state = ResetState.TOUCHED

    # -----------------------------
    # Wait / debounce
    # -----------------------------

    def _wait_for_new_port(self, last: Set[str]) -> str:
        self.state = ResetState.WAITING
        self.cb.on_waiting_for_new_serial()

        deadline = Deadline(self._timeout_s())

        while not deadline.expired():
            now = self._snapshot()
            self._debug(f"WAIT: {format_ports(now)}")

            if now - last:
                self._debug("New ports found!")
                time.sleep(self.timings.debounce_s)

                # Compare against the same baseline, not against `now`
                check = self._snapshot()
                self._debug(f"CHECK: {format_ports(check)}")
                stable = check - last
                if stable:
                    return self._finish(ResetState.FOUND, sorted(stable)[0])

                self._debug("Port check failed... still waiting")

            last = now
            time.sleep(self.timings.poll_interval_s)

        return self._finish(ResetState.TIMED_OUT, "")

    def _finish(self, state: ResetState, port: str) -> str:
        self.state = state
        self.found_port = port
        if port:
            logger.info("bootloader port found: %s", port)
        else:
            logger.info("no bootloader port found within %.2fs", self._timeout_s())
        self.cb.on_bootloader_port_found(port)
        return port

    def _snapshot(self) -> Set[str]:
        # Enumerators may hand back a list or a dict keyed by port name
        return set(self.ports_mapper())

    def _timeout_s(self) -> float:
        return self.timings.dry_run_timeout_s if self.dry_run else self.timings.timeout_s

    def _debug(self, msg: str) -> None:
        logger.debug(msg)
        self.cb.on_debug(msg)


def reset(
    port_to_touch: str,
    wait: bool,
    dry_run: bool,
    ports_mapper: Optional[PortsMapper] = None,
    cb: Optional[ResetProgressCallbacks] = None,
    *,
    timings: Optional[ResetTimings] = None,
    toucher: Optional[Callable[[str], None]] = None,
) -> str:
    """
    Reset a board with the 1200-bps touch and wait for its bootloader port.

    Both steps are optional:
    - if port_to_touch is "" (or not currently visible) the touch is skipped
    - if wait is False the wait is skipped and "" is returned

    In dry-run mode nothing is opened and the port list is emulated: a
    port_to_touch ending in "999" comes back as port_to_touch + "0", an empty
    port_to_touch comes back as "newport", anything else never shows a new
    port.
    """
    return ResetController(
        port_to_touch=port_to_touch,
        wait=wait,
        dry_run=dry_run,
        ports_mapper=ports_mapper,
        cb=cb,
        timings=timings,
        toucher=toucher,
    ).run()
