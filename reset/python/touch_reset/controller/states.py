"""
Reset controller state definitions.

A reset walks through a small, fixed set of states:

    IDLE -> TOUCHED -> WAITING -> FOUND | TIMED_OUT

TOUCHED is skipped when there is no port to touch (or it is not currently
visible). WAITING is skipped when the caller did not ask to wait. FOUND and
TIMED_OUT are terminal.

This file should contain definitions only (enums and small helpers).
"""

from enum import Enum


class ResetState(str, Enum):
    IDLE = "idle"
    TOUCHED = "touched"
    WAITING = "waiting"
    FOUND = "found"
    TIMED_OUT = "timed_out"


def is_terminal(st: ResetState) -> bool:
    return st in (ResetState.FOUND, ResetState.TIMED_OUT)


def ui_label(st: ResetState) -> str:
    """Human-readable label for progress output."""
    if st == ResetState.IDLE:
        return "Idle"
    if st == ResetState.TOUCHED:
        return "Port touched"
    if st == ResetState.WAITING:
        return "Waiting for bootloader port"
    if st == ResetState.FOUND:
        return "Bootloader port found"
    if st == ResetState.TIMED_OUT:
        return "Timed out"
    return "Unknown"
