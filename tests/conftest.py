"""Shared fixtures: a fake clock and a scripted port enumerator."""

from __future__ import annotations

from typing import Iterable, List, Set, Union

import pytest

import touch_reset.controller.reset as reset_mod
import touch_reset.utils.deadline as deadline_mod
from touch_reset.comms.types import ResetProgressCallbacks


class FakeClock:
    """Stands in for the `time` module: sleeping just advances the clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.t = start
        self.start = start
        self.sleeps: List[float] = []

    def monotonic(self) -> float:
        return self.t

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.t += seconds

    @property
    def elapsed(self) -> float:
        return self.t - self.start


class ScriptedPorts:
    """
    Enumerator that replays a list of snapshots. An exception instance in
    the script is raised instead of returned. The last entry repeats.
    """

    def __init__(self, script: Iterable[Union[Set[str], Exception]]) -> None:
        self.script = list(script)
        self.calls = 0

    def __call__(self) -> Set[str]:
        idx = min(self.calls, len(self.script) - 1)
        self.calls += 1
        item = self.script[idx]
        if isinstance(item, Exception):
            raise item
        return set(item)


class Recorder:
    """Collects every callback invocation, in order."""

    def __init__(self) -> None:
        self.events: List[tuple] = []
        self.debug: List[str] = []

    def callbacks(self) -> ResetProgressCallbacks:
        return ResetProgressCallbacks(
            touching_port=lambda p: self.events.append(("touching", p)),
            waiting_for_new_serial=lambda: self.events.append(("waiting",)),
            bootloader_port_found=lambda p: self.events.append(("found", p)),
            debug=self.debug.append,
        )


@pytest.fixture
def clock(monkeypatch) -> FakeClock:
    c = FakeClock()
    monkeypatch.setattr(reset_mod, "time", c)
    monkeypatch.setattr(deadline_mod, "time", c)
    return c


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
