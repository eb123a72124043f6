# core/interfaces.py
from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING, Optional, Protocol, Sequence

if TYPE_CHECKING:
    from core.history_log import HistoryEntry
    from core.state_machine import DeviceState


class Clock(Protocol):
    def now(self) -> int:
        """Monotonic time in milliseconds."""
        ...

    def sleep(self, ms: int, wake: Optional[threading.Event] = None) -> None:
        """Wait up to ms; returns early once wake is set."""
        ...


class CommandSource(Protocol):
    def next(self) -> str:
        """Blocking read of one operator token."""
        ...


class Reporter(Protocol):
    """
    Presentation-only sink. Nothing returned here affects machine state.
    """

    def report_activity(self, state: DeviceState) -> None:
        """Called before the handler of state runs."""
        ...

    def report_status(self, state: DeviceState, heartbeat: int, delay: int, error_count: int) -> None:
        ...

    def report_history(self, entries: Sequence[HistoryEntry]) -> None:
        ...

    def report_invalid_command(self, token: str) -> None:
        ...


class MonotonicClock:
    """Wall clock backed by time.monotonic_ns()."""

    def __init__(self) -> None:
        self._origin_ns = time.monotonic_ns()

    def now(self) -> int:
        return (time.monotonic_ns() - self._origin_ns) // 1_000_000

    def sleep(self, ms: int, wake: Optional[threading.Event] = None) -> None:
        if ms <= 0:
            return
        if wake is not None:
            wake.wait(ms / 1000.0)
        else:
            time.sleep(ms / 1000.0)
