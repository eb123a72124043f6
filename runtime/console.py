from __future__ import annotations

from typing import Callable, Dict, Sequence

from core.history_log import HistoryEntry
from core.state_machine import DeviceState

MENU = ("1.IDLE", "2.MOVEMENT", "3.SHOOTING", "4.CALCULATION")

# printed as a state's handler starts
_ACTIVITY_LINES: Dict[DeviceState, str] = {
    DeviceState.INIT: "Initializing system...",
    DeviceState.MOVEMENT: "Moving...",
    DeviceState.SHOOTING: "Shooting...",
    DeviceState.CALCULATION: "Performing calculation...",
    DeviceState.ERROR: "Error occurred, performing error handling...",
    DeviceState.STOPPED: "System stopped, shutting down...",
}


class ConsoleCommandSource:
    """Prompts the operator on stdin for the next process."""

    def __init__(self, read: Callable[[str], str] = input, write: Callable[[str], None] = print) -> None:
        self._read = read
        self._write = write

    def next(self) -> str:
        for line in MENU:
            self._write(line)
        return self._read("Choose process: ").strip()


class ConsoleReporter:
    def __init__(self, write: Callable[[str], None] = print) -> None:
        self._write = write

    def report_activity(self, state: DeviceState) -> None:
        line = _ACTIVITY_LINES.get(state)
        if line:
            self._write(line)

    def report_status(self, state: DeviceState, heartbeat: int, delay: int, error_count: int) -> None:
        self._write("FSM Current Status:")
        self._write(f"1.Current State: {state.value}")
        self._write(f"2.Last Heart Beat: {heartbeat}")
        self._write(f"3.Delay: {delay}")
        self._write(f"4.Error Count: {error_count}")

    def report_history(self, entries: Sequence[HistoryEntry]) -> None:
        self._write("{State, Time}")
        for e in entries:
            self._write(f"{{{e.state.value}, {e.timestamp_ms}}}")

    def report_invalid_command(self, token: str) -> None:
        self._write(f"Invalid process: {token!r}")
