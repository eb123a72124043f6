# core/history_log.py
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:
    from core.state_machine import DeviceState


@dataclass(frozen=True)
class HistoryEntry:
    state: DeviceState
    timestamp_ms: int


class HistoryLog:
    """
    Append-only chronological log of visited states.

    Entries are never removed or reordered; the only way to drop them is
    clear(), which the machine calls once on shutdown.
    """

    def __init__(self) -> None:
        self._entries: List[HistoryEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, state: DeviceState, timestamp_ms: int) -> HistoryEntry:
        entry = HistoryEntry(state=state, timestamp_ms=timestamp_ms)
        self._entries.append(entry)
        return entry

    def last(self) -> Optional[HistoryEntry]:
        if not self._entries:
            return None
        return self._entries[-1]

    def snapshot(self) -> Tuple[HistoryEntry, ...]:
        # read-only copy for reporters/tests
        return tuple(self._entries)

    def clear(self) -> None:
        self._entries.clear()
