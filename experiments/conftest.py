from __future__ import annotations

from typing import List, Tuple

import pytest

from core.state_machine import DeviceStateMachine
from simulators.command_stream_sim import SimulatedClock


class RecordingReporter:
    def __init__(self) -> None:
        self.statuses: List[Tuple] = []
        self.histories: List[Tuple] = []
        self.invalid: List[str] = []
        self.activities: List = []

    def report_activity(self, state):
        self.activities.append(state)

    def report_status(self, state, heartbeat, delay, error_count):
        self.statuses.append((state, heartbeat, delay, error_count))

    def report_history(self, entries):
        self.histories.append(tuple(entries))

    def report_invalid_command(self, token):
        self.invalid.append(token)


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def clock() -> SimulatedClock:
    return SimulatedClock(start_ms=0)


@pytest.fixture
def fsm() -> DeviceStateMachine:
    return DeviceStateMachine(delay_ms=1000)
