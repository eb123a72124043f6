# core/state_machine.py
from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from core.history_log import HistoryEntry, HistoryLog
from core.interfaces import Clock, CommandSource, Reporter


INIT_DELAY_MS = 1000
MOVES_BEFORE_SHOOTING = 3
ERROR_LIMIT = 3


class DeviceState(str, Enum):
    INIT = "INIT"
    IDLE = "IDLE"
    MOVEMENT = "MOVEMENT"
    SHOOTING = "SHOOTING"
    CALCULATION = "CALCULATION"
    ERROR = "ERROR"
    STOPPED = "STOPPED"      # terminal


class Command(str, Enum):
    IDLE = "IDLE"
    MOVEMENT = "MOVEMENT"
    SHOOTING = "SHOOTING"
    CALCULATION = "CALCULATION"

    # reporter triggers (do not change state)
    STATUS = "STATUS"
    HISTORY = "HISTORY"


# Activity commands accepted while idle: command -> next_state
_COMMAND_TARGETS: Dict[Command, DeviceState] = {
    Command.IDLE: DeviceState.IDLE,
    Command.MOVEMENT: DeviceState.MOVEMENT,
    Command.SHOOTING: DeviceState.SHOOTING,
    Command.CALCULATION: DeviceState.CALCULATION,
}


def parse_command(token: str) -> Optional[Command]:
    """Case-sensitive token lookup; anything unknown returns None."""
    try:
        return Command(token.strip())
    except ValueError:
        return None


@dataclass(frozen=True)
class FsmStatus:
    state: DeviceState
    heartbeat: int
    delay: int
    error_count: int
    move_count: int


@dataclass(frozen=True)
class StepResult:
    prev_state: DeviceState
    next_state: DeviceState
    command: Optional[str]   # raw token, only read while idle
    timestamp_ms: int
    reason: str              # machine-friendly reason code (audit logs)


# handler output: (next_state, reason, command token)
_HandlerOutcome = Tuple[DeviceState, str, Optional[str]]


class DeviceStateMachine:
    """
    Heartbeat-driven controller for an operator-driven device loop.

    Key properties:
    - Every state maps to exactly one handler; every handler returns a next state.
    - One history entry is appended per completed step, except the STOPPED
      step, which clears the log on shutdown and appends nothing.
    - move_count resets only when SHOOTING completes; error_count resets
      only through reset_error_count()/set_error_count().
    - run() can be halted from outside with stop().
    """

    def __init__(self, delay_ms: int = INIT_DELAY_MS) -> None:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")

        self._state: DeviceState = DeviceState.INIT
        self._heartbeat: int = 0
        self._delay: int = delay_ms
        self._error_count: int = 0
        self._move_count: int = 0
        self._shut_down: bool = False
        self._stop = threading.Event()

        self._history = HistoryLog()
        self._history.append(DeviceState.INIT, 0)

        self._handlers: Dict[DeviceState, Callable[[int, CommandSource, Reporter], _HandlerOutcome]] = {
            DeviceState.INIT: self._perform_init,
            DeviceState.IDLE: self._perform_idle,
            DeviceState.MOVEMENT: self._perform_movement,
            DeviceState.SHOOTING: self._perform_shooting,
            DeviceState.CALCULATION: self._perform_calculation,
            DeviceState.ERROR: self._perform_error_handling,
            DeviceState.STOPPED: self._perform_shutdown,
        }

    # -------------------------------
    # Accessors
    # -------------------------------

    @property
    def current_state(self) -> DeviceState:
        return self._state

    @property
    def heartbeat(self) -> int:
        return self._heartbeat

    @property
    def delay(self) -> int:
        return self._delay

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def move_count(self) -> int:
        return self._move_count

    @property
    def is_terminated(self) -> bool:
        return self._state is DeviceState.STOPPED and self._shut_down

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    @property
    def status(self) -> FsmStatus:
        return FsmStatus(
            state=self._state,
            heartbeat=self._heartbeat,
            delay=self._delay,
            error_count=self._error_count,
            move_count=self._move_count,
        )

    def snapshot(self) -> Tuple[HistoryEntry, ...]:
        return self._history.snapshot()

    def set_delay(self, delay_ms: int) -> None:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        self._delay = delay_ms

    def set_error_count(self, count: int) -> None:
        if count < 0:
            raise ValueError("error_count must be >= 0")
        self._error_count = count

    def reset_error_count(self) -> None:
        self._error_count = 0

    def set_move_count(self, count: int) -> None:
        if count < 0:
            raise ValueError("move_count must be >= 0")
        self._move_count = count

    def report(self, reporter: Reporter, include_history: bool = True) -> None:
        reporter.report_status(self._state, self._heartbeat, self._delay, self._error_count)
        if include_history:
            reporter.report_history(self._history.snapshot())

    # -------------------------------
    # Scheduling
    # -------------------------------

    def stop(self) -> None:
        """Ask run() to return before its next dispatch. Sticky."""
        self._stop.set()

    def run(
        self,
        clock: Clock,
        commands: CommandSource,
        reporter: Reporter,
        on_step: Optional[Callable[[StepResult], None]] = None,
    ) -> int:
        """
        Drive the machine until it has shut down or stop() is called.
        Returns the number of steps performed.
        """
        steps = 0
        while not self._stop.is_set() and not self.is_terminated:
            elapsed = clock.now() - self._heartbeat
            if elapsed < self._delay:
                clock.sleep(self._delay - elapsed, wake=self._stop)
                continue

            result = self.step(clock, commands, reporter)
            steps += 1
            if on_step is not None:
                on_step(result)
        return steps

    def step(self, clock: Clock, commands: CommandSource, reporter: Reporter) -> StepResult:
        now = clock.now()
        prev = self._state

        if not self.is_terminated:
            reporter.report_activity(prev)
        nxt, reason, token = self._handlers[prev](now, commands, reporter)
        self._state = nxt

        if prev is not DeviceState.STOPPED:
            self._history.append(nxt, now)
        self._heartbeat = now

        return StepResult(
            prev_state=prev,
            next_state=nxt,
            command=token,
            timestamp_ms=now,
            reason=reason,
        )

    # -------------------------------
    # State handlers
    # -------------------------------

    def _perform_init(self, now: int, commands: CommandSource, reporter: Reporter) -> _HandlerOutcome:
        self._delay = INIT_DELAY_MS
        self._heartbeat = now
        reporter.report_status(DeviceState.IDLE, now, self._delay, self._error_count)
        return DeviceState.IDLE, "INIT_COMPLETE", None

    def _perform_idle(self, now: int, commands: CommandSource, reporter: Reporter) -> _HandlerOutcome:
        token = commands.next()
        cmd = parse_command(token)

        if cmd is None:
            reporter.report_invalid_command(token)
            return DeviceState.IDLE, "INVALID_COMMAND", token

        if cmd is Command.STATUS:
            reporter.report_status(self._state, self._heartbeat, self._delay, self._error_count)
            return DeviceState.IDLE, "STATUS_REPORTED", cmd.value

        if cmd is Command.HISTORY:
            reporter.report_history(self._history.snapshot())
            return DeviceState.IDLE, "HISTORY_REPORTED", cmd.value

        if cmd is Command.IDLE:
            self.report(reporter)

        return _COMMAND_TARGETS[cmd], f"COMMAND_ACCEPTED:{cmd.value}", cmd.value

    def _perform_movement(self, now: int, commands: CommandSource, reporter: Reporter) -> _HandlerOutcome:
        self._move_count += 1
        if self._move_count >= MOVES_BEFORE_SHOOTING:
            return DeviceState.SHOOTING, "MOVE_LIMIT_REACHED", None
        return DeviceState.IDLE, "MOVE_RECORDED", None

    def _perform_shooting(self, now: int, commands: CommandSource, reporter: Reporter) -> _HandlerOutcome:
        self._move_count = 0
        return DeviceState.IDLE, "MOVES_RESET", None

    def _perform_calculation(self, now: int, commands: CommandSource, reporter: Reporter) -> _HandlerOutcome:
        if self._move_count == 0:
            return DeviceState.ERROR, "CALCULATION_WITHOUT_MOVES", None
        return DeviceState.IDLE, "CALCULATION_OK", None

    def _perform_error_handling(self, now: int, commands: CommandSource, reporter: Reporter) -> _HandlerOutcome:
        self._error_count += 1
        if self._error_count >= ERROR_LIMIT:
            return DeviceState.STOPPED, "ERROR_LIMIT_REACHED", None
        return DeviceState.IDLE, "ERROR_RECOVERED", None

    def _perform_shutdown(self, now: int, commands: CommandSource, reporter: Reporter) -> _HandlerOutcome:
        if self._shut_down:
            return DeviceState.STOPPED, "ALREADY_STOPPED", None
        self._history.clear()
        self._shut_down = True
        return DeviceState.STOPPED, "SHUTDOWN", None
