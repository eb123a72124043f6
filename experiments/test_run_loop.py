# experiments/test_run_loop.py
import threading
import time

from core.interfaces import MonotonicClock
from core.state_machine import DeviceState, DeviceStateMachine
from simulators.command_stream_sim import ScriptedCommandSource, SimulatedClock


def test_run_until_shutdown(clock, reporter):
    sm = DeviceStateMachine(delay_ms=1000)
    results = []

    steps = sm.run(clock, ScriptedCommandSource(["CALCULATION"] * 3), reporter, on_step=results.append)

    # INIT, 3 x (IDLE -> CALCULATION -> ERROR -> ...), final STOPPED step
    assert steps == 11
    assert len(results) == 11
    assert results[-2].reason == "ERROR_LIMIT_REACHED"
    assert results[-1].reason == "SHUTDOWN"
    assert sm.is_terminated
    assert sm.snapshot() == ()
    assert [r.timestamp_ms for r in results] == [1000 * i for i in range(1, 12)]


def test_run_respects_configured_delay_before_init(reporter):
    clock = SimulatedClock(start_ms=0)
    sm = DeviceStateMachine(delay_ms=250)
    results = []

    sm.run(clock, ScriptedCommandSource(["CALCULATION"] * 3), reporter, on_step=results.append)

    assert results[0].timestamp_ms == 250
    # INIT resets the delay to 1000
    assert results[1].timestamp_ms == 1250
    assert sm.delay == 1000


def test_run_with_zero_delay_never_sleeps(reporter):
    class NoSleepClock(SimulatedClock):
        def sleep(self, ms, wake=None):
            raise AssertionError("unexpected sleep")

    sm = DeviceStateMachine(delay_ms=0)
    sm.step(SimulatedClock(), ScriptedCommandSource([]), reporter)  # INIT sets 1000
    sm.set_delay(0)

    steps = sm.run(NoSleepClock(start_ms=5), ScriptedCommandSource(["CALCULATION"] * 3), reporter)

    assert steps == 10
    assert sm.is_terminated


def test_stop_halts_run(clock, reporter):
    sm = DeviceStateMachine(delay_ms=1000)
    results = []

    def on_step(result):
        results.append(result)
        if len(results) == 3:
            sm.stop()

    steps = sm.run(clock, ScriptedCommandSource(["MOVEMENT"] * 10), reporter, on_step=on_step)

    assert steps == 3
    assert sm.stop_requested
    assert not sm.is_terminated
    assert sm.current_state is DeviceState.IDLE
    assert len(sm.snapshot()) == 4


def test_stop_before_run_returns_immediately(clock, reporter):
    sm = DeviceStateMachine(delay_ms=1000)
    sm.stop()
    assert sm.run(clock, ScriptedCommandSource([]), reporter) == 0
    assert sm.current_state is DeviceState.INIT


def test_heartbeat_follows_last_step(clock, reporter):
    sm = DeviceStateMachine(delay_ms=1000)
    sm.run(clock, ScriptedCommandSource(["CALCULATION"] * 3), reporter)
    assert sm.heartbeat == 11000


def test_stop_from_another_thread_interrupts_the_wait(reporter):
    sm = DeviceStateMachine(delay_ms=60_000)
    timer = threading.Timer(0.05, sm.stop)
    timer.start()

    started = time.monotonic()
    steps = sm.run(MonotonicClock(), ScriptedCommandSource([]), reporter)
    timer.join()

    assert steps == 0
    assert time.monotonic() - started < 5.0


def test_monotonic_clock_sleep_returns_once_woken():
    wake = threading.Event()
    wake.set()
    started = time.monotonic()
    MonotonicClock().sleep(60_000, wake=wake)
    assert time.monotonic() - started < 5.0


def test_monotonic_clock_never_goes_back():
    clock = MonotonicClock()
    a = clock.now()
    clock.sleep(2)
    b = clock.now()
    assert a >= 0
    assert b >= a
    clock.sleep(0)
