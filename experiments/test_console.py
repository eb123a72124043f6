from core.history_log import HistoryEntry
from core.state_machine import DeviceState, DeviceStateMachine
from runtime.console import MENU, ConsoleCommandSource, ConsoleReporter
from simulators.command_stream_sim import SimulatedClock


def test_command_source_prints_menu_and_strips_input():
    written = []
    prompts = []

    def read(prompt):
        prompts.append(prompt)
        return " MOVEMENT \n"

    source = ConsoleCommandSource(read=read, write=written.append)
    assert source.next() == "MOVEMENT"
    assert written == list(MENU)
    assert prompts == ["Choose process: "]


def test_status_block(capsys):
    ConsoleReporter().report_status(DeviceState.IDLE, 1500, 1000, 2)
    out = capsys.readouterr().out.splitlines()
    assert out == [
        "FSM Current Status:",
        "1.Current State: IDLE",
        "2.Last Heart Beat: 1500",
        "3.Delay: 1000",
        "4.Error Count: 2",
    ]


def test_history_lines():
    lines = []
    ConsoleReporter(write=lines.append).report_history([
        HistoryEntry(DeviceState.INIT, 0),
        HistoryEntry(DeviceState.IDLE, 1000),
    ])
    assert lines == ["{State, Time}", "{INIT, 0}", "{IDLE, 1000}"]


def test_invalid_command_notice():
    lines = []
    ConsoleReporter(write=lines.append).report_invalid_command("fly")
    assert lines == ["Invalid process: 'fly'"]


def test_activity_lines():
    lines = []
    reporter = ConsoleReporter(write=lines.append)
    for state in (DeviceState.MOVEMENT, DeviceState.IDLE, DeviceState.ERROR, DeviceState.STOPPED):
        reporter.report_activity(state)
    assert lines == [
        "Moving...",
        "Error occurred, performing error handling...",
        "System stopped, shutting down...",
    ]


def test_console_driven_session():
    answers = iter(["MOVEMENT", "oops", "STATUS"])
    lines = []
    reporter = ConsoleReporter(write=lines.append)
    source = ConsoleCommandSource(read=lambda prompt: next(answers), write=lambda line: None)
    sm = DeviceStateMachine(delay_ms=1000)
    clock = SimulatedClock(start_ms=500)

    for _ in range(5):
        clock.advance(1000)
        sm.step(clock, source, reporter)

    # INIT announces itself, then reports the heartbeat of its own step
    assert lines[:6] == [
        "Initializing system...",
        "FSM Current Status:",
        "1.Current State: IDLE",
        "2.Last Heart Beat: 1500",
        "3.Delay: 1000",
        "4.Error Count: 0",
    ]
    assert "Moving..." in lines
    assert "Invalid process: 'oops'" in lines
    assert lines[-5:] == [
        "FSM Current Status:",
        "1.Current State: IDLE",
        "2.Last Heart Beat: 4500",
        "3.Delay: 1000",
        "4.Error Count: 0",
    ]
