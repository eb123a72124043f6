# experiments/run_experiments.py
from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Optional

from core.state_machine import DeviceState, DeviceStateMachine, StepResult
from runtime.audit_logger import AuditLogger
from runtime.config_loader import load_fsm_config
from simulators.command_stream_sim import RandomCommandSource, SimulatedClock


class NullReporter:
    def report_activity(self, state):
        pass

    def report_status(self, state, heartbeat, delay, error_count):
        pass

    def report_history(self, entries):
        pass

    def report_invalid_command(self, token):
        pass


SCENARIOS = {
    "Careful operator": {"IDLE": 0.1, "MOVEMENT": 0.6, "SHOOTING": 0.2, "CALCULATION": 0.1},
    "Balanced operator": {"IDLE": 0.1, "MOVEMENT": 0.5, "SHOOTING": 0.15, "CALCULATION": 0.25},
    "Calculation heavy": {"IDLE": 0.05, "MOVEMENT": 0.25, "SHOOTING": 0.2, "CALCULATION": 0.5},
}


def run_experiment(
    label: str,
    weights: Dict[str, float],
    delay_ms: int,
    max_steps: int,
    seed: Optional[int] = None,
    p_invalid: float = 0.05,
    logger: Optional[AuditLogger] = None,
) -> Dict[str, Any]:
    sm = DeviceStateMachine(delay_ms=delay_ms)
    clock = SimulatedClock()
    commands = RandomCommandSource(seed=seed, weights=weights, p_invalid=p_invalid)
    reasons: Counter = Counter()

    if logger:
        logger.log_event({"type": "RUN_STARTED", "run_id": label, "seed": seed, "weights": weights})

    def on_step(result: StepResult) -> None:
        reasons[result.reason] += 1
        if logger:
            logger.log_step(result, run_id=label)
        if sum(reasons.values()) >= max_steps:
            sm.stop()

    steps = sm.run(clock, commands, NullReporter(), on_step=on_step)

    summary = {
        "label": label,
        "steps": steps,
        "movements": reasons["MOVE_RECORDED"] + reasons["MOVE_LIMIT_REACHED"],
        "shootings": reasons["MOVES_RESET"],
        "errors": sm.error_count,
        "invalid_inputs": reasons["INVALID_COMMAND"],
        "terminated": sm.is_terminated,
        "final_state": sm.current_state,
        "elapsed_ms": clock.now(),
    }

    if logger:
        logger.log_event({"type": "RUN_FINISHED", "run_id": label, "steps": steps, "terminated": sm.is_terminated})
    return summary


def print_summary(summary: Dict[str, Any]) -> None:
    print(f"\nScenario: {summary['label']}")
    print(f"Steps          : {summary['steps']}")
    print(f"Movements      : {summary['movements']}")
    print(f"Shootings      : {summary['shootings']}")
    print(f"Errors         : {summary['errors']}")
    print(f"Invalid inputs : {summary['invalid_inputs']}")
    if summary["final_state"] is DeviceState.STOPPED:
        print(f"Stopped after  : {summary['elapsed_ms']} ms (simulated)")
    else:
        print(f"Still running  : {summary['final_state'].value}")


if __name__ == "__main__":
    cfg = load_fsm_config("config/fsm_config.yaml")
    audit = AuditLogger(db_path=cfg.db_path, step_log_path=cfg.step_log_path, event_log_path=cfg.event_log_path)

    for label, weights in SCENARIOS.items():
        print_summary(run_experiment(
            label,
            weights,
            delay_ms=cfg.delay_ms,
            max_steps=cfg.sim_max_steps,
            seed=cfg.sim_seed,
            p_invalid=cfg.sim_p_invalid,
            logger=audit,
        ))
