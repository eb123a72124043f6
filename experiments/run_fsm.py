# experiments/run_fsm.py
from __future__ import annotations

import argparse
import uuid

from core.interfaces import MonotonicClock
from core.state_machine import DeviceStateMachine
from runtime.audit_logger import AuditLogger
from runtime.config_loader import load_fsm_config
from runtime.console import ConsoleCommandSource, ConsoleReporter


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the device FSM against console input")
    parser.add_argument("--config", default="config/fsm_config.yaml", help="Path to YAML config")
    parser.add_argument("--no-audit", action="store_true", help="Do not write audit logs")
    args = parser.parse_args()

    cfg = load_fsm_config(args.config)
    run_id = uuid.uuid4().hex[:8]

    audit = None
    if not args.no_audit:
        audit = AuditLogger(db_path=cfg.db_path, step_log_path=cfg.step_log_path, event_log_path=cfg.event_log_path)
        audit.log_event({"type": "RUN_STARTED", "run_id": run_id, "delay_ms": cfg.delay_ms})

    sm = DeviceStateMachine(delay_ms=cfg.delay_ms)
    reporter = ConsoleReporter()

    on_step = None
    if audit:
        def on_step(result):
            audit.log_step(result, run_id=run_id)

    try:
        steps = sm.run(MonotonicClock(), ConsoleCommandSource(), reporter, on_step=on_step)
    except (KeyboardInterrupt, EOFError):
        sm.stop()
        print("\nInterrupted.")
        sm.report(reporter)
        return
    finally:
        if audit:
            audit.log_event({"type": "RUN_FINISHED", "run_id": run_id, "state": sm.current_state.value})

    print(f"DONE after {steps} steps. Run id: {run_id}")


if __name__ == "__main__":
    main()
