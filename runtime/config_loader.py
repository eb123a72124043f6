from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
import yaml


@dataclass(frozen=True)
class FsmConfig:
    delay_ms: int

    sim_seed: Optional[int]
    sim_max_steps: int
    sim_p_invalid: float

    db_path: str
    step_log_path: str
    event_log_path: str

    table_dir: str
    graph_dir: str


def load_fsm_config(path: str = "config/fsm_config.yaml") -> FsmConfig:
    with open(path, "r", encoding="utf-8") as f:
        cfg: Dict[str, Any] = yaml.safe_load(f) or {}

    fsm = cfg.get("fsm", {})
    sim = cfg.get("simulation", {})
    logging = cfg.get("logging", {})
    results = cfg.get("results", {})

    seed = sim.get("seed")

    return FsmConfig(
        # the state machine rejects negative delays; clamp here
        delay_ms=max(0, int(fsm.get("delay_ms", 1000))),

        sim_seed=None if seed is None else int(seed),
        sim_max_steps=max(1, int(sim.get("max_steps", 500))),
        sim_p_invalid=min(1.0, max(0.0, float(sim.get("p_invalid", 0.05)))),

        db_path=str(logging.get("db_path", "logs/fsm_audit.sqlite")),
        step_log_path=str(logging.get("step_log_path", "logs/steps.log")),
        event_log_path=str(logging.get("event_log_path", "logs/events.log")),

        table_dir=str(results.get("table_dir", "results/tables")),
        graph_dir=str(results.get("graph_dir", "results/graphs")),
    )
