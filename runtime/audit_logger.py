from __future__ import annotations

import json
import os
import sqlite3
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict

from core.state_machine import StepResult


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _ensure_parent(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


class AuditLogger:
    """
    Logs:
      1) raw run events (append-only file)
      2) completed steps (append-only file)
      3) structured steps in SQLite (queryable for results tables)
    """

    def __init__(self, db_path: str, step_log_path: str, event_log_path: str) -> None:
        self.db_path = db_path
        self.step_log_path = step_log_path
        self.event_log_path = event_log_path

        _ensure_parent(db_path)
        _ensure_parent(step_log_path)
        _ensure_parent(event_log_path)

        self._init_db()

    def _init_db(self) -> None:
        con = sqlite3.connect(self.db_path)
        cur = con.cursor()
        cur.execute("""
        CREATE TABLE IF NOT EXISTS steps (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            logged_at_utc TEXT NOT NULL,
            run_id TEXT NOT NULL,
            timestamp_ms INTEGER NOT NULL,
            prev_state TEXT NOT NULL,
            next_state TEXT NOT NULL,
            command TEXT,
            reason TEXT NOT NULL
        )
        """)
        con.commit()
        con.close()

    def log_event(self, event: Dict[str, Any]) -> None:
        record = {"timestamp_utc": _now_iso(), **event}
        with open(self.event_log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record) + "\n")

    def log_step(self, result: StepResult, run_id: str = "default") -> None:
        logged_at = _now_iso()

        # file log
        record = {"logged_at_utc": logged_at, "run_id": run_id, **asdict(result)}
        record["prev_state"] = result.prev_state.value
        record["next_state"] = result.next_state.value
        with open(self.step_log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record) + "\n")

        # sqlite log
        con = sqlite3.connect(self.db_path)
        cur = con.cursor()
        cur.execute(
            """
            INSERT INTO steps (logged_at_utc, run_id, timestamp_ms, prev_state, next_state, command, reason)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                logged_at,
                run_id,
                result.timestamp_ms,
                result.prev_state.value,
                result.next_state.value,
                result.command,
                result.reason,
            ),
        )
        con.commit()
        con.close()
