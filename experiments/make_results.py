from __future__ import annotations

import os
import sqlite3

import pandas as pd
import matplotlib.pyplot as plt

from core.state_machine import DeviceState
from runtime.config_loader import load_fsm_config


STATE_ORDER = [s.value for s in DeviceState]


def read_steps_sqlite(db_path: str) -> pd.DataFrame:
    con = sqlite3.connect(db_path)
    df = pd.read_sql_query("SELECT * FROM steps ORDER BY id", con)
    con.close()
    return df


def summarize_state_visits(df: pd.DataFrame) -> pd.DataFrame:
    """
    One row per run: how often each state was entered, plus the step count.
    Columns follow the DeviceState declaration order.
    """
    visits = pd.crosstab(df["run_id"], df["next_state"])
    visits = visits.reindex(columns=STATE_ORDER, fill_value=0)
    visits["steps"] = df.groupby("run_id").size()
    return visits.reset_index()


def reason_distribution(df: pd.DataFrame) -> pd.DataFrame:
    return df.groupby(["run_id", "reason"]).size().reset_index(name="count")


def main() -> None:
    cfg = load_fsm_config("config/fsm_config.yaml")
    os.makedirs(cfg.table_dir, exist_ok=True)
    os.makedirs(cfg.graph_dir, exist_ok=True)

    df = read_steps_sqlite(cfg.db_path)
    if df.empty:
        print("No steps logged yet:", cfg.db_path)
        return

    visits = summarize_state_visits(df)
    out_csv = os.path.join(cfg.table_dir, "state_visits.csv")
    visits.to_csv(out_csv, index=False)

    reasons = reason_distribution(df)
    out_reason_csv = os.path.join(cfg.table_dir, "reason_distribution.csv")
    reasons.to_csv(out_reason_csv, index=False)

    # grouped bar chart: visits per state, one bar group per run
    runs = visits["run_id"].tolist()
    states = [s for s in STATE_ORDER if s != DeviceState.INIT.value]
    width = 0.8 / max(1, len(runs))
    x = range(len(states))

    plt.figure()
    for i, run_id in enumerate(runs):
        row = visits[visits["run_id"] == run_id].iloc[0]
        plt.bar([p + i * width for p in x], [row[s] for s in states], width=width, label=str(run_id))

    plt.xticks([p + width * (len(runs) - 1) / 2 for p in x], states, rotation=30, ha="right")
    plt.ylabel("Visits")
    plt.title("State visits per run")
    plt.legend()
    plt.tight_layout()

    out_png = os.path.join(cfg.graph_dir, "state_visits.png")
    plt.savefig(out_png, dpi=300)
    plt.close()

    print("RESULTS GENERATED:")
    print(" -", out_csv)
    print(" -", out_reason_csv)
    print(" -", out_png)


if __name__ == "__main__":
    main()
