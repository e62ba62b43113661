# app/reporting.py
"""
Run reports built from the CSV logs and the persisted Q-tables.

Everything returns pandas objects so the dashboard and the command-line
scripts share the same numbers; write_run_report() additionally drops a
summary CSV and a lifetime plot next to each other.
"""
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

from agents.actions import ActionType, MacroAction
from agents.need_state import NEED_ORDER
from agents.persistence import load_table
from app.utils_logging import ACTIONS_PATH, DATA_DIR, GENERATIONS_PATH

REPORTS_DIR = DATA_DIR / "reports"


def load_actions(path=ACTIONS_PATH) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        return pd.DataFrame()
    return pd.read_csv(path, dtype={"state_key": str})


def load_generations(path=GENERATIONS_PATH) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        return pd.DataFrame()
    return pd.read_csv(path)


def generation_summary(gens: pd.DataFrame) -> pd.DataFrame:
    """Lifetime statistics per generation, plus a rolling mean to show the trend."""
    if gens.empty:
        return pd.DataFrame(columns=["generation", "npcs", "mean_lifetime", "max_lifetime", "mean_actions", "rolling_lifetime"])
    out = (gens.groupby("generation")
           .agg(npcs=("npc_id", "count"),
                mean_lifetime=("lifetime", "mean"),
                max_lifetime=("lifetime", "max"),
                mean_actions=("total_actions", "mean"))
           .reset_index()
           .sort_values("generation"))
    out["rolling_lifetime"] = out["mean_lifetime"].rolling(10, min_periods=1).mean()
    return out


def cause_of_death_counts(gens: pd.DataFrame) -> pd.Series:
    if gens.empty:
        return pd.Series(dtype="int64")
    names = {int(n): n.name.title() for n in NEED_ORDER}
    names[-1] = "Unknown"
    return gens["cause_of_death"].map(names).value_counts()


def action_distribution(actions: pd.DataFrame) -> pd.DataFrame:
    """Share of each concrete action among logged decisions."""
    if actions.empty:
        return pd.DataFrame(columns=["action", "count", "share"])
    decisions = actions[actions["event"] == "Action"]
    counts = decisions["action"].astype(int).map(lambda a: ActionType(a).name.lower()).value_counts()
    out = counts.rename_axis("action").reset_index(name="count")
    out["share"] = out["count"] / out["count"].sum()
    return out


def q_table_frame(path, macro=True) -> pd.DataFrame:
    """Persisted table as rows, with readable action names and the greedy pick per state."""
    table = load_table(path).table
    df = table.to_frame()
    if df.empty:
        return df.assign(action_name=pd.Series(dtype=str), greedy=pd.Series(dtype=bool))
    enum = MacroAction if macro else ActionType
    names = {int(a): a.name.lower() for a in enum}
    df["action_name"] = df["action"].map(lambda a: names.get(int(a), str(a)))
    best = df.groupby("state_key")["value"].transform("max")
    df["greedy"] = df["value"] == best
    return df.sort_values(["state_key", "value"], ascending=[True, False]).reset_index(drop=True)


def save_lifetime_plot(summary: pd.DataFrame, out_path):
    fig, ax = plt.subplots(figsize=(7, 3))
    ax.plot(summary["generation"], summary["mean_lifetime"], marker="o", linewidth=0.8, label="mean")
    ax.plot(summary["generation"], summary["rolling_lifetime"], linewidth=1.6, label="rolling (10)")
    ax.set_title("Lifetime per generation")
    ax.set_xlabel("Generation")
    ax.set_ylabel("Lifetime (s)")
    ax.legend()
    fig.tight_layout()
    fig.savefig(out_path, dpi=150)
    plt.close(fig)
    return Path(out_path)


def write_run_report(generations_path=GENERATIONS_PATH, out_dir=REPORTS_DIR):
    gens = load_generations(generations_path)
    if gens.empty:
        raise ValueError(f"No generations recorded in {generations_path}")
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    summary = generation_summary(gens)
    csv_path = out_dir / "generation_summary.csv"
    summary.to_csv(csv_path, index=False)
    png_path = save_lifetime_plot(summary, out_dir / "lifetime.png")
    return {"summary": csv_path, "plot": png_path}
