# experiments/retrain_from_logs.py
"""
Warm-start a Q-table from logged transitions (data/logs/transitions.csv).

Each row is replayed through the same one-step update the live loops use,
so a table can be rebuilt after a format change or seeded from another run.
"""
import argparse
from pathlib import Path

import pandas as pd

from agents.actions import ActionType, MacroAction
from agents.need_state import state_from_key
from agents.persistence import DEFAULT_TABLE_DIR, FLAT_TABLE_FILE, MACRO_TABLE_FILE
from agents.tabular_q import FLAT_PARAMS, MACRO_PARAMS, TabularQAgent
from app.utils_logging import TRANSITION_HEADER, TRANSITIONS_PATH


def load_transitions(path, tier="macro") -> pd.DataFrame:
    df = pd.read_csv(path, dtype={"s": str, "ns": str})
    missing = set(TRANSITION_HEADER) - set(df.columns)
    if missing:
        raise ValueError(f"{path} is missing columns: {sorted(missing)}")
    if tier is not None:
        df = df[df["tier"] == tier]
    return df.reset_index(drop=True)


def agent_for_tier(tier):
    if tier == "macro":
        return TabularQAgent(list(MacroAction), MACRO_PARAMS, name="macro")
    return TabularQAgent(list(ActionType), FLAT_PARAMS, idle_action=ActionType.IDLE, name="flat")


def replay_transitions(agent, transitions: pd.DataFrame, epochs=1):
    """
    Apply every logged (s, a, r, ns) to the agent, `epochs` times over; returns the update count.

    State keys are parsed back into NeedStates, so a malformed row raises ValueError.
    """
    n = 0
    for _ in range(epochs):
        for row in transitions.itertuples(index=False):
            agent.update(state_from_key(row.s), int(row.a), float(row.r), state_from_key(row.ns))
            n += 1
    return n


if __name__ == "__main__":
    p = argparse.ArgumentParser()
    p.add_argument("--input", type=str, default=str(TRANSITIONS_PATH))
    p.add_argument("--tier", choices=["macro", "flat"], default="macro")
    p.add_argument("--epochs", type=int, default=1)
    p.add_argument("--save", type=str, default=None)
    p.add_argument("--merge", action="store_true", help="merge into the existing table instead of overwriting")
    args = p.parse_args()

    save = Path(args.save) if args.save else DEFAULT_TABLE_DIR / (
        MACRO_TABLE_FILE if args.tier == "macro" else FLAT_TABLE_FILE)
    if not Path(args.input).exists():
        raise SystemExit(f"No transitions found at {args.input}. Run experiments/train_population.py first.")

    print("Loading transitions from", args.input)
    trans = load_transitions(args.input, args.tier)
    agent = agent_for_tier(args.tier)
    updates = replay_transitions(agent, trans, epochs=args.epochs)
    agent.save(save, merge=args.merge)
    print(f"Replayed {updates} updates over {len(agent.q)} states; saved to {save}")
