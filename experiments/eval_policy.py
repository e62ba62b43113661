# experiments/eval_policy.py
"""
Compare the learned high-level policy (greedy, table loaded read-only)
against the most-critical-need baseline on identical seeds.
"""
import argparse
import tempfile
from collections import Counter
from pathlib import Path

import numpy as np

from agents.actions import ActionType
from agents.need_state import NEED_ORDER
from agents.persistence import DEFAULT_TABLE_DIR
from app.reporting import load_actions, load_generations
from app.utils_logging import CsvLogSink, GenerationLog, RunState
from env.simulation import Simulation, SimulationConfig


def evaluate(policy="greedy", table_dir=DEFAULT_TABLE_DIR, episodes=20, hierarchical=True,
             seed=0, max_time=1e6, need_rate=1.0, verbose=True):
    """Run `episodes` single-actor lives under `policy` without touching the saved table."""
    with tempfile.TemporaryDirectory() as tmp:
        tmp = Path(tmp)
        config = SimulationConfig(
            n_actors=1, hierarchical=hierarchical, table_dir=Path(table_dir), max_generations=episodes,
            seed=seed, need_rate=need_rate, policy=policy, save_tables=False,
        )
        sink = CsvLogSink(actions_path=tmp / "actions.csv", transitions_path=None)
        sim = Simulation(config, sink=sink, generation_log=GenerationLog(tmp / "generations.csv"),
                         run_state=RunState())
        sim.run(max_time)
        sim.stop(save=False)
        gens = load_generations(tmp / "generations.csv")
        actions = load_actions(tmp / "actions.csv")

    lifetimes = gens["lifetime"].to_numpy() if not gens.empty else np.zeros(0)
    causes = Counter()
    if not gens.empty:
        names = {int(n): n.name.title() for n in NEED_ORDER}
        causes.update(names.get(int(c), "Unknown") for c in gens["cause_of_death"])
    action_counts = Counter()
    if not actions.empty:
        decisions = actions[actions["event"] == "Action"]
        action_counts.update(ActionType(int(a)).name.lower() for a in decisions["action"])

    result = {
        "policy": policy,
        "episodes": int(len(lifetimes)),
        "mean_lifetime": float(np.mean(lifetimes)) if len(lifetimes) else 0.0,
        "std_lifetime": float(np.std(lifetimes)) if len(lifetimes) else 0.0,
        "causes": dict(causes),
        "actions": dict(action_counts),
    }
    if verbose:
        print(f"Policy: {policy} | Episodes: {result['episodes']}")
        print(f"Mean lifetime: {result['mean_lifetime']:.2f}s  Std: {result['std_lifetime']:.2f}s")
        total = sum(action_counts.values())
        if total:
            print("Action distribution (fraction):")
            for name, n in action_counts.most_common():
                print(f"  {name}: {n} ({n / total:.2%})")
        if causes:
            print("Causes of death:", ", ".join(f"{k}={v}" for k, v in causes.most_common()))
    return result


if __name__ == "__main__":
    p = argparse.ArgumentParser()
    p.add_argument("--table-dir", type=str, default=str(DEFAULT_TABLE_DIR))
    p.add_argument("--episodes", type=int, default=50)
    p.add_argument("--flat", action="store_true")
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--need-rate", type=float, default=1.0)
    p.add_argument("--max-time", type=float, default=1e6)
    args = p.parse_args()

    common = dict(table_dir=args.table_dir, episodes=args.episodes, hierarchical=not args.flat, seed=args.seed,
                  max_time=args.max_time, need_rate=args.need_rate)
    learned = evaluate("greedy", **common)
    baseline = evaluate("heuristic", **common)
    print(f"Learned vs baseline mean lifetime: {learned['mean_lifetime']:.2f}s vs {baseline['mean_lifetime']:.2f}s")
