# experiments/train_population.py
"""
Headless training run: a small population lives, dies and respawns while the
shared Q-table is loaded on every spawn and merged back on every death.

    python -m experiments.train_population --generations 200 --actors 3
"""
import argparse
import logging
from pathlib import Path

from tqdm import tqdm

from agents.persistence import DEFAULT_TABLE_DIR
from agents.rewards import REWARD_PRESETS
from app.reporting import write_run_report
from app.utils_logging import ACTIONS_PATH, GENERATIONS_PATH, TRANSITIONS_PATH, CsvLogSink, GenerationLog
from env.simulation import POLICIES, Simulation, SimulationConfig


def build_simulation(args):
    config = SimulationConfig(
        n_actors=args.actors,
        hierarchical=not args.flat,
        decision_interval=args.decision_interval,
        need_rate=args.need_rate,
        share_tables=not args.per_npc_tables,
        merge_on_save=not args.no_merge,
        table_dir=Path(args.table_dir),
        max_generations=args.generations,
        seed=args.seed,
        policy=args.policy,
        rewards=REWARD_PRESETS[args.rewards] if args.rewards else None,
    )
    log_dir = Path(args.log_dir) if args.log_dir else None
    sink = CsvLogSink(
        actions_path=log_dir / ACTIONS_PATH.name if log_dir else ACTIONS_PATH,
        transitions_path=log_dir / TRANSITIONS_PATH.name if log_dir else TRANSITIONS_PATH,
    )
    gen_log = GenerationLog(log_dir / GENERATIONS_PATH.name if log_dir else GENERATIONS_PATH)
    return Simulation(config, sink=sink, generation_log=gen_log)


def train(sim, max_time, chunk=60.0):
    bar = tqdm(total=sim.config.max_generations, desc="generations", unit="gen")

    def _progress(s):
        bar.n = s.deaths
        bar.set_postfix(avg=f"{s.generation_log.average_lifetime():.1f}s", t=f"{s.clock.now:.0f}")
        bar.refresh()

    try:
        sim.run(max_time, chunk=chunk, progress=_progress)
    finally:
        bar.close()
    return sim.stop(save=True)


def main(argv=None):
    p = argparse.ArgumentParser(description="Train the needs Q-learner on a simulated population")
    p.add_argument("--generations", type=int, default=100, help="stop spawning after this many lives")
    p.add_argument("--actors", type=int, default=3)
    p.add_argument("--max-time", type=float, default=1e6, help="simulated seconds")
    p.add_argument("--flat", action="store_true", help="single-tier learner over concrete actions")
    p.add_argument("--policy", choices=POLICIES, default="learn")
    p.add_argument("--rewards", choices=sorted(REWARD_PRESETS), default=None,
                   help="reward preset for every tier; by default each tier uses its own")
    p.add_argument("--decision-interval", type=float, default=2.0)
    p.add_argument("--need-rate", type=float, default=1.0)
    p.add_argument("--per-npc-tables", action="store_true")
    p.add_argument("--no-merge", action="store_true", help="last writer wins instead of merging on save")
    p.add_argument("--table-dir", type=str, default=str(DEFAULT_TABLE_DIR))
    p.add_argument("--log-dir", type=str, default=None)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--report", action="store_true", help="write summary CSV and lifetime plot afterwards")
    p.add_argument("-v", "--verbose", action="store_true")
    args = p.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    sim = build_simulation(args)
    summary = train(sim, args.max_time)
    print(f"Generations: {summary['total_generations']}  "
          f"avg lifetime: {summary['average_lifetime']:.2f}s  "
          f"best: gen {summary['best_generation']} ({summary['best_lifetime']:.2f}s)")
    if args.report and summary["total_generations"]:
        out = write_run_report(sim.generation_log.path)
        print("Report written to", out["summary"].parent)
    return summary


if __name__ == "__main__":
    main()
