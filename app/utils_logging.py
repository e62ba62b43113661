# app/utils_logging.py
import csv
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from agents.need_state import NEED_ORDER
from agents.records import DeathRecord, DecisionRecord, TransitionRecord

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = PROJECT_ROOT / "data"
LOG_DIR = DATA_DIR / "logs"
ACTIONS_PATH = LOG_DIR / "QLearning_All.csv"
TRANSITIONS_PATH = LOG_DIR / "transitions.csv"
GENERATIONS_PATH = LOG_DIR / "generations.csv"

NEED_COLUMNS = [n.name.title() for n in NEED_ORDER]
ACTION_HEADER = ["ts", "npc_id", "generation", "tier", "action", "state_key", "reward", "lifetime", "event"] + NEED_COLUMNS
TRANSITION_HEADER = ["tier", "s", "a", "r", "ns", "done"]
GENERATION_HEADER = ["ts", "generation", "npc_id", "lifetime", "cause_of_death", "total_actions", "avg_need_level"]


def _now():
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def _append_row(path: Path, header, row):
    path.parent.mkdir(parents=True, exist_ok=True)
    write_header = not path.exists()
    with open(path, "a", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        if write_header:
            w.writerow(header)
        w.writerow(row)


def _need_cells(needs):
    return [f"{float(needs.get(n, 0.0)):.2f}" for n in NEED_ORDER]


class CsvLogSink:
    """Append-only CSV sink for decision, death and transition records."""

    def __init__(self, actions_path=ACTIONS_PATH, transitions_path=TRANSITIONS_PATH):
        self.actions_path = Path(actions_path)
        self.transitions_path = Path(transitions_path) if transitions_path is not None else None

    def log_decision(self, record: DecisionRecord):
        _append_row(self.actions_path, ACTION_HEADER, [
            _now(), record.npc_id, record.generation, record.tier, int(record.action), record.state_key,
            f"{record.reward:.2f}", f"{record.lifetime:.2f}", "Action",
        ] + _need_cells(record.needs))

    def log_death(self, record: DeathRecord):
        reward = "" if record.reward is None else f"{record.reward:.2f}"
        _append_row(self.actions_path, ACTION_HEADER, [
            _now(), record.npc_id, record.generation, "", -1, "N/A",
            reward, f"{record.lifetime:.2f}", "Death",
        ] + _need_cells(record.needs))

    def log_transition(self, record: TransitionRecord):
        if self.transitions_path is None:
            return
        _append_row(self.transitions_path, TRANSITION_HEADER, [
            record.tier, record.state_key, int(record.action), repr(float(record.reward)),
            record.next_state_key, int(bool(record.done)),
        ])


@dataclass
class GenerationStats:
    generation: int
    npc_id: int
    lifetime: float
    cause_of_death: Optional[int]
    total_actions: int
    avg_need_level: float
    ts: str = field(default_factory=_now)


class GenerationLog:
    """Per-generation stats file plus running totals for the console summary."""

    def __init__(self, path=GENERATIONS_PATH):
        self.path = Path(path)
        self.total_generations = 0
        self.total_lifetime = 0.0
        self.best_lifetime = 0.0
        self.best_generation = 0

    def log(self, stats: GenerationStats):
        cause = -1 if stats.cause_of_death is None else int(stats.cause_of_death)
        _append_row(self.path, GENERATION_HEADER, [
            stats.ts, stats.generation, stats.npc_id, f"{stats.lifetime:.2f}", cause,
            stats.total_actions, f"{stats.avg_need_level:.2f}",
        ])
        self.total_generations += 1
        self.total_lifetime += stats.lifetime
        if stats.lifetime > self.best_lifetime:
            self.best_lifetime = stats.lifetime
            self.best_generation = stats.generation
        logger.info("generation %d (npc %d): lifetime %.2fs, avg %.2fs, best gen %d (%.2fs)",
                    stats.generation, stats.npc_id, stats.lifetime, self.average_lifetime(),
                    self.best_generation, self.best_lifetime)

    def average_lifetime(self):
        return self.total_lifetime / self.total_generations if self.total_generations else 0.0

    def summary(self) -> Dict[str, float]:
        return {
            "total_generations": self.total_generations,
            "average_lifetime": self.average_lifetime(),
            "best_generation": self.best_generation,
            "best_lifetime": self.best_lifetime,
        }

    def last_generation(self) -> int:
        """Highest generation already on disk (0 for a fresh file)."""
        if not self.path.exists():
            return 0
        last = 0
        with open(self.path, "r", newline="", encoding="utf-8") as f:
            for row in csv.DictReader(f):
                try:
                    last = max(last, int(row["generation"]))
                except (KeyError, TypeError, ValueError):
                    continue
        return last


class RunState:
    """
    Counters shared by one simulation run: next generation per npc id.

    A new npc id continues from the last generation found in the generation
    log so separate runs keep counting up.
    """

    def __init__(self, start_generation=0):
        self.start_generation = start_generation
        self.generations: Dict[int, int] = {}
        self.spawned = 0

    @classmethod
    def from_log(cls, generation_log: GenerationLog):
        return cls(start_generation=generation_log.last_generation())

    def next_generation(self, npc_id) -> int:
        if npc_id not in self.generations:
            self.generations[npc_id] = self.start_generation + 1
        else:
            self.generations[npc_id] += 1
        self.spawned += 1
        return self.generations[npc_id]
