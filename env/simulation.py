# env/simulation.py
"""
Headless population runner.

Spawns a fixed number of actors, each with a fresh learner that loads the
shared table on spawn and saves it on death, and respawns them after a short
delay so learning carries across generations.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import numpy as np

from agents.actions import MACRO_TO_ACTION, ActionType, MacroAction
from agents.heuristic import MostCriticalNeedAgent
from agents.hierarchical import Death, FlatController, HierarchicalCoordinator
from agents.persistence import DEFAULT_TABLE_DIR, FLAT_TABLE_FILE, MACRO_TABLE_FILE
from agents.rewards import FLAT_REWARDS, MACRO_REWARDS, IdleAccumulator, RewardConfig, macro_reward_fn, need_reward_fn
from agents.tabular_q import FLAT_PARAMS, MACRO_PARAMS, LearningParams, TabularQAgent
from app.utils_logging import CsvLogSink, GenerationLog, GenerationStats, RunState
from env.actor import Actor, ActorExecutor
from env.clock import Clock
from env.household import Household, HouseholdConfig, NavigationService
from env.needs_env import NeedsModel

logger = logging.getLogger(__name__)

POLICIES = ("learn", "greedy", "heuristic")


@dataclass
class SimulationConfig:
    n_actors: int = 3
    hierarchical: bool = True
    decision_interval: float = 2.0
    respawn_delay: float = 2.0
    need_rate: float = 1.0
    emergency_threshold: Optional[float] = 25.0
    share_tables: bool = True
    merge_on_save: bool = True
    table_dir: Path = DEFAULT_TABLE_DIR
    max_generations: Optional[int] = None
    seed: Optional[int] = None
    params: Optional[LearningParams] = None
    rewards: Optional[RewardConfig] = None
    household: HouseholdConfig = field(default_factory=HouseholdConfig)
    # "learn" explores, "greedy" exploits the loaded table, "heuristic" runs the most-critical-need baseline
    policy: str = "learn"
    save_tables: bool = True

    def __post_init__(self):
        if self.policy not in POLICIES:
            raise ValueError(f"policy must be one of {POLICIES}, got {self.policy!r}")
        if self.decision_interval <= 0:
            raise ValueError("decision_interval must be positive")

    def table_path(self, npc_id):
        name = MACRO_TABLE_FILE if self.hierarchical else FLAT_TABLE_FILE
        if not self.share_tables:
            stem, suffix = name.rsplit(".", 1)
            name = f"{stem}_{npc_id}.{suffix}"
        return Path(self.table_dir) / name


class _Life:
    def __init__(self, actor, executor, controller, timer):
        self.actor = actor
        self.executor = executor
        self.controller = controller
        self.timer = timer


class Simulation:
    def __init__(self, config=None, sink=None, generation_log=None, run_state=None):
        self.config = config or SimulationConfig()
        self.sink = sink if sink is not None else CsvLogSink()
        self.generation_log = generation_log if generation_log is not None else GenerationLog()
        self.run_state = run_state if run_state is not None else RunState.from_log(self.generation_log)
        self.rng = np.random.default_rng(self.config.seed)
        self.clock = Clock()
        self.household = Household(self.config.household)
        self.navigation = NavigationService(self.clock, self.config.household)
        self.lives = {}
        self.running = False
        self.deaths = 0

    # -- lifecycle ---------------------------------------------------------
    def start(self):
        if self.running:
            logger.warning("simulation already running")
            return
        self.running = True
        for npc_id in range(self.config.n_actors):
            self.spawn(npc_id)

    def _build_controller(self, actor, executor):
        cfg = self.config
        common = dict(
            sink=self.sink, table_path=cfg.table_path(actor.npc_id), merge_on_save=cfg.merge_on_save,
            autosave=cfg.save_tables, npc_id=actor.npc_id, generation=actor.generation,
            lifetime_fn=lambda: actor.lifetime,
        )
        # each life gets its own stream so learners stay independent
        rng = np.random.default_rng(self.rng.integers(2 ** 32))
        if cfg.hierarchical:
            rewards = cfg.rewards or MACRO_REWARDS
            learner = TabularQAgent(list(MacroAction), cfg.params or MACRO_PARAMS,
                                    reward_fn=macro_reward_fn(rewards), rng=rng, name="macro")
            chooser = self._chooser(learner, rng, flat=False)
            return HierarchicalCoordinator(learner, actor.needs, executor, rewards=rewards,
                                           emergency_threshold=cfg.emergency_threshold, chooser=chooser, **common)
        rewards = cfg.rewards or FLAT_REWARDS
        accumulator = IdleAccumulator(rewards.idle_rate)
        learner = TabularQAgent(list(ActionType), cfg.params or FLAT_PARAMS, idle_action=ActionType.IDLE,
                                reward_fn=need_reward_fn(rewards, accumulator), rng=rng, name="flat")
        return FlatController(learner, actor.needs, executor, rewards=rewards, accumulator=accumulator,
                              chooser=self._chooser(learner, rng, flat=True), **common)

    def _chooser(self, learner, rng, flat):
        policy = self.config.policy
        if policy == "greedy":
            return lambda state, needs: learner.greedy(state)
        if policy == "heuristic":
            baseline = MostCriticalNeedAgent(eps=0.0, rng=rng)
            if flat:
                return lambda state, needs: MACRO_TO_ACTION[baseline.select(needs)]
            return lambda state, needs: baseline.select(needs)
        return None

    def spawn(self, npc_id):
        if not self.running:
            return None
        cap = self.config.max_generations
        if cap is not None and self.run_state.spawned >= cap:
            return None
        generation = self.run_state.next_generation(npc_id)
        needs = NeedsModel(generation=generation, rate=self.config.need_rate)
        position = self.rng.uniform(-1000.0, 1000.0, size=2)
        actor = Actor(npc_id, generation, needs, position)
        executor = ActorExecutor(actor, self.household, self.navigation, self.clock)
        controller = self._build_controller(actor, executor)
        controller.start()
        timer = self.clock.every(self.config.decision_interval, controller.decide)
        self.lives[npc_id] = _Life(actor, executor, controller, timer)
        logger.info("spawned npc %d (generation %d)", npc_id, generation)
        return actor

    def _advance(self, dt):
        for npc_id, life in list(self.lives.items()):
            if isinstance(life.controller, FlatController):
                life.controller.tick(dt)
            if not life.actor.advance(dt):
                self._on_death(npc_id, life)

    def _on_death(self, npc_id, life):
        life.timer.cancel()
        life.controller.on_transition(Death())
        actor = life.actor
        self.generation_log.log(GenerationStats(
            generation=actor.generation, npc_id=npc_id, lifetime=actor.lifetime,
            cause_of_death=actor.needs.cause_of_death(), total_actions=life.controller.total_actions,
            avg_need_level=actor.needs.average(),
        ))
        del self.lives[npc_id]
        self.deaths += 1
        self.clock.schedule(self.config.respawn_delay, lambda: self.spawn(npc_id))

    def run(self, max_time, chunk=60.0, progress=None):
        """Advance until max_time or until nobody is left to live."""
        if not self.running:
            self.start()
        while self.clock.now < max_time:
            self.clock.run_until(min(self.clock.now + chunk, max_time), on_advance=self._advance)
            if progress is not None:
                progress(self)
            if not self.lives and self.clock.pending() == 0:
                break
        return self.generation_log.summary()

    def stop(self, save=True):
        """End the run; live learners flush their tables unless save is False."""
        self.running = False
        for life in self.lives.values():
            life.timer.cancel()
            life.executor.abandon()
            if save and self.config.save_tables and life.controller.table_path is not None:
                life.controller.learner.save(life.controller.table_path, merge=self.config.merge_on_save)
        self.lives.clear()
        summary = self.generation_log.summary()
        logger.info("simulation stopped: %s", summary)
        return summary
