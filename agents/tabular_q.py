# agents/tabular_q.py
import logging
from dataclasses import dataclass, replace
from typing import Callable, Mapping, Optional, Sequence

import numpy as np

from agents.need_state import NeedState, NeedType, all_needs_high
from agents.persistence import LoadStatus, load_table, save_table, save_table_merged
from agents.policy import choose_action, greedy_action
from agents.q_table import QTable

logger = logging.getLogger(__name__)


@dataclass
class LearningParams:
    learning_rate: float = 0.1
    discount: float = 0.9
    exploration_rate: float = 0.8
    exploration_decay: float = 0.998
    min_exploration: float = 0.05

    def __post_init__(self):
        if not 0.0 < self.learning_rate <= 1.0:
            raise ValueError(f"learning_rate must be in (0, 1], got {self.learning_rate}")
        if not 0.0 <= self.discount <= 1.0:
            raise ValueError(f"discount must be in [0, 1], got {self.discount}")
        if not 0.0 < self.exploration_decay <= 1.0:
            raise ValueError(f"exploration_decay must be in (0, 1], got {self.exploration_decay}")
        if not 0.0 < self.min_exploration <= 1.0:
            raise ValueError(f"min_exploration must be in (0, 1], got {self.min_exploration}")
        if not 0.0 <= self.exploration_rate <= 1.0:
            raise ValueError(f"exploration_rate must be in [0, 1], got {self.exploration_rate}")


FLAT_PARAMS = LearningParams()
MACRO_PARAMS = LearningParams(learning_rate=0.4, discount=0.95, min_exploration=0.1)


@dataclass
class Transition:
    old_state: NeedState
    action: int
    new_state: NeedState
    reward: Optional[float] = None
    died: bool = False
    live: Optional[Mapping[NeedType, float]] = None
    prior: Optional[Mapping[NeedType, float]] = None
    success: bool = True


class TabularQAgent:
    """
    One-step tabular Q-learner over a closed action enum.

    The same class backs the flat learner (ActionType) and the high-level
    learner (MacroAction); only the enum, the idle action and the reward
    function differ.
    """

    def __init__(
        self,
        actions,
        params: Optional[LearningParams] = None,
        idle_action=None,
        reward_fn: Optional[Callable[[Transition], float]] = None,
        rng: Optional[np.random.Generator] = None,
        prefer_idle_above: Optional[float] = None,
        table: Optional[QTable] = None,
        name: str = "q",
    ):
        self.actions = list(actions)
        # private copy: epsilon decays per learner
        self.params = replace(params or FLAT_PARAMS)
        self.idle_action = idle_action
        self.reward_fn = reward_fn
        self.rng = rng if rng is not None else np.random.default_rng()
        self.prefer_idle_above = prefer_idle_above
        self.q = table if table is not None else QTable()
        self.name = name
        self.updates = 0

    @property
    def eps(self):
        return self.params.exploration_rate

    def select(self, state, available: Optional[Sequence] = None, needs: Optional[Mapping[NeedType, float]] = None):
        if available is None:
            available = self.actions
        if (self.prefer_idle_above is not None and needs is not None and self.idle_action is not None
                and all_needs_high(needs, self.prefer_idle_above)):
            return self.idle_action
        return choose_action(self.q, state, available, self.eps, self.rng, self.idle_action)

    def greedy(self, state, available: Optional[Sequence] = None):
        if available is None:
            available = self.actions
        return greedy_action(self.q, state, available, self.idle_action)

    def update(self, s, a, r, ns):
        current = self.q.get(s, a)
        best_next = self.q.max_over(ns, self.actions)
        td = r + self.params.discount * best_next - current
        new_q = current + self.params.learning_rate * td
        self.q.set(s, a, new_q)
        self.decay_exploration()
        self.updates += 1
        logger.debug("[%s] Q-update %s a=%d r=%.2f %.3f -> %.3f eps=%.3f",
                     self.name, s, int(a), r, current, new_q, self.eps)
        return new_q

    def decay_exploration(self):
        p = self.params
        p.exploration_rate = max(p.exploration_rate * p.exploration_decay, p.min_exploration)

    def on_transition(self, t: Transition):
        reward = t.reward
        if reward is None:
            if self.reward_fn is None:
                raise ValueError("transition carries no reward and the agent has no reward_fn")
            reward = self.reward_fn(t)
        new_q = self.update(t.old_state, t.action, reward, t.new_state)
        return reward, new_q

    def load(self, path) -> LoadStatus:
        result = load_table(path)
        self.q.replace_with(result.table)
        return result.status

    def save(self, path, merge: bool = False):
        if merge:
            merged = save_table_merged(self.q, path)
            self.q.replace_with(merged)
        else:
            save_table(self.q, path)

    def snapshot(self):
        return {
            "name": self.name,
            "states": len(self.q),
            "updates": self.updates,
            "exploration_rate": self.eps,
        }
