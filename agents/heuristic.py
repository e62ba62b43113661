# agents/heuristic.py
import numpy as np

from agents.actions import MacroAction, macro_for_need
from agents.need_state import NEED_ORDER


class MostCriticalNeedAgent:
    """Baseline: go after the lowest need, with a little random wandering."""

    def __init__(self, eps=0.1, rng=None):
        self.eps = eps
        self.rng = rng if rng is not None else np.random.default_rng()

    def select(self, needs):
        if self.rng.random() < self.eps:
            return MacroAction(int(self.rng.integers(len(MacroAction))))
        # ties go to the earlier need
        lowest = min(NEED_ORDER, key=lambda n: needs.get(n, 100.0))
        return macro_for_need(lowest)
