# env/needs_env.py
import logging

import numpy as np

from agents.need_state import NEED_MAX, NEED_MIN, NEED_ORDER, NeedType
from utils.curriculum import difficulty_multiplier, start_value

logger = logging.getLogger(__name__)


class NeedsModel:
    """
    Live need values for one actor.

    Values decay by rate * dt * difficulty every tick and are clamped to
    [0, 100]. The actor dies the first time any need reaches 0.
    """

    def __init__(self, generation=0, rate=1.0, initial=None):
        self.generation = generation
        self.rate = rate
        self.difficulty = difficulty_multiplier(generation)
        start = start_value(generation)
        self.values = np.full(len(NEED_ORDER), start, dtype=np.float64)
        if initial is not None:
            for need, v in initial.items():
                self.values[int(need)] = v
            np.clip(self.values, NEED_MIN, NEED_MAX, out=self.values)
        self.is_alive = bool(np.all(self.values > NEED_MIN))
        logger.debug("Gen %d: difficulty=%.2fx start=%.1f", generation, self.difficulty, start)

    def value(self, need: NeedType) -> float:
        return float(self.values[int(need)])

    def as_dict(self):
        return {n: float(self.values[int(n)]) for n in NEED_ORDER}

    def tick(self, dt):
        """
        Decay every need by rate * dt * difficulty.

        Returns the part of dt the actor was alive for: dt itself, or the
        moment the lowest need hit 0 when that happened inside the step.
        """
        if not self.is_alive or dt <= 0:
            return 0.0
        step = self.rate * self.difficulty
        lived = dt
        if step > 0:
            lived = min(dt, float(self.values.min() - NEED_MIN) / step)
        self.values -= step * dt
        np.clip(self.values, NEED_MIN, NEED_MAX, out=self.values)
        if np.any(self.values <= NEED_MIN):
            self.is_alive = False
            logger.info("Need %s reached 0 after %.2fs of a %.2fs step", self.cause_of_death().name, lived, dt)
        return lived

    def modify(self, need: NeedType, amount):
        i = int(need)
        self.values[i] = min(NEED_MAX, max(NEED_MIN, self.values[i] + amount))

    def cause_of_death(self):
        empty = np.flatnonzero(self.values <= NEED_MIN)
        return NEED_ORDER[int(empty[0])] if len(empty) else None

    def average(self):
        return float(self.values.mean())
