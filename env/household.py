# env/household.py
"""
Interactable objects and a straight-line navigation service.

Both report completion through callbacks scheduled on the Clock; nothing
waits on a result.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np

from agents.actions import ActionType
from agents.need_state import NeedType

logger = logging.getLogger(__name__)

H, B, E, S, Y, F = (NeedType.HUNGER, NeedType.BLADDER, NeedType.ENERGY,
                    NeedType.SOCIAL, NeedType.HYGIENE, NeedType.FUN)


@dataclass
class ObjectSpec:
    action: ActionType
    position: Tuple[float, float]
    modifiers: Dict[NeedType, float]
    duration: float = 10.0


DEFAULT_LAYOUT: List[ObjectSpec] = [
    ObjectSpec(ActionType.USE_REFRIGERATOR, (400.0, 0.0), {H: 45.0, B: -10.0}),
    ObjectSpec(ActionType.USE_TOILET, (-400.0, 300.0), {B: 70.0, Y: -5.0}),
    ObjectSpec(ActionType.USE_BED, (-600.0, -500.0), {E: 60.0}, duration=20.0),
    ObjectSpec(ActionType.USE_SOFA, (0.0, 500.0), {S: 35.0, E: 10.0}),
    ObjectSpec(ActionType.USE_SHOWER, (-500.0, 500.0), {Y: 60.0}),
    ObjectSpec(ActionType.USE_TELEVISION, (100.0, 600.0), {F: 40.0, E: -5.0}),
    ObjectSpec(ActionType.USE_COMPUTER, (600.0, 400.0), {F: 25.0, S: 15.0, E: -5.0}),
    ObjectSpec(ActionType.USE_PHONE, (200.0, -300.0), {S: 40.0}, duration=5.0),
    ObjectSpec(ActionType.USE_SINK, (-300.0, 100.0), {Y: 25.0}, duration=5.0),
    ObjectSpec(ActionType.USE_BOOKSHELF, (500.0, -400.0), {F: 25.0}),
    ObjectSpec(ActionType.USE_GYM, (-700.0, 0.0), {F: 20.0, E: -15.0, Y: -10.0}),
]


class InteractableObject:
    def __init__(self, spec: ObjectSpec, name=None):
        self.action = spec.action
        self.position = np.asarray(spec.position, dtype=np.float64)
        self.modifiers = dict(spec.modifiers)
        self.duration = spec.duration
        self.name = name or spec.action.name.lower()
        self.occupied = False
        self.current_user = None
        self._timer = None

    def can_interact(self):
        return not self.occupied

    def start_interaction(self, user, clock, on_complete):
        """Occupy the object; after duration apply modifiers and call on_complete(user)."""
        if self.occupied or user is None:
            logger.debug("%s busy, refusing %s", self.name, getattr(user, "name", user))
            return False
        self.occupied = True
        self.current_user = user

        def _finish():
            self._timer = None
            done_user = self.current_user
            if done_user is not None and done_user.needs.is_alive:
                for need, amount in self.modifiers.items():
                    done_user.needs.modify(need, amount)
            self.current_user = None
            self.occupied = False
            on_complete(done_user)

        self._timer = clock.schedule(self.duration, _finish)
        return True

    def release(self, user):
        """Drop an interaction without applying its effects (user died)."""
        if self.current_user is user:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self.current_user = None
            self.occupied = False


@dataclass
class HouseholdConfig:
    layout: List[ObjectSpec] = field(default_factory=lambda: list(DEFAULT_LAYOUT))
    walk_speed: float = 600.0
    acceptance_radius: float = 150.0
    max_reach: float = 300.0


class Household:
    def __init__(self, config=None):
        self.config = config or HouseholdConfig()
        self.objects = [InteractableObject(spec, name=f"{spec.action.name.lower()}_{i}")
                        for i, spec in enumerate(self.config.layout)]

    def candidates(self, action, position):
        """Free objects for action, nearest first."""
        position = np.asarray(position, dtype=np.float64)
        found = [o for o in self.objects if o.action == action and o.can_interact()]
        found.sort(key=lambda o: float(np.linalg.norm(o.position - position)))
        return found


class NavigationService:
    """Moves an actor in a straight line; success means it ended within reach."""

    def __init__(self, clock, config=None):
        self.clock = clock
        self.config = config or HouseholdConfig()

    def move_to(self, actor, target, on_done):
        distance = float(np.linalg.norm(target.position - actor.position))
        travel = max(0.0, distance - self.config.acceptance_radius) / self.config.walk_speed

        def _arrive():
            if not actor.needs.is_alive:
                return
            direction = target.position - actor.position
            norm = float(np.linalg.norm(direction))
            if norm > self.config.acceptance_radius:
                actor.position = target.position - direction / norm * self.config.acceptance_radius
            remaining = float(np.linalg.norm(target.position - actor.position))
            on_done(remaining <= self.config.max_reach)

        return self.clock.schedule(travel, _arrive)
