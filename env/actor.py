# env/actor.py
import logging

import numpy as np

from agents.actions import ActionType

logger = logging.getLogger(__name__)


class Actor:
    def __init__(self, npc_id, generation, needs, position=(0.0, 0.0)):
        self.npc_id = npc_id
        self.generation = generation
        self.needs = needs
        self.position = np.asarray(position, dtype=np.float64)
        self.lifetime = 0.0
        self.name = f"npc{npc_id}_gen{generation}"

    def advance(self, dt):
        """Decay needs and age the actor by the time it lived; returns False once it has died."""
        if not self.needs.is_alive:
            return False
        self.lifetime += self.needs.tick(dt)
        return self.needs.is_alive


class ActorExecutor:
    """
    Carries out one concrete action for an actor: walk to the nearest free
    object of that kind, use it, report success or failure once.
    """

    def __init__(self, actor, household, navigation, clock):
        self.actor = actor
        self.household = household
        self.navigation = navigation
        self.clock = clock
        self.target = None
        self._move = None

    def available_actions(self):
        present = {o.action for o in self.household.objects}
        return [ActionType.IDLE] + [a for a in ActionType if a in present]

    def execute(self, action, on_done):
        if action == ActionType.IDLE:
            self.clock.schedule(0.0, lambda: on_done(True))
            return
        found = self.household.candidates(action, self.actor.position)
        if not found:
            logger.debug("%s: no free object for %s", self.actor.name, action.name)
            on_done(False)
            return
        self.target = found[0]

        def _arrived(ok):
            self._move = None
            target = self.target
            if not ok or target is None or not target.can_interact():
                logger.debug("%s: could not use %s", self.actor.name, getattr(target, "name", None))
                self.target = None
                on_done(False)
                return
            target.start_interaction(self.actor, self.clock, _finished)

        def _finished(user):
            if user is not self.actor:
                return
            self.target = None
            on_done(True)

        self._move = self.navigation.move_to(self.actor, self.target, _arrived)

    def abandon(self):
        if self._move is not None:
            self._move.cancel()
            self._move = None
        if self.target is not None:
            self.target.release(self.actor)
            self.target = None
