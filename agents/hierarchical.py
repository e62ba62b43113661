# agents/hierarchical.py
"""
Decision loops that sit between a learner and the simulated world.

HierarchicalCoordinator drives the high-level learner: it picks a need to
pursue, hands the matching concrete action to an executor, and learns from
the outcome. FlatController drives a single learner over concrete actions.
Both keep a busy flag so a decision request that arrives while an action is
still in flight is dropped, and both take events through on_transition()
rather than subscribing to anything.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol, Sequence

from agents.actions import MACRO_TO_ACTION, ActionType, MacroAction, macro_for_need
from agents.need_state import NEED_ORDER, NeedState, NeedType, discretize
from agents.records import DeathRecord, DecisionRecord, NullSink, TransitionRecord
from agents.rewards import FLAT_REWARDS, MACRO_REWARDS, IdleAccumulator, RewardConfig, macro_reward_fn, need_reward_fn
from agents.tabular_q import TabularQAgent, Transition

logger = logging.getLogger(__name__)


class NeedProvider(Protocol):
    is_alive: bool

    def value(self, need: NeedType) -> float: ...

    def as_dict(self) -> Dict[NeedType, float]: ...


class ActionExecutor(Protocol):
    def execute(self, action: ActionType, on_done: Callable[[bool], None]) -> None: ...

    def abandon(self) -> None: ...

    def available_actions(self) -> Sequence[ActionType]: ...


@dataclass
class ActionOutcome:
    success: bool


@dataclass
class Death:
    pass


class _DecisionLoop:
    """
    Shared plumbing for both tiers.

    Rewards come from the learner's reward_fn; a learner built without one
    gets the tier's default from _default_reward_fn().
    """
    tier = "flat"

    def __init__(self, learner: TabularQAgent, needs: NeedProvider, executor: ActionExecutor,
                 rewards: RewardConfig = FLAT_REWARDS, sink=None, table_path=None, merge_on_save=False,
                 autosave=True, chooser=None, npc_id=0, generation=0,
                 lifetime_fn: Optional[Callable[[], float]] = None):
        self.learner = learner
        self.needs = needs
        self.executor = executor
        self.rewards = rewards
        self.sink = sink if sink is not None else NullSink()
        self.table_path = table_path
        self.merge_on_save = merge_on_save
        self.autosave = autosave
        # chooser(state, needs) replaces the learner's epsilon-greedy pick (evaluation, baselines)
        self.chooser = chooser
        self.npc_id = npc_id
        self.generation = generation
        self.lifetime_fn = lifetime_fn or (lambda: 0.0)
        self.busy = False
        self.finished = False
        self.total_actions = 0
        self.state_before: Optional[NeedState] = None
        self.pending_action = None
        self.prior: Optional[Dict[NeedType, float]] = None
        if self.learner.reward_fn is None:
            self.learner.reward_fn = self._default_reward_fn()

    def _default_reward_fn(self):
        return need_reward_fn(self.rewards)

    def current_state(self) -> NeedState:
        return discretize(self.needs.as_dict())

    def start(self):
        """Load the persisted table (if any) before the first decision."""
        if self.table_path is not None:
            status = self.learner.load(self.table_path)
            logger.info("npc %d gen %d: %s table load %s", self.npc_id, self.generation, self.tier, status.value)

    def _learn(self, success=True, died=False) -> float:
        new_state = self.current_state()
        reward, _ = self.learner.on_transition(Transition(
            old_state=self.state_before, action=self.pending_action, new_state=new_state,
            died=died, live=self.needs.as_dict(), prior=self.prior, success=success,
        ))
        self.sink.log_transition(TransitionRecord(self.tier, self.state_before.key, int(self.pending_action),
                                                  reward, new_state.key, died))
        return reward

    def _log_decision(self, action, reward):
        self.sink.log_decision(DecisionRecord(
            npc_id=self.npc_id, generation=self.generation, action=int(action),
            state_key=self.state_before.key, reward=reward, lifetime=self.lifetime_fn(),
            needs=self.needs.as_dict(), tier=self.tier,
        ))

    def _choose(self, state, available, needs=None):
        if self.chooser is not None:
            return self.chooser(state, needs if needs is not None else self.needs.as_dict())
        return self.learner.select(state, available, needs)

    def _has_pending(self) -> bool:
        return self.busy

    def on_transition(self, event):
        if self.finished:
            return
        if isinstance(event, ActionOutcome):
            self._on_outcome(event.success)
        elif isinstance(event, Death):
            self._on_death()
        else:
            raise TypeError(f"unknown event {event!r}")

    def _on_death(self):
        penalty = None
        if self._has_pending():
            self.executor.abandon()
            penalty = self._learn(died=True)
        self.busy = False
        self.finished = True
        needs = self.needs.as_dict()
        cause = next((n for n in NEED_ORDER if needs.get(n, 1.0) <= 0.0), None)
        self.sink.log_death(DeathRecord(
            npc_id=self.npc_id, generation=self.generation, lifetime=self.lifetime_fn(),
            needs=needs, cause=cause, reward=penalty, total_actions=self.total_actions,
        ))
        if self.table_path is not None and self.autosave:
            self.learner.save(self.table_path, merge=self.merge_on_save)
        logger.info("npc %d gen %d died after %.1fs (%d actions) %s",
                    self.npc_id, self.generation, self.lifetime_fn(), self.total_actions, self.learner.snapshot())


class HierarchicalCoordinator(_DecisionLoop):
    tier = "macro"

    def __init__(self, learner: TabularQAgent, needs: NeedProvider, executor: ActionExecutor,
                 rewards: RewardConfig = MACRO_REWARDS, emergency_threshold: Optional[float] = 25.0, **kwargs):
        super().__init__(learner, needs, executor, rewards=rewards, **kwargs)
        self.emergency_threshold = emergency_threshold
        self.forced = False

    def _default_reward_fn(self):
        return macro_reward_fn(self.rewards)

    def emergency_need(self) -> Optional[NeedType]:
        if self.emergency_threshold is None:
            return None
        lowest, lowest_value = None, self.emergency_threshold
        for need in NEED_ORDER:
            v = self.needs.value(need)
            if v < lowest_value:
                lowest, lowest_value = need, v
        return lowest

    def decide(self) -> Optional[MacroAction]:
        if self.busy or self.finished or not self.needs.is_alive:
            return None
        self.state_before = self.current_state()
        urgent = self.emergency_need()
        if urgent is not None:
            macro = macro_for_need(urgent)
            self.forced = True
            logger.debug("npc %d emergency: %s=%.1f", self.npc_id, urgent.name, self.needs.value(urgent))
        else:
            macro = self._choose(self.state_before, None)
            self.forced = False
        if macro is None:
            return None
        self.pending_action = MacroAction(macro)
        self.busy = True
        self.executor.execute(MACRO_TO_ACTION[self.pending_action],
                              lambda ok: self.on_transition(ActionOutcome(ok)))
        return self.pending_action

    def _on_outcome(self, success):
        if not self.busy:
            logger.debug("npc %d: stale outcome ignored", self.npc_id)
            return
        reward = self._learn(success)
        if success:
            self.total_actions += 1
            self._log_decision(MACRO_TO_ACTION[self.pending_action], reward)
        self.busy = False


class FlatController(_DecisionLoop):
    """
    Single-tier loop over concrete actions.

    Idle does not occupy the actor: its transition stays pending and is
    scored at the next decision, so the idle stretch is what gets judged.
    """
    tier = "flat"

    def __init__(self, learner: TabularQAgent, needs: NeedProvider, executor: ActionExecutor,
                 rewards: RewardConfig = FLAT_REWARDS, accumulator: Optional[IdleAccumulator] = None, **kwargs):
        # the default reward_fn drains this accumulator, so it exists before the base init
        self.accumulator = accumulator if accumulator is not None else IdleAccumulator(rewards.idle_rate)
        self.idle_pending = False
        super().__init__(learner, needs, executor, rewards=rewards, **kwargs)

    def _default_reward_fn(self):
        return need_reward_fn(self.rewards, self.accumulator)

    def tick(self, dt):
        if self.needs.is_alive and not self.finished:
            self.accumulator.charge(dt)

    def _has_pending(self):
        return self.busy or self.idle_pending

    def decide(self) -> Optional[ActionType]:
        if self.busy or self.finished or not self.needs.is_alive:
            return None
        if self.idle_pending:
            self._settle(True)
        self.state_before = self.current_state()
        self.prior = self.needs.as_dict()
        action = self._choose(self.state_before, self.executor.available_actions(), self.prior)
        if action is None:
            return None
        self.pending_action = ActionType(action)
        if self.pending_action == ActionType.IDLE:
            self.idle_pending = True
            return self.pending_action
        self.busy = True
        self.executor.execute(self.pending_action, lambda ok: self.on_transition(ActionOutcome(ok)))
        return self.pending_action

    def _settle(self, success):
        reward = self._learn(success)
        if success:
            self.total_actions += 1
        self._log_decision(self.pending_action, reward)
        self.idle_pending = False
        self.busy = False

    def _on_outcome(self, success):
        if not self.busy:
            logger.debug("npc %d: stale outcome ignored", self.npc_id)
            return
        self._settle(success)
