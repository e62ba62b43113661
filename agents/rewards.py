# agents/rewards.py
"""
Reward shaping for the needs learners.

need_reward scores one flat-tier transition from the change in live need
values; macro_action_reward scores a completed (or failed) macro action for
the high-level tier. need_reward_fn and macro_reward_fn wrap them as the
learner's reward_fn(transition) hook. All of them read constants from
a RewardConfig so alternative tunings live side by side as named presets.
"""
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from agents.actions import MacroAction, need_for_macro
from agents.need_state import NEED_ORDER, NeedLevel, NeedState, NeedType, level_midpoint


@dataclass(frozen=True)
class RewardConfig:
    death_penalty: float = -500.0
    improvement_weight: float = 0.8
    satisfied_threshold: float = 90.0
    satisfied_bonus: float = 25.0
    critical_threshold: float = 20.0
    critical_penalty: float = 15.0
    quorum: int = 3
    quorum_bonus: float = 10.0
    step_bonus: float = 2.0
    idle_fraction: float = 0.01
    idle_rate: float = 0.1          # per second, charged between decisions
    # macro tier
    macro_success: float = 100.0
    macro_failure: float = -50.0
    macro_target_threshold: float = 80.0
    macro_target_bonus: float = 50.0
    macro_low_threshold: float = 20.0
    macro_low_penalty: float = 30.0


FLAT_REWARDS = RewardConfig()
# terminal penalty the macro tier has always used
MACRO_REWARDS = replace(FLAT_REWARDS, death_penalty=-1000.0)
REWARD_PRESETS = {"flat": FLAT_REWARDS, "macro": MACRO_REWARDS}

_NEUTRAL = level_midpoint(NeedLevel.MEDIUM)


class IdleAccumulator:
    """Slow per-tick penalty charged while the agent waits between decisions."""

    def __init__(self, rate: float = FLAT_REWARDS.idle_rate):
        self.rate = rate
        self.total = 0.0

    def charge(self, dt: float):
        self.total -= self.rate * dt

    def drain(self) -> float:
        total, self.total = self.total, 0.0
        return total


def need_reward(
    old_state: NeedState,
    new_state: NeedState,
    died: bool,
    live: Mapping[NeedType, float],
    prior: Optional[Mapping[NeedType, float]] = None,
    accumulator: Optional[IdleAccumulator] = None,
    config: RewardConfig = FLAT_REWARDS,
) -> float:
    if died:
        return config.death_penalty

    prior = prior or {}
    reward = 0.0
    improved = 0
    critical = 0
    for need in NEED_ORDER:
        old = prior.get(need)
        if old is None:
            old = level_midpoint(old_state.level(need))
        new = live.get(need)
        if new is None:
            new = level_midpoint(new_state.level(need))

        gain = new - old
        if gain > 0:
            reward += gain * config.improvement_weight
            improved += 1
        if new >= config.satisfied_threshold > old:
            reward += config.satisfied_bonus
        if new <= config.critical_threshold:
            critical += 1

    reward -= config.critical_penalty * critical
    if improved >= config.quorum:
        reward += config.quorum_bonus

    reward += config.step_bonus
    if accumulator is not None:
        reward += accumulator.drain() * config.idle_fraction
    return reward


def macro_action_reward(
    success: bool,
    target: NeedType,
    live: Mapping[NeedType, float],
    config: RewardConfig = MACRO_REWARDS,
) -> float:
    if not success:
        return config.macro_failure
    reward = config.macro_success
    if live.get(target, _NEUTRAL) >= config.macro_target_threshold:
        reward += config.macro_target_bonus
    for need in NEED_ORDER:
        if live.get(need, _NEUTRAL) < config.macro_low_threshold:
            reward -= config.macro_low_penalty
    return reward


def need_reward_fn(config: RewardConfig = FLAT_REWARDS, accumulator: Optional[IdleAccumulator] = None):
    """Adapt need_reward to the learner's reward_fn(transition) hook."""
    def _score(t):
        return need_reward(t.old_state, t.new_state, t.died, t.live or {}, t.prior, accumulator, config)
    return _score


def macro_reward_fn(config: RewardConfig = MACRO_REWARDS):
    """reward_fn for the high-level learner: terminal penalty on death, macro_action_reward otherwise."""
    def _score(t):
        if t.died:
            return config.death_penalty
        return macro_action_reward(t.success, need_for_macro(MacroAction(t.action)), t.live or {}, config)
    return _score
