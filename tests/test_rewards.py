import pytest

from agents.actions import ActionType, MacroAction
from agents.need_state import NEED_ORDER, NeedType, discretize
from agents.rewards import (FLAT_REWARDS, MACRO_REWARDS, REWARD_PRESETS, IdleAccumulator, macro_action_reward,
                            macro_reward_fn, need_reward, need_reward_fn)
from agents.tabular_q import Transition


def vec(value, **overrides):
    out = {n: float(value) for n in NEED_ORDER}
    for need in NEED_ORDER:
        if need.name.lower() in overrides:
            out[need] = float(overrides[need.name.lower()])
    return out


class TestNeedReward:
    def test_death_penalty_ignores_needs(self):
        for live in (vec(0), vec(50), vec(100)):
            s = discretize(live)
            assert need_reward(s, s, True, live, prior=vec(10)) == FLAT_REWARDS.death_penalty

    def test_broad_improvement_earns_quorum_bonus(self):
        prior, live = vec(50), vec(60)
        r = need_reward(discretize(prior), discretize(live), False, live, prior)
        # 6 * 10 * 0.8 + 10 + 2
        assert r == pytest.approx(60.0)

    def test_crossing_satisfied_threshold(self):
        prior, live = vec(50, hunger=85), vec(50, hunger=95)
        r = need_reward(discretize(prior), discretize(live), False, live, prior)
        assert r == pytest.approx(8.0 + 25.0 + 2.0)

    def test_already_satisfied_earns_no_bonus(self):
        prior, live = vec(50, hunger=92), vec(50, hunger=95)
        r = need_reward(discretize(prior), discretize(live), False, live, prior)
        assert r == pytest.approx(3 * 0.8 + 2.0)

    def test_critical_needs_are_penalized(self):
        prior, live = vec(50, bladder=15, fun=20), vec(50, bladder=15, fun=20)
        r = need_reward(discretize(prior), discretize(live), False, live, prior)
        assert r == pytest.approx(2.0 - 2 * 15.0)

    def test_missing_prior_uses_level_midpoint(self):
        live = vec(55)
        s = discretize(live)
        assert need_reward(s, s, False, live) == pytest.approx(2.0)

    def test_idle_accumulator_drained_into_reward(self):
        acc = IdleAccumulator(rate=0.1)
        acc.charge(10.0)
        live = vec(55)
        s = discretize(live)
        r = need_reward(s, s, False, live, prior=live, accumulator=acc)
        assert r == pytest.approx(2.0 - 0.01)
        assert acc.total == 0.0


class TestMacroReward:
    def test_failure(self):
        assert macro_action_reward(False, NeedType.HUNGER, vec(90)) == -50.0

    def test_success_with_target_bonus(self):
        assert macro_action_reward(True, NeedType.HUNGER, vec(60, hunger=85)) == 150.0

    def test_success_below_target_threshold(self):
        assert macro_action_reward(True, NeedType.HUNGER, vec(60, hunger=70)) == 100.0

    def test_low_needs_cost_each(self):
        live = vec(60, hunger=85, energy=10, social=5)
        assert macro_action_reward(True, NeedType.HUNGER, live) == 150.0 - 60.0

    def test_missing_needs_are_neutral(self):
        assert macro_action_reward(True, NeedType.FUN, {}) == 100.0


class TestPresets:
    def test_macro_differs_only_in_death_penalty(self):
        assert MACRO_REWARDS.death_penalty == -1000.0
        assert FLAT_REWARDS.death_penalty == -500.0
        assert MACRO_REWARDS.macro_success == FLAT_REWARDS.macro_success
        assert set(REWARD_PRESETS) == {"flat", "macro"}

    def test_accumulator_drain_resets(self):
        acc = IdleAccumulator(rate=0.5)
        acc.charge(2.0)
        assert acc.drain() == -1.0
        assert acc.drain() == 0.0


class TestRewardFunctions:
    def test_macro_fn_scores_target_of_the_action(self):
        score = macro_reward_fn(MACRO_REWARDS)
        live = vec(50, fun=85)
        s = discretize(live)
        assert score(Transition(s, MacroAction.SATISFY_FUN, s, live=live)) == 150.0
        assert score(Transition(s, MacroAction.SATISFY_HUNGER, s, live=live)) == 100.0
        assert score(Transition(s, MacroAction.SATISFY_FUN, s, live=live, success=False)) == -50.0

    def test_macro_fn_death_uses_configured_penalty(self):
        score = macro_reward_fn(FLAT_REWARDS)
        s = discretize(vec(50))
        assert score(Transition(s, MacroAction.SATISFY_FUN, s, died=True, live=vec(0))) == -500.0

    def test_need_fn_drains_its_accumulator(self):
        acc = IdleAccumulator(rate=1.0)
        acc.charge(10.0)
        score = need_reward_fn(FLAT_REWARDS, acc)
        live = vec(50)
        s = discretize(live)
        # step bonus minus 10 * 0.01
        assert score(Transition(s, ActionType.IDLE, s, live=live, prior=live)) == pytest.approx(1.9)
        assert acc.total == 0.0
