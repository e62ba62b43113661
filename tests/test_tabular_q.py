import pytest

from agents.actions import ActionType, MacroAction
from agents.need_state import NEED_ORDER, discretize, state_from_key
from agents.persistence import LoadStatus
from agents.rewards import FLAT_REWARDS, need_reward_fn
from agents.tabular_q import FLAT_PARAMS, MACRO_PARAMS, LearningParams, TabularQAgent, Transition


def make_agent(**kwargs):
    params = kwargs.pop("params", LearningParams(learning_rate=0.5, discount=0.9, exploration_rate=0.8,
                                                 exploration_decay=0.5, min_exploration=0.1))
    return TabularQAgent(list(ActionType), params, idle_action=ActionType.IDLE, **kwargs)


class TestParams:
    def test_presets(self):
        assert (FLAT_PARAMS.learning_rate, FLAT_PARAMS.discount, FLAT_PARAMS.min_exploration) == (0.1, 0.9, 0.05)
        assert (MACRO_PARAMS.learning_rate, MACRO_PARAMS.discount, MACRO_PARAMS.min_exploration) == (0.4, 0.95, 0.1)

    @pytest.mark.parametrize("kwargs", [
        {"learning_rate": 0.0},
        {"discount": 1.5},
        {"exploration_rate": -0.1},
        {"exploration_decay": 0.0},
        {"min_exploration": 0.0},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            LearningParams(**kwargs)

    def test_agent_keeps_private_copy(self):
        a = TabularQAgent(list(MacroAction), MACRO_PARAMS)
        a.decay_exploration()
        assert MACRO_PARAMS.exploration_rate == 0.8
        assert a.eps < 0.8


class TestUpdate:
    def test_exact_td_update(self):
        a = make_agent()
        s, ns = "000000", "111111"
        a.q.set(ns, ActionType.USE_BED, 10.0)
        a.q.set(s, ActionType.USE_SHOWER, 2.0)
        new_q = a.update(s, ActionType.USE_SHOWER, 1.0, ns)
        # 2 + 0.5 * (1 + 0.9 * 10 - 2)
        assert new_q == pytest.approx(6.0)
        assert a.q.get(s, ActionType.USE_SHOWER) == pytest.approx(6.0)
        assert a.updates == 1

    def test_epsilon_decays_monotonically_to_floor(self):
        a = make_agent()
        seen = []
        for _ in range(6):
            a.update("000000", ActionType.IDLE, 0.0, "000000")
            seen.append(a.eps)
        assert seen == sorted(seen, reverse=True)
        assert seen[0] == pytest.approx(0.4)
        assert seen[-1] == pytest.approx(0.1)
        assert min(seen) >= 0.1

    def test_transition_without_reward_uses_reward_fn(self):
        a = make_agent(reward_fn=need_reward_fn(FLAT_REWARDS))
        live = {n: 50.0 for n in NEED_ORDER}
        state = discretize(live)
        reward, _ = a.on_transition(Transition(state, ActionType.IDLE, state, died=True, live=live))
        assert reward == FLAT_REWARDS.death_penalty

    def test_transition_without_reward_or_fn_raises(self):
        a = make_agent()
        s = state_from_key("111111")
        with pytest.raises(ValueError):
            a.on_transition(Transition(s, ActionType.IDLE, s))

    def test_explicit_reward_wins(self):
        a = make_agent(reward_fn=lambda t: 99.0)
        s = state_from_key("111111")
        reward, _ = a.on_transition(Transition(s, ActionType.IDLE, s, reward=-1.0))
        assert reward == -1.0


class TestSelect:
    def test_zero_exploration_all_75_picks_idle(self, rng):
        params = LearningParams(exploration_rate=0.0)
        a = TabularQAgent(list(ActionType), params, idle_action=ActionType.IDLE, rng=rng)
        needs = {n: 75.0 for n in NEED_ORDER}
        assert a.select(discretize(needs), needs=needs) == ActionType.IDLE

    def test_prefer_idle_above_threshold(self, scripted_rng):
        a = make_agent(prefer_idle_above=80.0, rng=scripted_rng(randoms=[0.99]))
        a.q.set("222222", ActionType.USE_BED, 5.0)
        needs = {n: 85.0 for n in NEED_ORDER}
        assert a.select("222222", needs=needs) == ActionType.IDLE
        needs[NEED_ORDER[0]] = 79.0
        assert a.select("222222", needs=needs) == ActionType.USE_BED

    def test_partial_needs_never_prefer_idle(self, scripted_rng):
        a = make_agent(prefer_idle_above=80.0, rng=scripted_rng(randoms=[0.99]))
        a.q.set("222222", ActionType.USE_BED, 5.0)
        needs = {n: 95.0 for n in NEED_ORDER[:3]}
        assert a.select("222222", needs=needs) == ActionType.USE_BED

    def test_empty_available_returns_idle(self, rng):
        a = make_agent(rng=rng)
        assert a.select("222222", available=[]) == ActionType.IDLE

    def test_greedy_ignores_epsilon(self):
        a = make_agent()
        a.q.set("000000", ActionType.USE_GYM, 1.0)
        assert a.greedy("000000") == ActionType.USE_GYM

    def test_greedy_with_nothing_available_is_idle(self):
        assert make_agent().greedy("000000", available=[]) == ActionType.IDLE


class TestPersistence:
    def test_save_and_load(self, table_dir):
        path = table_dir / "QTable.json"
        a = make_agent()
        a.update("000000", ActionType.USE_BED, 5.0, "111111")
        a.save(path)

        b = make_agent()
        assert b.load(path) == LoadStatus.OK
        assert b.q == a.q

    def test_load_missing_file_starts_empty(self, table_dir):
        a = make_agent()
        a.q.set("000000", 1, 1.0)
        assert a.load(table_dir / "nope.json") == LoadStatus.NOT_FOUND
        assert len(a.q) == 0

    def test_merge_save_adopts_merged_table(self, table_dir):
        path = table_dir / "shared.json"
        first = make_agent()
        first.q.set("000000", 1, 1.0)
        first.q.set("000000", 1, 2.0)
        first.save(path)

        second = make_agent()
        second.q.set("222222", 3, 7.0)
        second.save(path, merge=True)
        assert second.q.get("000000", 1) == 2.0
        assert second.q.get("222222", 3) == 7.0

    def test_snapshot(self):
        snap = make_agent(name="flat").snapshot()
        assert snap["name"] == "flat"
        assert snap["states"] == 0
