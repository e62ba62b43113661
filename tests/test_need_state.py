import pytest

from agents.need_state import (NEED_ORDER, NeedLevel, NeedState, NeedType, all_needs_high, discretize,
                               level_for_value, level_midpoint, state_from_key)


class TestLevels:
    @pytest.mark.parametrize("value,level", [
        (0.0, NeedLevel.CRITICAL),
        (40.0, NeedLevel.CRITICAL),
        (40.01, NeedLevel.MEDIUM),
        (70.0, NeedLevel.MEDIUM),
        (70.5, NeedLevel.HIGH),
        (100.0, NeedLevel.HIGH),
        (-5.0, NeedLevel.CRITICAL),
        (150.0, NeedLevel.HIGH),
    ])
    def test_boundaries(self, value, level):
        assert level_for_value(value) == level

    def test_midpoints(self):
        assert level_midpoint(NeedLevel.CRITICAL) == 20.0
        assert level_midpoint(NeedLevel.MEDIUM) == 55.0
        assert level_midpoint(NeedLevel.HIGH) == 85.0


class TestDiscretize:
    def test_key_has_one_digit_per_need(self):
        state = discretize({n: 10.0 * (i + 1) for i, n in enumerate(NEED_ORDER)})
        assert len(state.key) == len(NEED_ORDER) == 6
        assert state.key.isdigit()

    def test_all_75_is_all_high(self):
        needs = {n: 75.0 for n in NEED_ORDER}
        assert discretize(needs).key == "222222"
        assert all_needs_high(needs)

    def test_all_30_ignores_insertion_order(self):
        forward = {n: 30.0 for n in NEED_ORDER}
        backward = {n: 30.0 for n in reversed(NEED_ORDER)}
        assert discretize(forward).key == "000000"
        assert discretize(backward).key == "000000"

    def test_key_follows_need_order(self):
        needs = {n: 75.0 for n in NEED_ORDER}
        needs[NeedType.ENERGY] = 10.0
        assert discretize(needs).key == "220222"

    def test_missing_need_counts_as_medium(self):
        needs = {n: 90.0 for n in NEED_ORDER if n != NeedType.FUN}
        assert discretize(needs).key == "222221"

    def test_level_lookup(self):
        state = state_from_key("012012")
        assert state.level(NeedType.BLADDER) == NeedLevel.MEDIUM
        assert state.level(NeedType.HYGIENE) == NeedLevel.MEDIUM
        assert str(state) == "012012"


class TestStateKeys:
    def test_round_trip_from_key(self):
        state = NeedState((NeedLevel.HIGH,) * 6)
        assert state_from_key(state.key) == state

    @pytest.mark.parametrize("key", ["", "22222", "2222222", "22a222"])
    def test_malformed_keys_rejected(self, key):
        with pytest.raises(ValueError):
            state_from_key(key)

    def test_wrong_length_rejected(self):
        with pytest.raises(ValueError):
            NeedState((NeedLevel.HIGH,) * 3)


class TestAllNeedsHigh:
    def test_threshold_is_strict(self):
        assert not all_needs_high({n: 70.0 for n in NEED_ORDER})

    def test_missing_need_fails(self):
        needs = {n: 95.0 for n in NEED_ORDER}
        del needs[NeedType.SOCIAL]
        assert not all_needs_high(needs)
