from agents.actions import ActionType, MacroAction
from agents.need_state import state_from_key
from agents.q_table import QTable, QValue


class TestReads:
    def test_absent_entries_read_zero(self):
        t = QTable()
        assert t.get("222222", ActionType.USE_BED) == 0.0
        assert t.entry("222222", 3) is None

    def test_state_object_and_key_are_interchangeable(self):
        t = QTable()
        state = state_from_key("012012")
        t.set(state, MacroAction.SATISFY_FUN, 4.5)
        assert t.get("012012", 5) == 4.5
        assert state in t

    def test_max_over_empty_actions_is_zero(self):
        t = QTable()
        t.set("000000", 1, -3.0)
        assert t.max_over("000000", []) == 0.0

    def test_max_over_keeps_negative_values(self):
        t = QTable()
        t.set("000000", 1, -3.0)
        t.set("000000", 2, -1.0)
        assert t.max_over("000000", [1, 2]) == -1.0


class TestWrites:
    def test_insert_starts_visits_at_zero(self):
        t = QTable()
        t.set("111111", 2, 1.0)
        assert t.entry("111111", 2) == QValue(1.0, 0)

    def test_update_counts_visits(self):
        t = QTable()
        t.set("111111", 2, 1.0)
        t.set("111111", 2, 2.0)
        t.set("111111", 2, 3.0)
        assert t.entry("111111", 2) == QValue(3.0, 2)

    def test_len_counts_states(self):
        t = QTable()
        t.set("111111", 1, 1.0)
        t.set("111111", 2, 1.0)
        t.set("222222", 1, 1.0)
        assert len(t) == 2
        assert sorted(t.states()) == ["111111", "222222"]


class TestBestAction:
    def test_ties_go_to_first_in_caller_order(self):
        t = QTable()
        assert t.best_action("222222", [ActionType.IDLE, ActionType.USE_BED]) == ActionType.IDLE
        assert t.best_action("222222", [ActionType.USE_BED, ActionType.IDLE]) == ActionType.USE_BED

    def test_picks_highest(self):
        t = QTable()
        t.set("222222", 3, 0.5)
        t.set("222222", 4, 2.0)
        assert t.best_action("222222", [1, 2, 3, 4]) == 4

    def test_empty_actions_gives_none(self):
        assert QTable().best_action("222222", []) is None


class TestMerge:
    def test_more_visits_wins(self):
        disk = QTable()
        disk.put("000000", 1, QValue(5.0, 3))
        disk.put("000000", 2, QValue(1.0, 9))
        mine = QTable()
        mine.put("000000", 1, QValue(7.0, 4))
        mine.put("000000", 2, QValue(8.0, 9))
        mine.put("111111", 0, QValue(2.0, 0))

        disk.merge(mine)
        assert disk.entry("000000", 1) == QValue(7.0, 4)
        # tie keeps what was already there
        assert disk.entry("000000", 2) == QValue(1.0, 9)
        assert disk.entry("111111", 0) == QValue(2.0, 0)

    def test_to_frame_columns(self):
        t = QTable()
        t.set("000000", 1, 1.5)
        df = t.to_frame()
        assert list(df.columns) == ["state_key", "action", "value", "visits"]
        assert df.iloc[0]["value"] == 1.5
        assert QTable().to_frame().empty
