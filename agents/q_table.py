# agents/q_table.py
"""
Sparse Q-table: state key -> action ordinal -> QValue.

Absent entries read as 0.0. States may be passed as NeedState or as the raw
key string, actions as enum members or plain ints.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Sequence, Tuple

import pandas as pd


@dataclass
class QValue:
    value: float = 0.0
    visits: int = 0


def _key(state) -> str:
    return state if isinstance(state, str) else state.key


class QTable:
    def __init__(self):
        self._rows: Dict[str, Dict[int, QValue]] = {}

    def get(self, state, action) -> float:
        row = self._rows.get(_key(state))
        if row is None:
            return 0.0
        entry = row.get(int(action))
        return 0.0 if entry is None else entry.value

    def entry(self, state, action) -> Optional[QValue]:
        row = self._rows.get(_key(state))
        return None if row is None else row.get(int(action))

    def set(self, state, action, value: float):
        row = self._rows.setdefault(_key(state), {})
        entry = row.get(int(action))
        if entry is None:
            row[int(action)] = QValue(float(value), 0)
        else:
            entry.value = float(value)
            entry.visits += 1

    def put(self, state, action, entry: QValue):
        """Store an entry verbatim (used when loading and merging)."""
        self._rows.setdefault(_key(state), {})[int(action)] = QValue(float(entry.value), int(entry.visits))

    def max_over(self, state, actions: Iterable) -> float:
        values = [self.get(state, a) for a in actions]
        if not values:
            return 0.0
        return max(values)

    def best_action(self, state, actions: Sequence):
        best, best_q = None, None
        for a in actions:
            q = self.get(state, a)
            # strict comparison keeps the first action on ties
            if best_q is None or q > best_q:
                best, best_q = a, q
        return best

    def states(self) -> Iterator[str]:
        return iter(self._rows)

    def items(self) -> Iterator[Tuple[str, int, QValue]]:
        for key, row in self._rows.items():
            for action, entry in row.items():
                yield key, action, entry

    def clear(self):
        self._rows.clear()

    def replace_with(self, other: "QTable"):
        self._rows = {}
        for key, action, entry in other.items():
            self.put(key, action, entry)

    def merge(self, other: "QTable") -> "QTable":
        """Fold other into self, keeping per entry the one visited more often."""
        for key, action, entry in other.items():
            mine = self.entry(key, action)
            if mine is None or entry.visits > mine.visits:
                self.put(key, action, entry)
        return self

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {"state_key": key, "action": action, "value": entry.value, "visits": entry.visits}
            for key, action, entry in self.items()
        ]
        return pd.DataFrame(rows, columns=["state_key", "action", "value", "visits"])

    def __len__(self):
        return len(self._rows)

    def __contains__(self, state):
        return _key(state) in self._rows

    def __eq__(self, other):
        if not isinstance(other, QTable):
            return NotImplemented
        return self._rows == other._rows

    def __repr__(self):
        return f"QTable(states={len(self._rows)}, entries={sum(len(r) for r in self._rows.values())})"
