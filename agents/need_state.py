# agents/need_state.py
"""
Discretization of the six decaying needs into a compact state key.

The key is one digit per need, always laid out in NEED_ORDER. Every learner
builds its keys through NeedState.key so both tiers agree on the format.
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import Mapping, Optional, Tuple

NEED_MIN = 0.0
NEED_MAX = 100.0

CRITICAL_MAX = 40.0
MEDIUM_MAX = 70.0


class NeedType(IntEnum):
    HUNGER = 0
    BLADDER = 1
    ENERGY = 2
    SOCIAL = 3
    HYGIENE = 4
    FUN = 5


class NeedLevel(IntEnum):
    CRITICAL = 0   # 0-40
    MEDIUM = 1     # 40-70
    HIGH = 2       # 70-100


# persisted keys depend on this order; append only, never reorder
NEED_ORDER: Tuple[NeedType, ...] = tuple(sorted(NeedType))

_MIDPOINTS = {
    NeedLevel.CRITICAL: (NEED_MIN + CRITICAL_MAX) / 2.0,
    NeedLevel.MEDIUM: (CRITICAL_MAX + MEDIUM_MAX) / 2.0,
    NeedLevel.HIGH: (MEDIUM_MAX + NEED_MAX) / 2.0,
}


def clamp_need(value: float) -> float:
    return max(NEED_MIN, min(NEED_MAX, float(value)))


def level_for_value(value: float) -> NeedLevel:
    value = clamp_need(value)
    if value <= CRITICAL_MAX:
        return NeedLevel.CRITICAL
    if value <= MEDIUM_MAX:
        return NeedLevel.MEDIUM
    return NeedLevel.HIGH


def level_midpoint(level: NeedLevel) -> float:
    """Approximate numeric value for a level when the exact value was not kept."""
    return _MIDPOINTS[NeedLevel(level)]


@dataclass(frozen=True)
class NeedState:
    levels: Tuple[NeedLevel, ...]

    def __post_init__(self):
        if len(self.levels) != len(NEED_ORDER):
            raise ValueError(f"expected {len(NEED_ORDER)} levels, got {len(self.levels)}")

    @property
    def key(self) -> str:
        return "".join(str(int(level)) for level in self.levels)

    def level(self, need: NeedType) -> NeedLevel:
        return self.levels[NEED_ORDER.index(need)]

    def __str__(self):
        return self.key


def discretize(needs: Mapping[NeedType, float]) -> NeedState:
    """Map a need vector to its NeedState. Missing needs count as Medium."""
    levels = []
    for need in NEED_ORDER:
        value: Optional[float] = needs.get(need)
        levels.append(NeedLevel.MEDIUM if value is None else level_for_value(value))
    return NeedState(tuple(levels))


def state_from_key(key: str) -> NeedState:
    if len(key) != len(NEED_ORDER) or not key.isdigit():
        raise ValueError(f"malformed state key: {key!r}")
    return NeedState(tuple(NeedLevel(int(ch)) for ch in key))


def all_needs_high(needs: Mapping[NeedType, float], threshold: float = MEDIUM_MAX) -> bool:
    """True when every need is strictly above threshold (missing needs fail)."""
    return all(needs.get(need, NEED_MIN) > threshold for need in NEED_ORDER)
