# agents/records.py
"""Records the learners hand to a log sink. Formatting is the sink's business."""
from dataclasses import dataclass, field
from typing import Dict, Optional

from agents.need_state import NeedType


@dataclass
class DecisionRecord:
    npc_id: int
    generation: int
    action: int
    state_key: str
    reward: float
    lifetime: float
    needs: Dict[NeedType, float] = field(default_factory=dict)
    tier: str = "macro"


@dataclass
class DeathRecord:
    npc_id: int
    generation: int
    lifetime: float
    needs: Dict[NeedType, float] = field(default_factory=dict)
    cause: Optional[NeedType] = None
    reward: Optional[float] = None
    total_actions: int = 0


@dataclass
class TransitionRecord:
    tier: str
    state_key: str
    action: int
    reward: float
    next_state_key: str
    done: bool


class NullSink:
    def log_decision(self, record: DecisionRecord):
        pass

    def log_death(self, record: DeathRecord):
        pass

    def log_transition(self, record: TransitionRecord):
        pass
