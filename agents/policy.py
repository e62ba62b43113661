# agents/policy.py
from typing import Sequence

from agents.q_table import QTable


def choose_action(table: QTable, state, available: Sequence, exploration_rate: float, rng, idle_action=None):
    """
    Epsilon-greedy choice over the caller's action list.

    rng needs random() and integers(n) (a numpy Generator works). One draw
    decides explore vs exploit; exploring costs a second draw for the index.
    """
    if len(available) == 0:
        return idle_action
    if rng.random() < exploration_rate:
        return available[int(rng.integers(len(available)))]
    return table.best_action(state, available)


def greedy_action(table: QTable, state, available: Sequence, idle_action=None):
    if len(available) == 0:
        return idle_action
    return table.best_action(state, available)
