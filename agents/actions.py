# agents/actions.py
from enum import IntEnum

from agents.need_state import NeedType


class ActionType(IntEnum):
    IDLE = 0
    USE_TELEVISION = 1
    USE_COMPUTER = 2
    USE_SHOWER = 3
    USE_REFRIGERATOR = 4
    USE_TOILET = 5
    USE_BED = 6
    USE_SOFA = 7
    USE_PHONE = 8
    USE_SINK = 9
    USE_BOOKSHELF = 10
    USE_GYM = 11


class MacroAction(IntEnum):
    # ordinal matches NeedType
    SATISFY_HUNGER = 0
    SATISFY_BLADDER = 1
    SATISFY_ENERGY = 2
    SATISFY_SOCIAL = 3
    SATISFY_HYGIENE = 4
    SATISFY_FUN = 5


MACRO_TO_ACTION = {
    MacroAction.SATISFY_HUNGER: ActionType.USE_REFRIGERATOR,
    MacroAction.SATISFY_BLADDER: ActionType.USE_TOILET,
    MacroAction.SATISFY_ENERGY: ActionType.USE_BED,
    MacroAction.SATISFY_SOCIAL: ActionType.USE_SOFA,
    MacroAction.SATISFY_HYGIENE: ActionType.USE_SHOWER,
    MacroAction.SATISFY_FUN: ActionType.USE_TELEVISION,
}


def macro_for_need(need: NeedType) -> MacroAction:
    return MacroAction(int(need))


def need_for_macro(macro: MacroAction) -> NeedType:
    return NeedType(int(macro))
