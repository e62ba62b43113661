# agents/persistence.py
"""
JSON persistence for Q-tables.

File layout (shared with older tables):
    {"<state key>": {"<action ordinal>": {"Value": float, "TimesVisited": int}}}

A missing or unreadable file never raises; callers get an empty table and a
status telling them why, and carry on learning from scratch.
"""
import json
import logging
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import NamedTuple

from agents.q_table import QTable, QValue

logger = logging.getLogger(__name__)

DEFAULT_TABLE_DIR = Path(__file__).resolve().parents[1] / "data" / "qlearning"
FLAT_TABLE_FILE = "QTable.json"
MACRO_TABLE_FILE = "HighLevelQTable.json"


class LoadStatus(Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    PARSE_ERROR = "parse_error"


class LoadResult(NamedTuple):
    table: QTable
    status: LoadStatus


def table_to_dict(table: QTable) -> dict:
    out = {}
    for key, action, entry in table.items():
        out.setdefault(key, {})[str(action)] = {"Value": entry.value, "TimesVisited": entry.visits}
    return out


def table_from_dict(raw) -> QTable:
    """Build a table from decoded JSON; raises ValueError on structural problems."""
    if not isinstance(raw, dict):
        raise ValueError("top level must be an object")
    table = QTable()
    for key, actions in raw.items():
        if not isinstance(actions, dict):
            raise ValueError(f"state {key!r} is not an object")
        for action, fields in actions.items():
            if not isinstance(fields, dict):
                raise ValueError(f"entry {key!r}/{action!r} is not an object")
            value = fields.get("Value", 0.0)
            visits = fields.get("TimesVisited", 0)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"entry {key!r}/{action!r} has non-numeric Value")
            if isinstance(visits, bool) or not isinstance(visits, (int, float)):
                raise ValueError(f"entry {key!r}/{action!r} has non-numeric TimesVisited")
            table.put(key, int(action), QValue(float(value), int(visits)))
    return table


def save_table(table: QTable, path) -> Path:
    """Rewrite path with the full table (temp file + rename)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=path.name, suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(table_to_dict(table), f, indent=2)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise
    if len(table) == 0:
        logger.info("Saved empty Q-table to %s", path)
    else:
        logger.info("Saved Q-table: %d states -> %s", len(table), path)
    return path


def load_table(path) -> LoadResult:
    path = Path(path)
    if not path.exists():
        logger.info("No Q-table at %s, starting fresh", path)
        return LoadResult(QTable(), LoadStatus.NOT_FOUND)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        table = table_from_dict(raw)
    except (OSError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        logger.warning("Could not parse Q-table %s (%s), starting fresh", path, e)
        return LoadResult(QTable(), LoadStatus.PARSE_ERROR)
    logger.info("Loaded Q-table: %d states <- %s", len(table), path)
    return LoadResult(table, LoadStatus.OK)


def save_table_merged(table: QTable, path) -> QTable:
    """
    Read-merge-write for tables shared by a population.

    Our entry replaces the one on disk only when it was visited more often;
    the merged table is written back and returned.
    """
    merged = load_table(path).table.merge(table)
    save_table(merged, path)
    return merged
