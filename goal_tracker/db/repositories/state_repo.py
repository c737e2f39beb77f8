from __future__ import annotations

import json
from typing import Any

from loguru import logger
from sqlalchemy.orm import Session

from goal_tracker.core.models import Goal
from goal_tracker.core.views import DEFAULT_SORT, sanitize_sort
from goal_tracker.db.models import KVState

GOALS_KEY = "gt_best_goals"
SORT_KEY = "gt_sort"


def get_value(session: Session, key: str, default: Any) -> Any:
    row = session.get(KVState, key)
    if row is None or not row.value_json:
        return default
    try:
        return json.loads(row.value_json)
    except ValueError:
        logger.warning("persisted value corrupt key={} using default", key)
        return default


def set_value(session: Session, key: str, value: Any) -> None:
    payload = json.dumps(value, ensure_ascii=False)
    row = session.get(KVState, key)
    if row is None:
        session.add(KVState(key=key, value_json=payload))
    else:
        row.value_json = payload
    session.flush()


def load_goals(session: Session) -> list[Goal]:
    raw = get_value(session, GOALS_KEY, [])
    if not isinstance(raw, list):
        logger.warning("persisted goals malformed type={} using default", type(raw).__name__)
        return []
    return [Goal.from_dict(item) for item in raw if isinstance(item, dict)]


def save_goals(session: Session, goals: list[Goal]) -> None:
    set_value(session, GOALS_KEY, [g.to_dict() for g in goals])


def load_sort_mode(session: Session) -> str:
    return sanitize_sort(get_value(session, SORT_KEY, DEFAULT_SORT))


def save_sort_mode(session: Session, mode: str) -> str:
    clean = sanitize_sort(mode)
    set_value(session, SORT_KEY, clean)
    return clean
