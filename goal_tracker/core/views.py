from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta

from goal_tracker.core.models import IMPACTS, Task
from goal_tracker.core.recurrence import parse_iso

SORT_OPTIONS = ("dueAsc", "dueDesc", "impactHigh", "impactLow")
DEFAULT_SORT = "dueAsc"
STATUS_OPTIONS = ("all", "open", "done")
DATE_SCOPES = ("all", "today", "week", "overdue")

_IMPACT_RANK = {"High": 3, "Medium": 2, "Low": 1}


def sanitize_sort(value: object) -> str:
    return value if isinstance(value, str) and value in SORT_OPTIONS else DEFAULT_SORT


def sort_tasks(tasks: list[Task], mode: str) -> list[Task]:
    mode = sanitize_sort(mode)
    if mode == "dueDesc":
        return sorted(tasks, key=lambda t: t.due_date, reverse=True)
    if mode == "impactHigh":
        return sorted(tasks, key=lambda t: (-_IMPACT_RANK.get(t.impact, 0), t.due_date))
    if mode == "impactLow":
        return sorted(tasks, key=lambda t: (_IMPACT_RANK.get(t.impact, 0), t.due_date))
    return sorted(tasks, key=lambda t: t.due_date)


@dataclass(slots=True)
class TaskFilter:
    impacts: set[str] = field(default_factory=lambda: set(IMPACTS))
    status: str = "all"
    date_scope: str = "all"
    search: str = ""


def _status_pass(task: Task, status: str) -> bool:
    done = task.frequency == "once" and task.completed
    if status == "open":
        return not done
    if status == "done":
        return done
    return True


def _date_scope_pass(due_date: str, scope: str, today: date) -> bool:
    if scope == "all":
        return True
    try:
        due = parse_iso(due_date)
    except ValueError:
        return False
    if scope == "today":
        return due == today
    if scope == "week":
        return today <= due <= today + timedelta(days=7)
    if scope == "overdue":
        return due < today
    return True


def filter_tasks(tasks: list[Task], flt: TaskFilter, today: date) -> list[Task]:
    query = flt.search.strip().lower()
    out: list[Task] = []
    for task in tasks:
        if query and query not in task.title.lower():
            continue
        if task.impact not in flt.impacts:
            continue
        if not _status_pass(task, flt.status):
            continue
        if not _date_scope_pass(task.due_date, flt.date_scope, today):
            continue
        out.append(task)
    return out
