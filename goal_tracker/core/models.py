from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Any

IMPACTS = ("Low", "Medium", "High")
FREQUENCIES = ("once", "daily", "weekly", "monthly", "quarterly", "yearly")
RECURRING_FREQUENCIES = FREQUENCIES[1:]
PLACEHOLDER_FREQUENCY = "goal"
PLACEHOLDER_SUFFIX = "__goal"

_IMPACT_WEIGHTS = {"High": 10, "Medium": 5}


def impact_weight(level: str | None) -> int:
    return _IMPACT_WEIGHTS.get(level or "", 1)


def new_id() -> str:
    return str(uuid.uuid4())


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass(slots=True)
class Task:
    id: str
    title: str
    due_date: str
    impact: str = "Medium"
    frequency: str = "once"
    completed: bool = False

    @property
    def is_recurring(self) -> bool:
        return self.frequency != "once"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "dueDate": self.due_date,
            "impact": self.impact,
            "frequency": self.frequency,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        frequency = _text(data.get("frequency")) or "once"
        completed = data.get("completed") is True and frequency == "once"
        return cls(
            id=_text(data.get("id")),
            title=_text(data.get("title")),
            due_date=_text(data.get("dueDate")),
            impact=_text(data.get("impact")),
            frequency=frequency,
            completed=completed,
        )


@dataclass(slots=True)
class Goal:
    id: str
    title: str
    impact: str = "Medium"
    target_date: str = ""
    collapsed: bool = False
    tasks: list[Task] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "impact": self.impact,
            "targetDate": self.target_date,
            "collapsed": self.collapsed,
            "tasks": [t.to_dict() for t in self.tasks],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Goal":
        raw_tasks = data.get("tasks")
        tasks = [Task.from_dict(t) for t in raw_tasks if isinstance(t, dict)] if isinstance(raw_tasks, list) else []
        return cls(
            id=_text(data.get("id")),
            title=_text(data.get("title")),
            impact=_text(data.get("impact")),
            target_date=_text(data.get("targetDate")),
            collapsed=bool(data.get("collapsed")),
            tasks=tasks,
        )


class GoalStore:
    """Goal/task ownership kept as indexes instead of nested containers.

    Goals are addressed by id and kept in display order; each goal owns an
    ordered list of task ids, and task records live in one arena keyed by
    ``(goal_id, task_id)`` since task ids are only unique within a goal.
    Reads hand out copies, so callers never alias stored records.
    """

    def __init__(self, goals: list[Goal] | None = None) -> None:
        self._order: list[str] = []
        self._goals: dict[str, Goal] = {}
        self._task_ids: dict[str, list[str]] = {}
        self._tasks: dict[tuple[str, str], Task] = {}
        if goals:
            self.load(goals)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, goal_id: object) -> bool:
        return goal_id in self._goals

    def load(self, goals: list[Goal]) -> None:
        self._order.clear()
        self._goals.clear()
        self._task_ids.clear()
        self._tasks.clear()
        for goal in goals:
            if goal.id in self._goals:
                continue
            self._add(goal, len(self._order))

    def _add(self, goal: Goal, at: int) -> None:
        self._goals[goal.id] = replace(goal, tasks=[])
        self._order.insert(at, goal.id)
        self._task_ids[goal.id] = []
        self.append_tasks(goal.id, goal.tasks)

    def goal_ids(self) -> list[str]:
        return list(self._order)

    def get_goal(self, goal_id: str) -> Goal | None:
        record = self._goals.get(goal_id)
        if record is None:
            return None
        tasks = [replace(self._tasks[(goal_id, tid)]) for tid in self._task_ids[goal_id]]
        return replace(record, tasks=tasks)

    def get_task(self, goal_id: str, task_id: str) -> Task | None:
        task = self._tasks.get((goal_id, task_id))
        return replace(task) if task is not None else None

    def snapshot(self) -> list[Goal]:
        return [self.get_goal(goal_id) for goal_id in self._order]

    def insert_goal(self, goal: Goal, at: int = 0) -> None:
        if goal.id in self._goals:
            raise ValueError(f"Goal already exists: {goal.id}")
        self._add(goal, max(0, min(at, len(self._order))))

    def remove_goal(self, goal_id: str) -> bool:
        if goal_id not in self._goals:
            return False
        for task_id in self._task_ids.pop(goal_id):
            self._tasks.pop((goal_id, task_id), None)
        del self._goals[goal_id]
        self._order.remove(goal_id)
        return True

    def patch_goal(self, goal_id: str, **patch: Any) -> bool:
        record = self._goals.get(goal_id)
        if record is None:
            return False
        patch.pop("id", None)
        patch.pop("tasks", None)
        self._goals[goal_id] = replace(record, **patch)
        return True

    def append_tasks(self, goal_id: str, tasks: list[Task]) -> int:
        ids = self._task_ids.get(goal_id)
        if ids is None:
            return 0
        added = 0
        for task in tasks:
            key = (goal_id, task.id)
            if key in self._tasks:
                continue
            self._tasks[key] = replace(task)
            ids.append(task.id)
            added += 1
        return added

    def patch_task(self, goal_id: str, task_id: str, **patch: Any) -> bool:
        key = (goal_id, task_id)
        task = self._tasks.get(key)
        if task is None:
            return False
        patch.pop("id", None)
        updated = replace(task, **patch)
        if updated.is_recurring:
            updated.completed = False
        self._tasks[key] = updated
        return True

    def remove_task(self, goal_id: str, task_id: str) -> bool:
        if self._tasks.pop((goal_id, task_id), None) is None:
            return False
        self._task_ids[goal_id].remove(task_id)
        return True
