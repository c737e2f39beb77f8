from __future__ import annotations

from dataclasses import astuple, dataclass
from typing import Any, Iterable

from goal_tracker.core.models import PLACEHOLDER_FREQUENCY, PLACEHOLDER_SUFFIX, Goal, Task

ROW_HEADER = [
    "goalId",
    "goalTitle",
    "goalImpact",
    "goalTargetDate",
    "taskId",
    "taskTitle",
    "taskDueDate",
    "taskImpact",
    "frequency",
    "completed",
]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value)


@dataclass(frozen=True, slots=True)
class Row:
    goal_id: str = ""
    goal_title: str = ""
    goal_impact: str = ""
    goal_target_date: str = ""
    task_id: str = ""
    task_title: str = ""
    task_due_date: str = ""
    task_impact: str = ""
    frequency: str = ""
    completed: str = "FALSE"

    @property
    def key(self) -> tuple[str, str]:
        return self.goal_id, self.task_id

    @property
    def is_placeholder(self) -> bool:
        return self.frequency == PLACEHOLDER_FREQUENCY

    def values(self) -> list[str]:
        return list(astuple(self))

    def to_wire(self) -> dict[str, str]:
        return dict(zip(ROW_HEADER, self.values()))

    @classmethod
    def from_wire(cls, data: Any) -> "Row":
        if not isinstance(data, dict):
            return cls(completed="")
        return cls(*(_cell(data.get(name)) for name in ROW_HEADER))

    @classmethod
    def from_values(cls, values: Iterable[Any]) -> "Row":
        cells = [_cell(v) for v in values][: len(ROW_HEADER)]
        cells += [""] * (len(ROW_HEADER) - len(cells))
        return cls(*cells)


def _task_row(goal: Goal, task: Task) -> Row:
    return Row(
        goal_id=goal.id,
        goal_title=goal.title,
        goal_impact=goal.impact,
        goal_target_date=goal.target_date or "",
        task_id=task.id,
        task_title=task.title,
        task_due_date=task.due_date,
        task_impact=task.impact,
        frequency=task.frequency,
        completed="TRUE" if task.completed else "FALSE",
    )


def placeholder_row(goal: Goal) -> Row:
    return Row(
        goal_id=goal.id,
        goal_title=goal.title,
        goal_impact=goal.impact,
        goal_target_date=goal.target_date or "",
        task_id=f"{goal.id}{PLACEHOLDER_SUFFIX}",
        frequency=PLACEHOLDER_FREQUENCY,
        completed="FALSE",
    )


def flatten(goals: Iterable[Goal]) -> list[Row]:
    rows: list[Row] = []
    for goal in goals:
        if not goal.tasks:
            rows.append(placeholder_row(goal))
            continue
        rows.extend(_task_row(goal, task) for task in goal.tasks)
    return rows


def inflate(rows: Iterable[Row]) -> list[Goal]:
    """Rebuild goals from flat rows.

    The first row seen for a goal id supplies the goal fields. Placeholder
    rows and rows without a task id or title only keep the goal alive.
    Never raises on incomplete rows: missing cells are empty strings.
    """
    by_goal: dict[str, Goal] = {}
    for row in rows:
        goal = by_goal.get(row.goal_id)
        if goal is None:
            goal = Goal(
                id=row.goal_id,
                title=row.goal_title,
                impact=row.goal_impact,
                target_date=row.goal_target_date,
                collapsed=False,
                tasks=[],
            )
            by_goal[row.goal_id] = goal
        if row.is_placeholder or not (row.task_id and row.task_title):
            continue
        goal.tasks.append(
            Task(
                id=row.task_id,
                title=row.task_title,
                due_date=row.task_due_date,
                impact=row.task_impact,
                frequency=row.frequency,
                completed=row.completed == "TRUE" and row.frequency == "once",
            )
        )
    for goal in by_goal.values():
        goal.tasks.sort(key=lambda t: t.due_date)
    return list(by_goal.values())


def rows_from_wire(items: Any) -> list[Row]:
    if not isinstance(items, list):
        return []
    return [Row.from_wire(item) for item in items]


def rows_to_wire(rows: Iterable[Row]) -> list[dict[str, str]]:
    return [row.to_wire() for row in rows]
