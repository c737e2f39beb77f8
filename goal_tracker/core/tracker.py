from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Callable
from zoneinfo import ZoneInfo

from loguru import logger

from goal_tracker.core.models import FREQUENCIES, IMPACTS, Goal, GoalStore, Task, impact_weight, new_id
from goal_tracker.core.recurrence import next_due_date, parse_iso, plan_new_tasks

MIN_GOAL_TITLE = 3

MutationListener = Callable[[], None]


def today_in(tz_name: str) -> date:
    return datetime.now(ZoneInfo(tz_name)).date()


def end_of_year_iso(today: date) -> str:
    return date(today.year, 12, 31).isoformat()


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def progress_of(goal: Goal) -> int:
    if not goal.tasks:
        return 0
    total = sum(impact_weight(t.impact) for t in goal.tasks) or 1
    done = sum(impact_weight(t.impact) for t in goal.tasks if t.completed and t.frequency == "once")
    return _clamp(_round_half_up(done / total * 100), 0, 100)


def overall_progress(goals: list[Goal]) -> int:
    if not goals:
        return 0
    denom = sum(impact_weight(g.impact) for g in goals) or 1
    num = sum(impact_weight(g.impact) * progress_of(g) for g in goals)
    return _clamp(_round_half_up(num / denom), 0, 100)


class GoalTracker:
    """Local goal/task state and the operations the user performs on it.

    Validation problems are kept in ``error`` for the caller to display;
    listeners run after every mutation that changed state.
    """

    def __init__(
        self,
        goals: list[Goal] | None = None,
        *,
        today: Callable[[], date] | None = None,
    ) -> None:
        self._store = GoalStore(goals)
        self._today = today or date.today
        self._listeners: list[MutationListener] = []
        self.error = ""

    def subscribe(self, listener: MutationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener()

    @property
    def goals(self) -> list[Goal]:
        return self._store.snapshot()

    def get_goal(self, goal_id: str) -> Goal | None:
        return self._store.get_goal(goal_id)

    def replace_all(self, goals: list[Goal]) -> None:
        self._store.load(goals)
        self._changed()

    def add_goal(self, title: str, impact: str = "Medium", target_date: str | None = None) -> Goal | None:
        self.error = ""
        title = (title or "").strip()
        if len(title) < MIN_GOAL_TITLE:
            self.error = "Goal title must be at least 3 characters."
            return None
        if target_date is None:
            target_date = end_of_year_iso(self._today())
        try:
            target_date = parse_iso(target_date).isoformat()
        except ValueError:
            self.error = "Please pick a target date."
            return None
        if impact not in IMPACTS:
            impact = "Medium"
        goal = Goal(id=new_id(), title=title, impact=impact, target_date=target_date)
        self._store.insert_goal(goal, at=0)
        self._changed()
        return self._store.get_goal(goal.id)

    def remove_goal(self, goal_id: str) -> bool:
        if not self._store.remove_goal(goal_id):
            return False
        self._changed()
        return True

    def rename_goal(self, goal_id: str, title: str) -> bool:
        title = (title or "").strip()
        if not title or not self._store.patch_goal(goal_id, title=title):
            return False
        self._changed()
        return True

    def toggle_collapse(self, goal_id: str) -> bool:
        goal = self._store.get_goal(goal_id)
        if goal is None:
            return False
        self._store.patch_goal(goal_id, collapsed=not goal.collapsed)
        self._changed()
        return True

    def add_task(
        self,
        goal_id: str,
        title: str,
        *,
        impact: str = "Medium",
        frequency: str = "once",
        duration_days: int | None = None,
    ) -> list[Task]:
        goal = self._store.get_goal(goal_id)
        title = (title or "").strip()
        if goal is None or not title:
            return []
        if frequency not in FREQUENCIES:
            self.error = f"Unknown frequency: {frequency}"
            return []
        today = self._today()
        try:
            tasks = plan_new_tasks(
                title=title,
                impact=impact,
                frequency=frequency,
                today=today,
                goal_target_date=goal.target_date,
                goal_end_date=goal.target_date or end_of_year_iso(today),
                duration_days=duration_days,
            )
        except ValueError:
            logger.warning("add task skipped goal={} bad_target_date={!r}", goal_id, goal.target_date)
            self.error = f"Goal target date is not a valid date: {goal.target_date}"
            return []
        if not tasks:
            return []
        self._store.append_tasks(goal_id, tasks)
        self._changed()
        return tasks

    def update_task(self, goal_id: str, task_id: str, **patch: Any) -> bool:
        if not self._store.patch_task(goal_id, task_id, **patch):
            return False
        self._changed()
        return True

    def remove_task(self, goal_id: str, task_id: str) -> bool:
        if not self._store.remove_task(goal_id, task_id):
            return False
        self._changed()
        return True

    def toggle_task(self, goal_id: str, task_id: str, checked: bool) -> Task | None:
        """Apply a completion toggle.

        Once-tasks take the flag as given. Checking a recurring task
        advances its due date by one step and leaves it incomplete;
        unchecking a recurring task changes nothing.
        """
        task = self._store.get_task(goal_id, task_id)
        if task is None:
            return None
        if task.frequency == "once":
            self._store.patch_task(goal_id, task_id, completed=bool(checked))
        elif checked:
            try:
                due = next_due_date(task.due_date, task.frequency)
            except ValueError:
                logger.warning("toggle skipped goal={} task={} bad_due_date={!r}", goal_id, task_id, task.due_date)
                return task
            self._store.patch_task(goal_id, task_id, due_date=due, completed=False)
        else:
            return task
        self._changed()
        return self._store.get_task(goal_id, task_id)

    def progress_of(self, goal_id: str) -> int:
        goal = self._store.get_goal(goal_id)
        return progress_of(goal) if goal is not None else 0

    def overall_progress(self) -> int:
        return overall_progress(self._store.snapshot())
