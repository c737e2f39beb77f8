from __future__ import annotations

from datetime import date

from goal_tracker.core.models import Goal, Task
from goal_tracker.core.rows import Row, inflate
from goal_tracker.core.tracker import GoalTracker, overall_progress, progress_of

TODAY = date(2025, 1, 1)


def _tracker(goals: list[Goal] | None = None) -> GoalTracker:
    return GoalTracker(goals, today=lambda: TODAY)


def _goal_with(*tasks: Task, target: str = "2025-12-31") -> Goal:
    return Goal(id="g1", title="Goal", impact="High", target_date=target, tasks=list(tasks))


def test_add_goal_validates_title_and_prepends() -> None:
    tracker = _tracker()
    assert tracker.add_goal("ab") is None
    assert tracker.error == "Goal title must be at least 3 characters."
    first = tracker.add_goal("  First goal  ")
    assert tracker.error == ""
    assert first.title == "First goal"
    assert first.target_date == "2025-12-31"
    second = tracker.add_goal("Second goal", "High", "2025-06-30")
    assert [g.id for g in tracker.goals] == [second.id, first.id]


def test_add_goal_requires_target_date() -> None:
    tracker = _tracker()
    assert tracker.add_goal("Some goal", target_date="") is None
    assert tracker.error == "Please pick a target date."
    assert tracker.goals == []


def test_listeners_fire_on_mutation_only() -> None:
    tracker = _tracker()
    calls: list[int] = []
    unsubscribe = tracker.subscribe(lambda: calls.append(1))
    tracker.add_goal("no")
    assert calls == []
    goal = tracker.add_goal("Valid goal")
    tracker.rename_goal(goal.id, "   ")
    assert len(calls) == 1
    tracker.toggle_collapse(goal.id)
    assert len(calls) == 2
    unsubscribe()
    tracker.remove_goal(goal.id)
    assert len(calls) == 2


def test_add_daily_task_defaults_to_target_window() -> None:
    tracker = _tracker([_goal_with(target="2025-01-04")])
    tasks = tracker.add_task("g1", "Stretch", frequency="daily")
    assert [t.due_date for t in tasks] == ["2025-01-01", "2025-01-02", "2025-01-03", "2025-01-04"]
    assert len(tracker.get_goal("g1").tasks) == 4


def test_add_daily_task_without_target_defaults_to_week() -> None:
    tracker = _tracker([_goal_with(target="")])
    tasks = tracker.add_task("g1", "Stretch", frequency="daily")
    assert len(tasks) == 7
    assert tasks[-1].due_date == "2025-01-07"


def test_add_task_ignores_blank_title_and_unknown_goal() -> None:
    tracker = _tracker([_goal_with()])
    assert tracker.add_task("g1", "   ") == []
    assert tracker.add_task("missing", "Task") == []


def test_toggle_once_task_is_reversible() -> None:
    tracker = _tracker([_goal_with(Task(id="t1", title="T", due_date="2025-01-01"))])
    assert tracker.toggle_task("g1", "t1", True).completed is True
    assert tracker.toggle_task("g1", "t1", False).completed is False


def test_toggle_recurring_task_advances_due_date() -> None:
    tracker = _tracker([_goal_with(Task(id="t1", title="T", due_date="2025-01-01", frequency="weekly"))])
    calls: list[int] = []
    tracker.subscribe(lambda: calls.append(1))
    task = tracker.toggle_task("g1", "t1", True)
    assert task.completed is False
    assert task.due_date == "2025-01-08"
    unchanged = tracker.toggle_task("g1", "t1", False)
    assert unchanged.due_date == "2025-01-08"
    assert unchanged.completed is False
    assert calls == [1]


def test_update_and_remove_task() -> None:
    tracker = _tracker([_goal_with(Task(id="t1", title="T", due_date="2025-01-01"))])
    assert tracker.update_task("g1", "t1", title="Renamed", impact="Low")
    assert tracker.get_goal("g1").tasks[0].title == "Renamed"
    assert tracker.remove_task("g1", "t1")
    assert tracker.remove_task("g1", "t1") is False


def test_progress_is_impact_weighted() -> None:
    goal = _goal_with(
        Task(id="t1", title="a", due_date="2025-01-01", impact="High", completed=True),
        Task(id="t2", title="b", due_date="2025-01-02", impact="Low"),
        Task(id="t3", title="c", due_date="2025-01-03", impact="Medium", frequency="weekly"),
    )
    assert progress_of(goal) == 63
    empty = Goal(id="g2", title="Empty", impact="Low")
    assert progress_of(empty) == 0
    assert overall_progress([goal, empty]) == 57
    assert overall_progress([]) == 0


def test_add_task_unknown_frequency_is_inline_error() -> None:
    tracker = _tracker([_goal_with()])
    assert tracker.add_task("g1", "Task", frequency="hourly") == []
    assert tracker.error == "Unknown frequency: hourly"
    assert tracker.get_goal("g1").tasks == []


def test_add_goal_rejects_unparseable_target_date() -> None:
    tracker = _tracker()
    assert tracker.add_goal("Some goal", target_date="next year") is None
    assert tracker.error == "Please pick a target date."
    assert tracker.goals == []


def test_add_task_on_goal_with_sheet_formatted_target_date() -> None:
    goals = inflate([Row(goal_id="g1", goal_title="Goal", goal_target_date="12/31/2025", task_id="g1__goal", frequency="goal")])
    tracker = _tracker(goals)
    calls: list[int] = []
    tracker.subscribe(lambda: calls.append(1))
    assert tracker.add_task("g1", "Daily", frequency="daily") == []
    assert tracker.add_task("g1", "Weekly", frequency="weekly") == []
    assert tracker.error == "Goal target date is not a valid date: 12/31/2025"
    assert tracker.get_goal("g1").tasks == []
    assert calls == []
