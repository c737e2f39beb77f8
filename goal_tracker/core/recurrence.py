from __future__ import annotations

import calendar
from datetime import date, timedelta

from goal_tracker.core.models import Task, new_id

MAX_DAILY_DAYS = 365
DEFAULT_DAILY_DAYS = 7


def _clamp_day(year: int, month: int, day: int) -> int:
    return min(day, calendar.monthrange(year, month)[1])


def _add_months(d: date, delta: int) -> date:
    y = d.year
    m = d.month + delta
    while m > 12:
        y += 1
        m -= 12
    while m < 1:
        y -= 1
        m += 12
    return date(y, m, _clamp_day(y, m, d.day))


def parse_iso(value: str) -> date:
    return date.fromisoformat(value.strip()[:10])


def add_by_frequency(d: date, frequency: str) -> date:
    """Step a date by one frequency unit.

    Month-based steps clamp to the last day of the target month, so
    2025-01-31 + 1 month is 2025-02-28 and 2024-02-29 + 1 year is 2025-02-28.
    Unknown frequencies (including "once") return the date unchanged.
    """
    if frequency == "daily":
        return d + timedelta(days=1)
    if frequency == "weekly":
        return d + timedelta(days=7)
    if frequency == "monthly":
        return _add_months(d, 1)
    if frequency == "quarterly":
        return _add_months(d, 3)
    if frequency == "yearly":
        return _add_months(d, 12)
    return d


def next_due_date(iso: str, frequency: str) -> str:
    return add_by_frequency(parse_iso(iso), frequency).isoformat()


def build_series(title: str, impact: str, start_iso: str, end_iso: str, frequency: str) -> list[Task]:
    start = parse_iso(start_iso)
    end = parse_iso(end_iso)
    if start > end:
        return []
    if frequency not in {"daily", "weekly", "monthly", "quarterly", "yearly"}:
        raise ValueError(f"Series needs a recurring frequency, got {frequency!r}")
    out: list[Task] = []
    cursor = start
    while cursor <= end:
        out.append(
            Task(
                id=new_id(),
                title=title.strip(),
                due_date=cursor.isoformat(),
                impact=impact,
                frequency="once",
                completed=False,
            )
        )
        cursor = add_by_frequency(cursor, frequency)
    return out


def daily_window_days(today: date, target_date: str, duration_days: int | None) -> int:
    if duration_days is not None and duration_days > 0:
        return min(duration_days, MAX_DAILY_DAYS)
    if target_date:
        days = (parse_iso(target_date) - today).days + 1
        return max(1, min(days, MAX_DAILY_DAYS))
    return DEFAULT_DAILY_DAYS


def plan_new_tasks(
    *,
    title: str,
    impact: str,
    frequency: str,
    today: date,
    goal_target_date: str,
    goal_end_date: str,
    duration_days: int | None = None,
) -> list[Task]:
    """Materialize the tasks created when a task is added to a goal.

    Daily tasks become a full daily series capped by the goal end date;
    other recurring frequencies become a series up to the goal's target
    date, or a single recurring shell task due today when the goal has none.
    """
    start_iso = today.isoformat()
    if frequency == "daily":
        days = daily_window_days(today, goal_target_date, duration_days)
        end_by_days = today + timedelta(days=days - 1)
        capped_end = min(end_by_days, parse_iso(goal_end_date))
        return build_series(title, impact, start_iso, capped_end.isoformat(), "daily")

    if frequency != "once":
        if goal_target_date:
            return build_series(title, impact, start_iso, goal_target_date, frequency)
        return [Task(id=new_id(), title=title, due_date=start_iso, impact=impact, frequency=frequency)]

    return [Task(id=new_id(), title=title, due_date=start_iso, impact=impact, frequency="once")]
