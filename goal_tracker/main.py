import argparse
import asyncio
import sys
from pathlib import Path
from typing import Callable

import uvicorn
from dotenv import find_dotenv, load_dotenv
from loguru import logger

from goal_tracker.logging_setup import setup_logging


def _load_env() -> None:
    env_path = find_dotenv(usecwd=True)
    if not env_path:
        candidate = Path(__file__).resolve().parents[1] / ".env"
        if candidate.exists():
            env_path = str(candidate)
    if env_path:
        logger.info("Loaded .env from {}", env_path)
        load_dotenv(env_path, override=True)
    else:
        logger.warning("No .env found")


def _run_migrations() -> None:
    from alembic import command
    from alembic.config import Config

    config_path = Path(__file__).resolve().parents[1] / "alembic.ini"
    alembic_cfg = Config(str(config_path))
    command.upgrade(alembic_cfg, "head")


def _build_transport():
    from goal_tracker.config import settings
    from goal_tracker.sheets.apps_script_client import AppsScriptClient

    if not settings.sheets_api_url:
        return None
    return AppsScriptClient(
        settings.sheets_api_url,
        api_key=settings.sheets_api_key,
        timeout=settings.sheets_timeout_sec,
    )


def _build_tracker():
    from goal_tracker.config import settings
    from goal_tracker.core.tracker import GoalTracker, today_in
    from goal_tracker.db.repositories.state_repo import load_goals, save_goals
    from goal_tracker.db.session import get_session

    with get_session() as session:
        goals = load_goals(session)
    tracker = GoalTracker(goals, today=lambda: today_in(settings.timezone))

    def _persist() -> None:
        with get_session() as session:
            save_goals(session, tracker.goals)

    tracker.subscribe(_persist)
    return tracker


def _print_status(status) -> None:
    if status is None:
        return
    if status.ok:
        print(f"{status.action}: ok ({status.rows} rows)")
    else:
        print(f"{status.action}: failed [{status.error_kind}] {status.message}")


async def _run_mutation(action: Callable) -> int:
    from goal_tracker.config import settings
    from goal_tracker.sync.scheduler import SyncScheduler

    tracker = _build_tracker()
    transport = _build_transport()
    scheduler = None
    if transport is not None and settings.sync_enabled:
        scheduler = SyncScheduler(
            tracker,
            transport,
            debounce_sec=settings.sync_debounce_ms / 1000.0,
        )
        await scheduler.start()
    code = action(tracker)
    if tracker.error:
        print(tracker.error)
    if scheduler is not None:
        _print_status(await scheduler.flush())
        await scheduler.aclose()
    return code


async def _run_sync(args: argparse.Namespace) -> int:
    from goal_tracker.core.reconcile import SyncMode
    from goal_tracker.sync.scheduler import SyncScheduler

    transport = _build_transport()
    if transport is None:
        print("SHEETS_API_URL is not configured")
        return 2
    scheduler = SyncScheduler(_build_tracker(), transport, enabled=False)
    if args.command == "pull":
        status = await scheduler.manual_import()
    else:
        status = await scheduler.manual_export(SyncMode.parse(args.mode))
    _print_status(status)
    return 0 if status.ok else 1


def _cmd_list(args: argparse.Namespace) -> int:
    from goal_tracker.config import settings
    from goal_tracker.core.tracker import overall_progress, progress_of, today_in
    from goal_tracker.core.views import TaskFilter, filter_tasks, sort_tasks
    from goal_tracker.db.repositories.state_repo import load_goals, load_sort_mode, save_sort_mode
    from goal_tracker.db.session import get_session

    with get_session() as session:
        goals = load_goals(session)
        sort_mode = save_sort_mode(session, args.sort) if args.sort else load_sort_mode(session)

    today = today_in(settings.timezone)
    flt = TaskFilter(status=args.status, date_scope=args.scope, search=args.search or "")
    print(f"overall {overall_progress(goals)}%  sort={sort_mode}")
    for goal in goals:
        print(f"[{goal.id}] {goal.title} ({goal.impact}, target {goal.target_date or '-'}) {progress_of(goal)}%")
        if goal.collapsed:
            continue
        for task in sort_tasks(filter_tasks(goal.tasks, flt, today), sort_mode):
            mark = "x" if task.completed else " "
            print(f"    [{mark}] {task.due_date} {task.title} ({task.impact}, {task.frequency}) id={task.id}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    from goal_tracker.core.models import FREQUENCIES, IMPACTS
    from goal_tracker.core.views import DATE_SCOPES, SORT_OPTIONS, STATUS_OPTIONS

    parser = argparse.ArgumentParser(prog="goal-tracker")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("serve", help="run the sheet backend")

    p_list = sub.add_parser("list", help="show goals and tasks")
    p_list.add_argument("--sort", choices=SORT_OPTIONS)
    p_list.add_argument("--status", choices=STATUS_OPTIONS, default="all")
    p_list.add_argument("--scope", choices=DATE_SCOPES, default="all")
    p_list.add_argument("--search")

    sub.add_parser("pull", help="import goals from the sheet")
    p_push = sub.add_parser("push", help="export goals to the sheet")
    p_push.add_argument("--mode", choices=("replace", "merge", "append"), default="replace")

    p_goal = sub.add_parser("add-goal")
    p_goal.add_argument("title")
    p_goal.add_argument("--impact", choices=IMPACTS, default="Medium")
    p_goal.add_argument("--target")

    p_task = sub.add_parser("add-task")
    p_task.add_argument("goal_id")
    p_task.add_argument("title")
    p_task.add_argument("--impact", choices=IMPACTS, default="Medium")
    p_task.add_argument("--frequency", choices=FREQUENCIES, default="once")
    p_task.add_argument("--days", type=int)

    p_toggle = sub.add_parser("toggle")
    p_toggle.add_argument("goal_id")
    p_toggle.add_argument("task_id")
    p_toggle.add_argument("--uncheck", action="store_true")

    p_rm_goal = sub.add_parser("remove-goal")
    p_rm_goal.add_argument("goal_id")

    p_rm_task = sub.add_parser("remove-task")
    p_rm_task.add_argument("goal_id")
    p_rm_task.add_argument("task_id")
    return parser


def _mutation_for(args: argparse.Namespace) -> Callable | None:
    if args.command == "add-goal":
        return lambda t: 0 if t.add_goal(args.title, args.impact, args.target) else 1
    if args.command == "add-task":
        return lambda t: 0 if t.add_task(
            args.goal_id, args.title, impact=args.impact, frequency=args.frequency, duration_days=args.days
        ) else 1
    if args.command == "toggle":
        return lambda t: 0 if t.toggle_task(args.goal_id, args.task_id, not args.uncheck) else 1
    if args.command == "remove-goal":
        return lambda t: 0 if t.remove_goal(args.goal_id) else 1
    if args.command == "remove-task":
        return lambda t: 0 if t.remove_task(args.goal_id, args.task_id) else 1
    return None


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    _load_env()
    setup_logging()

    from goal_tracker.config import settings

    _run_migrations()

    if args.command == "serve":
        uvicorn.run("goal_tracker.api.app:app", host=settings.backend_host, port=settings.backend_port, reload=False)
        return 0
    if args.command == "list":
        return _cmd_list(args)
    if args.command in {"pull", "push"}:
        return asyncio.run(_run_sync(args))
    action = _mutation_for(args)
    if action is None:
        return 2
    return asyncio.run(_run_mutation(action))


if __name__ == "__main__":
    sys.exit(main())
