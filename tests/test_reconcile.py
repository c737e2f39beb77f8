from __future__ import annotations

import pytest

from goal_tracker.core.reconcile import SyncMode, plan_merge, reconcile
from goal_tracker.core.rows import Row


def _row(key: str, value: str) -> Row:
    return Row(goal_id="g", task_id=key, task_title=value, frequency="once")


def test_merge_updates_deletes_and_inserts() -> None:
    existing = [_row("A", "1"), _row("B", "2")]
    desired = [_row("A", "1"), _row("C", "3")]
    result = reconcile(SyncMode.MERGE, existing, desired)
    assert [r.task_id for r in result.rows] == ["A", "C"]
    assert result.plan.updates == []
    assert result.plan.deletes == [1]
    assert [r.task_id for r in result.plan.inserts] == ["C"]


def test_merge_overwrites_changed_row_in_place() -> None:
    existing = [_row("A", "1"), _row("B", "2"), _row("C", "3")]
    desired = [_row("C", "3"), _row("B", "20")]
    result = reconcile(SyncMode.MERGE, existing, desired)
    assert [(r.task_id, r.task_title) for r in result.rows] == [("B", "20"), ("C", "3")]
    assert [idx for idx, _ in result.plan.updates] == [1]


def test_merge_deletes_in_descending_index_order() -> None:
    existing = [_row("A", "1"), _row("B", "2"), _row("C", "3"), _row("D", "4")]
    plan = plan_merge(existing, [_row("C", "3")])
    assert plan.deletes == [3, 1, 0]


def test_merge_is_noop_for_identical_sets() -> None:
    rows = [_row("A", "1"), _row("B", "2")]
    assert plan_merge(rows, list(rows)).is_noop


def test_merge_with_duplicate_desired_keys_keeps_last() -> None:
    result = reconcile(SyncMode.MERGE, [], [_row("A", "1"), _row("A", "2")])
    assert [(r.task_id, r.task_title) for r in result.rows] == [("A", "2")]


def test_merge_updates_each_existing_duplicate() -> None:
    existing = [_row("A", "1"), _row("A", "1")]
    result = reconcile(SyncMode.MERGE, existing, [_row("A", "9")])
    assert [r.task_title for r in result.rows] == ["9", "9"]


def test_replace_discards_existing() -> None:
    result = reconcile(SyncMode.REPLACE, [_row("A", "1"), _row("B", "2")], [_row("C", "3")])
    assert [r.task_id for r in result.rows] == ["C"]
    assert result.plan.summary == {"updated": 0, "deleted": 2, "inserted": 1}


def test_append_duplicates_existing_key_but_merge_updates() -> None:
    existing = [_row("A", "1")]
    payload = [_row("A", "2")]
    appended = reconcile(SyncMode.APPEND, existing, payload)
    assert [(r.task_id, r.task_title) for r in appended.rows] == [("A", "1"), ("A", "2")]
    merged = reconcile(SyncMode.MERGE, existing, payload)
    assert [(r.task_id, r.task_title) for r in merged.rows] == [("A", "2")]


def test_sync_mode_parse() -> None:
    assert SyncMode.parse("MERGE") is SyncMode.MERGE
    assert SyncMode.parse(None, default=SyncMode.REPLACE) is SyncMode.REPLACE
    assert SyncMode.parse("bogus", default=SyncMode.REPLACE) is SyncMode.REPLACE
    with pytest.raises(ValueError):
        SyncMode.parse("bogus")
