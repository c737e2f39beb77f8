from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from goal_tracker.core.rows import Row


class SyncMode(str, Enum):
    REPLACE = "replace"
    MERGE = "merge"
    APPEND = "append"

    @classmethod
    def parse(cls, value: Any, default: "SyncMode | None" = None) -> "SyncMode":
        if isinstance(value, cls):
            return value
        raw = str(value or "").strip().lower()
        for mode in cls:
            if mode.value == raw:
                return mode
        if default is not None:
            return default
        raise ValueError(f"Unknown sync mode: {value!r}")


@dataclass(slots=True)
class MergePlan:
    updates: list[tuple[int, Row]] = field(default_factory=list)
    deletes: list[int] = field(default_factory=list)
    inserts: list[Row] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not (self.updates or self.deletes or self.inserts)

    @property
    def summary(self) -> dict[str, int]:
        return {
            "updated": len(self.updates),
            "deleted": len(self.deletes),
            "inserted": len(self.inserts),
        }


@dataclass(slots=True)
class ReconcileResult:
    mode: SyncMode
    rows: list[Row]
    plan: MergePlan

    @property
    def summary(self) -> dict[str, Any]:
        return {"mode": self.mode.value, "rows": len(self.rows), **self.plan.summary}


def plan_merge(existing: list[Row], desired: list[Row]) -> MergePlan:
    """Compute the insert/update/delete sets keyed by (goal_id, task_id).

    Every existing row is checked on its own, so duplicate keys already on
    the remote side are each updated rather than collapsed. Deletions are
    listed in descending index order; applying them last keeps the indices
    of earlier updates valid.
    """
    desired_by_key: dict[tuple[str, str], Row] = {}
    for row in desired:
        desired_by_key[row.key] = row

    existing_by_key: dict[tuple[str, str], list[int]] = {}
    for idx, row in enumerate(existing):
        existing_by_key.setdefault(row.key, []).append(idx)

    plan = MergePlan()
    for key, indices in existing_by_key.items():
        wanted = desired_by_key.get(key)
        for idx in indices:
            if wanted is None:
                plan.deletes.append(idx)
            elif existing[idx].values() != wanted.values():
                plan.updates.append((idx, wanted))
    plan.updates.sort(key=lambda item: item[0])
    plan.deletes.sort(reverse=True)

    seen: set[tuple[str, str]] = set()
    for row in desired:
        if row.key in existing_by_key or row.key in seen:
            continue
        seen.add(row.key)
        plan.inserts.append(desired_by_key[row.key])
    return plan


def apply_merge_plan(existing: list[Row], plan: MergePlan) -> list[Row]:
    out = list(existing)
    for idx, row in plan.updates:
        out[idx] = row
    for idx in plan.deletes:
        del out[idx]
    out.extend(plan.inserts)
    return out


def reconcile(mode: SyncMode, existing: list[Row], payload: list[Row]) -> ReconcileResult:
    if mode is SyncMode.REPLACE:
        plan = MergePlan(deletes=list(range(len(existing) - 1, -1, -1)), inserts=list(payload))
        return ReconcileResult(mode=mode, rows=list(payload), plan=plan)
    if mode is SyncMode.MERGE:
        plan = plan_merge(existing, payload)
        return ReconcileResult(mode=mode, rows=apply_merge_plan(existing, plan), plan=plan)
    if mode is SyncMode.APPEND:
        # No key matching: a payload row whose key already exists becomes a duplicate.
        plan = MergePlan(inserts=list(payload))
        return ReconcileResult(mode=mode, rows=list(existing) + list(payload), plan=plan)
    raise ValueError(f"Unsupported sync mode: {mode!r}")
