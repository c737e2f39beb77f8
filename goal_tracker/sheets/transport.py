from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from loguru import logger

from goal_tracker.core.reconcile import SyncMode, reconcile
from goal_tracker.core.rows import Row


@dataclass(slots=True)
class PushAck:
    ok: bool
    error: str | None = None
    status: int | None = None


class SheetsTransport(Protocol):
    async def pull(self) -> list[Row]: ...

    async def push(self, mode: SyncMode, rows: list[Row]) -> PushAck: ...


class MemorySheetTransport:
    """Row store kept in process, applying pushes through the reconciler."""

    def __init__(self, rows: list[Row] | None = None) -> None:
        self.rows: list[Row] = list(rows or [])
        self.pushes: list[tuple[SyncMode, int]] = []
        self.pulls = 0

    async def pull(self) -> list[Row]:
        self.pulls += 1
        return list(self.rows)

    async def push(self, mode: SyncMode, rows: list[Row]) -> PushAck:
        result = reconcile(mode, self.rows, list(rows))
        self.rows = result.rows
        self.pushes.append((mode, len(rows)))
        logger.debug("memory sheet push {}", result.summary)
        return PushAck(ok=True)
