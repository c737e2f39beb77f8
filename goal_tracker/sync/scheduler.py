from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from loguru import logger

from goal_tracker.core.reconcile import SyncMode
from goal_tracker.core.rows import Row, flatten, inflate
from goal_tracker.core.tracker import GoalTracker
from goal_tracker.sheets.errors import ProtocolError, SheetsSyncError
from goal_tracker.sheets.transport import SheetsTransport

DEFAULT_DEBOUNCE_SEC = 0.8


@dataclass(slots=True)
class SyncStatus:
    ok: bool
    action: str
    mode: str | None = None
    rows: int = 0
    error_kind: str | None = None
    message: str = ""


class SyncScheduler:
    """Keeps the remote sheet following local state.

    Every tracker mutation restarts one timer; when it fires, the whole
    current state is flattened and pushed in replace mode. Pushes are not
    serialized: one started earlier may land after a later one, and nothing
    is retried or rolled back on failure.
    """

    def __init__(
        self,
        tracker: GoalTracker,
        transport: SheetsTransport,
        *,
        debounce_sec: float = DEFAULT_DEBOUNCE_SEC,
        enabled: bool = True,
    ) -> None:
        self.tracker = tracker
        self.transport = transport
        self.debounce_sec = debounce_sec
        self.enabled = enabled
        self.busy = False
        self.initializing = False
        self.last_status: SyncStatus | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._skip_next = False
        self._inflight: set[asyncio.Task[SyncStatus]] = set()
        self._unsubscribe = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    async def start(self) -> SyncStatus:
        self._loop = asyncio.get_running_loop()
        if self._unsubscribe is None:
            self._unsubscribe = self.tracker.subscribe(self._on_mutation)
        return await self.initial_pull()

    async def initial_pull(self) -> SyncStatus:
        self.initializing = True
        try:
            try:
                rows = await self.transport.pull()
            except Exception as exc:
                status = self._failure("initial_pull", None, exc)
                logger.warning("initial import failed kind={} error={}", status.error_kind, status.message)
                return self._record(status)
            goals = inflate(rows)
            # The import itself is a mutation; re-exporting it would just echo the sheet back.
            self._skip_next = self._unsubscribe is not None
            self.tracker.replace_all(goals)
            logger.info("initial import ok goals={} rows={}", len(goals), len(rows))
            return self._record(SyncStatus(ok=True, action="initial_pull", rows=len(rows)))
        finally:
            self.initializing = False

    def _on_mutation(self) -> None:
        if self._skip_next:
            self._skip_next = False
            return
        if not self.enabled or self._loop is None:
            return
        self._cancel_timer()
        self._timer = self._loop.call_later(self.debounce_sec, self._fire)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        self._timer = None
        rows = flatten(self.tracker.goals)
        self._spawn(self._push(SyncMode.REPLACE, rows, action="auto_push"))

    def _spawn(self, coro: Any) -> asyncio.Task[SyncStatus]:
        assert self._loop is not None
        task = self._loop.create_task(coro)
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def _push(self, mode: SyncMode, rows: list[Row], *, action: str) -> SyncStatus:
        try:
            ack = await self.transport.push(mode, rows)
        except Exception as exc:
            status = self._failure(action, mode, exc)
            logger.warning(
                "{} failed mode={} kind={} error={}", action.replace("_", " "), mode.value, status.error_kind, status.message
            )
            return self._record(status)
        if not ack.ok:
            message = ack.error or f"non-ok acknowledgment (status {ack.status})"
            logger.warning("{} failed mode={} kind={} error={}", action.replace("_", " "), mode.value, ProtocolError.kind, message)
            return self._record(
                SyncStatus(ok=False, action=action, mode=mode.value, rows=len(rows), error_kind=ProtocolError.kind, message=message)
            )
        logger.info("{} ok mode={} rows={}", action.replace("_", " "), mode.value, len(rows))
        return self._record(SyncStatus(ok=True, action=action, mode=mode.value, rows=len(rows)))

    def _failure(self, action: str, mode: SyncMode | None, exc: Exception) -> SyncStatus:
        if isinstance(exc, SheetsSyncError):
            kind = exc.kind
        else:
            logger.exception("unexpected sync error action={}", action)
            kind = "unexpected"
        return SyncStatus(
            ok=False,
            action=action,
            mode=mode.value if mode is not None else None,
            error_kind=kind,
            message=str(exc),
        )

    def _record(self, status: SyncStatus) -> SyncStatus:
        self.last_status = status
        return status

    async def manual_export(self, mode: SyncMode = SyncMode.REPLACE) -> SyncStatus:
        self.busy = True
        try:
            return await self._push(mode, flatten(self.tracker.goals), action="manual_export")
        finally:
            self.busy = False

    async def manual_import(self) -> SyncStatus:
        """Replace local state with the sheet contents.

        Unlike the startup import this counts as a regular mutation, so the
        debounced push writes the imported state back afterwards.
        """
        self.busy = True
        try:
            try:
                rows = await self.transport.pull()
            except Exception as exc:
                status = self._failure("manual_import", None, exc)
                logger.warning("manual import failed kind={} error={}", status.error_kind, status.message)
                return self._record(status)
            goals = inflate(rows)
            self.tracker.replace_all(goals)
            logger.info("manual import ok goals={} rows={}", len(goals), len(rows))
            return self._record(SyncStatus(ok=True, action="manual_import", rows=len(rows)))
        finally:
            self.busy = False

    async def flush(self) -> SyncStatus | None:
        """Fire a pending debounced push now and wait for every push in flight."""
        if self._timer is not None:
            self._cancel_timer()
            self._fire()
        if not self._inflight:
            return None
        await asyncio.gather(*list(self._inflight), return_exceptions=True)
        return self.last_status

    async def aclose(self) -> None:
        self._cancel_timer()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)
