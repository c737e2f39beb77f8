from __future__ import annotations

from dataclasses import fields
from typing import Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from goal_tracker.core.reconcile import SyncMode, plan_merge
from goal_tracker.core.rows import Row
from goal_tracker.db.models import SheetRow

_ROW_ATTRS = tuple(f.name for f in fields(Row))


def _to_row(record: SheetRow) -> Row:
    return Row.from_values(getattr(record, attr) for attr in _ROW_ATTRS)


def _write(record: SheetRow, row: Row) -> None:
    for attr, value in zip(_ROW_ATTRS, row.values()):
        setattr(record, attr, value)


def _new_record(row: Row, position: int) -> SheetRow:
    record = SheetRow(position=position)
    _write(record, row)
    return record


def _records(session: Session) -> list[SheetRow]:
    return list(session.scalars(select(SheetRow).order_by(SheetRow.position.asc(), SheetRow.id.asc())).all())


def list_rows(session: Session) -> list[Row]:
    return [_to_row(r) for r in _records(session)]


def apply_push(session: Session, mode: SyncMode, rows: list[Row]) -> dict[str, Any]:
    records = _records(session)
    stats = {"mode": mode.value, "updated": 0, "deleted": 0, "inserted": 0}

    if mode is SyncMode.REPLACE:
        for record in records:
            session.delete(record)
        stats["deleted"] = len(records)
        records = []
    if mode is SyncMode.MERGE:
        plan = plan_merge([_to_row(r) for r in records], rows)
        for idx, row in plan.updates:
            _write(records[idx], row)
        for idx in plan.deletes:
            session.delete(records[idx])
            del records[idx]
        to_insert = plan.inserts
        stats.update(plan.summary)
    else:
        to_insert = list(rows)
        stats["inserted"] = len(to_insert)

    for row in to_insert:
        record = _new_record(row, 0)
        session.add(record)
        records.append(record)
    for position, record in enumerate(records):
        record.position = position
    session.flush()
    logger.info("sheet rows push applied stats={} total={}", stats, len(records))
    return stats
