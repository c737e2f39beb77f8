import json
from typing import Any

from fastapi import FastAPI, Request
from loguru import logger

from goal_tracker.core.reconcile import SyncMode
from goal_tracker.core.rows import rows_from_wire, rows_to_wire
from goal_tracker.db.repositories.sheet_rows_repo import apply_push, list_rows
from goal_tracker.db.session import get_session

app = FastAPI(title="goal-tracker-sheet")


@app.get("/health")
def health() -> dict[str, Any]:
    return {"ok": True}


@app.get("/exec")
def read_rows() -> dict[str, Any]:
    with get_session() as session:
        rows = list_rows(session)
    return {"rows": rows_to_wire(rows)}


@app.post("/exec")
async def write_rows(request: Request) -> dict[str, Any]:
    raw = await request.body()
    try:
        body = json.loads(raw.decode("utf-8") or "{}")
        if not isinstance(body, dict):
            raise ValueError("payload must be a JSON object")
        mode = SyncMode.parse(body.get("mode"), default=SyncMode.REPLACE)
        rows = rows_from_wire(body.get("rows"))
        with get_session() as session:
            stats = apply_push(session, mode, rows)
    except Exception as exc:
        logger.warning("sheet push rejected error={}", exc)
        return {"ok": False, "error": str(exc)}
    logger.info("sheet push ok stats={}", stats)
    return {"ok": True}
