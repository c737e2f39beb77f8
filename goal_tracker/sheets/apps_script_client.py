from __future__ import annotations

import json
from typing import Any

import httpx
from loguru import logger

from goal_tracker.core.reconcile import SyncMode
from goal_tracker.core.rows import Row, rows_from_wire, rows_to_wire
from goal_tracker.sheets.errors import ConfigurationError, ParseError, ProtocolError, TransportError
from goal_tracker.sheets.transport import PushAck

# text/plain keeps the POST a "simple" request, so browsers and proxies skip the pre-flight.
PUSH_CONTENT_TYPE = "text/plain;charset=utf-8"


def _looks_like_html(text: str) -> bool:
    head = text.lstrip()[:64].lower()
    return head.startswith("<!doctype") or head.startswith("<html")


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as exc:
        raise ParseError(f"Response is not valid JSON: {exc}") from exc


class AppsScriptClient:
    """Client for a spreadsheet web-app endpoint exposing GET/POST on one URL."""

    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout: float = 30.0,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not url:
            raise ConfigurationError("Sheets endpoint URL is not configured")
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self._http_transport = http_transport

    def _params(self) -> dict[str, str]:
        return {"key": self.api_key} if self.api_key else {}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
            transport=self._http_transport,
        )

    async def pull(self) -> list[Row]:
        try:
            async with self._client() as client:
                response = await client.get(self.url, params=self._params())
        except httpx.RequestError as exc:
            raise TransportError(f"Sheets pull failed: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            logger.warning("sheets pull failed status={} body_head={!r}", response.status_code, (response.text or "")[:200])
            raise ProtocolError(f"Failed to pull from Sheets (status {response.status_code}).")

        content_type = response.headers.get("content-type", "")
        text = response.text or ""
        if "application/json" not in content_type and _looks_like_html(text):
            raise ConfigurationError(
                "Endpoint returned HTML (likely a sign-in page or a non-public script). "
                "Make the script public or check the URL."
            )

        try:
            data = _parse_json(text)
        except ParseError as exc:
            logger.warning("sheets pull parse error, treating as empty: {}", exc)
            return []

        if not isinstance(data, dict):
            raise ProtocolError(f"Unexpected pull body type: {type(data).__name__}")
        raw_rows = data.get("rows")
        if raw_rows is None:
            return []
        if not isinstance(raw_rows, list):
            raise ProtocolError("Pull body field 'rows' is not a list")
        rows = rows_from_wire(raw_rows)
        logger.info("sheets pull ok status={} rows={}", response.status_code, len(rows))
        return rows

    async def push(self, mode: SyncMode, rows: list[Row]) -> PushAck:
        body = json.dumps({"mode": mode.value, "rows": rows_to_wire(rows)}, ensure_ascii=False)
        try:
            async with self._client() as client:
                response = await client.post(
                    self.url,
                    params=self._params(),
                    headers={"Content-Type": PUSH_CONTENT_TYPE},
                    content=body.encode("utf-8"),
                )
        except httpx.RequestError as exc:
            raise TransportError(f"Sheets push failed: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            logger.warning("sheets push failed status={} body_head={!r}", response.status_code, (response.text or "")[:200])
            raise ProtocolError(f"Sheets push rejected (status {response.status_code}).")

        try:
            payload = response.json()
        except ValueError:
            return PushAck(ok=True, status=response.status_code)
        if not isinstance(payload, dict):
            return PushAck(ok=True, status=response.status_code)
        ok = payload.get("ok", True) is not False
        error = payload.get("error")
        return PushAck(ok=ok, error=str(error) if error else None, status=response.status_code)
