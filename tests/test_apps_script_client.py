from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from goal_tracker.core.reconcile import SyncMode
from goal_tracker.core.rows import Row
from goal_tracker.sheets.apps_script_client import AppsScriptClient
from goal_tracker.sheets.errors import ConfigurationError, ProtocolError, TransportError

URL = "https://script.example.test/macros/s/abc/exec"


def _client(handler, api_key: str = "") -> AppsScriptClient:
    return AppsScriptClient(URL, api_key=api_key, http_transport=httpx.MockTransport(handler))


def test_pull_parses_rows_and_sends_key() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["key"] = request.url.params.get("key")
        return httpx.Response(200, json={"rows": [{"goalId": "g1", "taskId": "t1", "taskTitle": "T", "completed": "TRUE"}]})

    rows = asyncio.run(_client(handler, api_key="secret").pull())
    assert seen == {"method": "GET", "key": "secret"}
    assert rows == [Row(goal_id="g1", task_id="t1", task_title="T", completed="TRUE")]


def test_pull_html_is_configuration_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<!DOCTYPE html><html>Sign in</html>", headers={"content-type": "text/html"})

    with pytest.raises(ConfigurationError):
        asyncio.run(_client(handler).pull())


def test_pull_unparseable_json_yields_empty() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="{rows: oops", headers={"content-type": "application/json"})

    assert asyncio.run(_client(handler).pull()) == []


def test_pull_non_success_status_is_protocol_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with pytest.raises(ProtocolError):
        asyncio.run(_client(handler).pull())


def test_pull_rows_not_list_is_protocol_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"rows": {"goalId": "g1"}})

    with pytest.raises(ProtocolError):
        asyncio.run(_client(handler).pull())


def test_network_failure_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(TransportError):
        asyncio.run(_client(handler).pull())
    with pytest.raises(TransportError):
        asyncio.run(_client(handler).push(SyncMode.REPLACE, []))


def test_push_is_simple_text_request() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["content_type"] = request.headers.get("content-type")
        seen["body"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(200, json={"ok": True})

    ack = asyncio.run(_client(handler).push(SyncMode.MERGE, [Row(goal_id="g1", task_id="t1")]))
    assert ack.ok is True
    assert seen["content_type"] == "text/plain;charset=utf-8"
    assert seen["body"]["mode"] == "merge"
    assert seen["body"]["rows"][0]["goalId"] == "g1"
    assert seen["body"]["rows"][0]["completed"] == "FALSE"


def test_push_error_ack_and_non_json_body() -> None:
    def failing(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": False, "error": "sheet locked"})

    ack = asyncio.run(_client(failing).push(SyncMode.REPLACE, []))
    assert ack.ok is False
    assert ack.error == "sheet locked"

    def plain(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="done")

    assert asyncio.run(_client(plain).push(SyncMode.REPLACE, [])).ok is True


def test_push_non_success_status_is_protocol_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="forbidden")

    with pytest.raises(ProtocolError):
        asyncio.run(_client(handler).push(SyncMode.APPEND, []))


def test_missing_url_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        AppsScriptClient("")
