from __future__ import annotations

import io
import json
from http import client as http_client
from urllib import error, request

import pytest

from contentops_web.app import api_client
from contentops_web.app.api_client import (
    BackendApiError,
    ContentOpsApiClient,
    build_api_client_from_settings,
)
from contentops_web.app.config import Settings


class _FakeHTTPResponse:
    def __init__(self, payload: object, *, raw: bytes | None = None) -> None:
        self._raw_body = raw if raw is not None else json.dumps(payload).encode("utf-8")

    def read(self) -> bytes:
        return self._raw_body

    def __enter__(self) -> _FakeHTTPResponse:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        _ = (exc_type, exc, tb)
        return False


def _install(monkeypatch: pytest.MonkeyPatch, payload: object, captured: dict) -> None:
    def fake_urlopen(req: request.Request, timeout: float):
        captured["url"] = req.full_url
        captured["method"] = req.get_method()
        captured["timeout"] = timeout
        captured["body"] = req.data
        captured["headers"] = dict(req.header_items())
        return _FakeHTTPResponse(payload)

    monkeypatch.setattr(api_client.request, "urlopen", fake_urlopen)


def _client() -> ContentOpsApiClient:
    return ContentOpsApiClient(
        base_url="http://backend.test/",
        timeout_s=3.0,
        generate_timeout_s=120.0,
    )


POST_ROW = {
    "id": 7,
    "run_id": "run-7",
    "prd_content": "Topic: Edge caching",
    "created_at": "2026-02-15T08:30:00Z",
    "fact_check_passed": False,
    "retry_count": 2,
}


def test_list_posts_accepts_wrapped_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict = {}
    _install(monkeypatch, {"posts": [POST_ROW]}, captured)

    posts = _client().list_posts()

    assert captured["url"] == "http://backend.test/api/posts"
    assert captured["method"] == "GET"
    assert captured["timeout"] == 3.0
    assert len(posts) == 1
    assert posts[0].id == "7"
    assert posts[0].retry_count == 2


def test_list_posts_accepts_bare_list(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, [POST_ROW, {**POST_ROW, "id": 8, "run_id": "run-8"}], {})

    posts = _client().list_posts()

    assert [post.run_id for post in posts] == ["run-7", "run-8"]


def test_list_posts_treats_missing_key_as_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, {"items": []}, {})
    assert _client().list_posts() == []


def test_get_post_returns_first_record_or_none(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict = {}
    _install(monkeypatch, {"posts": [{**POST_ROW, "final_post": "# Body"}]}, captured)

    post = _client().get_post("run 7/x")

    assert captured["url"] == "http://backend.test/api/posts/run%207%2Fx"
    assert post is not None
    assert post.final_post == "# Body"

    _install(monkeypatch, {"posts": []}, {})
    assert _client().get_post("missing") is None


def test_get_run_logs_keeps_order_and_accepts_unknown_agents(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    captured: dict = {}
    payload = {
        "logs": [
            {
                "id": 2,
                "run_id": "run-7",
                "agent": "researcher",
                "input": "",
                "output": "notes",
                "metadata": {"sources": ["https://example.org"], "extra": 1},
                "created_at": "2026-02-15T08:30:00Z",
            },
            {
                "id": 1,
                "run_id": "run-7",
                "agent": "seo_agent",
                "input": "",
                "output": "keywords",
                "created_at": "2026-02-15T08:31:00Z",
            },
        ]
    }
    _install(monkeypatch, payload, captured)

    logs = _client().get_run_logs("run-7")

    assert captured["url"] == "http://backend.test/api/runs/run-7/logs"
    assert [log.id for log in logs] == ["2", "1"]
    assert logs[0].metadata is not None
    assert logs[0].metadata.sources == ["https://example.org"]
    assert logs[1].agent == "seo_agent"
    assert logs[1].metadata is None


def test_generate_post_sends_json_body_with_generate_timeout(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    captured: dict = {}
    _install(
        monkeypatch,
        {"run_id": "run-9", "retry_count": 1, "fact_check_passed": True, "final_post": "x"},
        captured,
    )

    result = _client().generate_post("Topic: Edge caching")

    assert captured["method"] == "POST"
    assert captured["url"] == "http://backend.test/api/generate"
    assert captured["timeout"] == 120.0
    assert json.loads(captured["body"]) == {"prd_content": "Topic: Edge caching"}
    assert captured["headers"]["Content-type"] == "application/json"
    assert result.run_id == "run-9"
    assert result.fact_check_passed is True


def test_http_error_becomes_backend_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(req: request.Request, timeout: float):
        raise error.HTTPError(
            req.full_url, 500, "Internal Server Error", None, io.BytesIO(b'{"detail":"boom"}')
        )

    monkeypatch.setattr(api_client.request, "urlopen", fake_urlopen)

    with pytest.raises(BackendApiError, match="status 500") as excinfo:
        _client().list_posts()
    assert excinfo.value.status_code == 500


def test_connection_error_becomes_backend_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(req: request.Request, timeout: float):
        raise error.URLError("Connection refused")

    monkeypatch.setattr(api_client.request, "urlopen", fake_urlopen)

    with pytest.raises(BackendApiError, match="Connection refused") as excinfo:
        _client().get_run_logs("run-7")
    assert excinfo.value.status_code is None


def test_timeout_becomes_backend_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(req: request.Request, timeout: float):
        raise TimeoutError("timed out")

    monkeypatch.setattr(api_client.request, "urlopen", fake_urlopen)

    with pytest.raises(BackendApiError, match="timed out"):
        _client().generate_post("Topic: x")


def test_non_json_body_becomes_backend_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        api_client.request,
        "urlopen",
        lambda req, timeout: _FakeHTTPResponse(None, raw=b"<html>gateway</html>"),
    )

    with pytest.raises(BackendApiError, match="non-JSON"):
        _client().list_posts()

    monkeypatch.setattr(
        api_client.request,
        "urlopen",
        lambda req, timeout: _FakeHTTPResponse(None, raw=b'{"posts": ["\xff\xfe"]}'),
    )

    with pytest.raises(BackendApiError, match="unreadable response"):
        _client().list_posts()


def test_truncated_body_becomes_backend_error(monkeypatch: pytest.MonkeyPatch) -> None:
    class _TruncatedResponse(_FakeHTTPResponse):
        def read(self) -> bytes:
            raise http_client.IncompleteRead(b'{"posts": [', 120)

    monkeypatch.setattr(
        api_client.request,
        "urlopen",
        lambda req, timeout: _TruncatedResponse(None, raw=b""),
    )

    with pytest.raises(BackendApiError, match="unreadable response"):
        _client().get_run_logs("run-7")


def test_unexpected_shapes_become_backend_error(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, {"logs": {"not": "a list"}}, {})
    with pytest.raises(BackendApiError, match="'logs' to be a list"):
        _client().get_run_logs("run-7")

    _install(monkeypatch, {"posts": [{"id": 1}]}, {})
    with pytest.raises(BackendApiError, match="invalid PostSummary"):
        _client().list_posts()

    _install(monkeypatch, {"retry_count": 0}, {})
    with pytest.raises(BackendApiError, match="invalid GenerateResponse"):
        _client().generate_post("Topic: x")


def test_build_api_client_from_settings_strips_trailing_slash() -> None:
    settings = Settings(
        api_base_url=" http://api.local:9000/ ",
        request_timeout_s=4.5,
        generate_timeout_s=60,
    )

    built = build_api_client_from_settings(settings)

    assert built.base_url == "http://api.local:9000"
    assert built.timeout_s == 4.5
    assert built.generate_timeout_s == 60
