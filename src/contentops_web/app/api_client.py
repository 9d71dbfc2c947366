"""HTTP client for the blog-generation backend.

Every page goes through this client. Failures of any kind (connection refused,
timeout, non-2xx status, an unreadable or non-JSON body, JSON of the wrong
shape) surface as a single BackendApiError so pages can show one error card.
"""

from __future__ import annotations

import json
import logging
from http import client as http_client
from typing import Any, TypeVar
from urllib import error, parse, request

from pydantic import BaseModel, ValidationError

from .config import Settings
from .models import AgentLog, GenerateRequest, GenerateResponse, PostDetail, PostSummary

TModel = TypeVar("TModel", bound=BaseModel)
logger = logging.getLogger(__name__)


class BackendApiError(RuntimeError):
    """Raised for any failed call to the backend API."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ContentOpsApiClient:
    """Thin JSON client over urllib for the /api/* contract."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout_s: float = 10.0,
        generate_timeout_s: float = 300.0,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.generate_timeout_s = generate_timeout_s

    def list_posts(self) -> list[PostSummary]:
        raw = self._request_json("GET", "/api/posts")
        # The backend has shipped both a bare list and {"posts": [...]}.
        if isinstance(raw, dict):
            raw = raw.get("posts") or []
        if not isinstance(raw, list):
            raise BackendApiError(f"Unsupported posts payload: {type(raw).__name__}")
        return [_validate(PostSummary, item) for item in raw]

    def get_post(self, run_id: str) -> PostDetail | None:
        raw = self._request_json("GET", f"/api/posts/{_quote(run_id)}")
        posts = _list_field(raw, "posts")
        if not posts:
            return None
        return _validate(PostDetail, posts[0])

    def get_run_logs(self, run_id: str) -> list[AgentLog]:
        raw = self._request_json("GET", f"/api/runs/{_quote(run_id)}/logs")
        return [_validate(AgentLog, item) for item in _list_field(raw, "logs")]

    def generate_post(self, prd_content: str) -> GenerateResponse:
        payload = GenerateRequest(prd_content=prd_content)
        raw = self._request_json(
            "POST",
            "/api/generate",
            payload=payload.model_dump(),
            timeout_s=self.generate_timeout_s,
        )
        return _validate(GenerateResponse, raw)

    def _request_json(
        self,
        method: str,
        path: str,
        *,
        payload: dict[str, Any] | None = None,
        timeout_s: float | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        headers = {"Accept": "application/json"}
        if data is not None:
            headers["Content-Type"] = "application/json"
        req = request.Request(url=url, data=data, method=method, headers=headers)
        effective_timeout = timeout_s if timeout_s is not None else self.timeout_s

        logger.info("backend_request event=start method=%s path=%s", method, path)
        try:
            with request.urlopen(req, timeout=effective_timeout) as response:
                body = response.read().decode("utf-8")
        except error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            logger.warning(
                "backend_request event=failed method=%s path=%s status=%s",
                method,
                path,
                exc.code,
            )
            raise BackendApiError(
                f"{method} {path} failed with status {exc.code}: {detail[:300]}",
                status_code=exc.code,
            ) from exc
        except error.URLError as exc:
            logger.warning(
                "backend_request event=failed method=%s path=%s reason=%s",
                method,
                path,
                exc.reason,
            )
            raise BackendApiError(f"{method} {path} failed: {exc.reason}") from exc
        except TimeoutError as exc:
            logger.warning(
                "backend_request event=timeout method=%s path=%s timeout_s=%s",
                method,
                path,
                effective_timeout,
            )
            raise BackendApiError(f"{method} {path} timed out") from exc
        except ConnectionError as exc:
            logger.warning(
                "backend_request event=failed method=%s path=%s reason=%s",
                method,
                path,
                exc,
            )
            raise BackendApiError(f"{method} {path} failed: {exc}") from exc
        except (UnicodeDecodeError, http_client.HTTPException) as exc:
            logger.warning(
                "backend_request event=failed method=%s path=%s reason=%s",
                method,
                path,
                type(exc).__name__,
            )
            raise BackendApiError(f"{method} {path} returned an unreadable response.") from exc

        logger.info("backend_request event=completed method=%s path=%s", method, path)
        if not body:
            return {}
        try:
            return json.loads(body)
        except json.JSONDecodeError as exc:
            raise BackendApiError(f"{method} {path} returned non-JSON response.") from exc


def build_api_client_from_settings(settings: Settings) -> ContentOpsApiClient:
    return ContentOpsApiClient(
        base_url=settings.resolved_api_base_url(),
        timeout_s=settings.request_timeout_s,
        generate_timeout_s=settings.generate_timeout_s,
    )


def _quote(run_id: str) -> str:
    return parse.quote(run_id, safe="")


def _list_field(raw: Any, key: str) -> list[Any]:
    if not isinstance(raw, dict):
        raise BackendApiError(f"Expected JSON object with '{key}', got {type(raw).__name__}")
    items = raw.get(key) or []
    if not isinstance(items, list):
        raise BackendApiError(f"Expected '{key}' to be a list, got {type(items).__name__}")
    return items


def _validate(model: type[TModel], raw: Any) -> TModel:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise BackendApiError(
            f"Backend returned an invalid {model.__name__}: {exc.error_count()} error(s)"
        ) from exc
