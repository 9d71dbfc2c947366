"""Deterministic stand-in for the blog-generation backend.

Serves the same /api/* shapes as the real service from seeded JSON so the
frontend can be run and tested without the agent pipeline. Generation does not
call any model: it fabricates four agent logs and a short final post.

Run with: uvicorn contentops_web.mock_backend.api:app --port 8000
"""

from __future__ import annotations

import threading
import uuid
from copy import deepcopy
from typing import Any

from fastapi import FastAPI

from contentops_web.app.models import GenerateRequest, GenerateResponse
from contentops_web.app.timeline import extract_topic
from contentops_web.mock_backend.common import load_seed_json, utc_now_iso

PIPELINE_AGENTS = ("researcher", "writer_agent", "fact_checker_agent", "polisher_agent")


class MockRunStore:
    """In-memory post and log records keyed by run id."""

    def __init__(self, seed: dict[str, Any] | None = None) -> None:
        self._lock = threading.Lock()
        self._posts: dict[str, dict[str, Any]] = {}
        self._logs: dict[str, list[dict[str, Any]]] = {}
        self._next_post_id = 1
        self._next_log_id = 1
        for run in (seed or {}).get("runs", []):
            self._add(deepcopy(run["post"]), deepcopy(run.get("logs", [])))

    def _add(self, post: dict[str, Any], logs: list[dict[str, Any]]) -> None:
        run_id = post["run_id"]
        for log in logs:
            log.setdefault("run_id", run_id)
            log.setdefault("input", "")
            log.setdefault("metadata", None)
            self._next_log_id = max(self._next_log_id, int(log["id"]) + 1)
        self._posts[run_id] = post
        self._logs[run_id] = logs
        self._next_post_id = max(self._next_post_id, int(post["id"]) + 1)

    def list_posts(self) -> list[dict[str, Any]]:
        with self._lock:
            posts = [deepcopy(post) for post in self._posts.values()]
        return sorted(posts, key=lambda item: item["created_at"], reverse=True)

    def get_post(self, run_id: str) -> dict[str, Any] | None:
        with self._lock:
            post = self._posts.get(run_id)
            return deepcopy(post) if post else None

    def get_logs(self, run_id: str) -> list[dict[str, Any]]:
        with self._lock:
            return deepcopy(self._logs.get(run_id, []))

    def create_run(self, prd_content: str) -> dict[str, Any]:
        topic = extract_topic(prd_content) or "Untitled"
        run_id = str(uuid.uuid4())
        created_at = utc_now_iso()
        final_post = f"## {topic}\n\nA short mock article about **{topic}**.\n"
        outputs = {
            "researcher": f"Collected background material on {topic}.",
            "writer_agent": final_post,
            "fact_checker_agent": "All claims verified.",
            "polisher_agent": final_post,
        }
        metadata = {
            "researcher": {"sources": ["https://example.org/mock-source"]},
            "writer_agent": {"word_count": len(final_post.split())},
            "fact_checker_agent": {"facts_verified": 1, "facts_flagged": 0},
            "polisher_agent": {"word_count": len(final_post.split())},
        }
        with self._lock:
            post = {
                "id": str(self._next_post_id),
                "run_id": run_id,
                "prd_content": prd_content,
                "final_post": final_post,
                "created_at": created_at,
                "fact_check_passed": True,
                "retry_count": 0,
            }
            logs = []
            for agent in PIPELINE_AGENTS:
                logs.append(
                    {
                        "id": self._next_log_id,
                        "run_id": run_id,
                        "agent": agent,
                        "input": prd_content,
                        "output": outputs[agent],
                        "metadata": metadata[agent],
                        "created_at": created_at,
                    }
                )
                self._next_log_id += 1
            self._posts[run_id] = post
            self._logs[run_id] = logs
            self._next_post_id += 1
        return post


def create_app(store: MockRunStore | None = None) -> FastAPI:
    app = FastAPI(
        title="ContentOps Mock Backend",
        version="1.0.0",
        description="Deterministic blog-generation API backed by seeded JSON data.",
    )
    app.state.store = store or MockRunStore(load_seed_json("seed_runs.json"))

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "system": "contentops-mock-backend"}

    @app.get("/api/posts")
    def list_posts() -> dict[str, list[dict[str, Any]]]:
        posts = app.state.store.list_posts()
        # The list view never carried the full article body.
        for post in posts:
            post.pop("final_post", None)
        return {"posts": posts}

    @app.get("/api/posts/{run_id}")
    def get_post(run_id: str) -> dict[str, list[dict[str, Any]]]:
        post = app.state.store.get_post(run_id)
        return {"posts": [post] if post else []}

    @app.get("/api/runs/{run_id}/logs")
    def get_logs(run_id: str) -> dict[str, list[dict[str, Any]]]:
        return {"logs": app.state.store.get_logs(run_id)}

    @app.post("/api/generate", response_model=GenerateResponse)
    def generate(payload: GenerateRequest) -> GenerateResponse:
        post = app.state.store.create_run(payload.prd_content)
        return GenerateResponse(
            run_id=post["run_id"],
            retry_count=post["retry_count"],
            fact_check_passed=post["fact_check_passed"],
            final_post=post["final_post"],
        )

    return app


app = create_app()
