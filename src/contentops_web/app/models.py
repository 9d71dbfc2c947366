"""Pydantic models mirrored from the blog-generation backend responses.

Beginner terms used in this file:
- DTO (data-transfer object): a record whose only job is to carry data between
  the backend and the pages. Nothing here is persisted by this service.
- Literal: restricts a field to a fixed set of allowed string values.
- extra="ignore": unknown keys from the backend are dropped instead of failing.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# Agents known to the pipeline. Logs may still carry other names; those render
# with the fallback display config.
AgentName = Literal["researcher", "writer_agent", "fact_checker_agent", "polisher_agent"]
KNOWN_AGENTS: tuple[str, ...] = (
    "researcher",
    "writer_agent",
    "fact_checker_agent",
    "polisher_agent",
)

# Badge vocabulary for runs and timeline entries.
RunStatus = Literal["pending", "running", "completed", "failed", "retrying"]


class BackendModel(BaseModel):
    # Backend ids may arrive as integers.
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class PostSummary(BackendModel):
    """One row of GET /api/posts."""

    id: str
    run_id: str
    # Prompt text submitted for the run; its first line carries the topic.
    prd_content: str | None = None
    created_at: str
    fact_check_passed: bool = False
    retry_count: int = 0


class PostDetail(PostSummary):
    """One element of GET /api/posts/{run_id}."""

    final_post: str | None = None


class GenerateRequest(BaseModel):
    """Request body for POST /api/generate."""

    prd_content: str = Field(min_length=1)


class GenerateResponse(BackendModel):
    """Response body for POST /api/generate."""

    run_id: str
    retry_count: int = 0
    fact_check_passed: bool = False
    final_post: str | None = None


class LogMetadata(BackendModel):
    """Optional per-stage metadata recorded by the pipeline."""

    sources: list[str] = Field(default_factory=list)
    retry_count: int | None = None
    error_message: str | None = None
    word_count: int | None = None
    facts_verified: int | None = None
    facts_flagged: int | None = None


class AgentLog(BackendModel):
    """One element of GET /api/runs/{run_id}/logs."""

    id: str
    run_id: str
    # Usually an AgentName; unknown names are kept as-is.
    agent: str
    input: str = ""
    output: str = ""
    metadata: LogMetadata | None = None
    created_at: str


class TimelineEntry(BaseModel):
    """Display form of an AgentLog."""

    id: str
    run_id: str
    agent: str
    content: str
    status: RunStatus = "completed"
    metadata: LogMetadata | None = None
    created_at: str


class TimelineRun(BaseModel):
    """Header shown above a run's timeline."""

    id: str
    run_id: str
    agent: str
    # Topic extracted from the post, or a generic title.
    content: str
    status: RunStatus = "completed"
    created_at: str
    finished_at: str | None = None


class DashboardStats(BaseModel):
    total_posts: int
    successful_posts: int
    # Integer percent of posts that passed fact-checking.
    success_rate: int
    # Preformatted with one decimal, "0" when there are no posts.
    avg_retries: str
