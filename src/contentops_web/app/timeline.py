"""Display-time transforms applied to backend records before rendering.

Nothing here talks to the network; every function is pure and takes the
already-parsed models from `api_client`.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from urllib.parse import quote
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .models import (
    AgentLog,
    DashboardStats,
    PostDetail,
    PostSummary,
    TimelineEntry,
    TimelineRun,
)

logger = logging.getLogger(__name__)

DEFAULT_RUN_TITLE = "Generated Blog Post"
DASHBOARD_TITLE_MAX_CHARS = 60
TIMELINE_TITLE_MAX_CHARS = 50
EXPORT_FILENAME_MAX_CHARS = 30

_TOPIC_PREFIX_RE = re.compile(r"^Topic:\s*", re.IGNORECASE)
_FILENAME_UNSAFE_RE = re.compile(r"[^A-Za-z0-9]")


@dataclass(frozen=True)
class AgentDisplay:
    icon: str
    title: str
    # CSS class suffix, e.g. "research" -> .agent-research
    accent: str


@dataclass(frozen=True)
class StatusDisplay:
    label: str
    css_class: str


AGENT_DISPLAY: dict[str, AgentDisplay] = {
    "researcher": AgentDisplay(icon="🔍", title="Research Agent", accent="research"),
    "writer_agent": AgentDisplay(icon="✍️", title="Writer Agent", accent="writer"),
    "fact_checker_agent": AgentDisplay(icon="✓", title="Fact-Checker Agent", accent="factcheck"),
    "polisher_agent": AgentDisplay(icon="✨", title="Polisher Agent", accent="polish"),
}
DEFAULT_AGENT_DISPLAY = AgentDisplay(icon="🤖", title="Unknown Agent", accent="unknown")

STATUS_DISPLAY: dict[str, StatusDisplay] = {
    "pending": StatusDisplay(label="Pending", css_class="status-pending"),
    "running": StatusDisplay(label="Running", css_class="status-running"),
    "completed": StatusDisplay(label="Completed", css_class="status-completed"),
    "failed": StatusDisplay(label="Failed", css_class="status-failed"),
    "retrying": StatusDisplay(label="Retrying", css_class="status-retrying"),
}


def agent_display(agent: str) -> AgentDisplay:
    return AGENT_DISPLAY.get(agent, DEFAULT_AGENT_DISPLAY)


def status_display(status: str) -> StatusDisplay:
    return STATUS_DISPLAY.get(status, STATUS_DISPLAY["pending"])


def extract_topic(prd_content: str | None) -> str:
    """Return the topic carried on the first line of a run's prompt text."""
    if not prd_content:
        return ""
    first_line = prd_content.split("\n", 1)[0]
    return _TOPIC_PREFIX_RE.sub("", first_line).strip()


def build_prd_content(topic: str, instructions: str = "") -> str:
    """Compose the prompt text sent to the backend; extract_topic reads it back."""
    prd_content = f"Topic: {topic}"
    if instructions:
        prd_content = f"{prd_content}\n\n{instructions}"
    return prd_content


def post_title(post: PostSummary) -> str:
    topic = extract_topic(post.prd_content)[:DASHBOARD_TITLE_MAX_CHARS]
    return topic or f"Post #{post.run_id[:8]}"


def truncate_title(title: str, max_chars: int = TIMELINE_TITLE_MAX_CHARS) -> str:
    if len(title) <= max_chars:
        return title
    return f"{title[:max_chars]}..."


def timeline_href(run_id: str, suffix: str = "") -> str:
    """Path of a run's timeline page, or of a sub-resource such as "/export.md"."""
    return f"/timeline/{quote(run_id, safe='')}{suffix}"


def to_timeline_entry(log: AgentLog) -> TimelineEntry:
    return TimelineEntry(
        id=log.id,
        run_id=log.run_id,
        agent=log.agent,
        content=log.output,
        status="completed",
        metadata=log.metadata,
        created_at=log.created_at,
    )


def build_timeline(
    logs: list[AgentLog],
    post: PostDetail,
) -> tuple[TimelineRun | None, list[TimelineEntry]]:
    """Turn a run's logs plus its post record into a header and ordered entries.

    Entries keep the backend's order. The header only exists once the run has
    produced at least one log.
    """
    entries = [to_timeline_entry(log) for log in logs]
    if not entries:
        return None, entries

    run = TimelineRun(
        id=post.id,
        run_id=post.run_id,
        agent=entries[0].agent,
        content=extract_topic(post.prd_content) or DEFAULT_RUN_TITLE,
        status="completed",
        created_at=entries[0].created_at,
        finished_at=entries[-1].created_at,
    )
    return run, entries


def compute_dashboard_stats(posts: list[PostSummary]) -> DashboardStats:
    total = len(posts)
    successful = sum(1 for post in posts if post.fact_check_passed)
    if total == 0:
        return DashboardStats(total_posts=0, successful_posts=0, success_rate=0, avg_retries="0")

    # Half-up rounding, so 12.5% shows as 13%.
    success_rate = math.floor(successful / total * 100 + 0.5)
    avg_retries = sum(post.retry_count for post in posts) / total
    return DashboardStats(
        total_posts=total,
        successful_posts=successful,
        success_rate=success_rate,
        avg_retries=f"{avg_retries:.1f}",
    )


def resolve_timezone(name: str) -> tzinfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("display_timezone event=unknown name=%s fallback=UTC", name)
        return timezone.utc


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: str, tz: tzinfo = timezone.utc) -> str:
    """Short form used on timeline cards, e.g. "Oct 19, 03:45 PM"."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return value
    local = parsed.astimezone(tz)
    return f"{local:%b} {local.day}, {local:%I:%M %p}"


def format_date(value: str, tz: tzinfo = timezone.utc) -> str:
    """Long form used on the dashboard, e.g. "Oct 19, 2026, 03:45 PM"."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return value
    local = parsed.astimezone(tz)
    return f"{local:%b} {local.day}, {local.year}, {local:%I:%M %p}"


def calculate_duration(start: str, end: str | None) -> str:
    if not end:
        return "In progress..."
    started = parse_timestamp(start)
    finished = parse_timestamp(end)
    # Unparsable timestamps are shown as received.
    if finished is None:
        return end
    if started is None:
        return start

    seconds = max(0, math.floor((finished - started).total_seconds()))
    minutes = seconds // 60
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def export_markdown(title: str, final_post: str) -> str:
    return f"# {title}\n{final_post}\n"


def export_filename(title: str) -> str:
    stem = _FILENAME_UNSAFE_RE.sub("-", title[:EXPORT_FILENAME_MAX_CHARS])
    return f"{stem}.md"
