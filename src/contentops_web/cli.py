from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import tzinfo
from pathlib import Path

from .app.api_client import BackendApiError, ContentOpsApiClient, build_api_client_from_settings
from .app.config import get_settings
from .app.timeline import (
    agent_display,
    build_prd_content,
    build_timeline,
    calculate_duration,
    compute_dashboard_stats,
    export_filename,
    export_markdown,
    format_date,
    format_timestamp,
    post_title,
    resolve_timezone,
)

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="contentops",
        description="Inspect and trigger blog-generation runs on the ContentOps backend.",
    )
    parser.add_argument(
        "--api-base-url",
        default=None,
        help="Backend base URL (defaults to CONTENTOPS_API_BASE_URL).",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    posts = subparsers.add_parser("posts", help="List generated posts and dashboard stats.")
    posts.add_argument("--json", action="store_true", help="Print raw JSON output.")

    timeline = subparsers.add_parser("timeline", help="Show the agent timeline of one run.")
    timeline.add_argument("run_id")
    timeline.add_argument("--json", action="store_true", help="Print raw JSON output.")

    generate = subparsers.add_parser("generate", help="Start a new generation run.")
    generate.add_argument("--topic", required=True, help="Topic or title of the post.")
    generate.add_argument("--instructions", default="", help="Additional instructions.")

    export = subparsers.add_parser("export", help="Write a run's final post as Markdown.")
    export.add_argument("run_id")
    export.add_argument("--output", type=Path, default=None, help="Target file path.")

    serve = subparsers.add_parser("serve", help="Run the web frontend with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=3000)
    serve.add_argument("--reload", action="store_true")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None, *, client: ContentOpsApiClient | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    if args.command == "serve":
        return _serve(args)

    settings = get_settings()
    if client is None:
        if args.api_base_url:
            settings = settings.model_copy(update={"api_base_url": args.api_base_url})
        client = build_api_client_from_settings(settings)
    tz = resolve_timezone(settings.display_timezone)

    try:
        if args.command == "posts":
            _print_posts(client, as_json=args.json, tz=tz)
        elif args.command == "timeline":
            _print_timeline(client, args.run_id, as_json=args.json, tz=tz)
        elif args.command == "generate":
            return _generate(client, topic=args.topic, instructions=args.instructions)
        elif args.command == "export":
            return _export(client, args.run_id, output=args.output)
    except BackendApiError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


def _print_posts(client: ContentOpsApiClient, *, as_json: bool, tz: tzinfo) -> None:
    posts = client.list_posts()
    stats = compute_dashboard_stats(posts)
    if as_json:
        payload = {
            "posts": [post.model_dump() for post in posts],
            "stats": stats.model_dump(),
        }
        print(json.dumps(payload, indent=2))
        return

    if not posts:
        print("No posts yet.")
    for index, post in enumerate(posts, start=1):
        verified = "verified" if post.fact_check_passed else "pending"
        print(
            f"{index:>3}. {post_title(post)}\n"
            f"     run_id={post.run_id} {verified} retries={post.retry_count} "
            f"created={format_date(post.created_at, tz)}"
        )
    print(
        f"\nTotal posts: {stats.total_posts} | Success rate: {stats.success_rate}% "
        f"| Avg retries: {stats.avg_retries}"
    )


def _print_timeline(
    client: ContentOpsApiClient,
    run_id: str,
    *,
    as_json: bool,
    tz: tzinfo,
) -> None:
    logs = client.get_run_logs(run_id)
    post = client.get_post(run_id)
    if post is None:
        raise BackendApiError(f"No post record for run {run_id}", status_code=404)
    run, entries = build_timeline(logs, post)

    if as_json:
        payload = {
            "run": run.model_dump() if run else None,
            "entries": [entry.model_dump() for entry in entries],
        }
        print(json.dumps(payload, indent=2))
        return

    if run is None:
        print(f"Run {run_id}: no agent logs recorded yet.")
        return
    print(f"{run.content}")
    print(
        f"Run ID: {run.run_id} | Started: {format_timestamp(run.created_at, tz)} "
        f"| Duration: {calculate_duration(run.created_at, run.finished_at)}"
    )
    for entry in entries:
        display = agent_display(entry.agent)
        stamp = format_timestamp(entry.created_at, tz)
        print(f"\n{display.icon} {display.title} [{entry.status}] {stamp}")
        print(entry.content)


def _generate(client: ContentOpsApiClient, *, topic: str, instructions: str) -> int:
    if not topic.strip():
        print("error: topic is required", file=sys.stderr)
        return 1
    result = client.generate_post(build_prd_content(topic.strip(), instructions.strip()))
    outcome = "passed" if result.fact_check_passed else "not passed"
    print(f"run_id={result.run_id} fact_check={outcome} retries={result.retry_count}")
    return 0


def _export(client: ContentOpsApiClient, run_id: str, *, output: Path | None) -> int:
    logs = client.get_run_logs(run_id)
    post = client.get_post(run_id)
    if post is None:
        print(f"error: run {run_id} not found", file=sys.stderr)
        return 1
    run, _ = build_timeline(logs, post)
    if run is None or not post.final_post:
        print(f"error: final post is not available for run {run_id}", file=sys.stderr)
        return 1

    target = output or Path(export_filename(run.content))
    target.write_text(export_markdown(run.content, post.final_post), encoding="utf-8")
    print(f"Wrote {target}")
    return 0


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    logger.info("serve event=start host=%s port=%d", args.host, args.port)
    uvicorn.run("contentops_web.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
