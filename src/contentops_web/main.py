"""FastAPI application wiring for the ContentOps frontend.

Beginner terms used in this file:
- FastAPI app: the main web application object.
- Route/path operation: a function exposed over HTTP (for example, GET /dashboard).
- app.state: a place to store shared runtime objects (settings, API client).
- Backend: the separate blog-generation service behind /api/*. Every page here
  calls it and renders the result; nothing is stored locally.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from fastapi import FastAPI, Form, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response

from .app import ui
from .app.api_client import BackendApiError, ContentOpsApiClient, build_api_client_from_settings
from .app.config import Settings, get_settings
from .app.timeline import (
    build_prd_content,
    build_timeline,
    compute_dashboard_stats,
    export_filename,
    export_markdown,
    resolve_timezone,
    timeline_href,
)

logger = logging.getLogger(__name__)


def create_app(
    *,
    settings: Settings | None = None,
    api_client: ContentOpsApiClient | None = None,
) -> FastAPI:
    """Application factory.

    Tests pass their own `api_client` double; production builds one from
    settings pointing at the real backend.
    """
    settings = settings or get_settings()
    api_client = api_client or build_api_client_from_settings(settings)
    display_tz = resolve_timezone(settings.display_timezone)
    app_name = settings.app_name

    app = FastAPI(title="contentops_web", version="0.1.0")
    app.state.settings = settings
    app.state.api_client = api_client

    @app.get("/health")
    @app.get("/healthz")
    @app.get("/live")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/", response_class=HTMLResponse)
    def home() -> str:
        return ui.render_homepage(year=datetime.now(tz=UTC).year, app_name=app_name)

    @app.get("/generate", response_class=HTMLResponse)
    def generate_form() -> str:
        return ui.render_generate_page(app_name=app_name)

    @app.post("/generate", response_class=HTMLResponse)
    def generate(topic: str = Form(""), instructions: str = Form("")) -> Response:
        topic = topic.strip()
        instructions = instructions.strip()
        if not topic:
            return HTMLResponse(
                ui.render_generate_page(
                    instructions=instructions,
                    error="Topic is required.",
                    app_name=app_name,
                ),
                status_code=400,
            )

        prd_content = build_prd_content(topic, instructions)
        logger.info("generate event=start topic_chars=%d", len(topic))
        try:
            result = app.state.api_client.generate_post(prd_content)
        except BackendApiError as exc:
            logger.warning("page_render event=error page=generate reason=%s", exc)
            return HTMLResponse(
                ui.render_generate_page(
                    topic=topic,
                    instructions=instructions,
                    error=f"Failed to generate post: {exc}",
                    app_name=app_name,
                ),
                status_code=502,
            )

        logger.info(
            "generate event=completed run_id=%s fact_check_passed=%s retry_count=%d",
            result.run_id,
            result.fact_check_passed,
            result.retry_count,
        )
        return RedirectResponse(url=timeline_href(result.run_id), status_code=303)

    @app.get("/dashboard", response_class=HTMLResponse)
    def dashboard(request: Request) -> Response:
        try:
            posts = app.state.api_client.list_posts()
        except BackendApiError as exc:
            logger.warning("page_render event=error page=dashboard reason=%s", exc)
            return _error_page(
                request,
                retry_href="/dashboard",
                title="Failed to load dashboard",
                message="Failed to fetch posts",
            )

        stats = compute_dashboard_stats(posts)
        return HTMLResponse(
            ui.render_dashboard(posts=posts, stats=stats, tz=display_tz, app_name=app_name)
        )

    @app.get("/timeline/{run_id}", response_class=HTMLResponse)
    def timeline(run_id: str, request: Request) -> Response:
        try:
            logs = app.state.api_client.get_run_logs(run_id)
            post = app.state.api_client.get_post(run_id)
            if post is None:
                raise BackendApiError(f"No post record for run {run_id}", status_code=404)
        except BackendApiError as exc:
            logger.warning(
                "page_render event=error page=timeline run_id=%s reason=%s", run_id, exc
            )
            return _error_page(
                request,
                retry_href=timeline_href(run_id),
                title="Timeline unavailable",
                message="Failed to fetch timeline data",
            )

        run, entries = build_timeline(logs, post)
        return HTMLResponse(
            ui.render_timeline(
                run_id=run_id,
                run=run,
                entries=entries,
                final_post=post.final_post or "",
                export_href=timeline_href(run_id, "/export.md"),
                tz=display_tz,
                app_name=app_name,
            )
        )

    @app.get("/timeline/{run_id}/export.md")
    def export_timeline(run_id: str) -> Response:
        try:
            logs = app.state.api_client.get_run_logs(run_id)
            post = app.state.api_client.get_post(run_id)
        except BackendApiError as exc:
            logger.warning("export event=error run_id=%s reason=%s", run_id, exc)
            return PlainTextResponse("Failed to fetch timeline data", status_code=502)

        if post is None:
            return PlainTextResponse("Run not found", status_code=404)
        run, _ = build_timeline(logs, post)
        if run is None or not post.final_post:
            return PlainTextResponse("Final post is not available for this run", status_code=404)

        filename = export_filename(run.content)
        return Response(
            content=export_markdown(run.content, post.final_post),
            media_type="text/markdown; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return app


def _error_page(
    request: Request,
    *,
    retry_href: str,
    title: str,
    message: str,
) -> HTMLResponse:
    # "Try Again" re-issues the same GET; retry_href is the already-quoted page path.
    return HTMLResponse(
        ui.render_error(
            title=title,
            message=message,
            retry_href=retry_href,
            current_path=retry_href,
            app_name=request.app.state.settings.app_name,
        ),
        status_code=502,
    )


# Module-level app for `uvicorn contentops_web.main:app`.
app = create_app()
