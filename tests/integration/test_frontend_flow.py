from __future__ import annotations

SEEDED_RUN = "4f6d2c1a-8e3b-4c7d-9a51-2b0e7f3d6c90"


def test_dashboard_shows_seeded_posts(stack_urls, get_text) -> None:
    _, web_url = stack_urls

    status, html, _ = get_text(web_url, "/dashboard")

    assert status == 200
    assert "How AI is transforming healthcare diagnostics" in html
    assert "Edge caching for small SaaS teams" in html
    assert 'data-stat="success-rate">50%</div>' in html


def test_timeline_and_export_for_seeded_run(stack_urls, get_text) -> None:
    _, web_url = stack_urls

    status, html, _ = get_text(web_url, f"/timeline/{SEEDED_RUN}")
    assert status == 200
    assert "Duration: 2m 5s" in html
    assert "View Sources (3)" in html

    status, body, headers = get_text(web_url, f"/timeline/{SEEDED_RUN}/export.md")
    assert status == 200
    assert body.startswith("# How AI is transforming healthcare diagnostics\n## Why diagnostics first")
    assert "How-AI-is-transforming-healthc.md" in headers["content-disposition"]


def test_generate_then_view_timeline(stack_urls, get_text, post_form) -> None:
    _, web_url = stack_urls

    status, _, headers = post_form(
        web_url,
        "/generate",
        {"topic": "Rust for data teams", "instructions": "Audience: analysts"},
    )
    assert status == 303
    location = headers["location"]
    assert location.startswith("/timeline/")

    status, html, _ = get_text(web_url, location)
    assert status == 200
    assert "<h1>Rust for data teams</h1>" in html
    assert 'data-agent="polisher_agent"' in html


def test_unknown_run_renders_error_card(stack_urls, get_text) -> None:
    _, web_url = stack_urls

    status, html, _ = get_text(web_url, "/timeline/does-not-exist")

    assert status == 502
    assert "Timeline unavailable" in html
