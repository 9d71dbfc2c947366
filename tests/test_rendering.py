from __future__ import annotations

from markupsafe import Markup

from contentops_web.app.rendering import is_safe_url, render_markdown


def test_render_markdown_basic_blocks() -> None:
    html = render_markdown("## Heading\n\nSome **bold** text.\n\n- one\n- two")

    assert isinstance(html, Markup)
    assert "<h2>Heading</h2>" in html
    assert "<strong>bold</strong>" in html
    assert "<li>one</li>" in html


def test_render_markdown_fenced_code_and_tables() -> None:
    source = "```python\nprint('hi')\n```\n\n| a | b |\n|---|---|\n| 1 | 2 |\n"

    html = render_markdown(source)

    assert '<code class="language-python">' in html
    assert "<table>" in html
    assert "<td>1</td>" in html


def test_render_markdown_escapes_raw_html() -> None:
    html = render_markdown('<script>alert("x")</script>\n\nText with <b>inline</b> tag.')

    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "<b>" not in html


def test_render_markdown_empty_input() -> None:
    assert render_markdown("") == Markup("")
    assert render_markdown(None) == Markup("")


def test_render_markdown_drops_script_urls() -> None:
    html = render_markdown(
        "[click](javascript:alert(document.cookie)) "
        "[upper](JavaScript:alert(1)) "
        "[escaped](javascript\\:alert(1)) "
        "![pixel](data:image/svg+xml;base64,PHN2Zz4=) "
        "[vb](vbscript:msgbox(1))"
    )

    assert "javascript:" not in html.lower()
    assert "data:" not in html
    assert "vbscript:" not in html
    # The link text survives without a target.
    assert ">click</a>" in html
    assert "<img" in html and "src=" not in html


def test_render_markdown_keeps_safe_urls() -> None:
    html = render_markdown(
        "[docs](https://example.org/a) [mail](mailto:team@example.org) "
        "[rel](/timeline/abc) [anchor](#sources) ![chart](https://example.org/c.png)"
    )

    assert 'href="https://example.org/a"' in html
    assert 'href="mailto:team@example.org"' in html
    assert 'href="/timeline/abc"' in html
    assert 'href="#sources"' in html
    assert 'src="https://example.org/c.png"' in html


def test_is_safe_url() -> None:
    assert is_safe_url("https://example.org")
    assert is_safe_url("notes/part:2")
    assert is_safe_url("./notes.md")
    assert not is_safe_url(" java\tscript:alert(1)")
    assert not is_safe_url("data:text/html,<b>x</b>")
