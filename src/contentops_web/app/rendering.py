from __future__ import annotations

import re
from xml.etree.ElementTree import Element

import markdown
from markdown.treeprocessors import Treeprocessor
from markupsafe import Markup

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists"]
ALLOWED_URL_SCHEMES = frozenset({"http", "https", "mailto"})
URL_ATTRIBUTES = ("href", "src")

_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):")
# Backslash escapes are held as STX<ord>ETX until the unescape step.
_ESCAPE_PLACEHOLDER_RE = re.compile(r"\x02(\d+)\x03")
# Browsers ignore whitespace and control characters inside a scheme.
_IGNORED_URL_CHARS_RE = re.compile(r"[\x00-\x20\x7f]+")


def is_safe_url(url: str) -> bool:
    """True for relative URLs and http(s)/mailto links."""
    unescaped = _ESCAPE_PLACEHOLDER_RE.sub(lambda m: chr(int(m.group(1))), url)
    match = _SCHEME_RE.match(_IGNORED_URL_CHARS_RE.sub("", unescaped))
    if match is None:
        return True
    return match.group(1).lower() in ALLOWED_URL_SCHEMES


class UnsafeUrlTreeprocessor(Treeprocessor):
    """Drop link and image URLs whose scheme could run script."""

    def run(self, root: Element) -> None:
        for element in root.iter():
            for attribute in URL_ATTRIBUTES:
                value = element.get(attribute)
                if value is not None and not is_safe_url(value):
                    del element.attrib[attribute]


def render_markdown(content: str | None) -> Markup:
    """Render agent output or a final post from Markdown to HTML.

    Raw HTML inside the source is escaped instead of passed through, and links
    or images pointing anywhere but http(s), mailto or a relative path lose
    their URL, since the text comes straight from model output.
    """
    if not content:
        return Markup("")
    md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS, output_format="html")
    md.preprocessors.deregister("html_block")
    md.inlinePatterns.deregister("html")
    # Last, so it sees URLs after inline links and escapes are resolved.
    md.treeprocessors.register(UnsafeUrlTreeprocessor(md), "unsafe_url", -10)
    return Markup(md.convert(content))
