"""Markdown rendering for rich-text blocks."""
from __future__ import annotations

from markdown_it import MarkdownIt

# --- Markdown Renderer ---
_md = (
    MarkdownIt("commonmark", {"html": True, "breaks": True})
    .enable("table")
    .enable("strikethrough")
)


def _render_link_open(self, tokens, idx, options, env):
    token = tokens[idx]
    href = token.attrGet("href") or ""
    if str(href).startswith("http"):
        token.attrSet("target", "_blank")
        token.attrSet("rel", "noopener noreferrer")
    return self.renderToken(tokens, idx, options, env)


_md.add_render_rule("link_open", _render_link_open)


def render_markdown(content: str | None) -> str:
    """Render markdown content to HTML.

    External links open in a new tab. Returns an empty string for empty input.
    """
    if content:
        return _md.render(content).strip()
    return ""
