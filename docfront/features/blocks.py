"""Dynamic-zone block parsing and rendering.

Each raw block carries a ``__component`` tag. Known tags parse into one of four
block types; anything else becomes :class:`UnknownBlock`, which renders to
nothing without interrupting the blocks that follow it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Mapping, Optional, Union, assert_never

from jinja2 import Environment
from markupsafe import Markup

from ..cms.media import resolve_media_url
from ..cms.normalize import media_from, media_list_from
from ..rendering import render_markdown
from ..templating import environment
from ..utils.logging import increment_counter

logger = logging.getLogger("docfront.blocks")

RICH_TEXT = "shared.rich-text"
MEDIA = "shared.media"
QUOTE = "shared.quote"
SLIDER = "shared.slider"

MarkdownRenderer = Callable[[str], str]


@dataclass(frozen=True, slots=True)
class RichTextBlock:
    body: Optional[str]


@dataclass(frozen=True, slots=True)
class MediaBlock:
    file: object


@dataclass(frozen=True, slots=True)
class QuoteBlock:
    title: Optional[str] = None
    body: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SliderBlock:
    files: object


@dataclass(frozen=True, slots=True)
class UnknownBlock:
    component: Optional[str]


Block = Union[RichTextBlock, MediaBlock, QuoteBlock, SliderBlock, UnknownBlock]


def _optional_text(value: object) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def parse_block(raw: object) -> Block:
    if not isinstance(raw, Mapping):
        return UnknownBlock(component=None)
    tag = raw.get("__component")
    if tag == RICH_TEXT:
        body = raw.get("body")
        return RichTextBlock(body=body if isinstance(body, str) else None)
    if tag == MEDIA:
        return MediaBlock(file=raw.get("file"))
    if tag == QUOTE:
        return QuoteBlock(title=_optional_text(raw.get("title")), body=_optional_text(raw.get("body")))
    if tag == SLIDER:
        return SliderBlock(files=raw.get("files"))
    return UnknownBlock(component=tag if isinstance(tag, str) else None)


@dataclass(frozen=True, slots=True)
class RenderedNode:
    kind: str
    html: Markup

    def __html__(self) -> str:
        return str(self.html)


class BlockRenderer:
    """Render parsed blocks to HTML fragments."""

    def __init__(
        self,
        origin: str,
        *,
        markdown: MarkdownRenderer = render_markdown,
        env: Optional[Environment] = None,
    ) -> None:
        self.origin = origin
        self.markdown = markdown
        self.env = env or environment()

    def _fragment(self, template: str, **context: object) -> Markup:
        return Markup(self.env.get_template(f"blocks/{template}").render(**context).strip())

    def _rich_text(self, block: RichTextBlock) -> Optional[RenderedNode]:
        if block.body is None:
            return None
        try:
            html = self.markdown(block.body)
        except Exception:
            logger.warning("blocks.markdown_failed", exc_info=True)
            return None
        return RenderedNode(RICH_TEXT, self._fragment("rich_text.html", content=Markup(html)))

    def _media(self, block: MediaBlock) -> Optional[RenderedNode]:
        media = media_from(block.file)
        url = resolve_media_url(media.url if media else None, self.origin)
        if not url:
            return None
        alt = (media.alternative_text if media else None) or "Media"
        return RenderedNode(MEDIA, self._fragment("media.html", url=url, alt=alt))

    def _quote(self, block: QuoteBlock) -> RenderedNode:
        return RenderedNode(QUOTE, self._fragment("quote.html", title=block.title, body=block.body))

    def _slider(self, block: SliderBlock) -> RenderedNode:
        slides = []
        for position, media in enumerate(media_list_from(block.files), start=1):
            url = resolve_media_url(media.url if media else None, self.origin)
            if not url:
                continue
            alt = (media.alternative_text if media else None) or f"Slide {position}"
            slides.append({"url": url, "alt": alt})
        return RenderedNode(SLIDER, self._fragment("slider.html", slides=slides))

    def render_block(self, block: Block) -> Optional[RenderedNode]:
        if isinstance(block, RichTextBlock):
            return self._rich_text(block)
        if isinstance(block, MediaBlock):
            return self._media(block)
        if isinstance(block, QuoteBlock):
            return self._quote(block)
        if isinstance(block, SliderBlock):
            return self._slider(block)
        if isinstance(block, UnknownBlock):
            logger.debug("blocks.unknown", extra={"component": block.component})
            return None
        assert_never(block)

    def render(self, blocks: Iterable[object]) -> List[RenderedNode]:
        """Render raw blocks in order; unknown or unresolvable ones contribute nothing."""

        nodes: List[RenderedNode] = []
        for raw in blocks or ():
            node = self.render_block(parse_block(raw))
            if node is None:
                increment_counter("blocks.skipped")
                continue
            increment_counter("blocks.rendered")
            nodes.append(node)
        return nodes


def render(
    blocks: Iterable[object],
    *,
    origin: str,
    markdown: MarkdownRenderer = render_markdown,
) -> List[RenderedNode]:
    return BlockRenderer(origin, markdown=markdown).render(blocks)


__all__ = [
    "Block",
    "BlockRenderer",
    "MEDIA",
    "MediaBlock",
    "QUOTE",
    "QuoteBlock",
    "RICH_TEXT",
    "RenderedNode",
    "RichTextBlock",
    "SLIDER",
    "SliderBlock",
    "UnknownBlock",
    "parse_block",
    "render",
]
