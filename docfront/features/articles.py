"""Page models for the article listing and article detail views."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..cms.client import CMSClient, CMSError
from ..cms.media import resolve_media_url
from ..cms.models import ArticleView, PaginationMeta
from ..cms.normalize import unwrap
from ..rendering import render_markdown
from .blocks import BlockRenderer, MarkdownRenderer, RenderedNode
from .spec_resolver import (
    FetchFailed,
    NotFound,
    Resolution,
    SpecResolver,
    UnsupportedFileType,
    viewer_configuration,
)

logger = logging.getLogger("docfront.articles")

NOT_FOUND_TITLE = "Documentation Not Found"
ERROR_TITLE = "Documentation Error"
GENERIC_LOAD_FAILURE = "Failed to load documentation. Please try again later."


@dataclass(frozen=True, slots=True)
class ErrorPanel:
    kind: str
    title: str
    message: str
    details: Optional[object] = None


def error_panel(exc: BaseException, *, debug: bool = False) -> ErrorPanel:
    """Describe *exc* for the reader; structured details only in development."""

    if isinstance(exc, UnsupportedFileType):
        return ErrorPanel(
            kind="unsupported_spec",
            title="Unsupported Specification Format",
            message=(
                f"The attached file type {exc.extension or '(none)'} cannot be displayed. "
                "Replace the article's OpenAPI attachment in the CMS with a .yaml, .yml "
                "or .json file."
            ),
            details={"extension": exc.extension} if debug else None,
        )
    if isinstance(exc, FetchFailed):
        return ErrorPanel(
            kind="spec_fetch_failed",
            title="Error Loading OpenAPI Spec",
            message="The attached specification file could not be loaded.",
            details={"url": exc.url, "cause": str(exc.cause)} if debug else None,
        )
    if isinstance(exc, CMSError):
        message = exc.message if exc.status is None else f"{exc.message} (Status: {exc.status})"
        return ErrorPanel(
            kind="load_failed",
            title="Unable to Load Documentation",
            message=message,
            details=exc.details if debug else None,
        )
    return ErrorPanel(kind="load_failed", title="Unable to Load Documentation", message=GENERIC_LOAD_FAILURE)


def article_metadata(view: Optional[ArticleView]) -> Dict[str, Optional[str]]:
    if view is None:
        return {"title": NOT_FOUND_TITLE, "description": None}
    return {"title": view.title, "description": view.description}


@dataclass(frozen=True, slots=True)
class ArticleCard:
    view: ArticleView
    href: str
    title: str
    description: str
    image_url: str
    image_alt: str


def article_card(view: ArticleView, *, origin: str) -> ArticleCard:
    title = view.title or f"Article {view.id}"
    return ArticleCard(
        view=view,
        href=f"/articles/{view.slug}" if view.slug else "#",
        title=title,
        description=view.description or "No description available",
        image_url=resolve_media_url(view.cover.url if view.cover else None, origin),
        image_alt=(view.cover.alternative_text if view.cover else None) or title,
    )


@dataclass(slots=True)
class ListingPage:
    cards: List[ArticleCard]
    pagination: Optional[PaginationMeta] = None
    hints: Dict[str, object] = field(default_factory=dict)

    @property
    def empty(self) -> bool:
        return not self.cards

    @property
    def show_pagination(self) -> bool:
        return self.pagination is not None and self.pagination.page_count > 1


def list_articles_page(
    client: CMSClient,
    *,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
    sort: Optional[str] = None,
) -> ListingPage:
    result = client.fetch_articles(page=page, page_size=page_size, sort=sort)
    cards = [article_card(unwrap(entity), origin=client.base_url) for entity in result.data]
    return ListingPage(cards=cards, pagination=result.meta, hints=result.hints)


@dataclass(slots=True)
class OpenAPITab:
    configuration: Optional[Dict[str, object]] = None
    panel: Optional[ErrorPanel] = None
    resolution: Optional[Resolution] = None

    @property
    def missing(self) -> bool:
        return isinstance(self.resolution, NotFound)


@dataclass(slots=True)
class ArticlePage:
    view: ArticleView
    nodes: List[RenderedNode]
    openapi: OpenAPITab
    cover_url: str = ""
    cover_alt: str = ""

    @property
    def metadata(self) -> Dict[str, Optional[str]]:
        return article_metadata(self.view)


def openapi_tab(resolver: SpecResolver, view: ArticleView, *, debug: bool = False) -> OpenAPITab:
    try:
        resolution = resolver.resolve(view)
    except (UnsupportedFileType, FetchFailed) as exc:
        logger.warning("article.spec_unavailable", extra={"slug": view.slug, "error": str(exc)})
        return OpenAPITab(panel=error_panel(exc, debug=debug))
    return OpenAPITab(configuration=viewer_configuration(resolution), resolution=resolution)


def article_page(
    client: CMSClient,
    slug: str,
    *,
    resolver: Optional[SpecResolver] = None,
    markdown: MarkdownRenderer = render_markdown,
) -> Optional[ArticlePage]:
    """Build the article page, or ``None`` when no article has *slug*.

    CMS errors while loading the article propagate; problems with the attached
    specification only affect the OpenAPI tab.
    """

    entity = client.fetch_article_by_slug(slug)
    if entity is None:
        return None
    view = unwrap(entity)
    renderer = BlockRenderer(client.base_url, markdown=markdown)
    card = article_card(view, origin=client.base_url)
    return ArticlePage(
        view=view,
        nodes=renderer.render(view.blocks),
        openapi=openapi_tab(resolver or SpecResolver(client), view, debug=client.settings.debug),
        cover_url=card.image_url,
        cover_alt=card.image_alt,
    )


__all__ = [
    "ArticleCard",
    "ArticlePage",
    "ErrorPanel",
    "ListingPage",
    "OpenAPITab",
    "article_card",
    "article_metadata",
    "article_page",
    "error_panel",
    "list_articles_page",
    "openapi_tab",
]
