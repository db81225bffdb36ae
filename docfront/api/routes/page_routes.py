from __future__ import annotations

from typing import List

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.routing import Route

from ...cms.client import CMSClient, CMSError
from ...features.articles import (
    ERROR_TITLE,
    NOT_FOUND_TITLE,
    article_page,
    error_panel,
    list_articles_page,
)
from ...utils.logging import request_scope
from ._common import RouteDependencies, listing_params


def _cache_headers(hints: dict) -> dict:
    seconds = hints.get("revalidate")
    if not isinstance(seconds, int) or seconds <= 0:
        return {}
    return {"Cache-Control": f"public, max-age={seconds}"}


def create_page_routes(deps: RouteDependencies) -> List[Route]:
    templates = deps.templates
    debug = deps.settings.debug

    async def home_route(request: Request) -> Response:
        return RedirectResponse(url="/articles", status_code=307)

    @deps.with_client
    async def articles_route(request: Request, client: CMSClient) -> Response:
        with request_scope(
            "articles_page",
            logger=deps.logger,
            extra={"path": "/articles"},
        ):
            page, page_size, sort = listing_params(request.query_params)
            try:
                listing = await run_in_threadpool(
                    list_articles_page, client, page=page, page_size=page_size, sort=sort
                )
            except CMSError as exc:
                deps.logger.warning("articles.load_failed", extra={"error": exc.message, "status": exc.status})
                return templates.TemplateResponse(
                    request,
                    "articles.html",
                    {"listing": None, "panel": error_panel(exc, debug=debug)},
                    status_code=502,
                )
            return templates.TemplateResponse(
                request,
                "articles.html",
                {"listing": listing, "panel": None},
                headers=_cache_headers(listing.hints),
            )

    @deps.with_client
    async def article_route(request: Request, client: CMSClient) -> Response:
        slug = request.path_params["slug"]
        with request_scope(
            "article_page",
            logger=deps.logger,
            extra={"path": "/articles/{slug}", "slug": slug},
        ):
            try:
                page = await run_in_threadpool(article_page, client, slug)
            except CMSError as exc:
                deps.logger.warning(
                    "article.load_failed",
                    extra={"slug": slug, "error": exc.message, "status": exc.status},
                )
                return templates.TemplateResponse(
                    request,
                    "error.html",
                    {"title": ERROR_TITLE, "panel": error_panel(exc, debug=debug)},
                    status_code=502,
                )
            if page is None:
                return templates.TemplateResponse(
                    request,
                    "not_found.html",
                    {
                        "title": NOT_FOUND_TITLE,
                        "slug": slug,
                        "debug": debug,
                        "cms_url": deps.settings.base_url,
                    },
                    status_code=404,
                )
            return templates.TemplateResponse(
                request,
                "article.html",
                {"page": page, "metadata": page.metadata},
                headers=_cache_headers(
                    {"revalidate": deps.settings.revalidate_seconds}
                ),
            )

    return [
        Route("/", home_route, methods=["GET"], name="home"),
        Route("/articles", articles_route, methods=["GET"], name="articles"),
        Route("/articles/{slug}", article_route, methods=["GET"], name="article"),
    ]
