from __future__ import annotations

from typing import Dict, List

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ...cms.client import CMSClient, CMSError
from ...cms.normalize import unwrap
from ...features.spec_resolver import (
    FetchFailed,
    OpenAPIResult,
    SourceURL,
    SpecResolver,
    UnsupportedFileType,
)
from ...utils.errors import ErrorCode
from ...utils.logging import increment_counter, request_scope
from .._shared import envelope_error, envelope_ok, envelope_response, error_response, upstream_details
from ..validators import ARTICLE_LIST, OPENAPI_RESULT, validate_payload
from ._common import RouteDependencies, listing_params


def _validated(schema: str, payload: Dict[str, object]) -> JSONResponse:
    valid, errors = validate_payload(schema, payload)
    if valid:
        return envelope_response(envelope_ok(payload))
    return envelope_response(envelope_error(ErrorCode.INTERNAL, "; ".join(errors)))


def create_article_api_routes(deps: RouteDependencies) -> List[Route]:
    debug = deps.settings.debug

    @deps.with_client
    async def articles_json_route(request: Request, client: CMSClient) -> JSONResponse:
        with request_scope(
            "articles_json",
            logger=deps.logger,
            extra={"path": "/api/articles.json"},
        ):
            try:
                page, page_size, sort = listing_params(request.query_params, strict=True)
            except ValueError as exc:
                return error_response(ErrorCode.INVALID_REQUEST, str(exc))
            result = await run_in_threadpool(
                client.fetch_articles, page=page, page_size=page_size, sort=sort
            )
            increment_counter("articles.listed", len(result.data))
            payload = {
                "articles": [unwrap(entity).as_dict() for entity in result.data],
                "pagination": result.meta.as_dict() if result.meta else None,
            }
            return _validated(ARTICLE_LIST, payload)

    @deps.with_client
    async def article_openapi_route(request: Request, client: CMSClient) -> JSONResponse:
        slug = request.path_params["slug"]
        with request_scope(
            "article_openapi",
            logger=deps.logger,
            extra={"path": "/articles/{slug}/openapi.json", "slug": slug},
        ):
            entity = await run_in_threadpool(client.fetch_article_by_slug, slug)
            if entity is None:
                return error_response(
                    ErrorCode.NOT_FOUND,
                    f"No article with slug {slug!r}.",
                )
            view = unwrap(entity)
            try:
                resolution = await run_in_threadpool(SpecResolver(client).resolve, view)
            except UnsupportedFileType as exc:
                return error_response(ErrorCode.UNSUPPORTED_SPEC, str(exc))
            except FetchFailed as exc:
                cause = exc.cause
                upstream = None
                if isinstance(cause, CMSError):
                    upstream = upstream_details(cause.status, cause.details, debug=debug)
                return error_response(
                    ErrorCode.SPEC_FETCH_FAILED,
                    str(exc),
                    upstream_error=upstream,
                )
            if isinstance(resolution, OpenAPIResult):
                payload: Dict[str, object] = {
                    "source_url": resolution.source_url,
                    "converted": resolution.converted,
                    "format": "json",
                    "document": resolution.document,
                }
            elif isinstance(resolution, SourceURL):
                payload = {
                    "source_url": resolution.url,
                    "converted": False,
                    "format": "yaml",
                }
            else:
                return error_response(ErrorCode.NOT_FOUND, resolution.reason)
            return _validated(OPENAPI_RESULT, payload)

    return [
        Route(
            "/api/articles.json",
            articles_json_route,
            methods=["GET"],
            name="articles_json",
        ),
        Route(
            "/articles/{slug}/openapi.json",
            article_openapi_route,
            methods=["GET"],
            name="article_openapi",
        ),
    ]
