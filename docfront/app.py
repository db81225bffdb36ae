"""Application wiring for the documentation front-end."""
from __future__ import annotations

import logging
from typing import Callable, Optional

import httpx
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .api.routes import make_routes
from .api.validators import (
    ARTICLE_LIST,
    ENVELOPE,
    OPENAPI_RESULT,
    REVALIDATE_REQUEST,
    schema_contents,
)
from .cms.client import CMSClient
from .error_handlers import install_error_handlers
from .features.revalidate import Invalidator, log_invalidator
from .utils.config import CMSSettings
from .utils.logging import configure_root

_CONFIGURED = False

_REQUEST_SCHEMA_MAP = {
    "/api/revalidate": REVALIDATE_REQUEST,
}

_RESPONSE_SCHEMA_MAP = {
    "/api/articles.json": ARTICLE_LIST,
    "/articles/{slug}/openapi.json": OPENAPI_RESULT,
}

_ENVELOPE_ROUTES = frozenset({"/api/articles.json", "/articles/{slug}/openapi.json", "/api/health.json"})


def _response_schema(path: str) -> Optional[dict[str, object]]:
    name = _RESPONSE_SCHEMA_MAP.get(path)
    if path not in _ENVELOPE_ROUTES:
        return schema_contents(name) if name else None
    envelope = dict(schema_contents(ENVELOPE))
    if name is not None:
        properties = dict(envelope["properties"])
        properties["data"] = {"oneOf": [{"type": "null"}, schema_contents(name)]}
        envelope["properties"] = properties
    return envelope


def _build_openapi_schema(routes: list[Route]) -> dict[str, object]:
    paths: dict[str, dict[str, object]] = {}
    for route in routes:
        if not isinstance(route, Route):
            continue
        if route.path == "/openapi.json":
            continue
        response_schema = _response_schema(route.path)
        request_schema_name = _REQUEST_SCHEMA_MAP.get(route.path)
        # HTML pages are not part of the machine-readable surface.
        if response_schema is None and request_schema_name is None and not route.path.startswith("/api/"):
            continue
        methods = sorted((route.methods or set()) - {"HEAD"})
        operations = paths.setdefault(route.path, {})
        for method in methods:
            operation: dict[str, object] = {
                "summary": route.name or getattr(route.endpoint, "__name__", "handler"),
            }
            if method == "POST" and request_schema_name is not None:
                operation["requestBody"] = {
                    "required": True,
                    "content": {
                        "application/json": {"schema": schema_contents(request_schema_name)}
                    },
                }
            if response_schema is not None:
                operation["x-response-model"] = _RESPONSE_SCHEMA_MAP.get(route.path, ENVELOPE)
                operation["responses"] = {
                    "200": {
                        "description": "Successful Response",
                        "content": {"application/json": {"schema": response_schema}},
                    }
                }
            operations[method.lower()] = operation
    return {
        "openapi": "3.1.0",
        "info": {
            "title": "Docfront API",
            "version": "1.0.0",
        },
        "paths": paths,
    }


def configure(settings: CMSSettings) -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return
    configure_root(logging.DEBUG if settings.debug else logging.INFO)
    _CONFIGURED = True


def build_app(
    settings: Optional[CMSSettings] = None,
    *,
    transport: Optional[httpx.BaseTransport] = None,
    invalidator: Invalidator = log_invalidator,
) -> Starlette:
    """Assemble the Starlette app; *transport* replaces the network in tests."""

    settings = settings or CMSSettings.from_env()
    configure(settings)

    def client_factory() -> CMSClient:
        return CMSClient(settings, transport=transport)

    routes = list(make_routes(client_factory, settings, invalidator=invalidator))
    schema = _build_openapi_schema(routes)

    async def openapi(_: Request) -> JSONResponse:
        return JSONResponse(schema)

    routes.append(Route("/openapi.json", openapi, methods=["GET"], name="openapi"))

    app = Starlette(debug=settings.debug, routes=routes)
    app.state.settings = settings
    install_error_handlers(app)
    return app


def create_app() -> Starlette:
    """Factory compatible with ``uvicorn --factory``."""

    return build_app()


__all__ = ["build_app", "configure", "create_app"]
