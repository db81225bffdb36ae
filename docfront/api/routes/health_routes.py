from __future__ import annotations

from typing import List

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ...cms.client import CMSClient
from ...features.diagnostics import probe_cms
from ...utils.logging import request_scope
from .._shared import envelope_ok
from ._common import RouteDependencies

SERVICE_NAME = "docfront"


def create_health_routes(deps: RouteDependencies) -> List[Route]:
    settings = deps.settings

    async def health_route(request: Request) -> JSONResponse:
        with request_scope(
            "health",
            logger=deps.logger,
            extra={"path": "/api/health.json"},
        ):
            payload = {
                "service": SERVICE_NAME,
                "environment": settings.environment,
                "cms": {
                    "base_url": settings.base_url,
                    "has_token": settings.has_token,
                },
                "webhook_configured": bool(settings.webhook_secret),
            }
            return JSONResponse(envelope_ok(payload))

    @deps.with_client
    async def test_cms_route(request: Request, client: CMSClient) -> JSONResponse:
        with request_scope(
            "test_cms",
            logger=deps.logger,
            extra={"path": "/api/test-cms"},
        ):
            results = await run_in_threadpool(probe_cms, client)
            return JSONResponse(results, status_code=200 if results["success"] else 500)

    return [
        Route("/api/health.json", health_route, methods=["GET"], name="health"),
        Route("/api/test-cms", test_cms_route, methods=["GET", "POST"], name="test_cms"),
    ]
