from __future__ import annotations

from typing import List

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ...features.revalidate import handle_webhook, secret_matches
from ...utils.logging import request_scope
from ..validators import REVALIDATE_REQUEST
from ._common import RouteDependencies

SECRET_HEADER = "x-webhook-secret"


def create_webhook_routes(deps: RouteDependencies) -> List[Route]:
    async def revalidate_route(request: Request) -> JSONResponse:
        with request_scope(
            "revalidate",
            logger=deps.logger,
            extra={"path": "/api/revalidate"},
        ):
            provided = request.headers.get(SECRET_HEADER)
            if not secret_matches(provided, deps.settings.webhook_secret):
                deps.logger.warning(
                    "revalidate.rejected",
                    extra={"secret_configured": bool(deps.settings.webhook_secret)},
                )
                return JSONResponse({"message": "Invalid secret"}, status_code=401)

            data = await deps.validated_json_body(request, REVALIDATE_REQUEST)
            try:
                result = handle_webhook(data, deps.invalidator)
            except Exception as exc:
                deps.logger.exception("revalidate.failed")
                return JSONResponse(
                    {"message": "Error revalidating", "error": str(exc)},
                    status_code=500,
                )
            return JSONResponse(result)

    return [Route("/api/revalidate", revalidate_route, methods=["POST"], name="revalidate")]
