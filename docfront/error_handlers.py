"""Centralized error handling for malformed requests and CMS failures."""
import json
import logging
import uuid
from typing import Any, Dict, Optional

from starlette.requests import Request
from starlette.responses import JSONResponse

from .api._shared import envelope_error, upstream_details
from .cms.client import CMSError
from .utils.errors import ErrorCode, make_error
from .utils.logging import current_request

log = logging.getLogger(__name__)


def _correlation_id() -> str:
    context = current_request()
    if context is not None:
        return context.request_id
    return uuid.uuid4().hex


def make_400_response(
    *,
    debug: bool = False,
    correlation_id: Optional[str] = None,
    summary: Optional[str] = None,
) -> Dict[str, Any]:
    """Build the 400 envelope; the failure summary is only echoed in debug mode."""
    error = make_error(ErrorCode.INVALID_REQUEST)
    if debug and summary:
        error["message"] = summary
    payload: Dict[str, Any] = {"ok": False, "data": None, "errors": [error]}
    if correlation_id:
        payload["meta"] = {"correlation_id": correlation_id}
    return payload


def _render_validation_error(request: Request, exc: Exception, kind: str) -> JSONResponse:
    correlation_id = _correlation_id()
    log.warning("%s: %s", kind, exc, extra={"correlation_id": correlation_id})
    debug = getattr(request.app, "debug", False)
    return JSONResponse(
        status_code=400,
        content=make_400_response(
            debug=debug, correlation_id=correlation_id, summary=str(exc)
        ),
    )


def _render_upstream_error(request: Request, exc: CMSError) -> JSONResponse:
    log.warning(
        "cms_error: %s",
        exc.message,
        extra={"correlation_id": _correlation_id(), "status": exc.status},
    )
    debug = getattr(request.app, "debug", False)
    payload = envelope_error(
        ErrorCode.UPSTREAM_FAILED,
        exc.message,
        upstream_error=upstream_details(exc.status, exc.details, debug=debug),
    )
    return JSONResponse(status_code=502, content=payload)


def install_error_handlers(app) -> None:
    """Install error handlers on the Starlette app."""

    async def _on_json_decode_error(request: Request, exc: json.JSONDecodeError) -> JSONResponse:
        return _render_validation_error(request, exc, "json_decode_error")

    async def _on_value_error(request: Request, exc: ValueError) -> JSONResponse:
        return _render_validation_error(request, exc, "value_error")

    async def _on_cms_error(request: Request, exc: CMSError) -> JSONResponse:
        return _render_upstream_error(request, exc)

    app.add_exception_handler(json.JSONDecodeError, _on_json_decode_error)
    app.add_exception_handler(ValueError, _on_value_error)
    app.add_exception_handler(CMSError, _on_cms_error)
