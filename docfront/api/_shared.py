"""Shared helpers for HTTP routes."""
from __future__ import annotations

from functools import lru_cache
from typing import Dict, Optional

from starlette.responses import JSONResponse
from starlette.templating import Jinja2Templates

from ..templating import environment
from ..utils.errors import ErrorCode, make_error


def envelope_ok(data: Dict[str, object]) -> Dict[str, object]:
    return {"ok": True, "data": data, "errors": []}


def envelope_error(
    code: ErrorCode,
    message: str | None = None,
    *,
    recovery: tuple[str, ...] | None = None,
    status: int | None = None,
    upstream_error: dict | None = None,
) -> Dict[str, object]:
    error_payload = make_error(
        code,
        message=message,
        recovery=recovery,
        status=status,
    )
    if upstream_error is not None:
        error_payload = dict(error_payload)
        error_payload["upstream"] = upstream_error
    return {
        "ok": False,
        "data": None,
        "errors": [error_payload],
    }


def envelope_response(payload: Dict[str, object]) -> JSONResponse:
    status = 200
    if not payload.get("ok"):
        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0]
            status = int(first.get("status", 500))
        else:
            status = 500
    return JSONResponse(payload, status_code=status)


def error_response(
    code: ErrorCode,
    message: str | None = None,
    *,
    recovery: tuple[str, ...] | None = None,
    upstream_error: dict | None = None,
    status: int | None = None,
) -> JSONResponse:
    return envelope_response(
        envelope_error(
            code,
            message,
            recovery=recovery,
            upstream_error=upstream_error,
            status=status,
        )
    )


def upstream_details(status: Optional[int], details: object, *, debug: bool) -> Dict[str, object]:
    payload: Dict[str, object] = {"status": status}
    if debug and details is not None:
        payload["details"] = details
    return payload


@lru_cache(maxsize=1)
def page_templates() -> Jinja2Templates:
    return Jinja2Templates(env=environment())
