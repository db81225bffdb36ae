"""Error codes and helpers for the JSON endpoints."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, MutableMapping, Optional, Sequence


class ErrorCode(str, Enum):
    """Stable error codes returned from the JSON endpoints."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    UNSUPPORTED_SPEC = "UNSUPPORTED_SPEC"
    UPSTREAM_FAILED = "UPSTREAM_FAILED"
    SPEC_FETCH_FAILED = "SPEC_FETCH_FAILED"
    INTERNAL = "INTERNAL"


@dataclass(frozen=True)
class ErrorTemplate:
    """Default status, message, and recovery hints for an error code."""

    status: int
    message: str
    recovery: Sequence[str] = ()


_TEMPLATES: Mapping[ErrorCode, ErrorTemplate] = {
    ErrorCode.INVALID_REQUEST: ErrorTemplate(
        status=400,
        message="Request was malformed or failed validation.",
        recovery=("Check required fields and value formats.",),
    ),
    ErrorCode.UNAUTHORIZED: ErrorTemplate(
        status=401,
        message="Missing or invalid credentials.",
        recovery=("Send the shared secret configured for this deployment.",),
    ),
    ErrorCode.NOT_FOUND: ErrorTemplate(
        status=404,
        message="The requested documentation does not exist.",
        recovery=("Check the article slug or publish the article in the CMS.",),
    ),
    ErrorCode.UNSUPPORTED_SPEC: ErrorTemplate(
        status=415,
        message="The attached specification file type is not supported.",
        recovery=(
            "Attach a .yaml, .yml or .json file to the article's openapi field.",
        ),
    ),
    ErrorCode.UPSTREAM_FAILED: ErrorTemplate(
        status=502,
        message="The CMS could not be reached or returned an error.",
        recovery=("Retry later or run the CMS connectivity self-test.",),
    ),
    ErrorCode.SPEC_FETCH_FAILED: ErrorTemplate(
        status=502,
        message="The attached specification file could not be retrieved.",
        recovery=("Check that the media file still exists in the CMS library.",),
    ),
    ErrorCode.INTERNAL: ErrorTemplate(
        status=500,
        message="Internal server error.",
        recovery=("Retry the request or contact support with request logs.",),
    ),
}


def _resolve_template(code: ErrorCode) -> ErrorTemplate:
    try:
        return _TEMPLATES[code]
    except KeyError:  # pragma: no cover - every code has a template
        raise ValueError(f"No error template registered for {code!s}") from None


def make_error(
    code: ErrorCode,
    message: Optional[str] = None,
    *,
    recovery: Optional[Iterable[str]] = None,
    status: Optional[int] = None,
) -> Dict[str, object]:
    """Create a JSON-serialisable error dict."""

    template = _resolve_template(code)
    resolved_message = message if message is not None else template.message
    resolved_status = status if status is not None else template.status
    resolved_recovery: List[str] = list(recovery) if recovery is not None else list(
        template.recovery
    )
    payload: MutableMapping[str, object] = {
        "status": int(resolved_status),
        "code": code.value,
        "message": resolved_message,
        "recovery": resolved_recovery,
    }
    return dict(payload)


__all__ = ["ErrorCode", "ErrorTemplate", "make_error"]
