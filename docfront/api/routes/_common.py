from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import wraps
from typing import Awaitable, Callable, Dict, Optional, Tuple

from starlette.datastructures import QueryParams
from starlette.requests import Request
from starlette.responses import Response
from starlette.templating import Jinja2Templates

from ...cms.client import CMSClient
from ...features.revalidate import Invalidator
from ...utils.config import CMSSettings
from ..validators import ensure_valid

RouteHandler = Callable[[Request, CMSClient], Awaitable[Response]]
RouteDecorator = Callable[[RouteHandler], Callable[[Request], Awaitable[Response]]]
JsonBodyValidator = Callable[[Request, str], Awaitable[Dict[str, object]]]

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class RouteDependencies:
    settings: CMSSettings
    logger: logging.Logger
    validated_json_body: JsonBodyValidator
    with_client: RouteDecorator
    client_factory: Callable[[], CMSClient]
    invalidator: Invalidator
    templates: Jinja2Templates


async def validated_json_body(request: Request, schema: str) -> Dict[str, object]:
    try:
        data = await request.json()
    except json.JSONDecodeError:
        # Re-raise to let the central error handler catch it
        raise

    if not isinstance(data, dict):
        raise ValueError("Payload must be a JSON object.")

    ensure_valid(schema, data)
    return data


def build_with_client(factory: Callable[[], CMSClient]) -> RouteDecorator:
    """Open a CMS client for the duration of one request."""

    def decorator(func: RouteHandler) -> Callable[[Request], Awaitable[Response]]:
        @wraps(func)
        async def wrapper(request: Request) -> Response:
            client = factory()
            try:
                return await func(request, client)
            finally:
                client.close()

        return wrapper

    return decorator


def _int_param(params: QueryParams, name: str, *, strict: bool) -> Optional[int]:
    raw = params.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        if strict:
            raise ValueError(f"{name} must be an integer") from None
        return None
    if value < 1:
        if strict:
            raise ValueError(f"{name} must be at least 1")
        return None
    if name == "pageSize" and value > MAX_PAGE_SIZE:
        if strict:
            raise ValueError(f"pageSize must be at most {MAX_PAGE_SIZE}")
        return MAX_PAGE_SIZE
    return value


def listing_params(
    params: QueryParams, *, strict: bool = False
) -> Tuple[Optional[int], Optional[int], Optional[str]]:
    """Read ``page``, ``pageSize`` and ``sort``; lenient mode drops bad values."""

    sort = params.get("sort") or None
    return (
        _int_param(params, "page", strict=strict),
        _int_param(params, "pageSize", strict=strict),
        sort,
    )
