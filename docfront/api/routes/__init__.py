from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional

from starlette.routing import Route
from starlette.templating import Jinja2Templates

from ...cms.client import CMSClient
from ...features.revalidate import Invalidator, log_invalidator
from ...utils.config import CMSSettings
from .._shared import page_templates
from ._common import RouteDependencies, build_with_client, validated_json_body
from .article_api_routes import create_article_api_routes
from .health_routes import create_health_routes
from .page_routes import create_page_routes
from .webhook_routes import create_webhook_routes


def make_routes(
    client_factory: Callable[[], CMSClient],
    settings: CMSSettings,
    *,
    invalidator: Invalidator = log_invalidator,
    templates: Optional[Jinja2Templates] = None,
) -> List[Route]:
    logger = logging.getLogger("docfront.api")

    deps = RouteDependencies(
        settings=settings,
        logger=logger,
        validated_json_body=validated_json_body,
        with_client=build_with_client(client_factory),
        client_factory=client_factory,
        invalidator=invalidator,
        templates=templates or page_templates(),
    )

    groups: Iterable[List[Route]] = (
        create_health_routes(deps),
        create_page_routes(deps),
        create_article_api_routes(deps),
        create_webhook_routes(deps),
    )

    routes: List[Route] = []
    for group in groups:
        routes.extend(group)
    return routes


__all__ = ["make_routes"]
