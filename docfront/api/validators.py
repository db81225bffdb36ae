"""JSON schema checks for webhook payloads and published API responses.

Schemas live in :mod:`docfront.api.schemas` and may ``$ref`` each other by
``$id``; all of them are registered together so cross references resolve
without network access.
"""
from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Any, Dict, List, Mapping, Tuple

from jsonschema import Draft202012Validator
from referencing import Registry, Resource

SCHEMA_PACKAGE = "docfront.api.schemas"

REVALIDATE_REQUEST = "revalidate.request.v1.json"
ARTICLE = "article.v1.json"
ARTICLE_LIST = "articles.v1.json"
OPENAPI_RESULT = "openapi_result.v1.json"
ENVELOPE = "envelope.v1.json"


@lru_cache(maxsize=None)
def schema_contents(name: str) -> Dict[str, Any]:
    with resources.files(SCHEMA_PACKAGE).joinpath(name).open("r", encoding="utf-8") as handle:
        return json.load(handle)


@lru_cache(maxsize=1)
def _registry() -> Registry:
    resources_by_id = []
    for entry in resources.files(SCHEMA_PACKAGE).iterdir():
        if not entry.name.endswith(".json"):
            continue
        contents = schema_contents(entry.name)
        if contents.get("$id"):
            resources_by_id.append((contents["$id"], Resource.from_contents(contents)))
    return Registry().with_resources(resources_by_id)


@lru_cache(maxsize=None)
def _validator(name: str) -> Draft202012Validator:
    return Draft202012Validator(schema_contents(name), registry=_registry())


def validate_payload(schema_name: str, payload: Mapping[str, Any]) -> Tuple[bool, List[str]]:
    """Return ``(valid, messages)``; messages are prefixed with the failing JSON path."""

    errors: List[str] = []
    for error in sorted(_validator(schema_name).iter_errors(payload), key=lambda e: [str(part) for part in e.path]):
        location = "/".join(str(part) for part in error.path)
        errors.append(f"{location}: {error.message}" if location else error.message)
    return not errors, errors


def ensure_valid(schema_name: str, payload: Mapping[str, Any]) -> None:
    """Raise :class:`ValueError` listing every violation of *schema_name*."""

    valid, errors = validate_payload(schema_name, payload)
    if not valid:
        raise ValueError("; ".join(errors))


__all__ = [
    "ARTICLE",
    "ARTICLE_LIST",
    "ENVELOPE",
    "OPENAPI_RESULT",
    "REVALIDATE_REQUEST",
    "ensure_valid",
    "schema_contents",
    "validate_payload",
]
