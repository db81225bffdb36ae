"""Locate or derive the OpenAPI document attached to an article."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from ..cms.client import CMSClient, CMSError
from ..cms.media import file_extension
from ..cms.models import ArticleView
from ..cms.normalize import unwrap
from ..utils.logging import increment_counter
from . import postman

logger = logging.getLogger("docfront.spec")

ALLOWED_EXTENSIONS = frozenset({".yaml", ".yml", ".json"})
YAML_EXTENSIONS = frozenset({".yaml", ".yml"})
POSTMAN_SCHEMA_MARKER = "getpostman.com"


class SpecError(Exception):
    """Base class for attachment problems surfaced to the reader."""


class UnsupportedFileType(SpecError):
    def __init__(self, extension: str) -> None:
        super().__init__(
            f"Unsupported specification file type {extension or '(none)'!r}; "
            f"expected one of {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )
        self.extension = extension


class FetchFailed(SpecError):
    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(f"Could not load specification from {url}: {cause}")
        self.url = url
        self.cause = cause


@dataclass(frozen=True, slots=True)
class NotFound:
    reason: str = "Article has no attached specification file."


@dataclass(frozen=True, slots=True)
class SourceURL:
    """A YAML document the viewer should fetch itself."""

    url: str


@dataclass(frozen=True, slots=True)
class OpenAPIResult:
    document: Any
    source_url: str
    converted: bool = False


Resolution = Union[OpenAPIResult, SourceURL, NotFound]


def is_postman_collection(document: object) -> bool:
    if not isinstance(document, Mapping):
        return False
    info = document.get("info")
    schema = info.get("schema") if isinstance(info, Mapping) else None
    return isinstance(schema, str) and POSTMAN_SCHEMA_MARKER in schema


class SpecResolver:
    """Resolve an article's ``openapi`` attachment into something the viewer accepts."""

    def __init__(self, client: CMSClient) -> None:
        self.client = client

    def resolve(self, article: ArticleView | Mapping[str, Any]) -> Resolution:
        view = article if isinstance(article, ArticleView) else unwrap(article)
        attachment = view.openapi_file
        if attachment is None:
            return NotFound()

        extension = file_extension(attachment.ext, attachment.name, attachment.url)
        if extension not in ALLOWED_EXTENSIONS:
            raise UnsupportedFileType(extension)

        url = self.client.media_url(attachment.url)
        try:
            content = self.client.fetch_bytes(url)
        except CMSError as exc:
            logger.warning("spec.fetch_failed", extra={"url": url, "error": str(exc)})
            raise FetchFailed(url, exc) from exc

        # YAML goes to the viewer by URL and is never parsed here.
        if extension in YAML_EXTENSIONS:
            increment_counter("spec.resolved")
            return SourceURL(url=url)

        try:
            document = json.loads(content)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise FetchFailed(url, exc) from exc

        increment_counter("spec.resolved")
        if is_postman_collection(document):
            logger.info("spec.postman_converted", extra={"url": url})
            return OpenAPIResult(document=postman.convert(document), source_url=url, converted=True)
        return OpenAPIResult(document=document, source_url=url)


def viewer_configuration(resolution: Resolution) -> Optional[Dict[str, object]]:
    """Configuration for the API-reference viewer, or ``None`` when nothing resolved."""

    if isinstance(resolution, OpenAPIResult):
        return {"content": resolution.document, "layout": "modern", "theme": "default"}
    if isinstance(resolution, SourceURL):
        return {"url": resolution.url, "layout": "modern", "theme": "default"}
    return None


__all__ = [
    "ALLOWED_EXTENSIONS",
    "FetchFailed",
    "NotFound",
    "OpenAPIResult",
    "POSTMAN_SCHEMA_MARKER",
    "Resolution",
    "SourceURL",
    "SpecError",
    "SpecResolver",
    "UnsupportedFileType",
    "is_postman_collection",
    "viewer_configuration",
]
