"""HTTP client for the headless CMS."""
from __future__ import annotations

import json
import logging
from time import perf_counter
from typing import Any, Dict, List, Mapping, MutableMapping, Optional

import httpx

from ..utils.config import DEFAULT_SORT, CMSSettings
from ..utils.logging import current_request, increment_counter, scoped_timer
from .media import resolve_media_url
from .models import ArticleList, PaginationMeta
from .normalize import detect_shape, fields_of
from .query import query_suffix

logger = logging.getLogger("docfront.cms.client")


ARTICLE_POPULATE: Mapping[str, Any] = {
    "author": {"populate": ["avatar"]},
    "category": True,
    "blocks": {"populate": "*"},
    "openapi": True,
}


class CMSError(Exception):
    """Raised when the CMS cannot be reached or answers with an error."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        details: Optional[object] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details

    def as_dict(self) -> Dict[str, object]:
        return {"message": self.message, "status": self.status, "details": self.details}


class HttpError(CMSError):
    """The CMS responded with a status outside 200-299."""

    status: int


class TransportError(CMSError):
    """No response was received (DNS, refused connection, timeout)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


def _error_from_response(response: httpx.Response) -> HttpError:
    fallback = f"HTTP {response.status_code}: {response.reason_phrase}"
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return HttpError(fallback, status=response.status_code)
    error = body.get("error") if isinstance(body, Mapping) else None
    if not isinstance(error, Mapping):
        return HttpError(fallback, status=response.status_code)
    message = error.get("message")
    return HttpError(
        str(message) if message else fallback,
        status=response.status_code,
        details=error.get("details"),
    )


def _shape_summary(payload: object) -> Dict[str, object]:
    data = payload.get("data") if isinstance(payload, Mapping) else None
    first = data[0] if isinstance(data, list) and data else data
    summary: Dict[str, object] = {
        "has_data": data is not None,
        "data_type": "array" if isinstance(data, list) else type(data).__name__,
        "data_length": len(data) if isinstance(data, list) else None,
        "has_meta": isinstance(payload, Mapping) and payload.get("meta") is not None,
    }
    if isinstance(first, Mapping):
        summary["data_format"] = detect_shape(first).value
        summary["sample_title"] = fields_of(first).get("title")
    return summary


class CMSClient:
    """Read-only access to the CMS REST API.

    Every call is independent; nothing is cached between calls. Revalidation
    hints are attached to results for the hosting layer and otherwise ignored.
    """

    def __init__(
        self,
        settings: CMSSettings,
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.settings = settings
        self.base_url = settings.base_url
        self._session = httpx.Client(timeout=settings.timeout, transport=transport)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "CMSClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # low level
    # ------------------------------------------------------------------

    def build_url(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> str:
        return f"{self.base_url}/api{endpoint}{query_suffix(params)}"

    def media_url(self, url: Optional[str]) -> str:
        return resolve_media_url(url, self.base_url)

    def _headers(self, extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        headers: Dict[str, str] = {"Content-Type": "application/json"}
        if self.settings.token and self.settings.server_side:
            headers["Authorization"] = f"Bearer {self.settings.token}"
        if extra:
            headers.update(extra)
        return headers

    def _timer_extra(self, method: str, target: str) -> Dict[str, Any]:
        context = current_request()
        if context is not None:
            return context.extra(event="timer", operation=f"cms.{method.lower()}", endpoint=target)
        return {"event": "timer", "operation": f"cms.{method.lower()}", "endpoint": target}

    def _send(
        self,
        method: str,
        url: str,
        *,
        target: str,
        headers: Optional[Mapping[str, str]] = None,
        check: bool = True,
    ) -> httpx.Response:
        increment_counter("cms.request")
        with scoped_timer(logger, f"cms.{method.lower()}", extra=self._timer_extra(method, target)):
            start = perf_counter()
            try:
                response = self._session.request(method, url, headers=headers)
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                duration_ms = (perf_counter() - start) * 1000.0
                increment_counter("cms.error")
                logger.warning(
                    "cms.request",
                    extra={
                        "method": method,
                        "endpoint": target,
                        "duration_ms": duration_ms,
                        "error": str(exc),
                    },
                )
                raise TransportError(f"Failed to fetch from CMS API: {exc}") from exc
        duration_ms = (perf_counter() - start) * 1000.0
        logger.info(
            "cms.request",
            extra={
                "method": method,
                "endpoint": target,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        if check and not response.is_success:
            increment_counter("cms.error")
            raise _error_from_response(response)
        return response

    def request_json(
        self,
        endpoint: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """GET ``{base}/api{endpoint}`` and return the decoded JSON body."""

        url = self.build_url(endpoint, params)
        response = self._send("GET", url, target=endpoint, headers=self._headers(headers))
        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise HttpError(
                f"Invalid JSON in CMS response: {exc}", status=response.status_code
            ) from exc
        if self.settings.debug:
            logger.debug(
                "cms.response",
                extra={"endpoint": endpoint, "url": url, **_shape_summary(payload)},
            )
        return payload

    def get(self, endpoint: str, *, params: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        """GET an API endpoint and return the response whatever its status."""

        url = self.build_url(endpoint, params)
        return self._send("GET", url, target=endpoint, headers=self._headers(), check=False)

    def fetch_bytes(self, url: str) -> bytes:
        """Download an asset; relative URLs are resolved against the CMS origin."""

        absolute = self.media_url(url)
        # Credentials only travel to the CMS origin, never to external media hosts.
        headers = self._headers() if absolute.startswith(f"{self.base_url}/") else None
        response = self._send("GET", absolute, target=absolute, headers=headers)
        return response.content

    # ------------------------------------------------------------------
    # articles
    # ------------------------------------------------------------------

    def _hints(self, *tags: str) -> Dict[str, object]:
        return {"revalidate": self.settings.revalidate_seconds, "tags": list(tags)}

    def fetch_articles(
        self,
        *,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        sort: Optional[str] = None,
    ) -> ArticleList:
        params: MutableMapping[str, Any] = {
            "populate": ARTICLE_POPULATE,
            "pagination": {
                "page": page or 1,
                "pageSize": page_size or self.settings.page_size,
            },
            "sort": sort or DEFAULT_SORT,
        }
        payload = self.request_json("/articles", params=params)
        data = payload.get("data") if isinstance(payload, Mapping) else None
        entities: List[Mapping[str, Any]] = [
            entry for entry in (data if isinstance(data, list) else []) if isinstance(entry, Mapping)
        ]
        meta = PaginationMeta.from_meta(payload.get("meta") if isinstance(payload, Mapping) else None)
        return ArticleList(data=entities, meta=meta, hints=self._hints("articles"))

    def fetch_article_by_slug(self, slug: str) -> Optional[Mapping[str, Any]]:
        """Return the first article whose slug equals *slug*, or ``None``."""

        params = {
            "filters": {"slug": {"$eq": slug}},
            "populate": ARTICLE_POPULATE,
        }
        payload = self.request_json("/articles", params=params)
        data = payload.get("data") if isinstance(payload, Mapping) else None
        if isinstance(data, list):
            for entry in data:
                if isinstance(entry, Mapping):
                    return entry
            return None
        return data if isinstance(data, Mapping) else None

    def fetch_article_by_id(self, article_id: int | str) -> Mapping[str, Any]:
        payload = self.request_json(f"/articles/{article_id}", params={"populate": ARTICLE_POPULATE})
        data = payload.get("data") if isinstance(payload, Mapping) else None
        if not isinstance(data, Mapping):
            raise CMSError(f"Article {article_id} response carried no data")
        return data


__all__ = [
    "ARTICLE_POPULATE",
    "CMSClient",
    "CMSError",
    "HttpError",
    "TransportError",
]
