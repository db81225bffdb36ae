"""Connectivity self-test against the CMS."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from time import perf_counter
from typing import Dict, Mapping, Optional

import httpx

from ..cms.client import CMSClient, TransportError
from ..cms.normalize import is_nested

logger = logging.getLogger("docfront.diagnostics")

PROBE_ENDPOINT = "/articles"


def classify_failure(exc: BaseException) -> Dict[str, str]:
    cause = exc.__cause__ if isinstance(exc, TransportError) else exc
    if isinstance(cause, httpx.ConnectError):
        return {
            "errorType": "CONNECTION_REFUSED",
            "suggestion": "CMS server is not running or not accessible",
        }
    if isinstance(cause, httpx.TransportError):
        return {
            "errorType": "NETWORK_ERROR",
            "suggestion": "Check if the CMS server is running and the URL is correct",
        }
    return {"errorType": "UNKNOWN_ERROR"}


def _sample_structure(data: object) -> Optional[Dict[str, object]]:
    if not isinstance(data, list) or not data or not isinstance(data[0], Mapping):
        return None
    sample = data[0]
    attributes = sample.get("attributes")
    return {
        "hasId": bool(sample.get("id")),
        "hasAttributes": is_nested(sample) and bool(attributes),
        "attributeKeys": list(attributes) if isinstance(attributes, Mapping) else [],
    }


def probe_cms(client: CMSClient) -> Dict[str, object]:
    """Issue one read against the CMS and report status, timing and failure class."""

    settings = client.settings
    results: Dict[str, object] = {
        "success": False,
        "url": client.build_url(PROBE_ENDPOINT),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    start = perf_counter()
    try:
        response = client.get(PROBE_ENDPOINT)
    except TransportError as exc:
        results["error"] = exc.message
        results["responseTime"] = round((perf_counter() - start) * 1000.0)
        results.update(classify_failure(exc))
        logger.warning("diagnostics.unreachable", extra={"error": exc.message})
    else:
        results["status"] = response.status_code
        results["statusText"] = response.reason_phrase
        results["responseTime"] = round((perf_counter() - start) * 1000.0)
        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            body = None
        fallback = f"HTTP {response.status_code}: {response.reason_phrase}"
        if response.is_success and isinstance(body, Mapping):
            data = body.get("data")
            results["success"] = True
            results["articlesCount"] = len(data) if isinstance(data, list) else 0
            results["details"] = {
                "hasData": data is not None,
                "hasMeta": body.get("meta") is not None,
                "dataType": "array" if isinstance(data, list) else type(data).__name__,
                "sampleStructure": _sample_structure(data),
            }
        elif response.is_success:
            results["error"] = "CMS returned a non-JSON body"
        else:
            error = body.get("error") if isinstance(body, Mapping) else None
            message = error.get("message") if isinstance(error, Mapping) else None
            results["error"] = message or fallback
            if body is not None:
                results["details"] = body

    results["environment"] = {
        "cmsUrl": settings.base_url,
        "hasToken": settings.has_token,
        "environment": settings.environment,
    }
    return results


__all__ = ["PROBE_ENDPOINT", "classify_failure", "probe_cms"]
