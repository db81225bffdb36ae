"""Media URL helpers."""
from __future__ import annotations

from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import urlsplit


def resolve_media_url(url: Optional[str], origin: str) -> str:
    """Return an absolute URL for *url*, prefixing the CMS *origin* when relative.

    Empty or missing URLs resolve to ``""`` so callers can skip rendering.
    """

    if not url or not isinstance(url, str):
        return ""
    if url.startswith("http"):
        return url
    base = origin.rstrip("/")
    if not url.startswith("/"):
        url = f"/{url}"
    return f"{base}{url}"


def file_extension(ext: Optional[str], *candidates: Optional[str]) -> str:
    """Return a lowercased extension with its leading dot.

    ``ext`` as reported by the CMS wins; otherwise the suffix of the first
    candidate name or URL path that has one.
    """

    if isinstance(ext, str) and ext.strip():
        value = ext.strip().lower()
        return value if value.startswith(".") else f".{value}"
    for candidate in candidates:
        if not isinstance(candidate, str) or not candidate:
            continue
        suffix = PurePosixPath(urlsplit(candidate).path).suffix
        if suffix:
            return suffix.lower()
    return ""


__all__ = ["file_extension", "resolve_media_url"]
