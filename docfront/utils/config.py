"""Runtime configuration for the documentation front-end."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Final, Optional


def _parse_bool(value: str | None, *, default: bool = False) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    return value in {"1", "true", "yes", "on"}


def _parse_int(value: str | None, *, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_float(value: str | None, *, default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_str(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


def _env_bool(name: str, *, default: bool = False) -> bool:
    return _parse_bool(os.getenv(name), default=default)


def _env_int(name: str, *, default: int) -> int:
    return _parse_int(os.getenv(name), default=default)


def _env_float(name: str, *, default: float) -> float:
    return _parse_float(os.getenv(name), default=default)


DEFAULT_CMS_URL: Final[str] = "http://localhost:1337"
DEFAULT_PAGE_SIZE: Final[int] = 10
DEFAULT_SORT: Final[str] = "publishedAt:desc"
DEFAULT_REVALIDATE_SECONDS: Final[int] = 60


@dataclass(frozen=True, slots=True)
class CMSSettings:
    """Connection and rendering settings threaded into clients and the app."""

    base_url: str = DEFAULT_CMS_URL
    token: Optional[str] = None
    timeout: float = 30.0
    server_side: bool = True
    environment: str = "production"
    page_size: int = DEFAULT_PAGE_SIZE
    revalidate_seconds: int = DEFAULT_REVALIDATE_SECONDS
    webhook_secret: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @property
    def debug(self) -> bool:
        return self.environment.strip().lower() == "development"

    @property
    def has_token(self) -> bool:
        return bool(self.token)

    def for_browser(self) -> "CMSSettings":
        """Return a copy describing a client-visible context (never carries auth)."""

        return replace(self, server_side=False)

    @classmethod
    def from_env(cls) -> "CMSSettings":
        return cls(
            base_url=_env_str("DOCFRONT_CMS_URL") or DEFAULT_CMS_URL,
            token=_env_str("DOCFRONT_CMS_TOKEN"),
            timeout=_env_float("DOCFRONT_CMS_TIMEOUT", default=30.0),
            server_side=not _env_bool("DOCFRONT_BROWSER_CONTEXT", default=False),
            environment=_env_str("DOCFRONT_ENV") or "production",
            page_size=_env_int("DOCFRONT_PAGE_SIZE", default=DEFAULT_PAGE_SIZE),
            revalidate_seconds=_env_int(
                "DOCFRONT_REVALIDATE_SECONDS", default=DEFAULT_REVALIDATE_SECONDS
            ),
            webhook_secret=_env_str("DOCFRONT_WEBHOOK_SECRET"),
        )


__all__ = [
    "CMSSettings",
    "DEFAULT_CMS_URL",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_REVALIDATE_SECONDS",
    "DEFAULT_SORT",
]
