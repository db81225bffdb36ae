"""Cache revalidation webhook sent by the CMS on content changes.

Only the invalidation *plan* is computed here; the mechanism that drops cached
pages belongs to the hosting layer and is injected as an :class:`Invalidator`.
"""
from __future__ import annotations

import hmac
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger("docfront.revalidate")

Invalidator = Callable[[Sequence[str], Sequence[str]], None]


def log_invalidator(tags: Sequence[str], paths: Sequence[str]) -> None:
    logger.info("revalidate.invalidate", extra={"tags": list(tags), "paths": list(paths)})


@dataclass(frozen=True, slots=True)
class RevalidationPlan:
    tags: Tuple[str, ...] = ()
    paths: Tuple[str, ...] = ()


def secret_matches(provided: Optional[str], expected: Optional[str]) -> bool:
    """Constant-time comparison; an unconfigured secret never matches."""

    if not expected or provided is None:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def tags_for_entry(model: object, entry: object) -> RevalidationPlan:
    if model != "article":
        return RevalidationPlan()
    tags = ["articles"]
    paths = ["/articles"]
    slug = entry.get("slug") if isinstance(entry, Mapping) else None
    if isinstance(slug, str) and slug:
        tags.append(f"article-{slug}")
        paths.append(f"/articles/{slug}")
    return RevalidationPlan(tags=tuple(tags), paths=tuple(paths))


def handle_webhook(
    payload: Mapping[str, Any],
    invalidator: Invalidator = log_invalidator,
    *,
    clock: Callable[[], float] = time.time,
) -> Dict[str, object]:
    """Apply the plan for a validated webhook *payload* and describe what happened."""

    model = payload.get("model")
    event = payload.get("event")
    plan = tags_for_entry(model, payload.get("entry"))
    if plan.tags or plan.paths:
        invalidator(plan.tags, plan.paths)
    logger.info(
        "revalidate.applied",
        extra={"model": model, "event": event, "tags": list(plan.tags)},
    )
    return {
        "revalidated": True,
        "now": int(clock() * 1000),
        "model": model,
        "event": event,
        "tags": list(plan.tags),
        "paths": list(plan.paths),
    }


__all__ = [
    "Invalidator",
    "RevalidationPlan",
    "handle_webhook",
    "log_invalidator",
    "secret_matches",
    "tags_for_entry",
]
