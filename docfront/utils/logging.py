"""Structured logging for page renders and API calls.

Every route handler runs inside :func:`request_scope`. The scope gives each
request an id, stamps that id and the route metadata onto the records logged
through it, and tallies named counters (``cms.request``, ``blocks.skipped``,
...) that are reported once in the closing ``request.finish`` record.
Library code calls :func:`increment_counter` without knowing whether a scope
is active.
"""
from __future__ import annotations

import contextvars
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from time import perf_counter
from typing import Dict, Iterator, Mapping, Optional

LOG_FORMAT = "%(levelname)s:%(name)s:%(message)s"

_ACTIVE: contextvars.ContextVar[Optional["RequestContext"]] = contextvars.ContextVar(
    "docfront_request", default=None
)


def configure_root(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _elapsed_ms(started: float) -> float:
    return (perf_counter() - started) * 1000.0


@contextmanager
def scoped_timer(
    logger: logging.Logger, operation: str, *, extra: Optional[Dict[str, object]] = None
) -> Iterator[None]:
    """Log a debug record named *operation* with ``duration_ms`` once the block exits."""

    started = perf_counter()
    try:
        yield
    finally:
        logger.debug(operation, extra={**(extra or {}), "duration_ms": _elapsed_ms(started)})


@dataclass(slots=True)
class RequestContext:
    name: str
    logger: logging.Logger
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    metadata: Dict[str, object] = field(default_factory=dict)
    counters: Dict[str, int] = field(default_factory=dict)
    started: float = field(default_factory=perf_counter)

    def extra(self, **values: object) -> Dict[str, object]:
        """Record fields identifying this request, merged with *values*."""

        return {"request": self.name, "request_id": self.request_id, **self.metadata, **values}

    def log(
        self, level: int, message: str, *, extra: Optional[Mapping[str, object]] = None
    ) -> None:
        self.logger.log(level, message, extra=self.extra(**dict(extra or {})))

    def increment(self, counter: str, amount: int = 1) -> int:
        total = self.counters[counter] = self.counters.get(counter, 0) + amount
        self.log(logging.DEBUG, "request.counter", extra={"counter": counter, "value": total})
        return total


@contextmanager
def request_scope(
    name: str,
    *,
    logger: Optional[logging.Logger] = None,
    extra: Optional[Mapping[str, object]] = None,
) -> Iterator[RequestContext]:
    """Bind a :class:`RequestContext` for the duration of one route handler.

    Logs ``request.start`` on entry and ``request.finish`` (with ``duration_ms``
    and the counters) on exit. An exception escaping the block is logged as
    ``request.error`` and re-raised.
    """

    context = RequestContext(
        name=name,
        logger=logger or logging.getLogger("docfront.request"),
        metadata=dict(extra or {}),
    )
    token = _ACTIVE.set(context)
    context.log(logging.INFO, "request.start")
    try:
        yield context
    except Exception:
        context.logger.exception("request.error", extra=context.extra())
        raise
    finally:
        context.log(
            logging.INFO,
            "request.finish",
            extra={"duration_ms": _elapsed_ms(context.started), "counters": dict(context.counters)},
        )
        _ACTIVE.reset(token)


def current_request() -> Optional[RequestContext]:
    return _ACTIVE.get()


def increment_counter(name: str, amount: int = 1) -> None:
    """Bump *name* on the active request; outside a scope this does nothing."""

    context = current_request()
    if context is not None:
        context.increment(name, amount)


__all__ = [
    "LOG_FORMAT",
    "RequestContext",
    "configure_root",
    "current_request",
    "increment_counter",
    "request_scope",
    "scoped_timer",
]
