from __future__ import annotations

import logging

import pytest

from docfront.utils.logging import current_request, increment_counter, request_scope, scoped_timer


def test_scope_binds_context_and_counts() -> None:
    assert current_request() is None

    with request_scope("unit", extra={"path": "/x"}) as ctx:
        assert current_request() is ctx
        increment_counter("hits")
        increment_counter("hits", 2)

    assert ctx.counters == {"hits": 3}
    assert ctx.metadata == {"path": "/x"}
    assert current_request() is None


def test_counter_outside_scope_is_noop() -> None:
    increment_counter("ignored")

    assert current_request() is None


def test_scope_logs_start_finish_and_error(caplog) -> None:
    logger = logging.getLogger("docfront.test")

    with caplog.at_level(logging.INFO, logger="docfront.test"):
        with pytest.raises(RuntimeError):
            with request_scope("failing", logger=logger):
                raise RuntimeError("boom")

    messages = [record.getMessage() for record in caplog.records]
    assert messages[0] == "request.start"
    assert "request.error" in messages
    assert messages[-1] == "request.finish"
    finish = caplog.records[-1]
    assert finish.request == "failing"
    assert finish.duration_ms >= 0
    assert finish.counters == {}


def test_counters_are_logged_with_request_id(caplog) -> None:
    logger = logging.getLogger("docfront.test")

    with caplog.at_level(logging.DEBUG, logger="docfront.test"):
        with request_scope("counting", logger=logger, extra={"slug": "users-api"}) as ctx:
            increment_counter("blocks.skipped")

    counter = next(record for record in caplog.records if record.getMessage() == "request.counter")
    assert counter.counter == "blocks.skipped"
    assert counter.value == 1
    assert counter.request_id == ctx.request_id
    assert counter.slug == "users-api"
    assert caplog.records[-1].counters == {"blocks.skipped": 1}


def test_scoped_timer_reports_milliseconds(caplog) -> None:
    logger = logging.getLogger("docfront.test")

    with caplog.at_level(logging.DEBUG, logger="docfront.test"):
        with scoped_timer(logger, "cms.get", extra={"endpoint": "/articles"}):
            pass

    record = caplog.records[-1]
    assert record.getMessage() == "cms.get"
    assert record.endpoint == "/articles"
    assert record.duration_ms >= 0
