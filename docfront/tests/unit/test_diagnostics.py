from __future__ import annotations

import httpx

from docfront.cms.client import CMSClient, TransportError
from docfront.features.diagnostics import classify_failure, probe_cms
from docfront.tests.fixtures.cms import FLAT_ARTICLE, NESTED_ARTICLE, FakeCMS
from docfront.utils.config import CMSSettings


def test_probe_success_summarises_sample(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    fake_cms.articles = [NESTED_ARTICLE, FLAT_ARTICLE]

    results = probe_cms(CMSClient(settings, transport=fake_cms.transport))

    assert results["success"] is True
    assert results["url"] == "http://cms.test/api/articles"
    assert results["status"] == 200
    assert results["statusText"] == "OK"
    assert results["articlesCount"] == 2
    assert isinstance(results["responseTime"], int)
    sample = results["details"]["sampleStructure"]
    assert sample["hasId"] is True
    assert sample["hasAttributes"] is True
    assert "title" in sample["attributeKeys"]
    assert results["environment"] == {
        "cmsUrl": "http://cms.test",
        "hasToken": True,
        "environment": "production",
    }


def test_probe_never_echoes_token(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    results = probe_cms(CMSClient(settings, transport=fake_cms.transport))

    assert "secret-token" not in repr(results)


def test_probe_reports_cms_error(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    fake_cms.error = httpx.Response(401, json={"error": {"status": 401, "message": "Missing or invalid credentials"}})

    results = probe_cms(CMSClient(settings, transport=fake_cms.transport))

    assert results["success"] is False
    assert results["status"] == 401
    assert results["error"] == "Missing or invalid credentials"


def test_probe_classifies_connection_refused(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    fake_cms.raise_exc = httpx.ConnectError("[Errno 111] Connection refused")

    results = probe_cms(CMSClient(settings, transport=fake_cms.transport))

    assert results["success"] is False
    assert results["errorType"] == "CONNECTION_REFUSED"
    assert "suggestion" in results
    assert "status" not in results


def test_classify_failure() -> None:
    def wrapped(cause: BaseException) -> TransportError:
        error = TransportError("failed")
        error.__cause__ = cause
        return error

    assert classify_failure(wrapped(httpx.ConnectError("refused")))["errorType"] == "CONNECTION_REFUSED"
    assert classify_failure(wrapped(httpx.ReadTimeout("slow")))["errorType"] == "NETWORK_ERROR"
    assert classify_failure(RuntimeError("boom")) == {"errorType": "UNKNOWN_ERROR"}
