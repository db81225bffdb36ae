from __future__ import annotations

import copy
import json
import re

import httpx
import pytest
from starlette.testclient import TestClient

from docfront.app import build_app
from docfront.tests.fixtures.cms import (
    FLAT_ARTICLE,
    NESTED_ARTICLE,
    OPENAPI_DOCUMENT,
    POSTMAN_COLLECTION,
    FakeCMS,
)
from docfront.utils.config import CMSSettings

EMPTY_PAGE_META = {"pagination": {"page": 2, "pageSize": 10, "pageCount": 3, "total": 25}}


def _client(settings: CMSSettings, cms: FakeCMS) -> TestClient:
    return TestClient(build_app(settings, transport=cms.transport))


VIEWER_SCRIPT = '<script src="https://cdn.jsdelivr.net/npm/@scalar/api-reference"></script>'


def _viewer_config(html: str) -> dict:
    match = re.search(
        r'<script id="api-reference-config" type="application/json">(.*?)</script>', html, re.S
    )
    assert match, "viewer configuration missing"
    return json.loads(match.group(1))


def test_second_page_of_empty_listing(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    fake_cms.listing_meta = EMPTY_PAGE_META

    with _client(settings, fake_cms) as client:
        page = client.get("/articles?page=2&pageSize=10")
        api = client.get("/api/articles.json?page=2&pageSize=10")

    listing_request = fake_cms.requests[0]
    assert "pagination%5Bpage%5D=2" in str(listing_request.url)
    assert "pagination%5BpageSize%5D=10" in str(listing_request.url)

    assert page.status_code == 200
    assert "No articles found." in page.text
    assert "Page 2 of 3" in page.text
    assert 'href="/articles?page=1&amp;pageSize=10">Previous</a>' in page.text
    assert 'href="/articles?page=3&amp;pageSize=10">Next</a>' in page.text
    assert page.headers["cache-control"] == "public, max-age=60"

    data = api.json()["data"]
    assert data["articles"] == []
    assert data["pagination"] == {"page": 2, "pageSize": 10, "pageCount": 3, "total": 25}


def test_listing_shows_cards_for_both_shapes(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    fake_cms.articles = [NESTED_ARTICLE, FLAT_ARTICLE]

    with _client(settings, fake_cms) as client:
        response = client.get("/articles")

    assert response.status_code == 200
    assert 'href="/articles/payments-api"' in response.text
    assert 'href="/articles/users-api"' in response.text
    assert 'src="http://cms.test/uploads/cover.png"' in response.text
    assert "Page 1 of" not in response.text


def test_listing_ignores_invalid_paging(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    with _client(settings, fake_cms) as client:
        response = client.get("/articles?page=abc&pageSize=-4")

    assert response.status_code == 200
    params = fake_cms.last_request.url.params
    assert params["pagination[page]"] == "1"
    assert params["pagination[pageSize]"] == "10"


def test_listing_error_panel(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    fake_cms.raise_exc = httpx.ConnectError("refused")

    with _client(settings, fake_cms) as client:
        response = client.get("/articles")

    assert response.status_code == 502
    assert "Unable to Load Documentation" in response.text
    assert "Failed to fetch from CMS API" in response.text
    assert "pagination" not in response.text


def test_article_page_nested(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    fake_cms.articles = [NESTED_ARTICLE]

    with _client(settings, fake_cms) as client:
        response = client.get("/articles/payments-api")

    html = response.text
    assert response.status_code == 200
    assert "<title>Payments API</title>" in html
    assert '<meta name="description" content="Charge cards and issue refunds.">' in html
    assert "By Dana Reyes" in html
    assert ">Billing</span>" in html
    assert "2024-03-03" in html
    assert "<h2>Overview</h2>" in html
    assert "Test mode is free." in html
    assert "API Guide" in html
    assert "No OpenAPI Specification Found" in html
    assert VIEWER_SCRIPT not in html


def test_article_page_without_author_has_no_byline(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    article = copy.deepcopy(NESTED_ARTICLE)
    article["attributes"]["author"] = {"data": None}
    fake_cms.articles = [article]

    with _client(settings, fake_cms) as client:
        response = client.get("/articles/payments-api")

    assert response.status_code == 200
    assert "By " not in response.text


def test_article_page_flat_with_inline_spec(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    fake_cms.articles = [FLAT_ARTICLE]
    fake_cms.add_file("/uploads/users.json", OPENAPI_DOCUMENT)

    with _client(settings, fake_cms) as client:
        response = client.get("/articles/users-api")

    html = response.text
    assert response.status_code == 200
    assert 'src="http://cms.test/uploads/diagram.svg" alt="Media"' in html
    assert 'alt="Slide 3"' in html
    assert _viewer_config(html) == {
        "content": OPENAPI_DOCUMENT,
        "layout": "modern",
        "theme": "default",
    }
    assert VIEWER_SCRIPT in html
    assert 'Scalar.createApiReference(' in html


def test_viewer_configuration_cannot_close_its_script_tag(
    settings: CMSSettings, fake_cms: FakeCMS
) -> None:
    document = copy.deepcopy(OPENAPI_DOCUMENT)
    document["info"]["description"] = "</script><script>alert(1)</script>"
    fake_cms.articles = [FLAT_ARTICLE]
    fake_cms.add_file("/uploads/users.json", document)

    with _client(settings, fake_cms) as client:
        html = client.get("/articles/users-api").text

    assert "<script>alert(1)" not in html
    assert _viewer_config(html)["content"] == document


def test_article_without_blocks_shows_empty_guide(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    article = copy.deepcopy(NESTED_ARTICLE)
    article["attributes"]["blocks"] = []
    fake_cms.articles = [article]

    with _client(settings, fake_cms) as client:
        response = client.get("/articles/payments-api")

    assert response.status_code == 200
    assert "No documentation content available." in response.text


def test_article_page_postman_spec_is_converted(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    fake_cms.articles = [FLAT_ARTICLE]
    fake_cms.add_file("/uploads/users.json", POSTMAN_COLLECTION)

    with _client(settings, fake_cms) as client:
        html = client.get("/articles/users-api").text

    document = _viewer_config(html)["content"]
    assert document["openapi"] == "3.0.3"
    assert set(document["paths"]["/users"]) == {"get", "post"}


def test_article_page_yaml_spec_uses_url(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    article = copy.deepcopy(FLAT_ARTICLE)
    article["openapi"] = {"url": "/uploads/users.yml", "ext": ".yml"}
    fake_cms.articles = [article]
    fake_cms.files["/uploads/users.yml"] = b"openapi: 3.0.3\n"

    with _client(settings, fake_cms) as client:
        html = client.get("/articles/users-api").text

    assert _viewer_config(html)["url"] == "http://cms.test/uploads/users.yml"


@pytest.mark.parametrize("environment", ["production", "development"])
def test_unsupported_spec_panel(fake_cms: FakeCMS, environment: str) -> None:
    article = copy.deepcopy(FLAT_ARTICLE)
    article["openapi"] = {"url": "/uploads/users.pdf", "ext": ".pdf"}
    fake_cms.articles = [article]
    settings = CMSSettings(base_url="http://cms.test", environment=environment)

    with _client(settings, fake_cms) as client:
        response = client.get("/articles/users-api")

    assert response.status_code == 200
    assert "Unsupported Specification Format" in response.text
    assert ("error-panel__details" in response.text) is (environment == "development")


def test_unknown_slug_renders_not_found(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    with _client(settings, fake_cms) as client:
        response = client.get("/articles/missing")

    assert response.status_code == 404
    assert "<title>Documentation Not Found</title>" in response.text
    assert "debug-info" not in response.text


def test_cms_failure_renders_error_page(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    fake_cms.error = httpx.Response(503, json={"error": {"message": "Maintenance"}})

    with _client(settings, fake_cms) as client:
        response = client.get("/articles/payments-api")

    assert response.status_code == 502
    assert "<title>Documentation Error</title>" in response.text
    assert "Maintenance (Status: 503)" in response.text


def test_article_text_is_escaped(settings: CMSSettings, fake_cms: FakeCMS) -> None:
    article = copy.deepcopy(FLAT_ARTICLE)
    article["title"] = "<script>alert(1)</script>"
    fake_cms.articles = [article]

    with _client(settings, fake_cms) as client:
        html = client.get("/articles/users-api").text

    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
