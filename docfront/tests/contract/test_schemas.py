from __future__ import annotations

from importlib import resources

import pytest

from docfront.api.validators import (
    ARTICLE,
    REVALIDATE_REQUEST,
    SCHEMA_PACKAGE,
    ensure_valid,
    schema_contents,
    validate_payload,
)
from docfront.cms.normalize import unwrap
from docfront.tests.fixtures.cms import FLAT_ARTICLE, NESTED_ARTICLE


def _schema_names():
    return sorted(
        entry.name for entry in resources.files(SCHEMA_PACKAGE).iterdir() if entry.name.endswith(".json")
    )


@pytest.mark.parametrize("name", _schema_names())
def test_every_schema_has_an_id(name: str) -> None:
    schema = schema_contents(name)

    assert schema["$id"].startswith("urn:docfront:schema:")
    assert schema["$schema"].endswith("2020-12/schema")


@pytest.mark.parametrize("article", [NESTED_ARTICLE, FLAT_ARTICLE])
def test_normalized_articles_match_schema(article) -> None:
    valid, errors = validate_payload(ARTICLE, unwrap(article).as_dict())

    assert valid, errors


def test_errors_are_prefixed_with_path() -> None:
    valid, errors = validate_payload(ARTICLE, {"id": "x", "shape": "flat", "title": None, "slug": None, "blocks": []})

    assert not valid
    assert len(errors) == 1
    assert errors[0].startswith("id: 'x' is not of type")


def test_ensure_valid_raises_value_error() -> None:
    ensure_valid(REVALIDATE_REQUEST, {"event": "entry.update", "model": "article", "entry": None})

    with pytest.raises(ValueError) as excinfo:
        ensure_valid(REVALIDATE_REQUEST, {"model": "article"})

    assert "'event' is a required property" in str(excinfo.value)
