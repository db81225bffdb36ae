from __future__ import annotations

from typing import List, Sequence, Tuple

import pytest
from starlette.testclient import TestClient

from docfront.app import build_app
from docfront.tests.fixtures.cms import FLAT_ARTICLE, NESTED_ARTICLE, FakeCMS
from docfront.utils.config import CMSSettings


class RecordingInvalidator:
    def __init__(self) -> None:
        self.calls: List[Tuple[Tuple[str, ...], Tuple[str, ...]]] = []

    def __call__(self, tags: Sequence[str], paths: Sequence[str]) -> None:
        self.calls.append((tuple(tags), tuple(paths)))


@pytest.fixture()
def contract_cms() -> FakeCMS:
    return FakeCMS(articles=[NESTED_ARTICLE, FLAT_ARTICLE])


@pytest.fixture()
def invalidator() -> RecordingInvalidator:
    return RecordingInvalidator()


@pytest.fixture()
def contract_client(
    settings: CMSSettings, contract_cms: FakeCMS, invalidator: RecordingInvalidator
) -> TestClient:
    app = build_app(settings, transport=contract_cms.transport, invalidator=invalidator)
    with TestClient(app) as client:
        yield client
