"""Test configuration helpers to ensure package imports work from the repository root."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
REPO_ROOT = ROOT.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from docfront.tests.fixtures.cms import FakeCMS  # noqa: E402
from docfront.utils.config import CMSSettings  # noqa: E402


@pytest.fixture()
def settings() -> CMSSettings:
    return CMSSettings(
        base_url="http://cms.test",
        token="secret-token",
        environment="production",
        webhook_secret="hook-secret",
    )


@pytest.fixture()
def fake_cms() -> FakeCMS:
    return FakeCMS()
