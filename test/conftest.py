from __future__ import annotations

from pathlib import Path

import pytest

from revman.pipeline import parse_file
from revman.settings import get_settings

FIXTURE_DIR = Path(__file__).parent / "fixtures" / "revman"
SAMPLE_REVIEW = FIXTURE_DIR / "sore-throat-sample.rm5"


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_path() -> Path:
    return SAMPLE_REVIEW


@pytest.fixture
def sample_result(sample_path):
    """Parse the bundled sample review with default settings."""

    return parse_file(sample_path)
