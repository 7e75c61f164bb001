"""Shared test fixtures."""

import pytest

from src.config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    """Reload settings for every test so env changes don't leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
