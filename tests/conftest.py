"""Root conftest — shared test configuration."""

import os

import pytest

from crudkit.config import get_settings

# Human-readable logs and a throwaway export dir for every test run
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("EXPORT_DIR", "/tmp/crudkit-test-exports")


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Settings are lru_cached; tests that patch env vars need a clean cache."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
