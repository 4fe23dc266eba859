"""Pytest configuration and shared fixtures."""

import os

import pytest

# Set test environment variables before any imports from rankwise
os.environ.setdefault("OPENAI_API_KEY", "test_key")


@pytest.fixture(autouse=True)
def reset_settings_cache() -> None:
    """Reset settings cache before each test."""
    from rankwise.core.config import get_settings

    get_settings.cache_clear()
