"""Pytest configuration and fixtures for heists.

Settings come from the environment; tests point them at a demo project so
nothing reaches a real Firebase project. All imports use heists.*.
"""

import os

import pytest

from heists.core.config import get_settings
from tests.fakes import FakeDocumentStore, FakeIdentityProvider

os.environ.setdefault("FIREBASE_PROJECT_ID", "demo-heists")
os.environ.setdefault("FIREBASE_API_KEY", "test-api-key")


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Re-read settings for every test (env may be patched)."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()
