# This project was developed with assistance from AI tools.
"""Fixtures for functional tests.

The real app from ``stayverify.main`` is a module singleton.
``_clean_overrides`` ensures dependency_overrides are cleared after every
test so persona configuration from one test never leaks into the next.
"""

import pytest
from fastapi.testclient import TestClient

from stayverify.main import app as real_app
from stayverify.schemas.auth import UserContext
from stayverify.services.notifications import NotificationHub

from .mock_db import InMemorySession, configure_app_for_persona, make_mock_storage


@pytest.fixture(autouse=True)
def _clean_overrides():
    """Clear app dependency overrides after each test."""
    yield
    real_app.dependency_overrides.clear()


@pytest.fixture
def app():
    """Return the real FastAPI app with all routers mounted."""
    return real_app


@pytest.fixture
def db():
    """One in-memory database shared by every persona in a test."""
    return InMemorySession()


@pytest.fixture
def storage():
    return make_mock_storage()


@pytest.fixture
def hub():
    return NotificationHub()


@pytest.fixture
def as_user(app, db, storage, hub):
    """Factory fixture: switch persona against the shared DB, return TestClient."""

    def _make(user: UserContext) -> TestClient:
        configure_app_for_persona(app, user, db, storage=storage, hub=hub)
        return TestClient(app, raise_server_exceptions=False)

    return _make
