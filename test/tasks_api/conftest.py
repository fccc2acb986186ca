"""
Shared fixtures for Tasks API tests.

Every test gets its own temporary SQLite file so database state never leaks
between tests.
"""

import pytest
from fastapi.testclient import TestClient

from tasks_api.api import create_app
from tasks_api.config import Settings
from tasks_api.database import TaskDatabase

TEST_API_KEY = "test-secret-key"


@pytest.fixture
def db_path(tmp_path):
    """Path to a fresh, not yet created database file."""
    return str(tmp_path / "tasks_test.db")


@pytest.fixture
def database(db_path):
    """Provide isolated TaskDatabase instance."""
    db = TaskDatabase(db_path)
    yield db
    db.close()


@pytest.fixture
def settings(db_path):
    return Settings(api_key=TEST_API_KEY, connection_string=f"Data Source={db_path}")


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    """Unauthenticated test client; tests add the X-Api-Key header themselves."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    return {"X-Api-Key": TEST_API_KEY}
