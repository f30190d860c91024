"""
Pytest configuration and shared fixtures.

Every API test gets a fresh SQLite file under tmp_path; settings are
reloaded so the lifespan picks up the per-test DATABASE_URL.
"""

import pytest
from fastapi.testclient import TestClient

# Clear settings cache before any app imports to ensure test env vars are used
from ventspace.config import get_settings
get_settings.cache_clear()

from ventspace.main import app


class FakeClock:
    """Manually advanced monotonic clock for rate limiter tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def _client_for(database_url: str, monkeypatch, clock: FakeClock):
    monkeypatch.setenv("DATABASE_URL", database_url)
    get_settings.cache_clear()
    with TestClient(app) as test_client:
        test_client.app.state.rate_limiter.clock = clock
        yield test_client
    get_settings.cache_clear()


@pytest.fixture(scope="function")
def client(tmp_path, monkeypatch, clock):
    """Test client backed by a fresh SQLite database."""
    yield from _client_for(f"sqlite:///{tmp_path / 'test.db'}", monkeypatch, clock)


@pytest.fixture(scope="function")
def memory_client(tmp_path, monkeypatch, clock):
    """Test client whose database cannot be opened, forcing the in-memory store."""
    yield from _client_for(f"sqlite:///{tmp_path / 'missing' / 'test.db'}", monkeypatch, clock)
