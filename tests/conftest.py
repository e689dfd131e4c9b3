"""Pytest configuration and fixtures for gatekeeper tests."""

import os
from collections.abc import AsyncGenerator, Generator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing gatekeeper modules
os.environ["API_KEY"] = "test-api-key-0123456789abcdef"
os.environ["DISCORD_WEBHOOK_URL"] = "https://discord.com/api/webhooks/123/secret"
os.environ["NODE_ENV"] = "test"
os.environ["ALLOWED_ORIGINS"] = "*"

TEST_API_KEY = os.environ["API_KEY"]


class FakeClock:
    """Controllable wall clock for lifecycle tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store():
    from gatekeeper.services.token_store import InMemoryTokenStore

    return InMemoryTokenStore()


@pytest.fixture
def blacklist():
    from gatekeeper.services.blacklist import InMemoryBlacklist

    return InMemoryBlacklist()


@pytest.fixture
def controller(store, blacklist, clock):
    from gatekeeper.services.token_lifecycle import TokenLifecycleController

    return TokenLifecycleController(store, blacklist, clock=clock)


@pytest.fixture
def gate(store, blacklist, clock):
    from gatekeeper.services.auth_gate import AuthenticationGate

    return AuthenticationGate(store, blacklist, clock=clock)


# --- Shared State Reset ---


def _reset_gateway_state():
    """Clear process-wide token state and rate-limit buckets.

    The middleware keeps a reference to the RateLimiter singleton, so the
    buckets are cleared in place rather than replacing the instance.
    """
    from gatekeeper.middleware.rate_limit import RateLimiter, default_rules
    from gatekeeper.services.tokens import TokenServices

    TokenServices.get_instance().reset()

    rate_limiter = RateLimiter.get_instance()
    rate_limiter._buckets.clear()
    rate_limiter.set_rules(default_rules())


@pytest.fixture(autouse=True)
def reset_gateway_state():
    _reset_gateway_state()
    yield
    _reset_gateway_state()


@pytest.fixture
def token_services():
    from gatekeeper.services.tokens import TokenServices

    return TokenServices.get_instance()


# --- HTTP Clients ---


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Synchronous client without lifespan (no background tasks)."""
    from gatekeeper.main import app

    yield TestClient(app, raise_server_exceptions=False)


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    from gatekeeper.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def api_key_headers() -> dict[str, str]:
    return {"X-API-Key": TEST_API_KEY}


@pytest.fixture
def issue_token(client, api_key_headers):
    """Issue a token through the API and return the response JSON."""

    def _issue(user_id: str | int = "user123", hwid: str | None = None) -> dict:
        body: dict = {"userId": user_id}
        if hwid is not None:
            body["hwid"] = hwid
        response = client.post("/auth/token", json=body, headers=api_key_headers)
        assert response.status_code == 200, response.text
        return response.json()

    return _issue


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def pytest_collection_modifyitems(config, items):
    """Mark HTTP-level tests as integration, everything else as unit."""
    integration_fixtures = {"client", "async_client", "issue_token"}

    for item in items:
        if any(mark.name in ("unit", "integration") for mark in item.iter_markers()):
            continue
        if integration_fixtures & set(getattr(item, "fixturenames", ())):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
