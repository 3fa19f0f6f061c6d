"""
Pytest configuration and fixtures for the auth broker tests.
"""

import json
from collections.abc import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from gateway.app import create_app
from oauth import AuthBroker
from oauth.pkce import SessionRegistry
from utils.storage import SettingsStore

BASE_URL = "https://gateway.example.com"


class FakeClock:
    """Manually advanced clock for session expiry"""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTokenEndpoint:
    """Stands in for a provider token endpoint behind httpx.MockTransport"""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.payload = {"access_token": "T", "refresh_token": "R", "expires_in": 3600}
        self.error: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.payload, str):
            return httpx.Response(self.status_code, text=self.payload)
        return httpx.Response(self.status_code, json=self.payload)

    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def settings_path(tmp_path):
    return tmp_path / "settings.json"


@pytest.fixture
def store(settings_path) -> SettingsStore:
    return SettingsStore(str(settings_path))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock) -> SessionRegistry:
    return SessionRegistry(ttl=600, clock=clock)


@pytest.fixture
def token_endpoint() -> FakeTokenEndpoint:
    return FakeTokenEndpoint()


@pytest.fixture
def broker(store, registry, token_endpoint) -> AuthBroker:
    return AuthBroker(
        store=store,
        base_url=BASE_URL,
        registry=registry,
        transport=httpx.MockTransport(token_endpoint),
    )


@pytest.fixture
def app(store, token_endpoint):
    return create_app(store=store, base_url=BASE_URL, transport=httpx.MockTransport(token_endpoint))


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client talking to the gateway app in-process."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
