"""Test fixtures for FollowGate — in-memory store, controllable clock, ASGI clients."""

import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from followgate import FollowGate, SessionConfig
from followgate.providers.base import ExternalIdentity, IdentityProvider

pytestmark = pytest.mark.asyncio

TEST_SECRET = "test-session-secret"
TARGET_ID = "1916522994236825600"
TARGET_HANDLE = "sunaryum"
T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def unique_wallet() -> str:
    """Generate a unique wallet address for each test."""
    return "0x" + uuid.uuid4().hex + uuid.uuid4().hex[:8]


def advance(clock: list, **kwargs) -> None:
    """Move a list-backed clock forward by a timedelta."""
    clock[0] = clock[0] + timedelta(**kwargs)


def make_mock_provider(
    account_id: str = "u1",
    account_name: str = "alice",
) -> MagicMock:
    """Create a mock identity provider named "twitter"."""
    provider = MagicMock(spec=IdentityProvider)
    provider.name = "twitter"
    provider.client_id = "mock-id"
    provider.client_secret = "mock-secret"
    provider.redirect_uri = None
    provider.exchange_code = AsyncMock(return_value={"access_token": "mock-access-token"})
    provider.get_identity = AsyncMock(return_value=ExternalIdentity(
        provider="twitter",
        account_id=account_id,
        account_name=account_name,
        display_name="Alice",
        access_token="mock-access-token",
    ))
    provider.get_authorization_url = MagicMock(
        return_value="https://twitter.example.com/i/oauth2/authorize?state=xyz",
    )
    return provider


def make_mock_predicate(follows: bool = True) -> MagicMock:
    predicate = MagicMock()
    predicate.is_following = AsyncMock(return_value=follows)
    return predicate


@pytest.fixture
def clock():
    """Mutable clock: tests move time with advance(clock, minutes=...)."""
    return [T0]


@pytest.fixture
def gate(clock):
    """FollowGate with a controllable clock and no identity provider."""
    return FollowGate(
        TEST_SECRET,
        target_account_id=TARGET_ID,
        target_handle=TARGET_HANDLE,
        session=SessionConfig(secure=False),
        time_func=lambda: clock[0],
    )


def _app(gate: FollowGate) -> FastAPI:
    app = FastAPI()
    app.include_router(gate.fastapi_router())
    return app


@pytest_asyncio.fixture
async def client(gate: FollowGate):
    """Async HTTP client for testing against the FastAPI app."""
    async with AsyncClient(
        transport=ASGITransport(app=_app(gate)),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def mock_provider():
    return make_mock_provider()


@pytest.fixture
def mock_predicate():
    return make_mock_predicate(follows=True)


@pytest.fixture
def oauth_gate(clock, mock_provider, mock_predicate):
    """FollowGate with a mock provider and predicate."""
    return FollowGate(
        TEST_SECRET,
        target_account_id=TARGET_ID,
        target_handle=TARGET_HANDLE,
        session=SessionConfig(secure=False),
        provider=mock_provider,
        predicate=mock_predicate,
        time_func=lambda: clock[0],
    )


@pytest_asyncio.fixture
async def oauth_client(oauth_gate: FollowGate):
    """Async HTTP client for testing the OAuth popup flow."""
    async with AsyncClient(
        transport=ASGITransport(app=_app(oauth_gate)),
        base_url="http://test",
    ) as client:
        yield client
