"""Pytest fixtures for wstrade tests"""

import time
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from tests.fake_server import FakeTradeServer
from wstrade import ClientConfig, Session
from wstrade.domain.models import AuthTokens


@pytest.fixture
def server() -> FakeTradeServer:
    """Fake trade API with OTP-protected login"""
    return FakeTradeServer()


@pytest.fixture
def client_config() -> ClientConfig:
    """Config with no retry delay so retry tests run instantly"""
    return ClientConfig(base_url="https://trade.test", retry_backoff=0.0)


@pytest.fixture
def session(server, client_config) -> Session:
    """Session wired to the fake server through httpx.MockTransport"""
    return Session(client_config, http_transport=httpx.MockTransport(server.handler))


@pytest.fixture
def fresh_tokens() -> AuthTokens:
    return AuthTokens(
        access="access-fresh", refresh="refresh-fresh", expires=int(time.time()) + 3600
    )


@pytest.fixture
def stale_tokens() -> AuthTokens:
    return AuthTokens(
        access="access-stale", refresh="refresh-stale", expires=int(time.time()) - 60
    )


@pytest.fixture
def mock_client():
    """Mock Authenticator exposing an AsyncMock request gate

    Tests set mock_client.request.side_effect / return_value per call.
    """
    client = MagicMock()
    client.request = AsyncMock()
    return client
