"""Tests for Authenticator against the fake trade server"""

import asyncio
import time

import pytest

from wstrade.auth import AuthState
from wstrade.domain.models import AuthTokens
from wstrade.shared.exceptions import (
    InvalidCredentialsError,
    InvalidOTPError,
    NoRefreshTokenError,
    UnauthorizedError,
)


def seed(session, server, expired: bool = False) -> AuthTokens:
    """Give the session a token set the server knows about"""
    tokens = AuthTokens.from_headers(server.issue_tokens(expired=expired))
    session.auth.use(tokens)
    return tokens


# Login


@pytest.mark.unit
@pytest.mark.asyncio
async def test_login_with_literal_otp(session, server):
    """Correct credentials and OTP populate the token store"""
    session.auth.on("otp", "123456")

    await session.auth.login("user@example.com", "hunter2")

    tokens = session.auth.tokens()
    assert tokens.access and tokens.refresh
    assert tokens.expires > time.time()
    assert session.auth.state is AuthState.AUTHENTICATED
    assert server.count("POST", "/auth/login") == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_login_with_async_otp_producer(session, mocker):
    """An async producer is awaited exactly once per login"""
    producer = mocker.AsyncMock(return_value="123456")
    session.auth.on("otp", producer)

    await session.auth.login("user@example.com", "hunter2")

    producer.assert_awaited_once()
    assert session.auth.tokens().access


@pytest.mark.unit
@pytest.mark.asyncio
async def test_login_with_wrong_otp_raises_invalid_otp(session):
    session.auth.on("otp", "000000")

    with pytest.raises(InvalidOTPError):
        await session.auth.login("user@example.com", "hunter2")

    assert session.auth.tokens().is_empty
    assert session.auth.state is AuthState.UNAUTHENTICATED


@pytest.mark.unit
@pytest.mark.asyncio
async def test_login_with_wrong_password_raises_invalid_credentials(
    session, server, mocker
):
    """Bad credentials never reach the OTP step"""
    producer = mocker.Mock(return_value="123456")
    session.auth.on("otp", producer)

    with pytest.raises(InvalidCredentialsError):
        await session.auth.login("user@example.com", "wrong")

    producer.assert_not_called()
    assert server.count("POST", "/auth/login") == 1
    assert session.auth.tokens().is_empty


@pytest.mark.unit
@pytest.mark.asyncio
async def test_login_without_otp_challenge_skips_handler(session, server, mocker):
    server.otp = None
    producer = mocker.Mock(return_value="123456")
    session.auth.on("otp", producer)

    await session.auth.login("user@example.com", "hunter2")

    producer.assert_not_called()
    assert server.count("POST", "/auth/login") == 1
    assert session.auth.tokens().access


@pytest.mark.unit
@pytest.mark.asyncio
async def test_login_otp_required_without_handler_fails_fast(session, server):
    with pytest.raises(InvalidOTPError, match="no 'otp' handler"):
        await session.auth.login("user@example.com", "hunter2")

    assert server.count("POST", "/auth/login") == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failed_login_keeps_existing_tokens(session, server):
    tokens = seed(session, server)
    session.auth.on("otp", "000000")

    with pytest.raises(InvalidOTPError):
        await session.auth.login("user@example.com", "hunter2")

    assert session.auth.tokens() == tokens
    assert session.auth.state is AuthState.AUTHENTICATED


@pytest.mark.unit
@pytest.mark.asyncio
async def test_otp_handler_error_fails_login(session):
    def broken_producer():
        raise RuntimeError("authenticator app unavailable")

    session.auth.on("otp", broken_producer)

    with pytest.raises(RuntimeError, match="authenticator app unavailable"):
        await session.auth.login("user@example.com", "hunter2")

    assert session.auth.tokens().is_empty


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("code", [None, "", "   "])
async def test_otp_producer_without_code_fails_fast(session, server, code):
    session.auth.on("otp", lambda: code)

    with pytest.raises(InvalidOTPError, match="returned no one-time password"):
        await session.auth.login("user@example.com", "hunter2")

    assert server.count("POST", "/auth/login") == 1
    assert session.auth.state is AuthState.UNAUTHENTICATED


# Refresh


@pytest.mark.unit
@pytest.mark.asyncio
async def test_refresh_without_refresh_token(session, server):
    with pytest.raises(NoRefreshTokenError):
        await session.auth.refresh()

    assert session.auth.tokens().is_empty
    assert server.count("POST", "/auth/refresh") == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_refresh_replaces_tokens_and_notifies(session, server, mocker):
    old = seed(session, server)
    observer = mocker.AsyncMock()
    session.auth.on("refresh", observer)

    new = await session.auth.refresh()

    assert new != old
    assert session.auth.tokens() == new
    observer.assert_awaited_once_with(new)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_refresh_handler_error_propagates_without_rollback(session, server):
    old = seed(session, server)

    def observer(tokens):
        raise ValueError("could not persist tokens")

    session.auth.on("refresh", observer)

    with pytest.raises(ValueError, match="could not persist tokens"):
        await session.auth.refresh()

    current = session.auth.tokens()
    assert current != old
    assert current.access in server.access_tokens


@pytest.mark.unit
@pytest.mark.asyncio
async def test_refresh_handler_can_call_its_own_session(session, server):
    seed(session, server, expired=True)
    rates_seen_by_handler = []

    async def observer(tokens):
        assert not session.auth.refresh_in_flight
        rates_seen_by_handler.append(await session.data.exchange_rates())

    session.auth.on("refresh", observer)

    rates = await asyncio.wait_for(session.data.exchange_rates(), timeout=2)

    assert rates_seen_by_handler == [rates]
    assert server.count("POST", "/auth/refresh") == 1
    assert server.authorizations("/forex") == [session.auth.tokens().access] * 2

    # The session keeps working after the hook settled
    await asyncio.wait_for(session.data.exchange_rates(), timeout=2)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rejected_refresh_token_unauthenticates(session):
    session.auth.use(
        AuthTokens(access="a", refresh="revoked", expires=int(time.time()) + 60)
    )

    with pytest.raises(UnauthorizedError):
        await session.auth.refresh()

    assert session.auth.tokens().is_empty
    assert session.auth.state is AuthState.UNAUTHENTICATED


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concurrent_explicit_refreshes_share_one_request(session, server):
    seed(session, server)

    first, second = await asyncio.gather(
        session.auth.refresh(), session.auth.refresh()
    )

    assert first == second
    assert server.count("POST", "/auth/refresh") == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_cancelled_refresh_waiter_does_not_cancel_refresh(session, server):
    old = seed(session, server)
    server.refresh_delay = 0.05

    waiter = asyncio.create_task(session.auth.refresh())
    await asyncio.sleep(0)
    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    assert session.auth.refresh_in_flight
    new = await session.auth.refresh()

    assert new != old
    assert session.auth.tokens() == new
    assert server.count("POST", "/auth/refresh") == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_next_refresh_after_settled_one_is_new(session, server):
    seed(session, server)

    await session.auth.refresh()
    await session.auth.refresh()

    assert server.count("POST", "/auth/refresh") == 2


# Implicit refresh gate


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concurrent_calls_with_expired_tokens_refresh_once(session, server):
    seed(session, server, expired=True)

    results = await asyncio.gather(*(session.accounts.all() for _ in range(5)))

    assert all(r == {"tfsa": "tfsa-abc123", "personal": "non-registered-xyz"} for r in results)
    assert server.count("POST", "/auth/refresh") == 1
    new_access = session.auth.tokens().access
    assert server.authorizations("/account/list") == [new_access] * 5


@pytest.mark.unit
@pytest.mark.asyncio
async def test_disabled_gate_surfaces_unauthorized(session, server):
    seed(session, server, expired=True)
    session.config("no_implicit_token_refresh")

    with pytest.raises(UnauthorizedError):
        await session.accounts.all()

    assert server.count("POST", "/auth/refresh") == 0

    session.config("implicit_token_refresh")
    await session.accounts.all()

    assert server.count("POST", "/auth/refresh") == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rejected_access_token_refreshes_and_retries_once(session, server):
    tokens = seed(session, server)
    del server.access_tokens[tokens.access]

    accounts = await session.accounts.all()

    assert accounts["tfsa"] == "tfsa-abc123"
    assert server.count("POST", "/auth/refresh") == 1
    assert server.count("GET", "/account/list") == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_second_unauthorized_is_not_retried_again(session, server):
    seed(session, server)
    server.access_tokens.clear()
    server.token_ttl = -60  # every refreshed token is already expired server-side

    with pytest.raises(UnauthorizedError):
        await session.data.exchange_rates()

    assert server.count("GET", "/forex") == 2
    assert server.count("POST", "/auth/refresh") == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_stale_tokens_without_refresh_token_are_sent_as_is(session, server):
    session.auth.use({"access": "orphan", "refresh": "", "expires": 0})

    with pytest.raises(UnauthorizedError):
        await session.data.exchange_rates()

    assert server.count("POST", "/auth/refresh") == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_custom_headers_sent_on_auth_and_data_calls(session, server):
    server.otp = None
    session.headers.add("x-client", "tests")

    await session.auth.login("user@example.com", "hunter2")
    await session.data.exchange_rates()

    assert all(r.headers.get("x-client") == "tests" for r in server.requests)


# use / tokens


@pytest.mark.unit
def test_use_accepts_persisted_mapping(session):
    session.auth.use({"access": "a", "refresh": "r", "expires": 123})

    assert session.auth.tokens() == AuthTokens("a", "r", 123)
    assert session.auth.tokens().to_dict() == {
        "access": "a",
        "refresh": "r",
        "expires": 123,
    }
    assert session.auth.state is AuthState.AUTHENTICATED
