"""Authenticator - login, token refresh and the implicit refresh gate"""

import asyncio
from collections.abc import Mapping
from enum import Enum
from typing import Any

from loguru import logger

from wstrade.core.config import FeatureFlags
from wstrade.domain.models import AuthTokens
from wstrade.infrastructure.headers import CustomHeaders
from wstrade.infrastructure.protocols import Transport, TransportResponse
from wstrade.shared.exceptions import (
    InvalidCredentialsError,
    InvalidOTPError,
    NoRefreshTokenError,
    TransportError,
    UnauthorizedError,
)

from .events import AuthEvent, EventHub
from .tokens import TokenStore

LOGIN_PATH = "/auth/login"
REFRESH_PATH = "/auth/refresh"
OTP_HEADER = "x-wealthsimple-otp"


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"


class Authenticator:
    """Drives authentication for one session

    Responsibilities:
    - Credential exchange with the OTP second factor
    - Token refresh, with at most one refresh in flight
    - Deciding, per outgoing call, whether a refresh must happen first
    """

    def __init__(
        self,
        transport: Transport,
        headers: CustomHeaders,
        features: FeatureFlags,
        tokens: TokenStore | None = None,
        events: EventHub | None = None,
    ) -> None:
        self._transport = transport
        self._headers = headers
        self._features = features
        self._tokens = tokens or TokenStore()
        self._events = events or EventHub()
        self._state = AuthState.UNAUTHENTICATED
        self._refresh_task: asyncio.Task[AuthTokens] | None = None

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def refresh_in_flight(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def on(self, event: AuthEvent | str, handler: Any) -> None:
        """Attach a handler for the "otp" or "refresh" event"""
        self._events.on(event, handler)

    def use(self, state: AuthTokens | Mapping[str, Any]) -> None:
        """Seed the session with externally obtained tokens, skipping login"""
        tokens = (
            state
            if isinstance(state, AuthTokens)
            else AuthTokens.from_mapping(state)
        )
        self._tokens.replace(tokens)
        self._state = (
            AuthState.AUTHENTICATED
            if tokens.access
            else AuthState.UNAUTHENTICATED
        )
        logger.info("Session seeded with existing tokens")

    def tokens(self) -> AuthTokens:
        """Snapshot of the current authentication tokens"""
        return self._tokens.current

    async def login(self, email: str, password: str) -> None:
        """Log in with email and password, answering an OTP challenge if the server asks

        Raises:
            InvalidCredentialsError: Email/password rejected
            InvalidOTPError: Credentials accepted but the OTP was wrong or no
                otp handler is registered
            TransportError: Network/HTTP failure
        """
        previous = self._state
        self._state = AuthState.AUTHENTICATING
        logger.info("Logging in...")

        try:
            tokens = await self._exchange_credentials(email, password)
        except BaseException:
            self._state = previous
            raise

        self._tokens.replace(tokens)
        self._state = AuthState.AUTHENTICATED
        logger.info(f"Login successful, access token expires at {tokens.expires}")

    async def _exchange_credentials(self, email: str, password: str) -> AuthTokens:
        credentials = {"email": email, "password": password}

        try:
            response = await self._post(LOGIN_PATH, credentials)
        except UnauthorizedError as e:
            if not self._otp_required(e):
                raise InvalidCredentialsError("Invalid email or password") from e
            logger.info("Server requires a one-time password")
        else:
            return AuthTokens.from_headers(response.headers)

        if not self._events.has_handler(AuthEvent.OTP):
            raise InvalidOTPError(
                "One-time password required but no 'otp' handler is registered"
            )
        otp = await self._events.otp()
        if not otp:
            raise InvalidOTPError("The 'otp' handler returned no one-time password")

        try:
            response = await self._post(LOGIN_PATH, {**credentials, "otp": otp})
        except UnauthorizedError as e:
            raise InvalidOTPError("One-time password was rejected") from e

        return AuthTokens.from_headers(response.headers)

    @staticmethod
    def _otp_required(error: UnauthorizedError) -> bool:
        headers = {k.lower(): v for k, v in error.headers.items()}
        return "required" in headers.get(OTP_HEADER, "").lower()

    async def refresh(self) -> AuthTokens:
        """Refresh the token set, joining a refresh already in flight

        The refresh hook runs after the new tokens are stored; if it raises,
        the error reaches the caller but the new tokens stay in place.

        Raises:
            NoRefreshTokenError: No refresh token available
            UnauthorizedError: The server rejected the refresh token
            TransportError: Network/HTTP failure
        """
        if not self.refresh_in_flight:
            if not self._tokens.current.refresh:
                raise NoRefreshTokenError("No refresh token available")
            task = asyncio.ensure_future(self._run_refresh())
            task.add_done_callback(self._refresh_settled)
            self._refresh_task = task
        else:
            logger.debug("Joining refresh already in flight")

        return await asyncio.shield(self._refresh_task)

    def _refresh_settled(self, task: "asyncio.Task[AuthTokens]") -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        # Mark the exception retrieved when every waiter was cancelled
        if not task.cancelled():
            task.exception()

    async def _run_refresh(self) -> AuthTokens:
        previous = self._state
        self._state = AuthState.REFRESHING
        logger.info("Refreshing access token...")

        try:
            response = await self._post(
                REFRESH_PATH, {"refresh_token": self._tokens.current.refresh}
            )
            tokens = AuthTokens.from_headers(response.headers)
        except TransportError as e:
            if e.status in (400, 401):
                logger.warning("Refresh token rejected, session is now unauthenticated")
                self._tokens.clear()
                self._state = AuthState.UNAUTHENTICATED
                raise UnauthorizedError(
                    "Refresh token was rejected",
                    status=e.status,
                    payload=e.payload,
                    headers=e.headers,
                ) from e
            self._state = previous
            raise
        except BaseException:
            self._state = previous
            raise

        self._tokens.replace(tokens)
        self._state = AuthState.AUTHENTICATED
        logger.info(f"Access token refreshed, expires at {tokens.expires}")

        # Settled before the hook runs so the hook can call this session
        if self._refresh_task is asyncio.current_task():
            self._refresh_task = None

        await self._events.refreshed(tokens)
        return tokens

    async def ensure_fresh(self) -> None:
        """Implicit refresh gate, run before every authenticated call

        Waits for a refresh in flight, or starts one when the access token is
        stale. Does nothing when implicit_token_refresh is disabled.
        """
        if not self._features.implicit_token_refresh:
            return

        if self.refresh_in_flight:
            await self.refresh()
            return

        current = self._tokens.current
        if current.refresh and current.is_stale():
            logger.info("Access token expired - refreshing before request")
            await self.refresh()

    async def request(
        self,
        method: str,
        path: str,
        data: dict | None = None,
        params: dict | None = None,
    ) -> Any:
        """Make an authenticated call and return its parsed JSON

        With implicit refresh enabled, a 401 triggers one refresh and exactly
        one retry of the call.

        Raises:
            UnauthorizedError: Access token rejected and not recoverable
            TransportError: Network/HTTP failure
        """
        await self.ensure_fresh()

        used = self._tokens.current
        try:
            response = await self._send(method, path, used.access, data, params)
        except UnauthorizedError:
            if not (self._features.implicit_token_refresh and used.refresh):
                raise
            logger.warning(f"{method} {path} unauthorized - refreshing and retrying once")
            if self._tokens.current.access == used.access:
                await self.refresh()
            else:
                await self.ensure_fresh()
            response = await self._send(
                method, path, self._tokens.current.access, data, params
            )

        return response.data

    async def _send(
        self,
        method: str,
        path: str,
        access_token: str,
        data: dict | None,
        params: dict | None,
    ) -> TransportResponse:
        return await self._transport.request(
            method,
            path,
            headers=self._headers.values(),
            data=data,
            params=params,
            access_token=access_token or None,
        )

    async def _post(self, path: str, payload: dict) -> TransportResponse:
        return await self._transport.request(
            "POST", path, headers=self._headers.values(), data=payload
        )
