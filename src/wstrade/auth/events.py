"""EventHub - per-session auth event handlers (otp, refresh)"""

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from loguru import logger

from wstrade.domain.models import AuthTokens


class AuthEvent(str, Enum):
    """Supported auth events"""

    OTP = "otp"
    REFRESH = "refresh"


@dataclass(frozen=True)
class LiteralOTP:
    """OTP supplied as a fixed code"""

    value: str

    async def resolve(self) -> str:
        return self.value


@dataclass(frozen=True)
class OTPProducer:
    """OTP produced on demand by a zero-argument callable (sync or async)"""

    func: Callable[[], str | None | Awaitable[str | None]]

    async def resolve(self) -> str | None:
        """The produced code, or None when the producer gave nothing"""
        result = self.func()
        if inspect.isawaitable(result):
            result = await result
        if result is None:
            return None
        return str(result).strip() or None


OTPHandler = Union[LiteralOTP, OTPProducer]
RefreshHandler = Callable[[AuthTokens], Any]


class EventHub:
    """Registers and invokes the auth event handlers of one session

    At most one handler per event; registering again replaces it.
    """

    def __init__(self) -> None:
        self._otp: OTPHandler | None = None
        self._refresh: RefreshHandler | None = None

    def on(self, event: AuthEvent | str, handler: Any) -> None:
        """Attach a handler for an auth event

        Args:
            event: "otp" or "refresh"
            handler: for "otp", a code string or a zero-argument callable
                returning one (may be async); for "refresh", a callable
                receiving the new AuthTokens (may be async)

        Raises:
            ValueError: If the event is not supported
            TypeError: If the handler has the wrong shape for the event
        """
        try:
            kind = AuthEvent(event)
        except ValueError as e:
            raise ValueError(f"Unsupported auth event: {event!r}") from e

        if kind is AuthEvent.OTP:
            if isinstance(handler, str):
                self._otp = LiteralOTP(handler)
            elif callable(handler):
                self._otp = OTPProducer(handler)
            else:
                raise TypeError("otp handler must be a string or a callable")
        else:
            if not callable(handler):
                raise TypeError("refresh handler must be a callable")
            self._refresh = handler

        logger.debug(f"Registered {kind.value} handler")

    def has_handler(self, event: AuthEvent | str) -> bool:
        kind = AuthEvent(event)
        if kind is AuthEvent.OTP:
            return self._otp is not None
        return self._refresh is not None

    async def otp(self) -> str | None:
        """Resolve the OTP code, or None if no handler is registered or it gave no code"""
        if self._otp is None:
            return None
        return await self._otp.resolve()

    async def refreshed(self, tokens: AuthTokens) -> None:
        """Notify the refresh observer; its errors are logged and re-raised"""
        if self._refresh is None:
            return
        try:
            result = self._refresh(tokens)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"refresh handler failed: {e}")
            raise
