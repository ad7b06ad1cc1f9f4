"""Consolidated exceptions for wstrade.

Every public operation fails with one of these. Authentication failures are
never retried automatically.
"""

from typing import Any


class WSTradeError(Exception):
    """Base exception for wstrade errors"""

    pass


class AuthenticationError(WSTradeError):
    """Base exception for login/refresh failures"""

    pass


class InvalidCredentialsError(AuthenticationError):
    """Raised when the email/password combination is rejected"""

    pass


class InvalidOTPError(AuthenticationError):
    """Raised when credentials are valid but the one-time password is wrong or missing"""

    pass


class NoRefreshTokenError(AuthenticationError):
    """Raised when a refresh is attempted without a refresh token"""

    pass


class TransportError(WSTradeError):
    """Raised when an HTTP call fails

    Carries the HTTP status (None for network-level failures), the parsed
    server error payload and the response headers.
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        payload: Any = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload
        self.headers = headers or {}


class UnauthorizedError(TransportError):
    """Raised when the server rejects an access or refresh token"""

    pass


class SecurityNotFoundError(WSTradeError):
    """Raised when a ticker cannot be resolved to a security id"""

    pass


class ProviderError(WSTradeError):
    """Raised when a custom quote provider fails to produce a quote"""

    pass
