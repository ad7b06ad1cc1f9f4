"""Shared exceptions and logging helpers"""

from .exceptions import (
    AuthenticationError,
    InvalidCredentialsError,
    InvalidOTPError,
    NoRefreshTokenError,
    ProviderError,
    SecurityNotFoundError,
    TransportError,
    UnauthorizedError,
    WSTradeError,
)
from .logging import install_logging_bridge

__all__ = [
    "WSTradeError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "InvalidOTPError",
    "NoRefreshTokenError",
    "TransportError",
    "UnauthorizedError",
    "SecurityNotFoundError",
    "ProviderError",
    "install_logging_bridge",
]
