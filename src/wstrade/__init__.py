"""wstrade - async client for the Wealthsimple Trade API

Single account:

    import wstrade

    wstrade.auth.on("otp", lambda: input("OTP: "))
    await wstrade.auth.login(email, password)
    accounts = await wstrade.accounts.all()

Several accounts: create one Session per account. The module-level surfaces
below belong to `default_session`, an ordinary Session instance.
"""

from .core.config import ClientConfig
from .domain.models import AuthTokens, Exchange, Security, Ticker
from .session import Session
from .shared.exceptions import (
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

default_session = Session()

auth = default_session.auth
headers = default_session.headers
accounts = default_session.accounts
orders = default_session.orders
quotes = default_session.quotes
data = default_session.data
config = default_session.config

__all__ = [
    "Session",
    "ClientConfig",
    "AuthTokens",
    "Exchange",
    "Security",
    "Ticker",
    "default_session",
    "auth",
    "headers",
    "accounts",
    "orders",
    "quotes",
    "data",
    "config",
    "WSTradeError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "InvalidOTPError",
    "NoRefreshTokenError",
    "TransportError",
    "UnauthorizedError",
    "SecurityNotFoundError",
    "ProviderError",
]
