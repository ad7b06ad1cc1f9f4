"""Domain models"""

from .ticker import Exchange, Security, Ticker, TickerLike
from .tokens import AuthTokens

__all__ = [
    "AuthTokens",
    "Exchange",
    "Security",
    "Ticker",
    "TickerLike",
]
