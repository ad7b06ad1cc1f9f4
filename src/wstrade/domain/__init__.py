"""Domain layer: value objects shared by the session components"""

from .models import AuthTokens, Exchange, Security, Ticker, TickerLike

__all__ = ["AuthTokens", "Exchange", "Security", "Ticker", "TickerLike"]
