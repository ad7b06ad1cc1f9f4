"""Infrastructure module

TradeRequestClient - HTTP requests with retry logic
CustomHeaders - per-session extra request headers
Transport/QuoteProvider - collaborator protocols
"""

from .headers import CustomHeaders
from .protocols import QuoteProvider, Transport, TransportResponse
from .requests import TradeRequestClient

__all__ = [
    "CustomHeaders",
    "QuoteProvider",
    "TradeRequestClient",
    "Transport",
    "TransportResponse",
]
