"""Session services built on the Authenticator's request gate"""

from .accounts import Accounts
from .data import Data
from .orders import Orders
from .quotes import QuoteRegistry, TradeQuoteProvider
from .securities import SecurityResolver

__all__ = [
    "Accounts",
    "Data",
    "Orders",
    "QuoteRegistry",
    "SecurityResolver",
    "TradeQuoteProvider",
]
