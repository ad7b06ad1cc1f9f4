"""Quote retrieval with per-exchange provider overrides"""

import inspect
from typing import TYPE_CHECKING, Any

from loguru import logger

from wstrade.domain.models import Exchange, Ticker, TickerLike
from wstrade.shared.exceptions import ProviderError, TransportError

from .securities import SecurityResolver

if TYPE_CHECKING:
    from wstrade.auth.authenticator import Authenticator
    from wstrade.infrastructure.protocols import QuoteProvider

HISTORY_INTERVALS = ("1d", "1w", "1m", "3m", "1y", "5y")


class TradeQuoteProvider:
    """Default provider: the trade platform's own (delayed) quote"""

    def __init__(self, client: "Authenticator", resolver: SecurityResolver) -> None:
        self.client = client
        self.resolver = resolver

    async def quote(self, ticker: Ticker) -> float:
        security_id = await self.resolver.resolve(ticker)
        details = await self.client.request("GET", f"/securities/{security_id}")
        try:
            return float(details["quote"]["amount"])
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(
                f"Security {security_id} response has no usable quote",
                payload=details,
            ) from e


class QuoteRegistry:
    """Maps each exchange to the provider that quotes it

    All exchanges start on the default provider; use() overrides one
    exchange at a time. Providers are not validated until they are called.
    """

    def __init__(self, client: "Authenticator", resolver: SecurityResolver) -> None:
        self.client = client
        self.resolver = resolver
        self.default_provider = TradeQuoteProvider(client, resolver)
        self._providers: dict[Exchange, Any] = {
            exchange: self.default_provider for exchange in Exchange
        }

    def use(self, exchange: Exchange | str, provider: "QuoteProvider") -> None:
        """Load a custom provider for the exchange

        Raises:
            ValueError: If the exchange is not supported
        """
        parsed = Exchange.parse(exchange)
        self._providers[parsed] = provider
        logger.info(f"Quote provider for {parsed} set to {type(provider).__name__}")

    def provider_for(self, exchange: Exchange | str) -> Any:
        return self._providers[Exchange.parse(exchange)]

    async def get(self, ticker: TickerLike) -> float:
        """Get a quote from the provider registered for the ticker's exchange

        Raises:
            ProviderError: If a custom provider fails or returns a non-number
            SecurityNotFoundError: If the exchange must be discovered and the
                ticker cannot be resolved
        """
        parsed = Ticker.parse(ticker)
        if parsed.exchange is None:
            security = await self.resolver.lookup(parsed)
            if security.exchange is not None:
                parsed = Ticker(
                    symbol=parsed.symbol or security.symbol,
                    exchange=security.exchange,
                    id=parsed.id,
                )

        if parsed.exchange is None:
            provider = self.default_provider
        else:
            provider = self._providers[parsed.exchange]

        if provider is self.default_provider:
            return await provider.quote(parsed)
        return await self._custom_quote(provider, parsed)

    async def _custom_quote(self, provider: Any, ticker: Ticker) -> float:
        quote = getattr(provider, "quote", None)
        if not callable(quote):
            raise ProviderError(
                f"Quote provider for {ticker.exchange} has no quote() operation"
            )

        try:
            result = quote(ticker)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            raise ProviderError(f"Quote provider failed for {ticker}: {e}") from e

        try:
            return float(result)
        except (TypeError, ValueError) as e:
            raise ProviderError(
                f"Quote provider returned a non-numeric quote for {ticker}: {result!r}"
            ) from e

    async def history(self, ticker: TickerLike, interval: str) -> list:
        """Historical quotes for the ticker within the interval

        Raises:
            ValueError: If the interval is not supported
        """
        if interval not in HISTORY_INTERVALS:
            raise ValueError(
                f"Unsupported interval {interval!r}, expected one of {HISTORY_INTERVALS}"
            )
        security_id = await self.resolver.resolve(ticker)
        response = await self.client.request(
            "GET", f"/securities/{security_id}/historical_quotes/{interval}"
        )
        if isinstance(response, dict):
            return response.get("results", [])
        return response
