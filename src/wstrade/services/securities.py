"""Security id resolution with per-session caching

Handles:
- Ticker → internal security id lookups
- Disambiguation when no exchange is given
- Caching of successful resolutions (never of failures)
"""

import asyncio
from typing import TYPE_CHECKING, Any

from loguru import logger

from wstrade.domain.models import Security, Ticker, TickerLike
from wstrade.shared.exceptions import SecurityNotFoundError

if TYPE_CHECKING:
    from wstrade.auth.authenticator import Authenticator


class SecurityResolver:
    """Resolves tickers to security ids for one session

    When a ticker has no exchange, the first exact symbol match returned by
    the lookup service is used: the service lists a symbol's primary listing
    first.
    """

    def __init__(self, client: "Authenticator") -> None:
        self.client = client
        self._cache: dict[tuple[str, str], Security] = {}
        self._by_id: dict[str, Security] = {}
        self._pending: dict[tuple[str, str], asyncio.Task[Security]] = {}

    async def resolve(self, ticker: TickerLike) -> str:
        """Resolve a ticker to its security id

        Raises:
            SecurityNotFoundError: If the lookup service has no match
        """
        parsed = Ticker.parse(ticker)
        if parsed.id:
            return parsed.id
        return (await self._resolve_symbol(parsed)).id

    async def lookup(self, ticker: TickerLike) -> Security:
        """Resolve a ticker to its full Security record (id, symbol, exchange)

        Id-only tickers are fetched from /securities/{id} once per session.
        """
        parsed = Ticker.parse(ticker)
        if parsed.id:
            if parsed.exchange:
                return Security(
                    id=parsed.id, symbol=parsed.symbol, exchange=parsed.exchange
                )
            if parsed.id not in self._by_id:
                payload = await self.client.request(
                    "GET", f"/securities/{parsed.id}"
                )
                self._by_id[parsed.id] = Security.from_response(payload)
            return self._by_id[parsed.id]
        return await self._resolve_symbol(parsed)

    async def search(self, ticker: TickerLike) -> dict[str, Any]:
        """Query the lookup service and return the matching raw result (uncached)

        Raises:
            SecurityNotFoundError: If nothing matches
        """
        parsed = Ticker.parse(ticker)
        response = await self.client.request(
            "GET", "/securities", params={"query": parsed.symbol}
        )
        results = response.get("results", []) if isinstance(response, dict) else []
        match = self._select(results, parsed)
        if match is None:
            raise SecurityNotFoundError(f"No security found for ticker: {parsed}")
        return match

    def cached(self, ticker: TickerLike) -> Security | None:
        return self._cache.get(Ticker.parse(ticker).key)

    def clear_cache(self) -> None:
        self._cache.clear()
        self._by_id.clear()

    async def _resolve_symbol(self, ticker: Ticker) -> Security:
        key = ticker.key
        if key in self._cache:
            logger.debug(f"Security for {ticker} found in cache: {self._cache[key].id}")
            return self._cache[key]

        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(ticker))
            self._pending[key] = task
            task.add_done_callback(lambda _: self._pending.pop(key, None))
        return await asyncio.shield(task)

    async def _fetch(self, ticker: Ticker) -> Security:
        logger.info(f"Looking up security id for {ticker}")
        security = Security.from_response(await self.search(ticker))

        self._cache[ticker.key] = security
        if security.exchange is not None:
            self._cache[ticker.with_exchange(security.exchange).key] = security
        logger.debug(f"Cached security id for {ticker}: {security.id}")
        return security

    @staticmethod
    def _select(results: list, ticker: Ticker) -> dict[str, Any] | None:
        symbol, exchange = ticker.key
        for result in results:
            if not isinstance(result, dict):
                continue
            stock = result.get("stock") or {}
            if str(stock.get("symbol", "")).upper() != symbol:
                continue
            if exchange and str(stock.get("primary_exchange", "")).upper() != exchange:
                continue
            return result
        return None
