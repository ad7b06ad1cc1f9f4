"""Order queries, cancellation and placement"""

import asyncio
import math
from typing import TYPE_CHECKING, Any

from loguru import logger

from wstrade.domain.models import TickerLike
from wstrade.validation.orders import OrderRequest

from .quotes import QuoteRegistry
from .securities import SecurityResolver

if TYPE_CHECKING:
    from wstrade.auth.authenticator import Authenticator

PAGE_SIZE = 20
PENDING_STATUS = "submitted"
FILLED_STATUS = "posted"
CANCELLED_STATUS = "cancelled"


class Orders:
    """Order management operations for one session"""

    def __init__(
        self,
        client: "Authenticator",
        resolver: SecurityResolver,
        quotes: QuoteRegistry,
    ) -> None:
        self.client = client
        self.resolver = resolver
        self.quotes = quotes

    async def page(self, account_id: str, page: int) -> dict:
        """Orders (filled, pending, cancelled) on one page of the account"""
        if page < 1:
            raise ValueError("page numbers start at 1")
        return await self.client.request(
            "GET",
            "/orders",
            params={"offset": (page - 1) * PAGE_SIZE, "account_id": account_id},
        )

    async def all(self, account_id: str) -> list[dict]:
        """Every order of the account, fetching the remaining pages concurrently"""
        first = await self.page(account_id, 1)
        orders = list(first.get("results", []))
        total = int(first.get("total", len(orders)))
        pages = math.ceil(total / PAGE_SIZE)

        if pages > 1:
            logger.info(f"Fetching {pages - 1} more order pages for {account_id}")
            rest = await asyncio.gather(
                *(self.page(account_id, n) for n in range(2, pages + 1))
            )
            for response in rest:
                orders.extend(response.get("results", []))
        return orders

    async def pending(self, account_id: str, ticker: TickerLike | None = None) -> list[dict]:
        return await self._filtered(account_id, PENDING_STATUS, ticker)

    async def filled(self, account_id: str, ticker: TickerLike | None = None) -> list[dict]:
        return await self._filtered(account_id, FILLED_STATUS, ticker)

    async def cancelled(self, account_id: str, ticker: TickerLike | None = None) -> list[dict]:
        return await self._filtered(account_id, CANCELLED_STATUS, ticker)

    async def _filtered(
        self, account_id: str, status: str, ticker: TickerLike | None
    ) -> list[dict]:
        security_id = await self.resolver.resolve(ticker) if ticker else None
        return [
            order
            for order in await self.all(account_id)
            if order.get("status") == status
            and (security_id is None or order.get("security_id") == security_id)
        ]

    async def cancel(self, order_id: str) -> Any:
        """Cancel the pending order"""
        logger.info(f"Cancelling order {order_id}")
        return await self.client.request("DELETE", f"/orders/{order_id}")

    async def cancel_pending(self, account_id: str) -> list[Any]:
        """Cancel every pending order in the account"""
        pending = await self.pending(account_id)
        return list(
            await asyncio.gather(*(self.cancel(order["order_id"]) for order in pending))
        )

    async def market_buy(self, account_id: str, ticker: TickerLike, quantity: int) -> Any:
        return await self._place(
            account_id, ticker, "buy_quantity", "market",
            quantity=quantity, limit_price=await self.quotes.get(ticker),
        )

    async def fractional_buy(
        self, account_id: str, ticker: TickerLike, market_value: float
    ) -> Any:
        return await self._place(
            account_id, ticker, "buy_value", "fractional", market_value=market_value
        )

    async def limit_buy(
        self, account_id: str, ticker: TickerLike, limit: float, quantity: int
    ) -> Any:
        return await self._place(
            account_id, ticker, "buy_quantity", "limit",
            quantity=quantity, limit_price=limit,
        )

    async def stop_limit_buy(
        self, account_id: str, ticker: TickerLike, stop: float, limit: float, quantity: int
    ) -> Any:
        return await self._place(
            account_id, ticker, "buy_quantity", "stop_limit",
            quantity=quantity, limit_price=limit, stop_price=stop,
        )

    async def market_sell(self, account_id: str, ticker: TickerLike, quantity: int) -> Any:
        return await self._place(
            account_id, ticker, "sell_quantity", "market",
            quantity=quantity, limit_price=await self.quotes.get(ticker),
        )

    async def limit_sell(
        self, account_id: str, ticker: TickerLike, limit: float, quantity: int
    ) -> Any:
        return await self._place(
            account_id, ticker, "sell_quantity", "limit",
            quantity=quantity, limit_price=limit,
        )

    async def stop_limit_sell(
        self, account_id: str, ticker: TickerLike, stop: float, limit: float, quantity: int
    ) -> Any:
        return await self._place(
            account_id, ticker, "sell_quantity", "stop_limit",
            quantity=quantity, limit_price=limit, stop_price=stop,
        )

    async def _place(
        self,
        account_id: str,
        ticker: TickerLike,
        order_type: str,
        order_sub_type: str,
        **fields: Any,
    ) -> Any:
        security_id = await self.resolver.resolve(ticker)
        order = OrderRequest(
            account_id=account_id,
            security_id=security_id,
            order_type=order_type,
            order_sub_type=order_sub_type,
            **fields,
        )
        logger.info(f"Placing {order_sub_type} {order_type} order for {ticker}: {order}")
        return await self.client.request("POST", "/orders", data=order.to_payload())
