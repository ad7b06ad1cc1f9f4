"""Ticker value object and supported exchanges"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

SECURITY_ID_PREFIX = "sec-s-"


class Exchange(str, Enum):
    """Exchanges supported by the trade platform"""

    NYSE = "NYSE"
    NASDAQ = "NASDAQ"
    TSX = "TSX"
    TSX_V = "TSX-V"
    NEO = "NEO"
    CC = "CC"

    @classmethod
    def parse(cls, value: Union["Exchange", str]) -> "Exchange":
        """Parse an exchange name (case-insensitive)

        Raises:
            ValueError: If the exchange is not supported
        """
        if isinstance(value, Exchange):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError as e:
            raise ValueError(f"Unsupported exchange: {value!r}") from e

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Ticker:
    """Value object for a security reference

    If `id` is set it is authoritative and no lookup is needed.
    """

    symbol: str = ""
    exchange: Exchange | None = None
    id: str | None = None

    def __post_init__(self):
        # Normalise so records built directly behave like parsed ones
        object.__setattr__(self, "symbol", (self.symbol or "").strip().upper())
        if self.exchange is not None:
            object.__setattr__(self, "exchange", Exchange.parse(self.exchange))
        if not self.symbol and not self.id:
            raise ValueError("Ticker needs a symbol or a security id")

    def __str__(self) -> str:
        if self.id and not self.symbol:
            return self.id
        if self.exchange:
            return f"{self.symbol}:{self.exchange.value}"
        return self.symbol

    @property
    def key(self) -> tuple[str, str]:
        """Canonical cache key (SYMBOL, EXCHANGE or "")"""
        return (
            self.symbol.strip().upper(),
            self.exchange.value if self.exchange else "",
        )

    def with_exchange(self, exchange: Exchange) -> "Ticker":
        return Ticker(symbol=self.symbol, exchange=exchange, id=self.id)

    @classmethod
    def parse(cls, value: "TickerLike") -> "Ticker":
        """Normalise the accepted ticker forms

        - Ticker instance: returned as-is
        - "AAPL" or "AAPL:NASDAQ"
        - "sec-s-..." (internal security id)
        - mapping with symbol, optional exchange and id

        Raises:
            ValueError: If the value is empty or names an unsupported exchange
            TypeError: If the value is not a supported ticker form
        """
        if isinstance(value, Ticker):
            return value

        if isinstance(value, str):
            text = value.strip()
            if text.startswith(SECURITY_ID_PREFIX):
                return cls(id=text)
            symbol, sep, exchange = text.partition(":")
            return cls(
                symbol=symbol.strip().upper(),
                exchange=Exchange.parse(exchange) if sep else None,
            )

        if isinstance(value, Mapping):
            exchange = value.get("exchange")
            return cls(
                symbol=str(value.get("symbol") or "").strip().upper(),
                exchange=Exchange.parse(exchange) if exchange else None,
                id=value.get("id") or None,
            )

        raise TypeError(f"Unsupported ticker type: {type(value).__name__}")


TickerLike = Union[Ticker, str, Mapping[str, Any]]


@dataclass(frozen=True)
class Security:
    """A resolved listing: internal security id plus where it trades"""

    id: str
    symbol: str
    exchange: Exchange | None = None

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "Security":
        """Build from a /securities search result or detail payload"""
        stock = payload.get("stock") or {}
        exchange = stock.get("primary_exchange")
        try:
            parsed = Exchange.parse(exchange) if exchange else None
        except ValueError:
            parsed = None
        return cls(
            id=str(payload["id"]),
            symbol=str(stock.get("symbol") or "").upper(),
            exchange=parsed,
        )
