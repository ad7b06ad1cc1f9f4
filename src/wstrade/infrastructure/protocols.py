"""Protocols for the session's external collaborators.

The transport performs signed HTTP calls; quote providers supply prices per
exchange. Both can be swapped without touching the session core.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from wstrade.domain.models import Ticker


@dataclass
class TransportResponse:
    """Parsed result of a successful HTTP call"""

    status: int
    data: Any = None
    headers: dict[str, str] = field(default_factory=dict)


@runtime_checkable
class Transport(Protocol):
    """Protocol for the HTTP layer used by a session."""

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        data: dict | None = None,
        params: dict | None = None,
        access_token: str | None = None,
    ) -> TransportResponse:
        """Perform the call, raising TransportError on failure."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...


@runtime_checkable
class QuoteProvider(Protocol):
    """Protocol for a pluggable quote source."""

    def quote(self, ticker: Ticker) -> Any:
        """Return (or resolve to) the current price of the ticker."""
        ...
