"""Session - one isolated trade API client with its own authentication state"""

import httpx
from loguru import logger

from wstrade.auth import Authenticator, EventHub, TokenStore
from wstrade.core.config import ClientConfig, FeatureFlags
from wstrade.infrastructure.headers import CustomHeaders
from wstrade.infrastructure.protocols import Transport
from wstrade.infrastructure.requests import TradeRequestClient
from wstrade.services import Accounts, Data, Orders, QuoteRegistry, SecurityResolver


class Session:
    """Trade API client for one account (facade over the session components)

    Each Session owns its tokens, event handlers, custom headers, feature
    flags, security cache and quote providers. Nothing is shared between
    sessions, so several accounts can be used concurrently in one process.

    Grouped operations: auth, headers, accounts, orders, quotes, data and
    config(feature).
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: Transport | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize session

        Args:
            config: Client configuration (defaults to ClientConfig())
            transport: Custom Transport implementation replacing the HTTP client
            http_transport: httpx transport for the default HTTP client
        """
        self._config = config or ClientConfig()
        self._features = FeatureFlags(
            implicit_token_refresh=self._config.implicit_token_refresh
        )
        self._transport = transport or TradeRequestClient(
            self._config, http_transport=http_transport
        )

        self.headers = CustomHeaders()
        self.auth = Authenticator(
            self._transport,
            self.headers,
            self._features,
            tokens=TokenStore(),
            events=EventHub(),
        )
        self.securities = SecurityResolver(self.auth)
        self.quotes = QuoteRegistry(self.auth, self.securities)
        self.accounts = Accounts(self.auth)
        self.orders = Orders(self.auth, self.securities, self.quotes)
        self.data = Data(self.auth, self.securities)

    @property
    def features(self) -> FeatureFlags:
        return self._features

    def config(self, feature: str) -> None:
        """Enable or disable an optional feature

        Examples:
            config("implicit_token_refresh")
            config("no_implicit_token_refresh")

        Raises:
            ValueError: If the feature is not recognised
        """
        self._features.apply(feature)

    async def aclose(self) -> None:
        """Close the session's HTTP resources"""
        await self._transport.aclose()
        logger.debug("Session closed")

    async def __aenter__(self) -> "Session":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
