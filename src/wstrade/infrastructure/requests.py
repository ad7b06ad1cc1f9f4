"""TradeRequestClient - HTTP requests with retry logic"""

import asyncio
import random
from typing import Any

import httpx
from loguru import logger

from wstrade.core.config import ClientConfig
from wstrade.shared.exceptions import TransportError, UnauthorizedError
from wstrade.shared.logging import install_logging_bridge

from .protocols import TransportResponse

_MASKED_HEADERS = ("authorization", "x-access-token", "x-refresh-token")
_RETRYABLE_STATUS = (429, 500, 502, 503)
_IDEMPOTENT_METHODS = ("GET", "DELETE")


class TradeRequestClient:
    """Low-level HTTP client for the trade API

    Responsibilities:
    - HTTP request execution on a lazily built httpx.AsyncClient
    - Retry logic for idempotent requests
    - Mapping HTTP failures to TransportError/UnauthorizedError

    Token policy lives in the Authenticator; this client only attaches the
    access token it is given.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize request client

        Args:
            config: Base URL, timeout and retry settings
            http_transport: Optional httpx transport (e.g. MockTransport in tests)
        """
        self._config = config or ClientConfig()
        self._http_transport = http_transport
        self._http_client: httpx.AsyncClient | None = None
        install_logging_bridge()

    @property
    def base_url(self) -> str:
        return self._config.base_url

    def _build_http_client(self) -> httpx.AsyncClient:
        """Create an AsyncClient with httpx request/response logging hooks."""
        return httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=self._config.timeout,
            transport=self._http_transport,
            headers={"User-Agent": self._config.user_agent},
            event_hooks={
                "request": [self._log_httpx_request],
                "response": [self._log_httpx_response],
            },
        )

    async def _log_httpx_request(self, request: httpx.Request) -> None:
        """Log outbound httpx requests with headers (tokens masked)."""
        headers = {
            k: ("***" if k.lower() in _MASKED_HEADERS else v)
            for k, v in request.headers.items()
        }
        logger.debug(f"HTTPX request: {request.method} {request.url} {headers}")

    async def _log_httpx_response(self, response: httpx.Response) -> None:
        """Log httpx responses; bodies of auth endpoints are never logged."""
        logger.debug(
            f"HTTPX response: status={response.status_code} url={response.url}"
        )

    def set_http_client(self, client: httpx.AsyncClient) -> None:
        """Set the HTTP client (for testing or external management)"""
        self._http_client = client

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = self._build_http_client()
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

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
        """Make an HTTP request, retrying idempotent calls with exponential backoff

        Retry Strategy (GET/DELETE only):
        - Exponential backoff from retry_backoff (±10% jitter)
        - Retry on: network errors, 429, 500/502/503
        - Never retry POST, 4xx client errors or 401

        Args:
            method: HTTP method (GET, POST, DELETE)
            path: API path (e.g., "/account/list")
            headers: Extra headers for this call (custom session headers)
            data: JSON payload for POST requests
            params: Query parameters
            access_token: Sent as the Authorization header when present

        Returns:
            TransportResponse with the parsed JSON body

        Raises:
            UnauthorizedError: On HTTP 401
            TransportError: On any other failure
        """
        method = method.upper()
        request_headers = dict(headers or {})
        if access_token:
            request_headers["Authorization"] = access_token

        max_retries = (
            self._config.max_retries if method in _IDEMPOTENT_METHODS else 0
        )
        retry_count = 0
        delay = self._config.retry_backoff

        while True:
            logger.debug(f"{method} {path} (attempt {retry_count + 1})")
            try:
                response = await self._client().request(
                    method,
                    path,
                    headers=request_headers,
                    json=data if method == "POST" else None,
                    params=params,
                )
            except httpx.RequestError as e:
                logger.warning(f"Network error on {method} {path}: {e}")
                if retry_count < max_retries:
                    await self._backoff(delay)
                    delay *= 2
                    retry_count += 1
                    continue
                raise TransportError(f"Network error: {e}") from e

            if response.is_success:
                return TransportResponse(
                    status=response.status_code,
                    data=self._parse_body(response),
                    headers=dict(response.headers),
                )

            if (
                response.status_code in _RETRYABLE_STATUS
                and retry_count < max_retries
            ):
                logger.warning(
                    f"Retryable error {response.status_code} on {method} {path}"
                )
                await self._backoff(delay)
                delay *= 2
                retry_count += 1
                continue

            raise self._error_for(response)

    async def _backoff(self, delay: float) -> None:
        jitter = delay * 0.1 * (random.random() * 2 - 1)
        sleep_time = max(delay + jitter, 0.0)
        logger.info(f"Retrying in {sleep_time:.2f}s...")
        await asyncio.sleep(sleep_time)

    def _parse_body(self, response: httpx.Response) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"Response is not valid JSON ({response.status_code})",
                status=response.status_code,
                payload=response.text,
                headers=dict(response.headers),
            ) from e

    def _error_for(self, response: httpx.Response) -> TransportError:
        """Build a TransportError without assuming the error payload's keys."""
        try:
            payload: Any = response.json()
        except ValueError:
            payload = response.text
        message = f"Request failed: {response.status_code} - {payload}"
        error_cls = (
            UnauthorizedError if response.status_code == 401 else TransportError
        )
        if response.status_code == 401:
            logger.warning(f"Unauthorized ({response.url.path})")
        else:
            logger.error(message)
        return error_cls(
            message,
            status=response.status_code,
            payload=payload,
            headers=dict(response.headers),
        )
