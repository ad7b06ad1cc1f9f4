"""Configuration management for wstrade"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv
from loguru import logger

DEFAULT_BASE_URL = "https://trade-service.wealthsimple.com"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default: float, cast: type) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return cast(value)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {value!r}") from e


@dataclass
class ClientConfig:
    """Transport and session defaults, optionally loaded from environment variables"""

    base_url: str = DEFAULT_BASE_URL

    # Seconds before an HTTP call times out
    timeout: float = 20.0

    # Retries for idempotent requests on network errors and 429/5xx
    max_retries: int = 3

    # Base delay for exponential backoff between retries (seconds)
    retry_backoff: float = 1.0

    # Initial state of the implicit refresh gate for new sessions
    implicit_token_refresh: bool = True

    user_agent: str = "wstrade/1.0"

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Load configuration from environment variables (and a local .env file)

        Recognised variables: WSTRADE_BASE_URL, WSTRADE_TIMEOUT,
        WSTRADE_MAX_RETRIES, WSTRADE_RETRY_BACKOFF,
        WSTRADE_IMPLICIT_TOKEN_REFRESH, WSTRADE_USER_AGENT.

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        load_dotenv()

        config = cls(
            base_url=os.getenv("WSTRADE_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            timeout=_env_number("WSTRADE_TIMEOUT", cls.timeout, float),
            max_retries=int(
                _env_number("WSTRADE_MAX_RETRIES", cls.max_retries, int)
            ),
            retry_backoff=_env_number(
                "WSTRADE_RETRY_BACKOFF", cls.retry_backoff, float
            ),
            implicit_token_refresh=_env_bool(
                "WSTRADE_IMPLICIT_TOKEN_REFRESH", cls.implicit_token_refresh
            ),
            user_agent=os.getenv("WSTRADE_USER_AGENT", cls.user_agent),
        )

        if config.max_retries < 0:
            raise ValueError("WSTRADE_MAX_RETRIES cannot be negative")

        logger.info("Configuration loaded:")
        logger.info(f"  Base URL: {config.base_url}")
        logger.info(f"  Timeout: {config.timeout}s")
        logger.info(f"  Max Retries: {config.max_retries}")
        logger.info(f"  Implicit Token Refresh: {config.implicit_token_refresh}")

        return config


@dataclass
class FeatureFlags:
    """Session-scoped optional features, toggled with config(feature)

    A feature is enabled by its name and disabled by the same name prefixed
    with "no_". Flags are read at call time, so a change only affects calls
    issued after it.
    """

    implicit_token_refresh: bool = True
    _known: tuple[str, ...] = field(
        default=("implicit_token_refresh",), init=False, repr=False
    )

    def apply(self, feature: str) -> None:
        """Enable or disable a feature

        Raises:
            ValueError: If the feature is not recognised
        """
        name = feature.strip().lower()
        enabled = not name.startswith("no_")
        if not enabled:
            name = name[len("no_") :]

        if name not in self._known:
            raise ValueError(f"Unknown feature: {feature!r}")

        setattr(self, name, enabled)
        logger.debug(f"Feature {name} {'enabled' if enabled else 'disabled'}")
