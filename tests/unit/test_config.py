"""Tests for ClientConfig and FeatureFlags"""

import pytest

from wstrade.core.config import DEFAULT_BASE_URL, ClientConfig, FeatureFlags

ENV_VARS = (
    "WSTRADE_BASE_URL",
    "WSTRADE_TIMEOUT",
    "WSTRADE_MAX_RETRIES",
    "WSTRADE_RETRY_BACKOFF",
    "WSTRADE_IMPLICIT_TOKEN_REFRESH",
    "WSTRADE_USER_AGENT",
)


@pytest.fixture
def clean_env(monkeypatch, mocker):
    """Isolate from the real environment and any local .env file"""
    mocker.patch("wstrade.core.config.load_dotenv")
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.mark.unit
def test_from_env_defaults(clean_env):
    config = ClientConfig.from_env()

    assert config.base_url == DEFAULT_BASE_URL
    assert config.timeout == 20.0
    assert config.max_retries == 3
    assert config.implicit_token_refresh is True


@pytest.mark.unit
def test_from_env_overrides(clean_env):
    clean_env.setenv("WSTRADE_BASE_URL", "https://staging.trade.test/")
    clean_env.setenv("WSTRADE_TIMEOUT", "5")
    clean_env.setenv("WSTRADE_MAX_RETRIES", "0")
    clean_env.setenv("WSTRADE_IMPLICIT_TOKEN_REFRESH", "false")

    config = ClientConfig.from_env()

    assert config.base_url == "https://staging.trade.test"
    assert config.timeout == 5.0
    assert config.max_retries == 0
    assert config.implicit_token_refresh is False


@pytest.mark.unit
def test_from_env_invalid_number(clean_env):
    clean_env.setenv("WSTRADE_TIMEOUT", "soon")

    with pytest.raises(ValueError, match="WSTRADE_TIMEOUT"):
        ClientConfig.from_env()


@pytest.mark.unit
def test_from_env_negative_retries(clean_env):
    clean_env.setenv("WSTRADE_MAX_RETRIES", "-1")

    with pytest.raises(ValueError, match="cannot be negative"):
        ClientConfig.from_env()


@pytest.mark.unit
def test_feature_flags_toggle():
    flags = FeatureFlags()

    flags.apply("no_implicit_token_refresh")
    assert flags.implicit_token_refresh is False

    flags.apply("implicit_token_refresh")
    assert flags.implicit_token_refresh is True


@pytest.mark.unit
def test_unknown_feature_is_reported():
    with pytest.raises(ValueError, match="Unknown feature"):
        FeatureFlags().apply("turbo_mode")
