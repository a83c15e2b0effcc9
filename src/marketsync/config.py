"""Configuration system using pydantic-settings with environment variable loading."""

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from marketsync.currencies import MAX_LIMIT, normalize_currency


class CoinGeckoSettings(BaseSettings):
    """Upstream market listing endpoint settings."""

    model_config = SettingsConfigDict(env_prefix="COINGECKO_")

    base_url: str = "https://api.coingecko.com/api/v3"
    api_key: SecretStr = SecretStr("")  # optional demo key for higher rate limits
    request_timeout: float = Field(default=10.0, gt=0)  # seconds, whole round trip
    user_agent: str = "MarketSync/1.0"
    order: str = "market_cap_desc"
    page: int = Field(default=1, ge=1)


class SyncSettings(BaseSettings):
    """Refresh schedule and listing selection."""

    model_config = SettingsConfigDict(env_prefix="SYNC_")

    refresh_interval: float = Field(default=30.0, gt=0)  # seconds between cycles
    limit: int = Field(default=10, ge=1, le=MAX_LIMIT)  # top-N by market cap
    currency: str = "usd"

    @field_validator("currency")
    @classmethod
    def _supported_currency(cls, value: str) -> str:
        return normalize_currency(value)


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    coingecko: CoinGeckoSettings = CoinGeckoSettings()
    sync: SyncSettings = SyncSettings()
