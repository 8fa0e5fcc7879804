"""Configuration settings for BillStock."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Flat settings read from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Remote store (disabled when no URL is configured)
    store_api_url: str | None = Field(default=None, validation_alias="STORE_API_URL")
    store_api_key: SecretStr | None = Field(default=None, validation_alias="STORE_API_KEY")
    store_owner_id: str = Field(default="local", validation_alias="STORE_OWNER_ID")
    store_timeout: float = Field(default=30.0, validation_alias="STORE_TIMEOUT")

    # Billing
    currency_symbol: str = Field(default="₹", validation_alias="CURRENCY_SYMBOL")
    gst_rate: float = Field(default=18.0, validation_alias="GST_RATE")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="LOG_FORMAT"
    )

    @property
    def store_enabled(self) -> bool:
        """Whether a remote store URL has been configured."""
        return bool(self.store_api_url)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
