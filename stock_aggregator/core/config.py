"""Environment-driven settings for the price aggregation service."""

from functools import lru_cache
from typing import Callable

from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_PRICE_SOURCE_BASE_URL = "http://20.244.56.144/evaluation-service"


class Settings(BaseSettings):
    """Application settings loaded from environment variables or a local .env file."""

    APP_NAME: str = "Stock Price Aggregator"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    VERSION: str = "0.1.0"
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    PRICE_SOURCE_BASE_URL: str = _DEFAULT_PRICE_SOURCE_BASE_URL
    PRICE_SOURCE_API_KEY: str = ""
    PRICE_SOURCE_TOKEN_URL: str = ""
    PRICE_SOURCE_EMAIL: str = ""
    PRICE_SOURCE_PASSWORD: str = ""
    PRICE_SOURCE_TIMEOUT_S: float = 5.0
    USE_MOCK_DATA: bool = False
    MOCK_FALLBACK_ON_ERROR: bool = True
    STOCKS_CACHE_TTL_S: float = 60.0
    PRICE_CACHE_TTL_S: float = 10.0
    CACHE_MAX_ENTRIES: int = 1024
    DEFAULT_CORRELATION_MINUTES: int = 60
    CORS_ORIGINS: str = "http://localhost:3001"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def cors_origins(self) -> tuple[str, ...]:
        """Return allowed CORS origins from CORS_ORIGINS."""

        return self._split_csv(self.CORS_ORIGINS, transform=str.strip)

    def price_source_token_url(self) -> str:
        """Return the token endpoint, derived from the base URL when not set explicitly."""

        token_url = self.PRICE_SOURCE_TOKEN_URL.strip()
        if token_url:
            return token_url
        return f"{self.PRICE_SOURCE_BASE_URL.rstrip('/')}/auth/gettoken"

    def has_credentials(self) -> bool:
        """Return whether token credentials are configured."""

        return bool(self.PRICE_SOURCE_EMAIL.strip() and self.PRICE_SOURCE_PASSWORD)

    @staticmethod
    def _split_csv(value: str, transform: Callable[[str], str]) -> tuple[str, ...]:
        """Split comma-separated values while removing empty entries and duplicates."""

        items: list[str] = []
        seen: set[str] = set()

        for raw in value.split(","):
            item = transform(raw.strip())
            if not item or item in seen:
                continue
            seen.add(item)
            items.append(item)

        return tuple(items)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings to avoid repeated environment parsing."""

    return Settings()
