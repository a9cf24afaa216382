"""Глобальные настройки Web3 Assistant.

Настройки разделены по доменам (Telegram, Solana RPC, рыночные данные, новости,
кеш, ретраи), чтобы каждый сервис получал только свой срез конфигурации.
Вся конфигурация загружается из переменных окружения через Pydantic Settings,
поэтому тесты и локальный запуск не требуют правки кода.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import (
    AnyHttpUrl,
    BaseModel,
    Field,
    PositiveFloat,
    PositiveInt,
    SecretStr,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent
ACCESSIBLE_ENV_FILE = BASE_DIR / "config" / "runtime.env"
DEFAULT_ENV_FILE = BASE_DIR / ".env"
ENV_FILE = ACCESSIBLE_ENV_FILE if ACCESSIBLE_ENV_FILE.exists() else DEFAULT_ENV_FILE


class TelegramSettings(BaseModel):
    """Конфигурация Telegram-бота."""

    token: str = Field(..., description="Токен бота")
    app_name: str = "Web3 Assistant"
    throttle_rate_sec: PositiveFloat = 0.5


class SolanaSettings(BaseModel):
    """JSON-RPC точка Solana (Alchemy, Helius или публичный mainnet-beta)."""

    rpc_endpoint: AnyHttpUrl = Field(
        "https://api.mainnet-beta.solana.com",
        description="HTTP JSON-RPC endpoint, ключ провайдера можно передать прямо в URL",
    )
    commitment: Literal["processed", "confirmed", "finalized"] = "confirmed"
    request_timeout: PositiveInt = 10


class CoinGeckoSettings(BaseModel):
    """Источник справочника токенов и спотовых цен."""

    base_url: AnyHttpUrl = Field(
        "https://api.coingecko.com/api/v3",
        description="Базовый URL CoinGecko-совместимого API",
    )
    api_key: SecretStr | None = None
    request_timeout: PositiveInt = 10
    user_agent: str = "Mozilla/5.0 (compatible; Web3Assistant/1.0)"

    @field_validator("api_key", mode="before")
    @classmethod
    def _empty_str_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class NewsSettings(BaseModel):
    """Два независимых новостных источника."""

    cryptocompare_url: AnyHttpUrl = Field(
        "https://min-api.cryptocompare.com/data/v2/news/",
        description="Лента новостей с категориями",
    )
    cryptocompare_api_key: SecretStr | None = None
    newsapi_url: AnyHttpUrl = Field(
        "https://newsapi.org/v2/everything",
        description="Поиск статей по ключевым словам",
    )
    newsapi_key: SecretStr | None = None
    newsapi_query: str = '(web3 OR blockchain OR cryptocurrency OR "crypto" OR "defi" OR "nft")'
    page_size: PositiveInt = 20
    request_timeout: PositiveInt = 10

    @field_validator("cryptocompare_api_key", "newsapi_key", mode="before")
    @classmethod
    def _empty_str_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CacheSettings(BaseModel):
    """Настройки кешей (aiocache поддерживает memory / redis)."""

    backend: Literal["memory", "redis"] = "memory"
    token_list_ttl_seconds: PositiveInt = 3_600
    news_ttl_seconds: PositiveInt = 300
    redis_dsn: str | None = None


class RetrySettings(BaseModel):
    """Линейный backoff для RPC и HTTP вызовов."""

    max_attempts: PositiveInt = 3
    base_delay_sec: float = Field(1.0, ge=0)


class RiskSettings(BaseModel):
    """Параметры выборки для риск-скоринга."""

    transaction_sample_size: PositiveInt = 100
    wallet_activity_sample_size: PositiveInt = 20


class AppSettings(BaseSettings):
    """Главный контейнер настроек Web3 Assistant."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: Literal["dev", "prod"] = "dev"
    log_json: bool = False
    log_level: str = "DEBUG"
    telegram: TelegramSettings
    solana: SolanaSettings = SolanaSettings()
    coingecko: CoinGeckoSettings = CoinGeckoSettings()
    news: NewsSettings = NewsSettings()
    cache: CacheSettings = CacheSettings()
    retry: RetrySettings = RetrySettings()
    risk: RiskSettings = RiskSettings()

    @property
    def is_production(self) -> bool:
        """True, если бот запущен в продовой среде."""

        return self.environment == "prod"


# Ленивый синглтон (избегаем глобальных переменных в модулях).
_settings: AppSettings | None = None


def get_settings() -> AppSettings:
    """Возвращает единый экземпляр настроек.

    Вызываем в точках сборки (context, loader). Сервисы принимают параметры
    явно и обращаются к настройкам только если их не передали.
    """

    global _settings
    if _settings is None:
        _settings = AppSettings()  # type: ignore[call-arg]
    return _settings


__all__ = [
    "AppSettings",
    "CacheSettings",
    "CoinGeckoSettings",
    "NewsSettings",
    "RetrySettings",
    "RiskSettings",
    "SolanaSettings",
    "TelegramSettings",
    "get_settings",
]
