"""Глобальные сервисы и зависимости Web3 Assistant."""

from __future__ import annotations

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.fsm.storage.memory import MemoryStorage

from config.settings import get_settings
from .services.core.retry import RetryPolicy
from .services.market.price_feed import CoinGeckoPriceFeed
from .services.news.news_aggregator import CryptoCompareSource, NewsAggregator, NewsApiSource
from .services.solana.chain_data import ChainDataAccessor
from .services.solana.risk_scoring import TokenRiskAnalyzer
from .services.solana.rpc_client import SolanaRpcClient
from .services.web3_tools import Web3Toolkit
from .utils.cache import configure_cache, get_cache

settings = get_settings()

configure_cache(settings.cache)

bot = Bot(
    token=settings.telegram.token,
    default=DefaultBotProperties(parse_mode=ParseMode.HTML),
)
dp = Dispatcher(storage=MemoryStorage())

retry_policy = RetryPolicy(
    max_attempts=settings.retry.max_attempts,
    base_delay=settings.retry.base_delay_sec,
)

solana_client = SolanaRpcClient(
    str(settings.solana.rpc_endpoint),
    commitment=settings.solana.commitment,
    request_timeout=settings.solana.request_timeout,
)
chain_data = ChainDataAccessor(solana_client, retry_policy=retry_policy)
risk_analyzer = TokenRiskAnalyzer(
    chain_data,
    sample_size=settings.risk.transaction_sample_size,
)

price_feed = CoinGeckoPriceFeed(
    str(settings.coingecko.base_url),
    api_key=(
        settings.coingecko.api_key.get_secret_value() if settings.coingecko.api_key else None
    ),
    user_agent=settings.coingecko.user_agent,
    request_timeout=settings.coingecko.request_timeout,
    token_list_ttl=settings.cache.token_list_ttl_seconds,
    cache_backend=get_cache(),
    retry_policy=retry_policy,
)

news_aggregator = NewsAggregator(
    (
        CryptoCompareSource(
            str(settings.news.cryptocompare_url),
            settings.news.cryptocompare_api_key.get_secret_value()
            if settings.news.cryptocompare_api_key
            else None,
        ),
        NewsApiSource(
            str(settings.news.newsapi_url),
            settings.news.newsapi_key.get_secret_value() if settings.news.newsapi_key else None,
            query=settings.news.newsapi_query,
            page_size=settings.news.page_size,
        ),
    ),
    ttl=settings.cache.news_ttl_seconds,
    request_timeout=settings.news.request_timeout,
    cache_backend=get_cache(),
)

toolkit = Web3Toolkit(
    price_feed=price_feed,
    chain=chain_data,
    news=news_aggregator,
    risk_analyzer=risk_analyzer,
    activity_sample_size=settings.risk.wallet_activity_sample_size,
)

__all__ = [
    "bot",
    "chain_data",
    "dp",
    "news_aggregator",
    "price_feed",
    "risk_analyzer",
    "settings",
    "solana_client",
    "toolkit",
]
