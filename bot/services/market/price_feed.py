"""Справочник токенов и спотовые цены (CoinGecko-совместимый API)."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import aiohttp
from aiocache.base import BaseCache
from loguru import logger

from bot.services.core.retry import RetryPolicy, SleepFunc, run_with_policy
from bot.services.errors import (
    PriceFeedError,
    RateLimitError,
    TokenNotFoundError,
    UpstreamError,
)
from bot.utils.cache import TimeBoxedCache
from .token_matcher import ReferenceToken, match_token

TOKEN_LIST_TTL_SEC = 3_600

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again in a few minutes."
NOT_FOUND_HINT = (
    "Try using the token's ID (e.g., \"bitcoin\"), symbol (e.g., \"btc\"), or name "
    "(e.g., \"Bitcoin\"). Common tokens: BTC, ETH, SOL, USDT, USDC, BNB, ADA, DOT, "
    "LINK, LTC, XRP, DOGE, SHIB, MATIC, AVAX, UNI, ATOM, ETC, XLM, VET"
)


@dataclass(slots=True, frozen=True)
class TokenPrice:
    """Спотовая цена и динамика токена в USD."""

    token_id: str
    name: str
    symbol: str
    price: float
    change_24h: float
    change_7d: float
    volume_24h: float
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "price": self.price,
            "priceChange24h": self.change_24h,
            "priceChange7d": self.change_7d,
            "volume24h": self.volume_24h,
            "lastUpdated": self.last_updated.isoformat(),
            "tokenId": self.token_id,
        }


class CoinGeckoPriceFeed:
    """Получает справочник токенов (кешируется на час) и цены по id."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        user_agent: str = "Mozilla/5.0 (compatible; Web3Assistant/1.0)",
        request_timeout: float = 10,
        token_list_ttl: float = TOKEN_LIST_TTL_SEC,
        cache_backend: BaseCache | None = None,
        retry_policy: RetryPolicy | None = None,
        session: aiohttp.ClientSession | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {"Accept": "application/json", "User-Agent": user_agent}
        if api_key:
            self._headers["x-cg-demo-api-key"] = api_key
        self._timeout = request_timeout
        self._session = session
        self._sleep = sleep
        policy = retry_policy or RetryPolicy()
        # Повторяем только сетевые сбои и лимиты, not-found отдаём сразу.
        self._retry = RetryPolicy(
            max_attempts=policy.max_attempts,
            base_delay=policy.base_delay,
            retry_on=(UpstreamError, asyncio.TimeoutError),
        )
        self._token_list: TimeBoxedCache[list[ReferenceToken]] = TimeBoxedCache(
            "coingecko:token-list",
            token_list_ttl,
            self.fetch_token_list,
            backend=cache_backend,
        )

    async def start(self) -> None:
        self._ensure_session()
        logger.info("CoinGeckoPriceFeed готов: {url}", url=self._base_url)

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def get_token_list(self) -> list[ReferenceToken]:
        try:
            return await self._token_list.get()
        except Exception as exc:
            raise PriceFeedError(f"Failed to fetch token list: {exc}") from exc

    async def fetch_token_list(self) -> list[ReferenceToken]:
        """Загружает полный справочник (без кеша)."""

        data = await self._request("/coins/list", None, label="coins/list")
        if not isinstance(data, list) or not data:
            raise PriceFeedError("Invalid token list response from price provider")
        tokens = [ReferenceToken.from_api(item) for item in data if isinstance(item, dict) and item.get("id")]
        logger.debug("Справочник токенов загружен: {count} записей", count=len(tokens))
        return tokens

    async def find_token(self, query: str) -> ReferenceToken | None:
        return match_token(query, await self.get_token_list())

    async def get_price(self, query: str) -> TokenPrice:
        token = await self.find_token(query)
        if token is None:
            raise TokenNotFoundError(f'Token "{query}" not found. {NOT_FOUND_HINT}')

        params = {
            "ids": token.id,
            "vs_currencies": "usd",
            "include_24hr_vol": "true",
            "include_24hr_change": "true",
            "include_7d_change": "true",
        }
        data = await self._request(
            "/simple/price",
            params,
            label=f"simple/price:{token.id}",
            not_found_message=f'Token "{query}" not found in the price database.',
        )
        entry = data.get(token.id) if isinstance(data, dict) else None
        if not entry:
            raise PriceFeedError(f"Price data not available for {token.name} ({token.symbol})")
        price = entry.get("usd")
        if not isinstance(price, (int, float)) or isinstance(price, bool) or price <= 0:
            raise PriceFeedError(f"Invalid price data received for {token.name}")
        return TokenPrice(
            token_id=token.id,
            name=token.name,
            symbol=token.symbol.upper(),
            price=float(price),
            change_24h=float(entry.get("usd_24h_change") or 0),
            change_7d=float(entry.get("usd_7d_change") or 0),
            volume_24h=float(entry.get("usd_24h_vol") or 0),
        )

    async def _request(
        self,
        path: str,
        params: dict[str, str] | None,
        *,
        label: str,
        not_found_message: str | None = None,
    ) -> Any:
        url = f"{self._base_url}{path}"

        async def _do() -> Any:
            session = self._ensure_session()
            try:
                async with session.get(url, params=params, headers=self._headers) as resp:
                    if resp.status == 429:
                        raise RateLimitError(RATE_LIMIT_MESSAGE)
                    if resp.status == 404 and not_found_message:
                        raise TokenNotFoundError(not_found_message)
                    if resp.status >= 400:
                        raise PriceFeedError(f"HTTP error! status: {resp.status} - {resp.reason}")
                    return await resp.json(content_type=None)
            except aiohttp.ClientError as exc:
                raise PriceFeedError(f"{label} transport error: {exc}") from exc

        return await run_with_policy(_do, self._retry, label=label, sleep=self._sleep)

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
        return self._session


__all__ = ["CoinGeckoPriceFeed", "TokenPrice"]
