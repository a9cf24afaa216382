"""Четыре инструмента ассистента: цена, активность кошелька, новости, риск токена.

Каждый инструмент валидирует вход до сетевых вызовов, вызывает сервисы и
возвращает обычный dict. Ошибки сервисов оборачиваются в ToolError с
контекстом операции; ошибки ввода отдаются как ToolInputError.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Literal

from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from bot.services.errors import ToolError, ToolInputError
from bot.services.market.price_feed import CoinGeckoPriceFeed
from bot.services.news.news_aggregator import NewsAggregator, filter_by_category
from bot.services.solana.chain_data import (
    TX_DEFI,
    TX_NFT,
    TX_TOKEN_TRANSFER,
    TX_UNKNOWN,
    ChainDataAccessor,
)
from bot.services.solana.risk_scoring import TokenRiskAnalyzer
from bot.utils.validators import is_valid_solana_address

TimeRange = Literal["24h", "7d", "30d"]
NewsCategory = Literal["all", "defi", "nft", "web3", "trading"]
NewsFormat = Literal["mobile", "detailed"]

TIME_RANGE_SECONDS: dict[str, int] = {
    "24h": 86_400,
    "7d": 604_800,
    "30d": 2_592_000,
}

MOBILE_SUMMARY_LIMIT = 200
RECENT_ACTIVITY_LIMIT = 5


class TokenPriceQuery(BaseModel):
    symbol: str = Field(..., min_length=1, description="Token id, symbol or name, e.g. 'btc'")

    @field_validator("symbol")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("token query must not be blank")
        return value.strip()


class AddressActivityQuery(BaseModel):
    wallet_address: str
    time_range: TimeRange = "24h"

    @field_validator("wallet_address")
    @classmethod
    def _solana_address(cls, value: str) -> str:
        if not is_valid_solana_address(value):
            raise ValueError("Invalid Solana wallet address format")
        return value.strip()


class NewsQuery(BaseModel):
    category: NewsCategory = "all"
    limit: int = Field(10, ge=1, le=20)
    format: NewsFormat = "mobile"


class TokenRiskQuery(BaseModel):
    token_address: str

    @field_validator("token_address")
    @classmethod
    def _solana_address(cls, value: str) -> str:
        if not is_valid_solana_address(value):
            raise ValueError("Invalid token address format. Please provide a valid Solana address.")
        return value.strip()


def _parse(model: type[BaseModel], **values: Any) -> Any:
    try:
        return model(**values)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'input'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ToolInputError(details) from exc


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


class Web3Toolkit:
    """Фасад над сервисами; именно его вызывает слой диалога (Telegram-хендлеры)."""

    def __init__(
        self,
        *,
        price_feed: CoinGeckoPriceFeed,
        chain: ChainDataAccessor,
        news: NewsAggregator,
        risk_analyzer: TokenRiskAnalyzer,
        activity_sample_size: int = 20,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._price_feed = price_feed
        self._chain = chain
        self._news = news
        self._risk = risk_analyzer
        self._activity_sample_size = activity_sample_size
        self._clock = clock

    async def get_token_price(self, symbol: str) -> dict[str, Any]:
        query = _parse(TokenPriceQuery, symbol=symbol)
        try:
            price = await self._price_feed.get_price(query.symbol)
        except Exception as exc:
            raise ToolError(f"Error fetching token data: {exc}") from exc
        return price.as_dict()

    async def get_address_activity(self, wallet_address: str, time_range: str = "24h") -> dict[str, Any]:
        query = _parse(AddressActivityQuery, wallet_address=wallet_address, time_range=time_range)
        try:
            balance = await self._chain.get_balance(query.wallet_address)
            transactions = await self._chain.get_recent_transactions(
                query.wallet_address, self._activity_sample_size
            )
        except Exception as exc:
            raise ToolError(f"Error analyzing wallet address: {exc}") from exc

        now = self._clock()
        start = int(now.timestamp()) - TIME_RANGE_SECONDS[query.time_range]
        in_window = [tx for tx in transactions if tx.timestamp and tx.timestamp >= start]

        def _count(tx_type: str) -> int:
            return sum(1 for tx in in_window if tx.type == tx_type)

        return {
            "walletAddress": query.wallet_address,
            "totalBalance": balance.value,
            "balanceStatus": balance.status,
            "transactionCount": len(in_window),
            "transactionTypes": {
                "defi": _count(TX_DEFI),
                "nft": _count(TX_NFT),
                "token": _count(TX_TOKEN_TRANSFER),
                "unknown": _count(TX_UNKNOWN),
            },
            "recentActivity": [
                {
                    "type": tx.type,
                    "amount": tx.amount,
                    "timestamp": datetime.fromtimestamp(tx.timestamp, tz=timezone.utc).isoformat(),
                    "status": tx.status,
                }
                for tx in in_window[:RECENT_ACTIVITY_LIMIT]
            ],
            "timeRange": query.time_range,
            "lastUpdated": now.isoformat(),
        }

    async def get_latest_news(
        self,
        category: str = "all",
        limit: int = 10,
        format: str = "mobile",
    ) -> dict[str, Any]:
        query = _parse(NewsQuery, category=category, limit=limit, format=format)
        try:
            news = await self._news.get_all_news()
        except Exception as exc:
            logger.exception("Новости недоступны: {error}", error=exc)
            raise ToolError(f"Error fetching crypto news: {exc}") from exc

        articles = filter_by_category(news.articles, query.category)[: query.limit]
        payload = []
        for article in articles:
            item = article.as_dict()
            if query.format == "mobile":
                item["summary"] = _truncate(article.summary, MOBILE_SUMMARY_LIMIT)
            payload.append(item)
        return {
            "category": query.category,
            "totalResults": news.total_results,
            "articles": payload,
            "trendingTopics": list(news.trending_topics),
            "lastUpdated": news.last_updated.isoformat(),
            "format": query.format,
        }

    async def analyze_token_risk(self, token_address: str) -> dict[str, Any]:
        query = _parse(TokenRiskQuery, token_address=token_address)
        try:
            assessment = await self._risk.assess(query.token_address)
        except Exception as exc:
            raise ToolError(f"Error analyzing token risk: {exc}") from exc
        return {
            "tokenAddress": assessment.token_address,
            "riskScore": assessment.overall_score,
            "riskLevel": assessment.tier,
            "detailedMetrics": {
                "liquidityScore": assessment.liquidity_score,
                "holderConcentrationScore": assessment.holder_concentration_score,
                "transactionPatternScore": assessment.transaction_pattern_score,
                "contractRiskScore": assessment.contract_risk_score,
                "overallRiskScore": assessment.overall_score,
                "riskFactors": list(assessment.factors),
            },
            "summary": assessment.summary,
            "lastUpdated": self._clock().isoformat(),
        }


__all__ = [
    "AddressActivityQuery",
    "NewsQuery",
    "TokenPriceQuery",
    "TokenRiskQuery",
    "Web3Toolkit",
]
