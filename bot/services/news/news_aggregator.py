"""Агрегатор крипто-новостей из двух независимых источников.

Источники опрашиваются параллельно, каждый сам гасит свои ошибки и в худшем
случае отдаёт пустой список. Результат слияния кешируется на 5 минут.
"""

from __future__ import annotations

import asyncio
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Protocol, Sequence

import aiohttp
from aiocache.base import BaseCache
from loguru import logger

from bot.utils.cache import TimeBoxedCache

NEWS_TTL_SEC = 300
TRENDING_LIMIT = 5

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at",
        "to", "for", "with", "by", "about", "as", "of", "from",
    }
)

_WORD_SPLIT = re.compile(r"\W+", re.ASCII)


@dataclass(slots=True, frozen=True)
class NewsArticle:
    title: str
    summary: str
    source: str
    url: str
    published_at: datetime
    categories: tuple[str, ...] = ()
    sentiment: str = "neutral"

    def as_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "summary": self.summary,
            "source": self.source,
            "url": self.url,
            "publishedAt": self.published_at.isoformat(),
            "sentiment": self.sentiment,
            "categories": list(self.categories),
        }


@dataclass(slots=True, frozen=True)
class NewsResponse:
    articles: tuple[NewsArticle, ...]
    trending_topics: tuple[str, ...]
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_results(self) -> int:
        return len(self.articles)


class NewsSource(Protocol):
    name: str

    async def fetch(self, session: aiohttp.ClientSession) -> list[NewsArticle]: ...


def _parse_iso(value: str | None) -> datetime:
    if not value:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class CryptoCompareSource:
    """Лента с категориями вида "BTC|Trading|Positive"."""

    name = "cryptocompare"

    def __init__(self, url: str, api_key: str | None) -> None:
        self._url = url
        self._api_key = api_key

    async def fetch(self, session: aiohttp.ClientSession) -> list[NewsArticle]:
        try:
            if not self._api_key:
                raise RuntimeError("CryptoCompare API key is not configured")
            headers = {"authorization": f"Apikey {self._api_key}", "Accept": "application/json"}
            async with session.get(self._url, params={"lang": "EN"}, headers=headers) as resp:
                if resp.status >= 400:
                    raise RuntimeError(f"CryptoCompare API error: {resp.status}")
                data = await resp.json(content_type=None)
            return [self.parse_item(item) for item in data.get("Data") or []]
        except Exception as exc:  # noqa: BLE001
            logger.warning("Источник {name} недоступен: {error}", name=self.name, error=exc)
            return []

    @staticmethod
    def parse_item(item: dict[str, Any]) -> NewsArticle:
        raw_categories = str(item.get("categories") or "")
        lowered = raw_categories.lower()
        if "positive" in lowered:
            sentiment = "positive"
        elif "negative" in lowered:
            sentiment = "negative"
        else:
            sentiment = "neutral"
        return NewsArticle(
            title=str(item.get("title") or ""),
            summary=str(item.get("body") or ""),
            source=str(item.get("source") or ""),
            url=str(item.get("url") or ""),
            published_at=datetime.fromtimestamp(int(item.get("published_on") or 0), tz=timezone.utc),
            categories=tuple(raw_categories.split("|")) if raw_categories else (),
            sentiment=sentiment,
        )


class NewsApiSource:
    """Поиск статей по ключевым словам web3/crypto."""

    name = "newsapi"

    def __init__(self, url: str, api_key: str | None, *, query: str, page_size: int = 20) -> None:
        self._url = url
        self._api_key = api_key
        self._query = query
        self._page_size = page_size

    async def fetch(self, session: aiohttp.ClientSession) -> list[NewsArticle]:
        try:
            if not self._api_key:
                raise RuntimeError("NewsAPI key is not configured")
            params = {
                "q": self._query,
                "language": "en",
                "sortBy": "publishedAt",
                "pageSize": str(self._page_size),
            }
            headers = {"X-Api-Key": self._api_key, "Accept": "application/json"}
            async with session.get(self._url, params=params, headers=headers) as resp:
                if resp.status >= 400:
                    raise RuntimeError(f"News API error: {resp.status}")
                data = await resp.json(content_type=None)
            return [self.parse_item(item) for item in data.get("articles") or []]
        except Exception as exc:  # noqa: BLE001
            logger.warning("Источник {name} недоступен: {error}", name=self.name, error=exc)
            return []

    @staticmethod
    def parse_item(item: dict[str, Any]) -> NewsArticle:
        summary = item.get("description")
        if not summary:
            content = item.get("content") or ""
            summary = f"{content[:200]}..." if content else ""
        return NewsArticle(
            title=str(item.get("title") or ""),
            summary=str(summary),
            source=str((item.get("source") or {}).get("name") or ""),
            url=str(item.get("url") or ""),
            published_at=_parse_iso(item.get("publishedAt")),
            categories=("web3", "blockchain"),
            sentiment="neutral",
        )


def merge_articles(*batches: Iterable[NewsArticle]) -> list[NewsArticle]:
    """Склеивает, сортирует по дате (новые сверху) и убирает дубликаты.

    Статья отбрасывается, если её заголовок (без учёта регистра) или url уже
    встречался у любой более ранней статьи отсортированного списка.
    """

    combined = [article for batch in batches for article in batch]
    combined.sort(key=lambda article: article.published_at, reverse=True)
    seen_titles: set[str] = set()
    seen_urls: set[str] = set()
    unique: list[NewsArticle] = []
    for article in combined:
        title = article.title.lower()
        if title not in seen_titles and article.url not in seen_urls:
            unique.append(article)
        seen_titles.add(title)
        seen_urls.add(article.url)
    return unique


def extract_trending_topics(articles: Sequence[NewsArticle], limit: int = TRENDING_LIMIT) -> list[str]:
    frequency: Counter[str] = Counter()
    for article in articles:
        text = f"{article.title} {article.summary}".lower()
        frequency.update(
            word for word in _WORD_SPLIT.split(text) if len(word) > 3 and word not in STOP_WORDS
        )
    # sorted стабилен: при равной частоте сохраняется порядок первого появления
    ranked = sorted(frequency.items(), key=lambda item: item[1], reverse=True)
    return [word for word, _ in ranked[:limit]]


class NewsAggregator:
    """Сводная лента новостей с трендовыми темами."""

    def __init__(
        self,
        sources: Sequence[NewsSource],
        *,
        ttl: float = NEWS_TTL_SEC,
        request_timeout: float = 10,
        cache_backend: BaseCache | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._sources = tuple(sources)
        self._timeout = request_timeout
        self._session = session
        self._cache: TimeBoxedCache[NewsResponse] = TimeBoxedCache(
            "news:all",
            ttl,
            self.fetch_all,
            backend=cache_backend,
        )

    async def start(self) -> None:
        self._ensure_session()
        logger.info(
            "NewsAggregator готов: источники {sources}",
            sources=", ".join(source.name for source in self._sources),
        )

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def get_all_news(self) -> NewsResponse:
        return await self._cache.get()

    async def fetch_all(self) -> NewsResponse:
        """Опрашивает все источники (без кеша)."""

        session = self._ensure_session()
        batches = await asyncio.gather(*(source.fetch(session) for source in self._sources))
        articles = merge_articles(*batches)
        logger.debug(
            "Новости собраны: {total} уникальных из {raw}",
            total=len(articles),
            raw=sum(len(batch) for batch in batches),
        )
        return NewsResponse(
            articles=tuple(articles),
            trending_topics=tuple(extract_trending_topics(articles)),
        )

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
        return self._session


def filter_by_category(articles: Iterable[NewsArticle], category: str) -> list[NewsArticle]:
    """Оставляет статьи, у которых любая категория содержит подстроку category."""

    if category == "all":
        return list(articles)
    needle = category.lower()
    return [
        article
        for article in articles
        if any(needle in item.lower() for item in article.categories)
    ]


__all__ = [
    "CryptoCompareSource",
    "NewsAggregator",
    "NewsApiSource",
    "NewsArticle",
    "NewsResponse",
    "NewsSource",
    "STOP_WORDS",
    "extract_trending_topics",
    "filter_by_category",
    "merge_articles",
]
