"""Единая точка настройки aiocache и кеши с ограниченным временем жизни."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar
from urllib.parse import urlparse

from aiocache import SimpleMemoryCache, caches
from aiocache.base import BaseCache
from loguru import logger

try:
    from aiocache import RedisCache
except (ImportError, AttributeError):  # pragma: no cover - optional dependency
    RedisCache = None  # type: ignore[assignment]

from config.settings import CacheSettings

T = TypeVar("T")

_configured = False


def configure_cache(settings: CacheSettings) -> None:
    """Настраивает aiocache в зависимости от backend (memory/redis)."""

    global _configured
    if _configured:
        return

    if settings.backend == "redis":
        if RedisCache is None:
            raise RuntimeError(
                "Для использования RedisCache установите пакет 'redis' и aiocache[redis]"
            )
        config = _build_redis_config(settings.redis_dsn)
        caches.set_config(
            {
                "default": {
                    "cache": RedisCache,
                    "serializer": {"class": "aiocache.serializers.PickleSerializer"},
                    **config,
                }
            }
        )
    else:
        caches.set_config({"default": {"cache": SimpleMemoryCache}})
    _configured = True


def get_cache(alias: str = "default") -> BaseCache:
    """Возвращает кеш по алиасу (конфиг должен быть применён заранее)."""

    if not _configured:
        raise RuntimeError("configure_cache() ещё не вызывался")
    return caches.get(alias)


@dataclass(slots=True, frozen=True)
class CacheEntry(Generic[T]):
    """Снимок значения вместе с моментом получения."""

    value: T
    fetched_at: float


class TimeBoxedCache(Generic[T]):
    """Кеш одного значения с фиксированным TTL и отдачей устаревшей копии.

    * свежая запись (возраст < ttl) отдаётся без сетевого вызова;
    * при промахе вызывается fetch, запись заменяется целиком;
    * если fetch упал, а старая запись есть — отдаём её с предупреждением;
    * если записи нет — ошибка пробрасывается.

    Запись хранится в aiocache без собственного TTL бэкенда, иначе бэкенд
    выбросит устаревшую копию раньше, чем она понадобится для fallback.
    """

    def __init__(
        self,
        name: str,
        ttl: float,
        fetch: Callable[[], Awaitable[T]],
        *,
        backend: BaseCache | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._name = name
        self._key = f"timeboxed:{name}"
        self._ttl = ttl
        self._fetch = fetch
        self._backend = backend if backend is not None else SimpleMemoryCache()
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def ttl(self) -> float:
        return self._ttl

    async def get(self) -> T:
        entry = await self._backend.get(self._key)
        if self._is_fresh(entry):
            return entry.value
        # Промах: только один вызывающий идёт в сеть, остальные ждут его результат.
        async with self._lock:
            entry = await self._backend.get(self._key)
            if self._is_fresh(entry):
                return entry.value
            try:
                value = await self._fetch()
            except Exception as exc:
                if entry is None:
                    raise
                logger.warning(
                    "Кеш {name}: обновление не удалось ({error}), отдаём копию возрастом {age:.0f}s",
                    name=self._name,
                    error=exc,
                    age=self._clock() - entry.fetched_at,
                )
                return entry.value
            await self._backend.set(self._key, CacheEntry(value, self._clock()), ttl=None)
            logger.debug("Кеш {name} обновлён", name=self._name)
            return value

    async def peek(self) -> CacheEntry[T] | None:
        """Текущая запись без обращения к fetch (свежая или нет)."""

        return await self._backend.get(self._key)

    async def invalidate(self) -> None:
        await self._backend.delete(self._key)

    def _is_fresh(self, entry: CacheEntry[T] | None) -> bool:
        return entry is not None and self._clock() - entry.fetched_at < self._ttl


def _build_redis_config(dsn: str | None) -> dict[str, Any]:
    if not dsn:
        raise RuntimeError("CACHE__BACKEND=redis, но redis_dsn не указан")
    parsed = urlparse(dsn)
    if parsed.scheme not in {"redis", "rediss"}:
        raise ValueError(f"Неподдерживаемая схема Redis DSN: {parsed.scheme}")
    db = 0
    if parsed.path and parsed.path != "/":
        try:
            db = int(parsed.path.lstrip("/"))
        except ValueError:
            db = 0
    return {
        "endpoint": parsed.hostname or "localhost",
        "port": parsed.port or 6379,
        "password": parsed.password,
        "db": db,
        "ssl": parsed.scheme == "rediss",
    }


__all__ = ["CacheEntry", "TimeBoxedCache", "configure_cache", "get_cache"]
