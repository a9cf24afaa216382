"""Простое антиспам middleware: инструменты ходят во внешние API с лимитами."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject

THROTTLED_TEXT = "Too many requests, please slow down."


class ThrottlingMiddleware(BaseMiddleware):
    """Ограничивает частоту команд от одного пользователя."""

    def __init__(self, rate_limit: float = 1.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.rate_limit = rate_limit
        self._clock = clock
        self._timestamps: dict[int, float] = {}
        self._lock = asyncio.Lock()

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        user_id = None
        if isinstance(event, (Message, CallbackQuery)):
            user_id = event.from_user.id if event.from_user else None
        if user_id is None:
            return await handler(event, data)

        async with self._lock:
            now = self._clock()
            last = self._timestamps.get(user_id)
            if last is not None and now - last < self.rate_limit:
                await self._notify_throttled(event)
                return None
            self._timestamps[user_id] = now

        return await handler(event, data)

    @staticmethod
    async def _notify_throttled(event: TelegramObject) -> None:
        if isinstance(event, Message):
            await event.answer(THROTTLED_TEXT)
        elif isinstance(event, CallbackQuery):
            await event.answer(THROTTLED_TEXT, show_alert=False)


__all__ = ["ThrottlingMiddleware"]
