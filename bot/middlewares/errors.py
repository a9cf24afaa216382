"""Глобальный перехват и логирование ошибок."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject
from loguru import logger

from bot.services.errors import ToolInputError, Web3AssistantError

GENERIC_ERROR_TEXT = "Something went wrong while processing your request. Please try again later."


class ErrorsMiddleware(BaseMiddleware):
    """Логирует исключения и отвечает пользователю понятным текстом."""

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        try:
            return await handler(event, data)
        except ToolInputError as exc:
            logger.debug("Некорректный ввод: {error}", error=exc)
            await self._notify(event, f"⚠️ {exc}")
            return None
        except Web3AssistantError as exc:
            logger.warning("Инструмент вернул ошибку: {error}", error=exc)
            await self._notify(event, f"❌ {exc}")
            return None
        except Exception as exc:  # noqa: BLE001
            logger.exception("Ошибка при обработке апдейта: {error}", error=exc)
            await self._notify(event, GENERIC_ERROR_TEXT)
            return None

    @staticmethod
    async def _notify(event: TelegramObject, text: str) -> None:
        if isinstance(event, Message):
            await event.answer(text, parse_mode=None)
        elif isinstance(event, CallbackQuery):
            if event.message:
                await event.message.answer(text, parse_mode=None)
            await event.answer()


__all__ = ["ErrorsMiddleware", "GENERIC_ERROR_TEXT"]
