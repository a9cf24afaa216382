"""Loader Web3 Assistant — инициализация клиентов и middleware."""

from __future__ import annotations

from aiogram import Dispatcher
from loguru import logger

from .context import (
    bot,
    dp,
    news_aggregator,
    price_feed,
    settings,
    solana_client,
)
from .handlers import register_routers
from .middlewares import ErrorsMiddleware, ThrottlingMiddleware

register_routers(dp)


async def on_startup(dispatcher: Dispatcher) -> None:
    """Поднимает HTTP-сессии и регистрирует middlewares."""

    logger.info("Web3 Assistant стартует в окружении {env}", env=settings.environment)
    logger.debug("on_startup: start solana rpc client")
    await solana_client.start()
    logger.debug("on_startup: start price feed")
    await price_feed.start()
    logger.debug("on_startup: start news aggregator")
    await news_aggregator.start()
    logger.debug("on_startup: setup middlewares")
    _setup_middlewares(dispatcher)
    logger.info("on_startup завершён, бот готов принимать апдейты")


async def on_shutdown(dispatcher: Dispatcher) -> None:
    """Мягкое выключение сервиса."""

    await news_aggregator.close()
    await price_feed.close()
    await solana_client.close()
    logger.info("Web3 Assistant корректно остановлен")


def _setup_middlewares(dispatcher: Dispatcher) -> None:
    """Подключает throttling/error middlewares."""

    throttling_mw = ThrottlingMiddleware(rate_limit=settings.telegram.throttle_rate_sec)
    errors_mw = ErrorsMiddleware()

    dispatcher.message.middleware(throttling_mw)
    dispatcher.callback_query.middleware(throttling_mw)

    dispatcher.message.middleware(errors_mw)
    dispatcher.callback_query.middleware(errors_mw)

    logger.debug("Middleware стек активирован")


__all__ = ["bot", "dp", "on_shutdown", "on_startup"]
