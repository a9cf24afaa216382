"""Entry point for Web3 Assistant bot."""

from __future__ import annotations

import asyncio

from loguru import logger

from .loader import bot, dp, on_shutdown, on_startup
from .logging_config import setup_logging
from .context import settings


async def main() -> None:
    setup_logging(json=settings.log_json or settings.is_production, level=settings.log_level)
    logger.info("Запуск aiogram polling...")
    await on_startup(dp)
    try:
        await dp.start_polling(bot)
    finally:
        await on_shutdown(dp)
    logger.info("Polling завершён (dp.start_polling вернул управление)")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
