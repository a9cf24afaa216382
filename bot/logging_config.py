"""Настройка loguru для продакшена."""

from __future__ import annotations

import sys
from loguru import logger


def setup_logging(json: bool = False, level: str = "DEBUG") -> None:
    logger.remove()
    fmt = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}"
    if json:
        # serialize=True отдаёт готовый JSON на каждую запись
        logger.add(sys.stdout, level=level, serialize=True, backtrace=False, enqueue=True)
        return
    logger.add(
        sys.stdout,
        format=fmt,
        level=level,
        colorize=True,
        backtrace=False,
        enqueue=True,
    )


__all__ = ["setup_logging"]
