"""Повтор асинхронных операций с линейным backoff."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from loguru import logger

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Параметры повторов, которые сервисы передают в with_retry."""

    max_attempts: int = 3
    base_delay: float = 1.0
    retry_on: tuple[type[BaseException], ...] = (Exception,)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    label: str = "operation",
    sleep: SleepFunc = asyncio.sleep,
) -> T:
    """Выполняет operation до max_attempts раз.

    Между попытками ждём base_delay * номер_попытки секунд. Исключения, не
    входящие в retry_on, пробрасываются сразу. После последней неудачной
    попытки пробрасывается ошибка именно этой попытки.
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    attempt = 1
    while True:
        try:
            return await operation()
        except retry_on as exc:
            if attempt >= max_attempts:
                raise
            delay = base_delay * attempt
            logger.warning(
                "{label}: попытка {attempt}/{total} упала ({error}), повтор через {delay}s",
                label=label,
                attempt=attempt,
                total=max_attempts,
                error=exc,
                delay=delay,
            )
            await sleep(delay)
            attempt += 1


async def run_with_policy(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    label: str = "operation",
    sleep: SleepFunc = asyncio.sleep,
) -> T:
    """Обёртка with_retry для сервисов, хранящих RetryPolicy."""

    return await with_retry(
        operation,
        max_attempts=policy.max_attempts,
        base_delay=policy.base_delay,
        retry_on=policy.retry_on,
        label=label,
        sleep=sleep,
    )


__all__ = ["RetryPolicy", "SleepFunc", "run_with_policy", "with_retry"]
