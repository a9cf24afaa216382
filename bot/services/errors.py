"""Иерархия ошибок Web3 Assistant.

Каждый класс соответствует одной ветке обработки:
валидация (не ретраим), временные сбои апстрима (ретраим),
not-found (не ретраим) и ошибки составных операций.
"""

from __future__ import annotations


class Web3AssistantError(RuntimeError):
    """Базовое исключение; сообщение можно показывать пользователю."""


class InvalidAddressError(Web3AssistantError, ValueError):
    """Адрес не проходит проверку формата Solana."""


class ToolInputError(Web3AssistantError, ValueError):
    """Некорректные параметры вызова инструмента."""


class UpstreamError(Web3AssistantError):
    """Временный сбой внешнего HTTP/RPC сервиса."""


class SolanaRpcError(UpstreamError):
    """JSON-RPC вернул HTTP-ошибку или поле error."""


class PriceFeedError(UpstreamError):
    """Провайдер цен вернул некорректный ответ."""


class RateLimitError(UpstreamError):
    """Провайдер ответил 429."""


class TokenNotFoundError(Web3AssistantError, LookupError):
    """Токен или аккаунт не найден."""


class ChainDataError(Web3AssistantError):
    """Ответ RPC не удалось разобрать."""


class TokenDataUnavailableError(Web3AssistantError):
    """Не удалось получить on-chain данные токена для риск-анализа."""


class ToolError(Web3AssistantError):
    """Ошибка инструмента с контекстом операции."""


__all__ = [
    "ChainDataError",
    "InvalidAddressError",
    "PriceFeedError",
    "RateLimitError",
    "SolanaRpcError",
    "TokenDataUnavailableError",
    "TokenNotFoundError",
    "ToolError",
    "ToolInputError",
    "UpstreamError",
    "Web3AssistantError",
]
