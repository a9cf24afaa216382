"""Прямой доступ к Solana JSON-RPC.

SolanaRpcClient — тонкий aiohttp-клиент поверх HTTP RPC (Alchemy, Helius,
публичный mainnet-beta). Он ничего не ретраит и не нормализует: этим
занимается ChainDataAccessor, которому нужен только rpc_call и набор
типизированных методов ниже.
"""

from __future__ import annotations

import itertools
from typing import Any

import aiohttp
from loguru import logger

from bot.services.errors import SolanaRpcError


class SolanaRpcClient:
    """Лёгкий JSON-RPC клиент с одной долгоживущей HTTP-сессией."""

    def __init__(
        self,
        rpc_endpoint: str,
        *,
        commitment: str = "confirmed",
        request_timeout: float = 10,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._rpc_endpoint = rpc_endpoint
        self._commitment = commitment
        self._timeout = request_timeout
        self._session = session
        self._ids = itertools.count(1)

    @property
    def commitment(self) -> str:
        return self._commitment

    async def start(self) -> None:
        """Инициализирует HTTP session."""

        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
        logger.info("SolanaRpcClient готов: RPC {rpc}", rpc=_mask_endpoint(self._rpc_endpoint))

    async def close(self) -> None:
        """Чисто закрывает соединение."""

        if self._session and not self._session.closed:
            await self._session.close()

    async def rpc_call(self, method: str, params: list[Any] | None = None) -> Any:
        """Выполняет JSON-RPC вызов и возвращает поле result."""

        if self._session is None:
            raise SolanaRpcError("HTTP-сессия не инициализирована, вызовите start()")
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        try:
            async with self._session.post(self._rpc_endpoint, json=payload) as resp:
                if resp.status >= 400:
                    text = await resp.text()
                    raise SolanaRpcError(f"RPC {method} failed with HTTP {resp.status}: {text[:200]}")
                data = await resp.json(content_type=None)
        except aiohttp.ClientError as exc:
            raise SolanaRpcError(f"RPC {method} transport error: {exc}") from exc
        if not isinstance(data, dict):
            raise SolanaRpcError(f"RPC {method} returned a non-object body")
        if data.get("error"):
            raise SolanaRpcError(f"RPC error in {method}: {data['error']}")
        return data.get("result")

    async def get_balance(self, address: str) -> int:
        """Баланс в лампортах."""

        result = await self.rpc_call("getBalance", [address, {"commitment": self._commitment}])
        return int((result or {}).get("value", 0))

    async def get_signatures_for_address(self, address: str, limit: int) -> list[dict[str, Any]]:
        """Последние подписи, от новых к старым."""

        result = await self.rpc_call(
            "getSignaturesForAddress",
            [address, {"limit": limit, "commitment": self._commitment}],
        )
        return list(result or [])

    async def get_transaction(self, signature: str) -> dict[str, Any] | None:
        """Транзакция по подписи или None, если узел её не знает."""

        return await self.rpc_call(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "json",
                    "commitment": self._commitment,
                    "maxSupportedTransactionVersion": 0,
                },
            ],
        )

    async def get_parsed_account_info(self, address: str) -> dict[str, Any] | None:
        """Аккаунт в jsonParsed кодировке (value может быть None)."""

        result = await self.rpc_call(
            "getAccountInfo",
            [address, {"encoding": "jsonParsed", "commitment": self._commitment}],
        )
        return (result or {}).get("value")

    async def get_token_largest_accounts(self, mint: str) -> list[dict[str, Any]]:
        """Крупнейшие аккаунты токена (обычно top-20)."""

        result = await self.rpc_call(
            "getTokenLargestAccounts",
            [mint, {"commitment": self._commitment}],
        )
        if result is None or result.get("value") is None:
            raise SolanaRpcError("No token accounts found")
        return list(result["value"])


def _mask_endpoint(endpoint: str) -> str:
    """Не пишем API-ключ провайдера в логи."""

    head, sep, _ = endpoint.rpartition("/v2/")
    return f"{head}{sep}***" if sep else endpoint


__all__ = ["SolanaRpcClient"]
