"""Chain Data Accessor: нормализованные данные Solana для инструментов и скоринга.

Каждый метод независимо ретраится через with_retry. Политика деградации
разная и задана явно:

* get_balance: ошибка RPC превращается в BalanceResult(degraded);
* get_recent_transactions: недоступная транзакция остаётся в выборке как
  Unknown/Failed, недоступный список подписей даёт пустую выборку;
* get_token_supply_info: ошибки пробрасываются (на них опирается скоринг);
* get_holder_distribution: ошибка RPC даёт пустой список.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal, Protocol, TypeVar

from loguru import logger

from bot.services.core.retry import RetryPolicy, SleepFunc, run_with_policy
from bot.services.errors import ChainDataError, TokenNotFoundError
from bot.utils.validators import ensure_solana_address

T = TypeVar("T")

LAMPORTS_PER_SOL = 1_000_000_000

TX_DEFI = "DeFi"
TX_NFT = "NFT"
TX_TOKEN_TRANSFER = "Token Transfer"
TX_UNKNOWN = "Unknown"

STATUS_SUCCESS = "Success"
STATUS_FAILED = "Failed"

# Порядок важен: первая сработавшая группа ключевых слов определяет тип.
_CLASSIFICATION_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (TX_DEFI, ("swap", "liquidity")),
    (TX_NFT, ("nft", "mint")),
    (TX_TOKEN_TRANSFER, ("token", "transfer")),
)


class SolanaRpc(Protocol):
    async def get_balance(self, address: str) -> int: ...

    async def get_signatures_for_address(self, address: str, limit: int) -> list[dict[str, Any]]: ...

    async def get_transaction(self, signature: str) -> dict[str, Any] | None: ...

    async def get_parsed_account_info(self, address: str) -> dict[str, Any] | None: ...

    async def get_token_largest_accounts(self, mint: str) -> list[dict[str, Any]]: ...


@dataclass(slots=True, frozen=True)
class BalanceResult:
    """Баланс в SOL; degraded означает «RPC не ответил, показан 0»."""

    value: float
    status: Literal["ok", "degraded"] = "ok"
    error: str | None = None

    @property
    def is_degraded(self) -> bool:
        return self.status == "degraded"


@dataclass(slots=True, frozen=True)
class TransactionRecord:
    """Одна транзакция из истории адреса."""

    signature: str
    timestamp: int | None
    type: str
    amount: float
    program_ids: tuple[str, ...]
    status: str


@dataclass(slots=True, frozen=True)
class TokenSupplyInfo:
    """Эмиссия и полномочия mint-аккаунта."""

    supply: int
    decimals: int
    mint_authority: str | None
    freeze_authority: str | None


@dataclass(slots=True, frozen=True)
class TokenHolder:
    """Держатель токена; percentage считается от суммы выданных RPC балансов."""

    address: str
    balance: int
    percentage: float


def classify_transaction(log_messages: list[str] | None) -> str:
    """Определяет тип транзакции по тексту логов программ."""

    if not log_messages:
        return TX_UNKNOWN
    logs = " ".join(log_messages).lower()
    for tx_type, keywords in _CLASSIFICATION_RULES:
        if any(keyword in logs for keyword in keywords):
            return tx_type
    return TX_UNKNOWN


def parse_transaction(
    signature_info: dict[str, Any],
    tx: dict[str, Any] | None,
    owner: str,
) -> TransactionRecord:
    """Собирает TransactionRecord из ответа getTransaction."""

    signature = signature_info["signature"]
    timestamp = signature_info.get("blockTime")
    if not tx:
        return _failed_record(signature, timestamp)

    message = (tx.get("transaction") or {}).get("message") or {}
    program_ids = tuple(
        key for key in _account_keys(message) if key != owner
    )
    meta = tx.get("meta") or {}
    post = meta.get("postBalances") or []
    pre = meta.get("preBalances") or []
    amount = 0.0
    if post and post[0] and pre:
        amount = (post[0] - pre[0]) / LAMPORTS_PER_SOL
    return TransactionRecord(
        signature=signature,
        timestamp=timestamp,
        type=classify_transaction(meta.get("logMessages")),
        amount=amount,
        program_ids=program_ids,
        status=STATUS_FAILED if meta.get("err") else STATUS_SUCCESS,
    )


def build_holders(accounts: list[dict[str, Any]]) -> list[TokenHolder]:
    """Переводит getTokenLargestAccounts в список держателей с долями."""

    balances = [(str(acc["address"]), int(acc.get("amount") or 0)) for acc in accounts]
    total = sum(balance for _, balance in balances)
    return [
        TokenHolder(
            address=address,
            balance=balance,
            percentage=(balance / total) * 100 if total else 0.0,
        )
        for address, balance in balances
    ]


class ChainDataAccessor:
    """Доступ к балансам, истории, эмиссии и держателям через Solana RPC."""

    def __init__(
        self,
        client: SolanaRpc,
        *,
        retry_policy: RetryPolicy | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._client = client
        self._retry = retry_policy or RetryPolicy()
        self._sleep = sleep

    async def get_balance(self, address: str) -> BalanceResult:
        address = ensure_solana_address(address)
        try:
            lamports = await self._call(lambda: self._client.get_balance(address), "getBalance")
        except Exception as exc:  # noqa: BLE001
            logger.warning("Баланс {addr} недоступен, показываем 0: {error}", addr=address, error=exc)
            return BalanceResult(value=0.0, status="degraded", error=str(exc))
        return BalanceResult(value=lamports / LAMPORTS_PER_SOL)

    async def get_recent_transactions(self, address: str, limit: int = 10) -> list[TransactionRecord]:
        address = ensure_solana_address(address)
        try:
            signatures = await self._call(
                lambda: self._client.get_signatures_for_address(address, limit),
                "getSignaturesForAddress",
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("История {addr} недоступна: {error}", addr=address, error=exc)
            return []
        signatures = signatures[:limit]
        records = await asyncio.gather(
            *(self._fetch_transaction(sig, address) for sig in signatures)
        )
        return list(records)

    async def get_token_supply_info(self, mint_address: str) -> TokenSupplyInfo:
        mint_address = ensure_solana_address(mint_address, "token address")
        account = await self._call(
            lambda: self._client.get_parsed_account_info(mint_address),
            "getAccountInfo",
        )
        if not account or not account.get("data"):
            raise TokenNotFoundError("Token account not found")
        data = account["data"]
        parsed = data.get("parsed") if isinstance(data, dict) else None
        info = parsed.get("info") if isinstance(parsed, dict) else None
        if not isinstance(info, dict):
            raise ChainDataError("Invalid token data format")
        try:
            return TokenSupplyInfo(
                supply=int(info["supply"]),
                decimals=int(info["decimals"]),
                mint_authority=info.get("mintAuthority"),
                freeze_authority=info.get("freezeAuthority"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ChainDataError(f"Invalid token data format: {exc}") from exc

    async def get_holder_distribution(self, mint_address: str) -> list[TokenHolder]:
        mint_address = ensure_solana_address(mint_address, "token address")
        try:
            accounts = await self._call(
                lambda: self._client.get_token_largest_accounts(mint_address),
                "getTokenLargestAccounts",
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Держатели {mint} недоступны: {error}", mint=mint_address, error=exc)
            return []
        return build_holders(accounts)

    async def _fetch_transaction(self, signature_info: dict[str, Any], owner: str) -> TransactionRecord:
        signature = signature_info["signature"]
        try:
            tx = await self._call(lambda: self._client.get_transaction(signature), "getTransaction")
        except Exception as exc:  # noqa: BLE001
            logger.debug("Транзакция {sig} недоступна: {error}", sig=signature, error=exc)
            return _failed_record(signature, signature_info.get("blockTime"))
        return parse_transaction(signature_info, tx, owner)

    async def _call(self, operation: Callable[[], Awaitable[T]], label: str) -> T:
        return await run_with_policy(operation, self._retry, label=label, sleep=self._sleep)


def _account_keys(message: dict[str, Any]) -> list[str]:
    keys = message.get("accountKeys") or message.get("staticAccountKeys") or []
    # jsonParsed отдаёт объекты {"pubkey": ...}, json — строки
    return [key["pubkey"] if isinstance(key, dict) else str(key) for key in keys]


def _failed_record(signature: str, timestamp: int | None) -> TransactionRecord:
    return TransactionRecord(
        signature=signature,
        timestamp=timestamp,
        type=TX_UNKNOWN,
        amount=0.0,
        program_ids=(),
        status=STATUS_FAILED,
    )


__all__ = [
    "BalanceResult",
    "ChainDataAccessor",
    "LAMPORTS_PER_SOL",
    "SolanaRpc",
    "TokenHolder",
    "TokenSupplyInfo",
    "TransactionRecord",
    "build_holders",
    "classify_transaction",
    "parse_transaction",
]
