"""Общие фейки: Solana RPC, aiohttp-сессия, часы и sleep без реального ожидания."""

from __future__ import annotations

import json
from collections import defaultdict, deque
from typing import Any

import pytest

WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
SYSTEM_PROGRAM = "11111111111111111111111111111111"
TOKEN_PROGRAM = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
WRAPPED_SOL = "So11111111111111111111111111111111111111112"


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeResponse:
    def __init__(self, status: int = 200, payload: Any = None, reason: str = "OK") -> None:
        self.status = status
        self._payload = payload
        self.reason = reason

    async def json(self, content_type: str | None = None) -> Any:
        return self._payload

    async def text(self) -> str:
        return json.dumps(self._payload)

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info) -> bool:
        return False


class FakeSession:
    """Отдаёт заранее заданные ответы по url (очередь; последний повторяется)."""

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self._routes: dict[str, deque] = {}
        for url, responses in (routes or {}).items():
            self.route(url, responses)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def route(self, url: str, responses: Any) -> None:
        if not isinstance(responses, list):
            responses = [responses]
        self._routes[url] = deque(responses)

    def calls_to(self, url: str) -> list[dict[str, Any]]:
        return [call for call in self.calls if call["url"] == url]

    def _next(self, url: str) -> FakeResponse:
        queue = self._routes[url]
        response = queue.popleft() if len(queue) > 1 else queue[0]
        if isinstance(response, BaseException):
            raise response
        return response

    def get(self, url: str, params=None, headers=None) -> FakeResponse:
        self.calls.append({"method": "GET", "url": url, "params": params, "headers": headers})
        return self._next(url)

    def post(self, url: str, json=None, headers=None) -> FakeResponse:
        self.calls.append({"method": "POST", "url": url, "json": json, "headers": headers})
        return self._next(url)

    async def close(self) -> None:
        self.closed = True


class FakeRpc:
    """Подмена SolanaRpcClient: значения или исключения по методу и аргументу."""

    def __init__(self) -> None:
        self.balances: dict[str, Any] = {}
        self.signatures: dict[str, Any] = {}
        self.transactions: dict[str, Any] = {}
        self.accounts: dict[str, Any] = {}
        self.largest_accounts: dict[str, Any] = {}
        self.calls: dict[str, int] = defaultdict(int)

    @staticmethod
    def _resolve(value: Any) -> Any:
        if isinstance(value, BaseException):
            raise value
        return value

    async def get_balance(self, address: str) -> int:
        self.calls["getBalance"] += 1
        return self._resolve(self.balances[address])

    async def get_signatures_for_address(self, address: str, limit: int) -> list[dict[str, Any]]:
        self.calls["getSignaturesForAddress"] += 1
        return self._resolve(self.signatures.get(address, []))

    async def get_transaction(self, signature: str) -> dict[str, Any] | None:
        self.calls["getTransaction"] += 1
        return self._resolve(self.transactions.get(signature))

    async def get_parsed_account_info(self, address: str) -> dict[str, Any] | None:
        self.calls["getAccountInfo"] += 1
        return self._resolve(self.accounts.get(address))

    async def get_token_largest_accounts(self, mint: str) -> list[dict[str, Any]]:
        self.calls["getTokenLargestAccounts"] += 1
        return self._resolve(self.largest_accounts.get(mint, []))


def make_rpc_transaction(
    *,
    logs: list[str] | None = None,
    pre: int = 5_000_000_000,
    post: int = 4_000_000_000,
    keys: list[str] | None = None,
    err: Any = None,
) -> dict[str, Any]:
    return {
        "transaction": {"message": {"accountKeys": keys or [WALLET, SYSTEM_PROGRAM]}},
        "meta": {
            "err": err,
            "logMessages": logs,
            "preBalances": [pre],
            "postBalances": [post],
        },
    }


def mint_account(mint_authority: str | None = None, freeze_authority: str | None = None) -> dict[str, Any]:
    return {
        "data": {
            "parsed": {
                "type": "mint",
                "info": {
                    "supply": "1000000000000",
                    "decimals": 6,
                    "mintAuthority": mint_authority,
                    "freezeAuthority": freeze_authority,
                    "isInitialized": True,
                },
            },
            "program": "spl-token",
        },
        "owner": TOKEN_PROGRAM,
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def rpc() -> FakeRpc:
    return FakeRpc()
