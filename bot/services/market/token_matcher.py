"""Поиск токена в справочнике по свободному запросу (id, тикер или имя)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence


@dataclass(slots=True, frozen=True)
class ReferenceToken:
    """Запись справочника токенов."""

    id: str
    symbol: str
    name: str

    @classmethod
    def from_api(cls, item: dict) -> "ReferenceToken":
        return cls(
            id=str(item["id"]),
            symbol=str(item.get("symbol") or ""),
            name=str(item.get("name") or ""),
        )


# Тикер -> id справочника для самых популярных монет.
COMMON_ALIASES: dict[str, str] = {
    "btc": "bitcoin",
    "eth": "ethereum",
    "usdt": "tether",
    "usdc": "usd-coin",
    "bnb": "binancecoin",
    "sol": "solana",
    "ada": "cardano",
    "dot": "polkadot",
    "link": "chainlink",
    "ltc": "litecoin",
    "xrp": "ripple",
    "doge": "dogecoin",
    "shib": "shiba-inu",
    "matic": "matic-network",
    "avax": "avalanche-2",
    "uni": "uniswap",
    "atom": "cosmos",
    "etc": "ethereum-classic",
    "xlm": "stellar",
    "vet": "vechain",
}

ID_MATCH_WEIGHT = 3
SYMBOL_MATCH_WEIGHT = 2
NAME_MATCH_WEIGHT = 1


def normalize_query(query: str) -> str:
    return query.strip().lower()


def fuzzy_score(token: ReferenceToken, needle: str) -> int:
    """Сумма весов: вхождение в id (3), в тикер (2), в имя (1)."""

    score = 0
    if needle in token.id:
        score += ID_MATCH_WEIGHT
    if needle in token.symbol.lower():
        score += SYMBOL_MATCH_WEIGHT
    if needle in token.name.lower():
        score += NAME_MATCH_WEIGHT
    return score


def _first(tokens: Iterable[ReferenceToken], predicate) -> ReferenceToken | None:
    return next((token for token in tokens if predicate(token)), None)


def match_token(query: str, catalog: Sequence[ReferenceToken]) -> ReferenceToken | None:
    """Находит токен: алиас -> точный id -> тикер -> имя -> нечёткий поиск.

    Точное совпадение всегда важнее частичного; среди частичных побеждает
    наибольший суммарный вес, при равенстве первый в порядке справочника.
    """

    needle = normalize_query(query)
    if not needle:
        return None

    alias = COMMON_ALIASES.get(needle)
    if alias:
        mapped = _first(catalog, lambda token: token.id == alias)
        if mapped:
            return mapped

    for predicate in (
        lambda token: token.id == needle,
        lambda token: token.symbol.lower() == needle,
        lambda token: token.name.lower() == needle,
    ):
        found = _first(catalog, predicate)
        if found:
            return found

    best: ReferenceToken | None = None
    best_score = 0
    for token in catalog:
        score = fuzzy_score(token, needle)
        if score > best_score:
            best, best_score = token, score
    return best


__all__ = [
    "COMMON_ALIASES",
    "ReferenceToken",
    "fuzzy_score",
    "match_token",
    "normalize_query",
]
