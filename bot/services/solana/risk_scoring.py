"""Risk Scoring Engine — эвристика риска SPL-токена.

Три независимых под-скора (концентрация держателей, паттерн транзакций,
ликвидность) считаются чистыми функциями над неизменяемым ChainSnapshot.
Каждый стартует со 100 и только уменьшается фиксированными штрафами,
итог — взвешенная сумма 0.4 / 0.3 / 0.3.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from typing import Sequence

from loguru import logger

from bot.utils.validators import ensure_solana_address
from bot.services.errors import TokenDataUnavailableError
from .chain_data import (
    STATUS_FAILED,
    TX_TOKEN_TRANSFER,
    ChainDataAccessor,
    TokenHolder,
    TokenSupplyInfo,
    TransactionRecord,
)

HOLDER_WEIGHT = 0.4
TRANSACTION_WEIGHT = 0.3
LIQUIDITY_WEIGHT = 0.3

# Контрактный риск пока не оценивается отдельно, поле оставлено для отчёта.
CONTRACT_RISK_SCORE = 100

SECONDS_PER_DAY = 86_400

TIER_THRESHOLDS: tuple[tuple[int, str], ...] = (
    (80, "EXTREMELY HIGH"),
    (60, "HIGH"),
    (40, "MEDIUM"),
)
TIER_FLOOR = "LOW"

WARNING_NO_HOLDERS = "Warning: Could not fetch holder distribution data"
WARNING_NO_TRANSACTIONS = "Warning: Could not fetch transaction data"


@dataclass(slots=True, frozen=True)
class RiskFactorReport:
    """Результат одной эвристики."""

    score: int
    factors: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class ChainSnapshot:
    """Всё, что нужно скорингу, собранное заранее одним проходом по RPC."""

    holders: tuple[TokenHolder, ...] = ()
    transactions: tuple[TransactionRecord, ...] = ()
    supply: TokenSupplyInfo | None = None
    supply_error: str | None = None


@dataclass(slots=True, frozen=True)
class RiskAssessment:
    """Агрегированный отчёт по токену."""

    token_address: str
    overall_score: int
    tier: str
    holder_concentration_score: int
    transaction_pattern_score: int
    liquidity_score: int
    factors: tuple[str, ...]
    contract_risk_score: int = CONTRACT_RISK_SCORE
    details: dict[str, RiskFactorReport] = field(default_factory=dict, compare=False)

    @property
    def summary(self) -> str:
        header = (
            f"Token Risk Analysis ({self.overall_score}% risk score - {self.tier} RISK):"
        )
        if not self.factors:
            return f"{header}\nNo significant risk factors detected"
        return f"{header}\n\nRisk Factors:\n- " + "\n- ".join(self.factors)


def _clamp(score: int) -> int:
    return max(0, score)


def score_holder_concentration(holders: Sequence[TokenHolder]) -> RiskFactorReport:
    if not holders:
        return RiskFactorReport(0, ("No holder data available",))

    score = 100
    factors: list[str] = []

    top = holders[0].percentage
    if top > 50:
        score -= 30
        factors.append(f"Extreme concentration: Top holder owns {top:.2f}%")
    elif top > 30:
        score -= 20
        factors.append(f"High concentration: Top holder owns {top:.2f}%")

    top10 = sum(holder.percentage for holder in holders[:10])
    if top10 > 90:
        score -= 25
        factors.append(f"Extreme top 10 concentration: {top10:.2f}%")
    elif top10 > 70:
        score -= 15
        factors.append(f"High top 10 concentration: {top10:.2f}%")

    return RiskFactorReport(_clamp(score), tuple(factors))


def observed_time_span(transactions: Sequence[TransactionRecord]) -> int:
    """Секунды между самой новой и самой старой транзакцией выборки.

    Выборка упорядочена от новых к старым. Если у крайних транзакций нет
    blockTime, интервал считается неизвестным и равен 0.
    """

    if len(transactions) < 2:
        return 0
    newest = transactions[0].timestamp
    oldest = transactions[-1].timestamp
    if newest is None or oldest is None:
        return 0
    return newest - oldest


def score_transaction_pattern(transactions: Sequence[TransactionRecord]) -> RiskFactorReport:
    try:
        return _score_transaction_pattern(transactions)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Анализ транзакций упал: {error}", error=exc)
        return RiskFactorReport(0, ("Error analyzing transactions",))


def _score_transaction_pattern(transactions: Sequence[TransactionRecord]) -> RiskFactorReport:
    score = 100
    factors: list[str] = []
    total = len(transactions)

    failed = sum(1 for tx in transactions if tx.status == STATUS_FAILED)
    if failed > total * 0.2:
        score -= 20
        factors.append("High rate of failed transactions")

    transfers = sum(1 for tx in transactions if tx.type == TX_TOKEN_TRANSFER)
    if transfers > total * 0.8:
        score -= 15
        factors.append("Suspicious transaction pattern: High concentration of transfers")

    span = observed_time_span(transactions)
    if span > 0 and total / span > 0.1:
        score -= 10
        factors.append("Unusual transaction frequency")

    return RiskFactorReport(_clamp(score), tuple(factors))


def transactions_per_day(transactions: Sequence[TransactionRecord]) -> float:
    """Частота транзакций в сутки; при нулевом или неизвестном интервале возвращает 0."""

    span = observed_time_span(transactions)
    if span <= 0:
        return 0.0
    return len(transactions) / (span / SECONDS_PER_DAY)


def score_liquidity(
    transactions: Sequence[TransactionRecord],
    supply: TokenSupplyInfo | None,
    supply_error: str | None = None,
) -> RiskFactorReport:
    if supply is None:
        reason = supply_error or "token supply information is unavailable"
        return RiskFactorReport(0, (f"Error analyzing on-chain data: {reason}",))

    score = 100
    factors: list[str] = []

    avg_volume = sum(abs(tx.amount) for tx in transactions) / (len(transactions) or 1)
    if avg_volume < 0.1:
        score -= 20
        factors.append("Very low average transaction volume")
    elif avg_volume < 1:
        score -= 10
        factors.append("Low average transaction volume")

    if transactions:
        per_day = transactions_per_day(transactions)
        if per_day < 1:
            score -= 15
            factors.append("Very low transaction frequency (less than 1 tx per day)")
        elif per_day < 10:
            score -= 5
            factors.append("Low transaction frequency")

    if supply.mint_authority:
        score -= 25
        factors.append("Active mint authority - token supply can be increased")

    if supply.freeze_authority:
        score -= 15
        factors.append("Active freeze authority - accounts can be frozen")

    programs = {program for tx in transactions for program in tx.program_ids}
    if len(programs) < 3:
        score -= 10
        factors.append("Limited program interaction diversity")

    return RiskFactorReport(_clamp(score), tuple(factors))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def risk_tier(score: int) -> str:
    for threshold, tier in TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return TIER_FLOOR


def combine_reports(
    token_address: str,
    holder: RiskFactorReport,
    transaction: RiskFactorReport,
    liquidity: RiskFactorReport,
    *,
    holders_missing: bool,
) -> RiskAssessment:
    overall = round_half_up(
        holder.score * HOLDER_WEIGHT
        + transaction.score * TRANSACTION_WEIGHT
        + liquidity.score * LIQUIDITY_WEIGHT
    )
    factors = [*holder.factors, *transaction.factors, *liquidity.factors]
    if holders_missing:
        factors.append(WARNING_NO_HOLDERS)
    if transaction.score == 0:
        factors.append(WARNING_NO_TRANSACTIONS)
    return RiskAssessment(
        token_address=token_address,
        overall_score=overall,
        tier=risk_tier(overall),
        holder_concentration_score=holder.score,
        transaction_pattern_score=transaction.score,
        liquidity_score=liquidity.score,
        factors=tuple(factors),
        details={"holders": holder, "transactions": transaction, "liquidity": liquidity},
    )


def assess_snapshot(token_address: str, snapshot: ChainSnapshot) -> RiskAssessment:
    """Считает полный отчёт по уже собранным данным (без сети)."""

    holder = score_holder_concentration(snapshot.holders)
    transaction = score_transaction_pattern(snapshot.transactions)
    liquidity = score_liquidity(snapshot.transactions, snapshot.supply, snapshot.supply_error)
    return combine_reports(
        token_address,
        holder,
        transaction,
        liquidity,
        holders_missing=not snapshot.holders,
    )


class TokenRiskAnalyzer:
    """Собирает ChainSnapshot через ChainDataAccessor и прогоняет скоринг."""

    def __init__(self, chain: ChainDataAccessor, *, sample_size: int = 100) -> None:
        self._chain = chain
        self._sample_size = sample_size

    async def collect_snapshot(self, token_address: str) -> ChainSnapshot:
        token_address = ensure_solana_address(token_address, "token address")
        try:
            supply = await self._chain.get_token_supply_info(token_address)
        except Exception as exc:
            logger.info("Риск-анализ {mint}: on-chain данные недоступны ({error})", mint=token_address, error=exc)
            raise TokenDataUnavailableError(
                "Unable to fetch token data. This could be due to:\n"
                "1. Invalid token address\n"
                "2. Network connectivity issues\n"
                "3. Token no longer exists\n"
                "Please verify the token address and try again."
            ) from exc
        # Держатели и транзакции независимы, запрашиваем параллельно.
        holders, transactions = await asyncio.gather(
            self._chain.get_holder_distribution(token_address),
            self._chain.get_recent_transactions(token_address, self._sample_size),
        )
        return ChainSnapshot(
            holders=tuple(holders),
            transactions=tuple(transactions),
            supply=supply,
        )

    async def assess(self, token_address: str) -> RiskAssessment:
        snapshot = await self.collect_snapshot(token_address)
        assessment = assess_snapshot(token_address.strip(), snapshot)
        logger.info(
            "Риск-анализ {mint}: {score} ({tier}), факторов {count}",
            mint=assessment.token_address,
            score=assessment.overall_score,
            tier=assessment.tier,
            count=len(assessment.factors),
        )
        return assessment


__all__ = [
    "ChainSnapshot",
    "RiskAssessment",
    "RiskFactorReport",
    "TokenRiskAnalyzer",
    "assess_snapshot",
    "combine_reports",
    "observed_time_span",
    "risk_tier",
    "round_half_up",
    "score_holder_concentration",
    "score_liquidity",
    "score_transaction_pattern",
    "transactions_per_day",
]
