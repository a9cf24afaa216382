"""Рендеринг ответов инструментов в текст для Telegram (HTML parse mode)."""

from __future__ import annotations

from html import escape
from typing import Any


def _signed(value: float) -> str:
    return f"{value:+.2f}%"


def format_greeting(full_name: str | None, app_name: str) -> str:
    """Первая строка приветствия; имя пользователя экранируется."""

    return f"Hi, {escape(full_name or 'there')}! I am {escape(app_name)}."


def format_price(data: dict[str, Any]) -> str:
    return (
        f"<b>{escape(data['name'])}</b> ({escape(data['symbol'])})\n"
        f"Price: ${data['price']:,.6g}\n"
        f"24h: {_signed(data['priceChange24h'])} | 7d: {_signed(data['priceChange7d'])}\n"
        f"24h volume: ${data['volume24h']:,.0f}"
    )


def format_activity(data: dict[str, Any]) -> str:
    types = data["transactionTypes"]
    balance = f"{data['totalBalance']:.4f} SOL"
    if data.get("balanceStatus") == "degraded":
        balance += " (balance unavailable)"
    lines = [
        f"<b>Wallet</b> <code>{escape(data['walletAddress'])}</code>",
        f"Balance: {balance}",
        f"Transactions ({data['timeRange']}): {data['transactionCount']}",
        (
            f"DeFi: {types['defi']} | NFT: {types['nft']} | "
            f"Token: {types['token']} | Unknown: {types['unknown']}"
        ),
    ]
    if data["recentActivity"]:
        lines.append("")
        lines.append("<b>Recent activity</b>")
        for item in data["recentActivity"]:
            lines.append(
                f"• {escape(item['type'])} {item['amount']:+.4f} SOL "
                f"[{item['status']}] {item['timestamp']}"
            )
    return "\n".join(lines)


def format_news(data: dict[str, Any]) -> str:
    if not data["articles"]:
        return "No news found for this category right now."
    detailed = data.get("format") == "detailed"
    lines = [f"<b>Crypto news</b> ({escape(data['category'])})"]
    for idx, article in enumerate(data["articles"], start=1):
        lines.append(
            f"{idx}. <a href=\"{escape(article['url'], quote=True)}\">{escape(article['title'])}</a>"
            f" — {escape(article['source'])}"
        )
        if detailed and article["summary"]:
            lines.append(f"   {escape(article['summary'])}")
    if data["trendingTopics"]:
        lines.append("")
        lines.append("Trending: " + ", ".join(escape(topic) for topic in data["trendingTopics"]))
    return "\n".join(lines)


def format_risk(data: dict[str, Any]) -> str:
    metrics = data["detailedMetrics"]
    lines = [
        f"<b>Token</b> <code>{escape(data['tokenAddress'])}</code>",
        f"Risk score: {data['riskScore']} ({escape(data['riskLevel'])})",
        (
            f"Holders: {metrics['holderConcentrationScore']} | "
            f"Transactions: {metrics['transactionPatternScore']} | "
            f"Liquidity: {metrics['liquidityScore']}"
        ),
    ]
    if metrics["riskFactors"]:
        lines.append("")
        lines.extend(f"• {escape(factor)}" for factor in metrics["riskFactors"])
    else:
        lines.append("No significant risk factors detected")
    return "\n".join(lines)


__all__ = ["format_activity", "format_greeting", "format_news", "format_price", "format_risk"]
