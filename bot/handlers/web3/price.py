"""Цена токена по свободному запросу: /price btc."""

from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.filters.command import CommandObject
from aiogram.types import Message

from bot.context import toolkit
from bot.utils.formatting import format_price

router = Router(name="web3-price")

USAGE = "Usage: /price &lt;token id, symbol or name&gt;, e.g. /price sol"


@router.message(Command("price"))
async def handle_price(message: Message, command: CommandObject | None = None) -> None:
    query = ((command.args if command else None) or "").strip()
    if not query:
        await message.answer(USAGE)
        return
    data = await toolkit.get_token_price(query)
    await message.answer(format_price(data))


__all__ = ["router"]
