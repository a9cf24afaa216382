"""Проверка токена на rug pull: /risk <mint>."""

from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.filters.command import CommandObject
from aiogram.types import Message

from bot.context import toolkit
from bot.utils.formatting import format_risk

router = Router(name="web3-risk")

USAGE = "Usage: /risk &lt;token mint address&gt;"


@router.message(Command("risk"))
async def handle_risk(message: Message, command: CommandObject | None = None) -> None:
    token_address = ((command.args if command else None) or "").strip()
    if not token_address:
        await message.answer(USAGE)
        return
    await message.answer("Analyzing token, this can take a few seconds...")
    data = await toolkit.analyze_token_risk(token_address)
    await message.answer(format_risk(data))


__all__ = ["router"]
