"""Активность кошелька: /wallet <address> [24h|7d|30d]."""

from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.filters.command import CommandObject
from aiogram.types import Message

from bot.context import toolkit
from bot.utils.formatting import format_activity

router = Router(name="web3-wallet")

USAGE = "Usage: /wallet &lt;solana address&gt; [24h|7d|30d]"


@router.message(Command("wallet"))
async def handle_wallet(message: Message, command: CommandObject | None = None) -> None:
    args = ((command.args if command else None) or "").split()
    if not args:
        await message.answer(USAGE)
        return
    time_range = args[1] if len(args) > 1 else "24h"
    data = await toolkit.get_address_activity(args[0], time_range)
    await message.answer(format_activity(data))


__all__ = ["router"]
