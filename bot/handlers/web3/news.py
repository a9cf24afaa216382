"""Дайджест новостей: /news [category] [limit] [mobile|detailed]."""

from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.filters.command import CommandObject
from aiogram.types import Message

from bot.context import toolkit
from bot.utils.formatting import format_news

router = Router(name="web3-news")

FORMATS = {"mobile", "detailed"}


@router.message(Command("news"))
async def handle_news(message: Message, command: CommandObject | None = None) -> None:
    category, limit, fmt = "all", 10, "mobile"
    for arg in ((command.args if command else None) or "").lower().split():
        if arg.isdigit():
            limit = int(arg)
        elif arg in FORMATS:
            fmt = arg
        else:
            category = arg
    data = await toolkit.get_latest_news(category=category, limit=limit, format=fmt)
    await message.answer(format_news(data), disable_web_page_preview=True)


__all__ = ["router"]
