"""Базовые хендлеры Web3 Assistant (старт, справка, кнопки меню)."""

from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from bot.context import settings
from bot.keyboards.reply.main_menu import build_main_menu_keyboard, get_command_by_button_text
from bot.utils.formatting import format_greeting

router = Router(name="core-common")

HELP_TEXT = (
    "<b>Commands</b>\n"
    "/price &lt;token&gt; — spot price and 24h/7d change (btc, ethereum, Solana...)\n"
    "/wallet &lt;address&gt; [24h|7d|30d] — SOL balance and recent activity\n"
    "/news [all|defi|nft|web3|trading] [1-20] [mobile|detailed] — crypto news digest\n"
    "/risk &lt;mint&gt; — rug pull / fraud risk report for an SPL token"
)


@router.message(CommandStart(ignore_case=True))
async def handle_start(message: Message) -> None:
    """Приветствие."""

    name = message.from_user.full_name if message.from_user else None
    await message.answer(
        f"{format_greeting(name, settings.telegram.app_name)}\n\n{HELP_TEXT}",
        reply_markup=build_main_menu_keyboard(),
    )


@router.message(Command("help"))
async def handle_help(message: Message) -> None:
    """Справка по боту."""

    await message.answer(HELP_TEXT, reply_markup=build_main_menu_keyboard())


@router.message(F.text)
async def handle_text_buttons(message: Message) -> None:
    """Обрабатывает нажатия на кнопки клавиатуры (текстовые)."""

    command = get_command_by_button_text(message.text or "")
    if command is None:
        # Это не кнопка меню, пропускаем
        return

    if command == "/price":
        from bot.handlers.web3.price import handle_price
        await handle_price(message)
    elif command == "/wallet":
        from bot.handlers.web3.wallet import handle_wallet
        await handle_wallet(message)
    elif command == "/news":
        from bot.handlers.web3.news import handle_news
        await handle_news(message)
    elif command == "/risk":
        from bot.handlers.web3.risk import handle_risk
        await handle_risk(message)
    elif command == "/help":
        await handle_help(message)


__all__ = ["router"]
