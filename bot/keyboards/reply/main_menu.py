"""Основная клавиатура Web3 Assistant."""

from __future__ import annotations

from aiogram.types import KeyboardButton, ReplyKeyboardMarkup

# Текст кнопки -> команда
BUTTON_COMMANDS = {
    "💰 Price": "/price",
    "👛 Wallet": "/wallet",
    "📰 News": "/news",
    "🛡 Risk check": "/risk",
    "❓ Help": "/help",
}


def build_main_menu_keyboard() -> ReplyKeyboardMarkup:
    """Возвращает reply-клавиатуру с кнопками инструментов."""

    labels = list(BUTTON_COMMANDS)
    buttons = [
        [KeyboardButton(text=labels[0]), KeyboardButton(text=labels[1])],
        [KeyboardButton(text=labels[2]), KeyboardButton(text=labels[3])],
        [KeyboardButton(text=labels[4])],
    ]
    return ReplyKeyboardMarkup(keyboard=buttons, resize_keyboard=True)


def get_command_by_button_text(text: str) -> str | None:
    """Возвращает команду по тексту кнопки."""

    return BUTTON_COMMANDS.get(text.strip())


__all__ = ["BUTTON_COMMANDS", "build_main_menu_keyboard", "get_command_by_button_text"]
