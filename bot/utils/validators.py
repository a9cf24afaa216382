"""Проверка адресов Solana до любых сетевых вызовов."""

from __future__ import annotations

from solders.pubkey import Pubkey

from bot.services.errors import InvalidAddressError


def is_valid_solana_address(address: str) -> bool:
    """True, если строка декодируется в 32-байтовый base58 публичный ключ."""

    if not isinstance(address, str) or not address.strip():
        return False
    try:
        Pubkey.from_string(address.strip())
    except ValueError:
        return False
    return True


def ensure_solana_address(address: str, label: str = "wallet address") -> str:
    """Возвращает нормализованный адрес или бросает InvalidAddressError."""

    if not is_valid_solana_address(address):
        raise InvalidAddressError(f"Invalid Solana {label} format: {address!r}")
    return address.strip()


__all__ = ["ensure_solana_address", "is_valid_solana_address"]
