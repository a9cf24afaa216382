"""Регистрация всех роутеров Aiogram."""

from __future__ import annotations

from aiogram import Dispatcher


def register_routers(dispatcher: Dispatcher) -> None:
    """Подключает все доступные роутеры к диспетчеру."""

    from .core import common
    from .web3 import news, price, risk, wallet

    routers = (
        price.router,
        wallet.router,
        news.router,
        risk.router,
        common.router,  # catch-all F.text должен быть последним
    )

    for router in routers:
        dispatcher.include_router(router)


__all__ = ["register_routers"]
