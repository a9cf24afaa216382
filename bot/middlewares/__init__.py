"""Набор middleware для Web3 Assistant."""

from .errors import ErrorsMiddleware
from .throttling import ThrottlingMiddleware

__all__ = [
    "ErrorsMiddleware",
    "ThrottlingMiddleware",
]
