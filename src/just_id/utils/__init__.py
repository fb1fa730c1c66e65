"""Shared utilities: structured logging and future helpers."""

from .futures import as_awaitable, promise_with_timeout, settle_exception, settle_result

__all__ = [
    "as_awaitable",
    "promise_with_timeout",
    "settle_exception",
    "settle_result",
]
