"""
Future helpers shared by the identity strategies.

Capability handles and external resources report back through plain
callbacks, sometimes more than once and sometimes after we stopped waiting.
These helpers turn such callbacks into a single asyncio future where the
first settlement wins and every later one is a no-op.

All helpers expect to be driven from the event loop that owns the future.
"""

import asyncio
import inspect
from typing import Any, Callable

Resolve = Callable[..., None]
Reject = Callable[[BaseException], None]


def settle_result(future: "asyncio.Future[Any]", value: Any = None) -> bool:
    """
    Set ``value`` on ``future`` unless it already settled.

    Returns:
        True if this call settled the future, False if it was a late call.
    """
    if future.done():
        return False
    future.set_result(value)
    return True


def settle_exception(future: "asyncio.Future[Any]", exc: BaseException) -> bool:
    """Exception counterpart of :func:`settle_result`."""
    if future.done():
        return False
    future.set_exception(exc)
    return True


async def as_awaitable(value: Any) -> Any:
    """
    Normalize a value that may or may not be awaitable.

    Capability commands may answer synchronously or hand back a coroutine or
    future; callers always ``await as_awaitable(...)`` and never branch.
    """
    if inspect.isawaitable(value):
        return await value
    return value


async def promise_with_timeout(
    starter: Callable[[Resolve, Reject], Any],
    timeout_seconds: float,
) -> Any:
    """
    Run a callback-style operation and wait for it with a soft deadline.

    ``starter`` receives ``resolve(value=None)`` and ``reject(exc)`` and is
    expected to call one of them eventually. The deadline only stops the
    waiting: the underlying operation keeps running, and a resolve or reject
    arriving after the deadline is discarded.

    Args:
        starter: Function kicking off the operation.
        timeout_seconds: Deadline in seconds.

    Returns:
        The value passed to ``resolve``.

    Raises:
        asyncio.TimeoutError: If neither callback fired within the deadline.
        BaseException: Whatever was passed to ``reject`` or raised by ``starter``.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[Any] = loop.create_future()

    def resolve(value: Any = None) -> None:
        settle_result(future, value)

    def reject(exc: BaseException) -> None:
        settle_exception(future, exc)

    starter(resolve, reject)
    return await asyncio.wait_for(future, timeout=timeout_seconds)
