"""
Capability probe for a pre-installed uid resolver ("ATM").

A host page may already carry a resolver exposed as a command dispatcher
``handle(command, arg=None)``. When it exists, is ready in time and is recent
enough to support ``getUid``, the uid is taken from it and no network request
is made by this package.

Features:
- Handle lookup through an injected locator, no process-wide globals
- Readiness wait bounded by a soft deadline (default 5 seconds)
- ``getVersion`` presence used purely as a feature gate for ``getUid``
- Sync or async command answers normalized to awaitables
"""

import asyncio
from typing import Any, Callable, Mapping, Protocol

from just_id.errors import (
    CapabilityAbsentError,
    ProbeTimeoutError,
    UnsupportedCapabilityError,
)
from just_id.utils.futures import as_awaitable, promise_with_timeout, settle_result
from just_id.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_READY_TIMEOUT_SECONDS = 5.0

GET_READY_STATE = "getReadyState"
GET_VERSION = "getVersion"
GET_UID = "getUid"

CapabilityLocator = Callable[[str], Any]


class CapabilityHandle(Protocol):
    """Typed view of a capability handle."""

    def get_ready_state(self, callback: Callable[..., None]) -> None:
        """Invoke ``callback`` once the handle finished initializing."""
        ...

    async def get_version(self) -> Any:
        """Return the handle version; a string means getUid is supported."""
        ...

    async def get_uid(self) -> Any:
        """Return the uid known to the handle."""
        ...


class DispatcherCapability:
    """
    Adapts a ``handle(command, arg=None)`` dispatcher to CapabilityHandle.

    ``getVersion`` and ``getUid`` may answer with a plain value, an awaitable,
    or (for ``getUid``) through the callback argument; all three end up as the
    awaited result.
    """

    def __init__(self, dispatcher: Callable[..., Any]) -> None:
        self._dispatch = dispatcher

    def get_ready_state(self, callback: Callable[..., None]) -> None:
        self._dispatch(GET_READY_STATE, callback)

    async def get_version(self) -> Any:
        return await as_awaitable(self._dispatch(GET_VERSION))

    async def get_uid(self) -> Any:
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

        def on_uid(uid: Any = None) -> None:
            settle_result(future, uid)

        returned = self._dispatch(GET_UID, on_uid)
        if returned is not None:
            settle_result(future, await as_awaitable(returned))
        return await future


def namespace_locator(namespace: Mapping[str, Any]) -> CapabilityLocator:
    """
    Build a locator reading handles from ``namespace``.

    Example:
        >>> locate = namespace_locator({"__atm": my_dispatcher})
        >>> locate("__atm") is my_dispatcher
        True
    """

    def locate(name: str) -> Any:
        return namespace.get(name)

    return locate


def _is_typed_handle(handle: Any) -> bool:
    return all(
        callable(getattr(handle, attr, None))
        for attr in ("get_ready_state", "get_version", "get_uid")
    )


class CapabilityProbe:
    """
    Bounded-time attempt to obtain a uid from a capability handle.

    Attributes:
        locator: Callable returning the handle registered under a name, or None.
        timeout_seconds: Readiness deadline.

    Example:
        >>> probe = CapabilityProbe(namespace_locator(page_globals), timeout_seconds=5)
        >>> uid = await probe.probe("__atm")
    """

    def __init__(
        self,
        locator: CapabilityLocator,
        timeout_seconds: float = DEFAULT_READY_TIMEOUT_SECONDS,
    ) -> None:
        self.locator = locator
        self.timeout_seconds = timeout_seconds

    def locate(self, name: str) -> CapabilityHandle:
        """
        Look up the handle registered under ``name``.

        Raises:
            CapabilityAbsentError: If nothing usable is registered.
        """
        try:
            handle = self.locator(name)
        except Exception as e:
            raise CapabilityAbsentError(
                f"Capability lookup failed for {name!r}", original_error=e
            ) from e

        if handle is None:
            raise CapabilityAbsentError(f"Capability {name!r} not found")
        if _is_typed_handle(handle):
            return handle
        if callable(handle):
            return DispatcherCapability(handle)
        raise CapabilityAbsentError(f"Capability {name!r} is not callable")

    async def probe(self, name: str) -> Any:
        """
        Obtain a uid from the capability handle registered under ``name``.

        The returned uid is passed through unvalidated; an empty value is for
        the caller to judge.

        Raises:
            CapabilityAbsentError: Handle missing or not callable.
            ProbeTimeoutError: Handle not ready within ``timeout_seconds``.
            UnsupportedCapabilityError: Handle failed during readiness or
                version checks, or its version is not a string.
        """
        capability = self.locate(name)

        try:
            await promise_with_timeout(
                lambda resolve, reject: capability.get_ready_state(resolve),
                self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise ProbeTimeoutError(
                f"Capability {name!r} not ready after {self.timeout_seconds}s"
            ) from e
        except Exception as e:
            raise UnsupportedCapabilityError(
                f"Capability {name!r} failed on {GET_READY_STATE}", original_error=e
            ) from e

        try:
            version = await capability.get_version()
        except Exception as e:
            raise UnsupportedCapabilityError(
                f"Capability {name!r} failed on {GET_VERSION}", original_error=e
            ) from e

        logger.info("capability_probe.version", capability=name, version=version)

        # getVersion shipped together with getUid, so any string means supported
        if not isinstance(version, str):
            raise UnsupportedCapabilityError(
                f"Capability {name!r} does not support {GET_UID}"
            )

        return await capability.get_uid()

