"""
Test fixtures for infrastructure.identity module tests.
"""

from typing import Any, Callable, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from just_id.infrastructure.identity import (
    IdentityResolver,
    InMemoryKeyValueStore,
    PageContext,
    namespace_locator,
)

T0 = 1_700_000_000.0
SHORT_PROBE_TIMEOUT = 0.05


class FakeClock:
    """Manually advanced clock in seconds since the epoch."""

    def __init__(self, now: float = T0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDispatcher:
    """
    Capability handle dispatcher ``handle(command, arg=None)``.

    ``ready=False`` keeps readiness callbacks pending until ``fire_ready()``.
    """

    def __init__(
        self,
        *,
        ready: bool = True,
        version: Any = "1.0.0",
        uid: Any = "user123",
        uid_via_callback: bool = True,
        fail_on: Optional[str] = None,
    ) -> None:
        self.ready = ready
        self.version = version
        self.uid = uid
        self.uid_via_callback = uid_via_callback
        self.fail_on = fail_on
        self.commands: List[str] = []
        self.ready_callbacks: List[Callable[..., None]] = []

    def __call__(self, command: str, arg: Any = None) -> Any:
        self.commands.append(command)
        if command == self.fail_on:
            raise RuntimeError(f"{command} exploded")
        if command == "getReadyState":
            self.ready_callbacks.append(arg)
            if self.ready:
                arg()
            return None
        if command == "getVersion":
            return self.version
        if command == "getUid":
            if self.uid_via_callback:
                arg(self.uid)
                return None
            return self.uid
        return None

    def fire_ready(self) -> None:
        for callback in self.ready_callbacks:
            callback()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock)


@pytest.fixture
def transport() -> MagicMock:
    """Id server poster answering with a fresh uid."""
    mock = MagicMock()
    mock.post = AsyncMock(return_value='{"uid": "u1", "tld": "example.com"}')
    return mock


@pytest.fixture
def page() -> PageContext:
    return PageContext(
        page_url="https://publisher.example/article?id=7",
        referrer="https://search.example/",
        top_level_access=True,
        user_agent="Mozilla/5.0 (X11; Linux x86_64)",
        user_ids={"id5id": {"uid": "ID5-abc"}},
    )


@pytest.fixture
def make_dispatcher() -> Callable[..., FakeDispatcher]:
    return FakeDispatcher


@pytest.fixture
def make_resolver(
    store: InMemoryKeyValueStore,
    transport: MagicMock,
    page: PageContext,
    clock: FakeClock,
) -> Callable[..., IdentityResolver]:
    """Build an IdentityResolver; ``handles`` maps capability names to handles."""

    def factory(handles: Optional[dict] = None, **overrides: Any) -> IdentityResolver:
        kwargs: dict = {
            "store": store,
            "transport": transport,
            "page": page,
            "capability_locator": namespace_locator(handles or {}),
            "probe_timeout_seconds": SHORT_PROBE_TIMEOUT,
            "clock": clock,
        }
        kwargs.update(overrides)
        return IdentityResolver(**kwargs)

    return factory
