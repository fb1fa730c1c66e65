"""
Identity resolver: sequences the strategies of a single resolution.

Resolution order:
1. Capability probe (always attempted first)
2. On any probe failure, the mode-selected provider:
   - EXTERNAL: ChannelProvider
   - INTERNAL / ATM: RemoteServerProvider

Strategies run strictly one after the other, never raced. Whatever happens,
the caller's callback fires exactly once, with ``{"uid": ...}`` or with no
argument.
"""

import asyncio
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Coroutine, Dict, List, Optional, Union

from just_id.config.settings import get_settings
from just_id.errors import (
    EmptyIdentifierError,
    IdentityResolutionError,
    ProbeFailure,
)
from just_id.io.connectors.id_server import IdServerTransport
from just_id.utils.logging import get_logger

from .cache_store import InMemoryKeyValueStore, KeyValueStore
from .capability_probe import CapabilityLocator, CapabilityProbe, namespace_locator
from .channel_provider import ChannelProvider, ResourceInjector
from .effective_config import EffectiveConfig
from .page_info import PageContext
from .remote_provider import IdServerPoster, RemoteServerProvider
from .types import ConsentContext, ResolutionMode, ResolutionState, TERMINAL_STATES

logger = get_logger(__name__)

IdObject = Dict[str, str]


@dataclass
class ResolutionOutcome:
    """
    Result of one resolution call.

    Attributes:
        id_obj: ``{"uid": ...}`` on success, None otherwise.
        states: States visited, in order; the last one is terminal.
        error: The failure that ended the resolution, if any.
    """

    id_obj: Optional[IdObject] = None
    states: List[ResolutionState] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def state(self) -> Optional[ResolutionState]:
        return self.states[-1] if self.states else None

    @property
    def settled(self) -> bool:
        return self.state in TERMINAL_STATES


class IdentityResolver:
    """
    Produces a single uid, or definitively fails, for a caller config.

    Every collaborator is passed in explicitly so each resolution can be
    exercised in isolation.

    Attributes:
        store: Persistent store behind the remote provider's cache.
        transport: Poster used for the id server request.
        page: Page context forwarded to the id server.
        capability_locator: Finds the capability handle by name.
        resource_injector: Loads the external endpoint in EXTERNAL mode.
        probe_timeout_seconds: Readiness deadline of the capability probe.
        clock: Seconds since the epoch.

    Example:
        >>> resolver = IdentityResolver(store=store, transport=transport)
        >>> await resolver.resolve({"params": {"partner": "abc"}})
        {'uid': '...'}
    """

    def __init__(
        self,
        *,
        store: Optional[KeyValueStore] = None,
        transport: Optional[IdServerPoster] = None,
        page: Optional[PageContext] = None,
        capability_locator: Optional[CapabilityLocator] = None,
        resource_injector: Optional[ResourceInjector] = None,
        probe_timeout_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        settings = get_settings()
        self.store = store if store is not None else InMemoryKeyValueStore(clock)
        self.transport = transport
        self._owns_transport = transport is None
        self.page = page or PageContext()
        self.capability_locator = capability_locator or namespace_locator({})
        self.resource_injector = resource_injector
        self.probe_timeout_seconds = (
            probe_timeout_seconds
            if probe_timeout_seconds is not None
            else settings.probe_timeout_seconds
        )
        self.clock = clock

    def _get_transport(self) -> IdServerPoster:
        if self.transport is None:
            self.transport = IdServerTransport()
        return self.transport

    def close(self) -> None:
        """Close the id server transport if this resolver created it."""
        if self._owns_transport and self.transport is not None:
            self.transport.close()  # type: ignore[attr-defined]
            self.transport = None
            logger.debug("identity_resolver.closed")

    async def resolve(
        self,
        raw_config: Any = None,
        consent_data: Any = None,
        cache_id_obj: Any = None,
    ) -> Optional[IdObject]:
        """Resolve and return ``{"uid": ...}``, or None on failure. Never raises."""
        outcome = await self.run(raw_config, consent_data, cache_id_obj)
        return outcome.id_obj

    async def run(
        self,
        raw_config: Any = None,
        consent_data: Any = None,
        cache_id_obj: Any = None,
    ) -> ResolutionOutcome:
        """
        Resolve and return the full outcome, including visited states.

        Any exception raised by a strategy ends in the FAILED state; only
        task cancellation propagates.
        """
        outcome = ResolutionOutcome()
        log = logger

        def transition(state: ResolutionState) -> None:
            outcome.states.append(state)
            log.debug("identity_resolver.state", state=state.value)

        try:
            config = EffectiveConfig.from_raw(raw_config)
            log = logger.bind(mode=config.mode.value, partner_id=config.partner_id)
            uid = await self._resolve_uid(
                config, raw_config, consent_data, cache_id_obj, transition, log
            )
            if not isinstance(uid, str) or not uid:
                raise EmptyIdentifierError("Strategy produced no uid")
        except IdentityResolutionError as e:
            outcome.error = e
            transition(ResolutionState.FAILED)
            log.error("identity_resolver.failed", **e.to_dict())
            return outcome
        except Exception as e:
            outcome.error = e
            transition(ResolutionState.FAILED)
            log.error(
                "identity_resolver.unexpected_error",
                error_type=type(e).__name__,
                exc_info=True,
            )
            return outcome

        outcome.id_obj = {"uid": uid}
        transition(ResolutionState.RESOLVED)
        log.info("identity_resolver.resolved")
        return outcome

    async def _resolve_uid(
        self,
        config: EffectiveConfig,
        raw_config: Any,
        consent_data: Any,
        cache_id_obj: Any,
        transition: Callable[[ResolutionState], None],
        log: Any,
    ) -> Any:
        transition(ResolutionState.PROBING)
        probe = CapabilityProbe(self.capability_locator, self.probe_timeout_seconds)
        try:
            uid = await probe.probe(config.capability_var_name)
        except ProbeFailure as e:
            transition(ResolutionState.PROBE_FAILED)
            log.info("identity_resolver.probe_failed", **e.to_dict())
        else:
            transition(ResolutionState.PROBE_OK)
            return uid

        transition(ResolutionState.DISPATCH)
        if config.mode is ResolutionMode.EXTERNAL:
            if self.resource_injector is None:
                raise IdentityResolutionError(
                    "EXTERNAL mode requires a resource injector"
                )
            transition(ResolutionState.RESOLVING)
            return await ChannelProvider(self.resource_injector).fetch(
                config, raw_config, consent_data, cache_id_obj
            )

        transition(ResolutionState.RESOLVING)
        provider = RemoteServerProvider(
            self.store, self._get_transport(), self.page, clock=self.clock
        )
        return await provider.fetch(config, ConsentContext.from_raw(consent_data))

    async def resolve_and_notify(
        self,
        callback: Callable[..., Any],
        raw_config: Any = None,
        consent_data: Any = None,
        cache_id_obj: Any = None,
    ) -> ResolutionOutcome:
        """Resolve, then invoke ``callback`` exactly once."""
        outcome = await self.run(raw_config, consent_data, cache_id_obj)

        if not callable(callback):
            logger.error("identity_resolver.callback_not_callable")
            return outcome
        try:
            if outcome.id_obj is not None:
                callback(outcome.id_obj)
            else:
                callback()
        except Exception:
            logger.error("identity_resolver.callback_failed", exc_info=True)
        return outcome


class IdResponse:
    """
    Deferred resolution handed back by ``get_id``.

    ``callback(cb)`` starts the resolution and returns straight away. Inside a
    running event loop it is scheduled as a task on that loop; otherwise it
    runs on its own event loop in a daemon worker thread. The returned task or
    thread can be awaited or joined by callers that want to wait.
    """

    def __init__(
        self,
        resolver: IdentityResolver,
        raw_config: Any = None,
        consent_data: Any = None,
        cache_id_obj: Any = None,
    ) -> None:
        self.resolver = resolver
        self.raw_config = raw_config
        self.consent_data = consent_data
        self.cache_id_obj = cache_id_obj

    def _notify(self, cb: Callable[..., Any]) -> Coroutine[Any, Any, ResolutionOutcome]:
        return self.resolver.resolve_and_notify(
            cb, self.raw_config, self.consent_data, self.cache_id_obj
        )

    def callback(
        self, cb: Callable[..., Any]
    ) -> Union["asyncio.Task[ResolutionOutcome]", threading.Thread]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            worker = threading.Thread(
                target=lambda: asyncio.run(self._notify(cb)),
                name="justid-resolution",
                daemon=True,
            )
            worker.start()
            return worker
        return loop.create_task(self._notify(cb))
