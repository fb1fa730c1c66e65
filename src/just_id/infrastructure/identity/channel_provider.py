"""
External channel provider (EXTERNAL mode).

The uid is produced by code loaded from ``https://<domain>/getId.js``. Once
the resource has loaded we dispatch a ``prebidGetId`` request signal with the
caller's config, consent data and cached id object; the loaded code answers
with a ``justIdReady`` signal carrying ``{"justId": ...}``.

No deadline is imposed here: if the resource never answers, the resolution
never completes.
"""

import asyncio
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List, Mapping, Optional, Protocol

from just_id.utils.futures import settle_exception, settle_result
from just_id.utils.logging import get_logger

from .effective_config import EffectiveConfig

logger = get_logger(__name__)

READY_SIGNAL = "justIdReady"
REQUEST_SIGNAL = "prebidGetId"

Listener = Callable[[Any], None]


class ExternalResource(Protocol):
    """A side-loaded executable resource that talks back through signals."""

    on_load: Optional[Callable[[], None]]

    def add_listener(self, signal: str, listener: Listener) -> None:
        ...

    def dispatch(self, signal: str, detail: Any = None) -> None:
        ...

    def inject(self) -> None:
        """Start loading the resource into the execution environment."""
        ...


ResourceInjector = Callable[[str], ExternalResource]


class SignalChannel:
    """
    In-process ExternalResource.

    Listeners run synchronously in registration order. ``loaded()`` is what
    the environment calls once the resource finished loading.
    """

    def __init__(self, url: Optional[str] = None) -> None:
        self.url = url
        self.on_load: Optional[Callable[[], None]] = None
        self.injected = False
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)

    def add_listener(self, signal: str, listener: Listener) -> None:
        self._listeners[signal].append(listener)

    def dispatch(self, signal: str, detail: Any = None) -> None:
        for listener in list(self._listeners[signal]):
            listener(detail)

    def inject(self) -> None:
        self.injected = True

    def loaded(self) -> None:
        if self.on_load is not None:
            self.on_load()


def _extract_uid(detail: Any) -> Any:
    if isinstance(detail, Mapping):
        return detail.get("justId")
    return None


class ChannelProvider:
    """
    Resolve a uid through an externally loaded resource.

    Example:
        >>> provider = ChannelProvider(injector=lambda url: SignalChannel(url))
        >>> uid = await provider.fetch(config, raw_config, consent_data, cache_id_obj)
    """

    def __init__(self, injector: ResourceInjector) -> None:
        self.injector = injector

    async def fetch(
        self,
        config: EffectiveConfig,
        raw_config: Any = None,
        consent_data: Any = None,
        cache_id_obj: Any = None,
    ) -> Any:
        """
        Inject the external endpoint and wait for its ready signal.

        The raw caller arguments are forwarded untouched in the request signal.

        Returns:
            The ``justId`` field of the ready signal payload (unvalidated).
        """
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        url = config.external_endpoint_url
        resource = self.injector(url)

        def on_ready(detail: Any) -> None:
            logger.info("channel_provider.ready_signal", url=url)
            settle_result(future, _extract_uid(detail))

        def on_load() -> None:
            logger.debug("channel_provider.resource_loaded", url=url)
            try:
                resource.dispatch(
                    REQUEST_SIGNAL,
                    {
                        "config": raw_config,
                        "consentData": consent_data,
                        "cacheIdObj": cache_id_obj,
                    },
                )
            except Exception as e:
                settle_exception(future, e)

        resource.add_listener(READY_SIGNAL, on_ready)
        resource.on_load = on_load
        resource.inject()
        logger.info("channel_provider.resource_injected", url=url)

        return await future
