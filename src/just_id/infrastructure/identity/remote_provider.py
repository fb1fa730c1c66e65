"""
Remote id server provider (INTERNAL and ATM modes).

Resolution steps:
1. A fresh cached uid is returned straight away, without network access
2. Otherwise a single POST goes to ``https://<domain>/getId``
3. A successful answer is cached under both keys for ``cache_ttl_seconds``

Failures are terminal for this provider; there is no retry loop.
"""

import asyncio
import time
from typing import Callable, Optional, Protocol

from just_id.config.settings import get_settings
from just_id.errors import EmptyIdentifierError
from just_id.io.connectors.id_server import (
    ClientInfo,
    IdServerRequest,
    parse_id_server_response,
)
from just_id.utils.logging import get_logger

from .cache_store import CacheStore, KeyValueStore
from .effective_config import EffectiveConfig
from .page_info import PageContext
from .types import CacheRecord, ConsentContext

logger = get_logger(__name__)


class IdServerPoster(Protocol):
    """Anything able to POST a body and hand back the response text."""

    async def post(self, url: str, body: str) -> str:
        ...


class RemoteServerProvider:
    """
    Cache-checked uid fetch against the id server.

    Attributes:
        store: Persistent store holding the cached uid.
        transport: Poster used for the getId request.
        page: Page context copied into the request body.
        clock: Seconds since the epoch; injectable for tests.
        request_delay_seconds: Yield before the request is issued.
    """

    def __init__(
        self,
        store: KeyValueStore,
        transport: IdServerPoster,
        page: PageContext,
        *,
        clock: Callable[[], float] = time.time,
        request_delay_seconds: Optional[float] = None,
        client_lib: Optional[str] = None,
        client_version: Optional[str] = None,
    ) -> None:
        settings = get_settings()
        self.store = store
        self.transport = transport
        self.page = page
        self.clock = clock
        self.request_delay_seconds = (
            request_delay_seconds
            if request_delay_seconds is not None
            else settings.request_delay_seconds
        )
        self.client_lib = client_lib or settings.client_lib
        self.client_version = client_version or settings.client_version

    async def fetch(self, config: EffectiveConfig, consent: ConsentContext) -> str:
        """
        Return a uid, from cache when fresh, otherwise from the id server.

        Raises:
            TransportError: Request failed or answered non-2xx.
            MalformedResponseError: Empty or unparseable response body.
            EmptyIdentifierError: Response without a usable uid.
        """
        now_ms = int(self.clock() * 1000)
        cache = CacheStore.for_config(self.store, config)
        record = cache.read()

        if CacheStore.is_fresh(record, config.cache_refresh_seconds, now_ms):
            logger.info(
                "remote_provider.cache_hit",
                cookie=cache.uid_key,
                stored_at_ms=record.stored_at_epoch_ms,
            )
            return record.uid

        # Let synchronous callers return before the request goes out
        await asyncio.sleep(self.request_delay_seconds)

        request = self.build_request(record, consent)
        logger.info(
            "remote_provider.request",
            url=config.remote_server_url,
            has_prev_stored_id=request.prev_stored_id is not None,
        )
        body = await self.transport.post(config.remote_server_url, request.to_json())

        response = parse_id_server_response(body)
        if not response.uid:
            raise EmptyIdentifierError("getId response carries no uid")

        self._cache_result(cache, config, response.uid, now_ms, response.tld)
        return response.uid

    def build_request(
        self, record: Optional[CacheRecord], consent: ConsentContext
    ) -> IdServerRequest:
        return IdServerRequest(
            prev_stored_id=record.uid if record else None,
            tc_string=consent.consent_string,
            url=self.page.page_url,
            referrer=self.page.referrer,
            top_level_access=self.page.top_level_access,
            user_agent=self.page.user_agent,
            client_lib=self.client_lib,
            pbjs=ClientInfo(
                version=self.client_version, uids=self.page.known_user_ids()
            ),
        )

    def _cache_result(
        self,
        cache: CacheStore,
        config: EffectiveConfig,
        uid: str,
        now_ms: int,
        tld: Optional[str],
    ) -> None:
        """Persist the new uid (non-blocking: failures are logged, uid still returned)."""
        try:
            expires_at = cache.write(
                uid, now_ms, config.cache_ttl_seconds, domain=tld or None
            )
            logger.debug(
                "remote_provider.cached_result",
                cookie=cache.uid_key,
                domain=tld,
                expires_at=expires_at.isoformat(),
            )
        except Exception as e:
            logger.warning(
                "remote_provider.cache_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
