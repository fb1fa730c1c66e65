"""
JustId submodule facade for a host user-ID system.

Exposes the two entry points such a host calls: ``decode`` turns a stored
value into the id object attached to bid requests, and ``get_id`` hands back
a deferred resolution whose callback receives the uid.
"""

from typing import Any, Dict, Mapping, Optional

from just_id.utils.logging import get_logger

from .orchestrator import IdentityResolver, IdResponse
from .page_info import PageContext

logger = get_logger(__name__)

MODULE_NAME = "justId"
GVLID = 160


class JustIdSubmodule:
    """
    Host-facing JustId submodule.

    Attributes:
        name: Links the submodule with its host config entry.
        gvlid: Vendor id required for consent enforcement.
        resolver: IdentityResolver running the actual resolutions.

    Example:
        >>> submodule = JustIdSubmodule(IdentityResolver(transport=transport))
        >>> submodule.decode({"uid": "aaa"})
        {'justId': 'aaa'}
        >>> submodule.get_id({"params": {"partner": "abc"}}).callback(print)
    """

    name = MODULE_NAME
    gvlid = GVLID

    def __init__(self, resolver: Optional[IdentityResolver] = None) -> None:
        self.resolver = resolver or IdentityResolver()

    @property
    def page(self) -> PageContext:
        return self.resolver.page

    def decode(self, value: Any) -> Optional[Dict[str, str]]:
        """
        Decode the stored id value for passing to bid requests.

        A ``__jtUid`` query parameter on the page URL overrides the stored uid.
        """
        debug_uid = self.page.debug_uid()
        if debug_uid:
            logger.info("just_id_submodule.debug_uid", uid=debug_uid)
        stored_uid = value.get("uid") if isinstance(value, Mapping) else None
        just_id = debug_uid or stored_uid
        return {"justId": just_id} if just_id else None

    def get_id(
        self,
        config: Any = None,
        consent_data: Any = None,
        cache_id_obj: Any = None,
    ) -> IdResponse:
        """Return a deferred resolution; call ``.callback(cb)`` to run it."""
        logger.info("just_id_submodule.get_id", has_cache_id_obj=cache_id_obj is not None)
        return IdResponse(self.resolver, config, consent_data, cache_id_obj)
