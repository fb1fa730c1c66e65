"""
Page information forwarded to the id server.

PageContext is passed explicitly to whoever needs it; nothing here inspects
process-wide state.
"""

from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

DEBUG_UID_PARAM = "__jtUid"


@dataclass
class PageContext:
    """
    Where the resolution happens.

    Attributes:
        page_url: Top-level page URL, if reachable.
        referrer: Referrer of the top-level page.
        top_level_access: Whether the top-level window was reachable.
        user_agent: Client user agent string.
        user_ids: Identifiers already known to the host's user-ID system,
            either as a value or a zero-argument callable producing it.
    """

    page_url: Optional[str] = None
    referrer: Optional[str] = None
    top_level_access: bool = False
    user_agent: Optional[str] = None
    user_ids: Any = None

    def known_user_ids(self) -> Any:
        if callable(self.user_ids):
            return self.user_ids()
        return self.user_ids

    def debug_uid(self) -> Optional[str]:
        """Uid forced through the ``__jtUid`` page URL query parameter."""
        if not self.page_url:
            return None
        try:
            query = urlparse(self.page_url).query
        except ValueError:
            return None
        values = parse_qs(query).get(DEBUG_UID_PARAM)
        return values[0] if values else None
