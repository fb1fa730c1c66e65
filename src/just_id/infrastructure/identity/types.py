"""
Type definitions for JustId identity resolution.

This module defines the small value types passed between the resolver and
its strategies. None of them carry behaviour beyond normalization.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class ResolutionMode(str, Enum):
    """Which provider handles a resolution once the capability probe failed."""

    ATM = "ATM"
    EXTERNAL = "EXTERNAL"
    INTERNAL = "INTERNAL"


class ResolutionState(str, Enum):
    """States a single resolution call moves through."""

    PROBING = "probing"
    PROBE_OK = "probe_ok"
    PROBE_FAILED = "probe_failed"
    DISPATCH = "dispatch"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"


TERMINAL_STATES = frozenset({ResolutionState.RESOLVED, ResolutionState.FAILED})


@dataclass(frozen=True)
class ConsentContext:
    """
    Consent information forwarded to the id server.

    The consent string is never interpreted here, only passed along.
    """

    consent_string: Optional[str] = None

    @classmethod
    def from_raw(cls, consent_data: Any) -> "ConsentContext":
        if isinstance(consent_data, Mapping):
            value = consent_data.get("consentString")
            return cls(consent_string=value if isinstance(value, str) else None)
        return cls()


@dataclass(frozen=True)
class CacheRecord:
    """
    Uid persisted by a previous successful id server call.

    Attributes:
        uid: Stored uid, None when only the timestamp survived.
        stored_at_epoch_ms: When the uid was stored, None when missing or
            unparseable.
    """

    uid: Optional[str]
    stored_at_epoch_ms: Optional[int]
