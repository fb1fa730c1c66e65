"""
JustId identity resolution package.

Resolution order for a single call:
1. Capability probe against a pre-installed resolver (no network)
2. On probe failure, the mode-selected provider:
   - EXTERNAL: external resource + channel signals
   - INTERNAL / ATM: cache-checked POST to the id server
"""

from .cache_store import CacheStore, InMemoryKeyValueStore, KeyValueStore
from .capability_probe import (
    CapabilityHandle,
    CapabilityProbe,
    DispatcherCapability,
    namespace_locator,
)
from .channel_provider import (
    READY_SIGNAL,
    REQUEST_SIGNAL,
    ChannelProvider,
    ExternalResource,
    SignalChannel,
)
from .effective_config import EffectiveConfig
from .orchestrator import IdentityResolver, IdResponse, ResolutionOutcome
from .page_info import PageContext
from .remote_provider import RemoteServerProvider
from .submodule import JustIdSubmodule
from .types import CacheRecord, ConsentContext, ResolutionMode, ResolutionState

__all__ = [
    "CacheRecord",
    "CacheStore",
    "CapabilityHandle",
    "CapabilityProbe",
    "ChannelProvider",
    "ConsentContext",
    "DispatcherCapability",
    "EffectiveConfig",
    "ExternalResource",
    "IdResponse",
    "IdentityResolver",
    "InMemoryKeyValueStore",
    "JustIdSubmodule",
    "KeyValueStore",
    "PageContext",
    "READY_SIGNAL",
    "REQUEST_SIGNAL",
    "RemoteServerProvider",
    "ResolutionMode",
    "ResolutionOutcome",
    "ResolutionState",
    "SignalChannel",
    "namespace_locator",
]
