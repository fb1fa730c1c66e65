"""
Effective configuration for a single JustId resolution.

EffectiveConfig normalizes the caller's raw ``{"params": {...}}`` config into
an immutable value where every field is usable. Building it never fails:
absent, falsy or malformed parameters fall back to their defaults.

Architecture:
- Frozen dataclass, one instance per resolution call
- Pure: does not read settings or environment
- Serialization support via to_dict()/from_dict()
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
from urllib.parse import quote

from .types import ResolutionMode

DEFAULT_CAPABILITY_VAR_NAME = "__atm"
DEFAULT_SERVER_DOMAIN = "id.nsaudience.pl"
DEFAULT_PARTNER_ID = "pbjs-just-id-module"
DEFAULT_COOKIE_PREFIX = "__jt"

DAY_IN_SECONDS = 24 * 60 * 60
YEAR_IN_SECONDS = 365 * DAY_IN_SECONDS
DEFAULT_CACHE_TTL_SECONDS = 2 * YEAR_IN_SECONDS
DEFAULT_CACHE_REFRESH_SECONDS = DAY_IN_SECONDS
# Keeps expiry timestamps well inside the datetime range
MAX_SECONDS = 100 * YEAR_IN_SECONDS

UID_COOKIE_SUFFIX = "uid"
UT_COOKIE_SUFFIX = "ut"

_MODE_ALIASES = {
    "ATM": ResolutionMode.ATM,
    "EXTERNAL": ResolutionMode.EXTERNAL,
    "ADVANCED": ResolutionMode.EXTERNAL,
    "ADVENCED": ResolutionMode.EXTERNAL,
    "INTERNAL": ResolutionMode.INTERNAL,
    "BASIC": ResolutionMode.INTERNAL,
}


def _params(raw_config: Any) -> Mapping[str, Any]:
    if not isinstance(raw_config, Mapping):
        return {}
    params = raw_config.get("params")
    return params if isinstance(params, Mapping) else {}


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _seconds(value: Any) -> Optional[int]:
    """Whole seconds in ``[1, MAX_SECONDS]``, None for anything else."""
    if isinstance(value, bool):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(seconds) or not 1 <= seconds <= MAX_SECONDS:
        return None
    return int(seconds)


def _first(
    params: Mapping[str, Any], names: Tuple[str, ...], convert: Callable[[Any], Any]
) -> Any:
    """First alias whose value survives ``convert``; None when none does."""
    for name in names:
        value = convert(params.get(name))
        if value is not None:
            return value
    return None


def _mode(value: Any) -> ResolutionMode:
    if isinstance(value, ResolutionMode):
        return value
    if isinstance(value, str):
        return _MODE_ALIASES.get(value.strip().upper(), ResolutionMode.INTERNAL)
    return ResolutionMode.INTERNAL


@dataclass(frozen=True)
class EffectiveConfig:
    """
    Normalized caller configuration.

    Attributes:
        mode: Provider used after a failed capability probe.
        capability_var_name: Name the capability handle is looked up under.
        server_domain: Domain of the id server (and of the external endpoint).
        partner_id: Source id sent to the external endpoint.
        cookie_prefix: Prefix of the two persisted cache keys.
        cache_ttl_seconds: Physical expiry of the persisted cache keys.
        cache_refresh_seconds: Freshness window of a cached uid.
        external_url: Optional override of the external endpoint base URL.

    Example:
        >>> config = EffectiveConfig.from_raw({"params": {"partner": "abc"}})
        >>> config.external_endpoint_url
        'https://id.nsaudience.pl/getId.js?sourceId=abc'
        >>> EffectiveConfig.from_raw(None).remote_server_url
        'https://id.nsaudience.pl/getId'
    """

    mode: ResolutionMode = ResolutionMode.INTERNAL
    capability_var_name: str = DEFAULT_CAPABILITY_VAR_NAME
    server_domain: str = DEFAULT_SERVER_DOMAIN
    partner_id: str = DEFAULT_PARTNER_ID
    cookie_prefix: str = DEFAULT_COOKIE_PREFIX
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    cache_refresh_seconds: int = DEFAULT_CACHE_REFRESH_SECONDS
    external_url: Optional[str] = None

    @property
    def remote_server_url(self) -> str:
        return f"https://{self.server_domain}/getId"

    @property
    def external_endpoint_url(self) -> str:
        base = self.external_url or f"https://{self.server_domain}/getId.js"
        separator = "&" if "?" in base else "?"
        return f"{base}{separator}sourceId={quote(self.partner_id, safe='')}"

    @property
    def uid_cookie_name(self) -> str:
        return self.cookie_prefix + UID_COOKIE_SUFFIX

    @property
    def ut_cookie_name(self) -> str:
        return self.cookie_prefix + UT_COOKIE_SUFFIX

    @classmethod
    def from_raw(cls, raw_config: Any) -> EffectiveConfig:
        """
        Factory: derive the effective config from the caller's raw config.

        Accepts the host-style ``{"params": {...}}`` mapping. Anything else,
        including None, yields the defaults.
        """
        params = _params(raw_config)

        def pick(names: Tuple[str, ...], convert: Callable[[Any], Any], default: Any) -> Any:
            value = _first(params, names, convert)
            return default if value is None else value

        return cls(
            mode=_mode(params.get("mode")),
            capability_var_name=pick(
                ("atmVarName", "capabilityVarName"), _text, DEFAULT_CAPABILITY_VAR_NAME
            ),
            server_domain=pick(
                ("idServerDomain", "serverDomain"), _text, DEFAULT_SERVER_DOMAIN
            ),
            partner_id=pick(("partner", "partnerId"), _text, DEFAULT_PARTNER_ID),
            cookie_prefix=pick(("cookiePrefix",), _text, DEFAULT_COOKIE_PREFIX),
            cache_ttl_seconds=pick(
                ("cookieTtlSeconds", "cacheTtlSeconds"),
                _seconds,
                DEFAULT_CACHE_TTL_SECONDS,
            ),
            cache_refresh_seconds=pick(
                ("cookieRefreshSeconds", "cacheRefreshSeconds"),
                _seconds,
                DEFAULT_CACHE_REFRESH_SECONDS,
            ),
            external_url=_text(params.get("url")),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EffectiveConfig:
        """Factory: rehydrate a config produced by to_dict()."""
        ttl = _seconds(data.get("cache_ttl_seconds"))
        refresh = _seconds(data.get("cache_refresh_seconds"))
        return cls(
            mode=_mode(data.get("mode")),
            capability_var_name=data.get("capability_var_name", DEFAULT_CAPABILITY_VAR_NAME),
            server_domain=data.get("server_domain", DEFAULT_SERVER_DOMAIN),
            partner_id=data.get("partner_id", DEFAULT_PARTNER_ID),
            cookie_prefix=data.get("cookie_prefix", DEFAULT_COOKIE_PREFIX),
            cache_ttl_seconds=DEFAULT_CACHE_TTL_SECONDS if ttl is None else ttl,
            cache_refresh_seconds=(
                DEFAULT_CACHE_REFRESH_SECONDS if refresh is None else refresh
            ),
            external_url=data.get("external_url"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "capability_var_name": self.capability_var_name,
            "server_domain": self.server_domain,
            "partner_id": self.partner_id,
            "cookie_prefix": self.cookie_prefix,
            "cache_ttl_seconds": self.cache_ttl_seconds,
            "cache_refresh_seconds": self.cache_refresh_seconds,
            "external_url": self.external_url,
        }
