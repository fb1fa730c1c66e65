"""
Failure taxonomy for identity resolution.

Probe failures (``ProbeFailure``) make the resolver fall through to the
mode-selected provider. Provider failures (``ProviderFailure``) are terminal
for the current resolution and end with a no-argument callback.
"""

from typing import Any, Dict, Optional


class IdentityResolutionError(Exception):
    """Base exception for all identity resolution failures."""

    code = "identity_resolution_error"

    def __init__(self, message: str, *, original_error: Optional[BaseException] = None):
        self.original_error = original_error
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to structured dict for logging."""
        data: Dict[str, Any] = {
            "error_type": type(self).__name__,
            "error_code": self.code,
            "message": str(self),
        }
        if self.original_error is not None:
            data["original_error_type"] = type(self.original_error).__name__
            data["original_error_message"] = str(self.original_error)
        return data


class ProbeFailure(IdentityResolutionError):
    """The capability handle could not be used; try the next strategy."""

    code = "probe_failure"


class CapabilityAbsentError(ProbeFailure):
    """No callable capability handle under the configured name."""

    code = "capability_absent"


class ProbeTimeoutError(ProbeFailure):
    """The capability handle did not report ready within the deadline."""

    code = "probe_timeout"


class UnsupportedCapabilityError(ProbeFailure):
    """The capability handle is too old to answer getUid."""

    code = "unsupported_capability"


class ProviderFailure(IdentityResolutionError):
    """Terminal failure of the strategy that was asked for a uid."""

    code = "provider_failure"


class TransportError(ProviderFailure):
    """The id server request failed or answered with a non-2xx status."""

    code = "transport_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        original_error: Optional[BaseException] = None,
    ):
        self.status_code = status_code
        super().__init__(message, original_error=original_error)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.status_code is not None:
            data["status_code"] = self.status_code
        return data


class MalformedResponseError(ProviderFailure):
    """The id server answered with an empty or unparseable body."""

    code = "malformed_response"


class EmptyIdentifierError(ProviderFailure):
    """A strategy nominally succeeded but produced no usable uid."""

    code = "empty_identifier"
