"""Unit tests for the identity resolution error taxonomy."""

import pytest

from just_id.errors import (
    CapabilityAbsentError,
    EmptyIdentifierError,
    IdentityResolutionError,
    MalformedResponseError,
    ProbeFailure,
    ProbeTimeoutError,
    ProviderFailure,
    TransportError,
    UnsupportedCapabilityError,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "error_cls", [CapabilityAbsentError, ProbeTimeoutError, UnsupportedCapabilityError]
)
def test_probe_failures(error_cls) -> None:
    assert issubclass(error_cls, ProbeFailure)
    assert not issubclass(error_cls, ProviderFailure)


@pytest.mark.unit
@pytest.mark.parametrize(
    "error_cls", [TransportError, MalformedResponseError, EmptyIdentifierError]
)
def test_provider_failures(error_cls) -> None:
    assert issubclass(error_cls, ProviderFailure)
    assert issubclass(error_cls, IdentityResolutionError)


@pytest.mark.unit
def test_to_dict_includes_original_error() -> None:
    error = MalformedResponseError("bad body", original_error=ValueError("line 1"))

    assert error.to_dict() == {
        "error_type": "MalformedResponseError",
        "error_code": "malformed_response",
        "message": "bad body",
        "original_error_type": "ValueError",
        "original_error_message": "line 1",
    }


@pytest.mark.unit
def test_transport_error_status_code() -> None:
    error = TransportError("Unexpected status code: 502", status_code=502)

    data = error.to_dict()

    assert data["status_code"] == 502
    assert data["error_code"] == "transport_error"
    assert "original_error_type" not in data
