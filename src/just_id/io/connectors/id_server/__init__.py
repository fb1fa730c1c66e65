"""
Id server connector package.
"""

from .models import (
    ClientInfo,
    IdServerRequest,
    IdServerResponse,
    parse_id_server_response,
)
from .transport import IdServerTransport

__all__ = [
    "ClientInfo",
    "IdServerRequest",
    "IdServerResponse",
    "IdServerTransport",
    "parse_id_server_response",
]
