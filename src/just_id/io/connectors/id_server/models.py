"""
Wire models for the id server ``getId`` endpoint.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from just_id.errors import MalformedResponseError


class ClientInfo(BaseModel):
    """Client library details sent under the ``pbjs`` key."""

    version: str
    uids: Optional[Any] = None


class IdServerRequest(BaseModel):
    """
    Body of ``POST https://<domain>/getId``.

    Serialized with camelCase keys; unset fields are omitted.
    """

    model_config = ConfigDict(populate_by_name=True)

    prev_stored_id: Optional[str] = Field(default=None, alias="prevStoredId")
    tc_string: Optional[str] = Field(default=None, alias="tcString")
    url: Optional[str] = None
    referrer: Optional[str] = None
    top_level_access: bool = Field(default=False, alias="topLevelAccess")
    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    client_lib: str = Field(alias="clientLib")
    pbjs: ClientInfo

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class IdServerResponse(BaseModel):
    """Answer of the ``getId`` endpoint: ``{"uid": str, "tld"?: str}``."""

    model_config = ConfigDict(extra="ignore")

    uid: Optional[str] = None
    tld: Optional[str] = None


def parse_id_server_response(body: Optional[str]) -> IdServerResponse:
    """
    Parse a ``getId`` response body.

    Raises:
        MalformedResponseError: For empty bodies, invalid JSON, or JSON that
            is not an object with string ``uid``/``tld`` fields.
    """
    if body is None or not body.strip():
        raise MalformedResponseError("Empty getId response")
    try:
        return IdServerResponse.model_validate_json(body)
    except ValidationError as e:
        raise MalformedResponseError(
            f"Unparseable getId response: {e.error_count()} error(s)",
            original_error=e,
        ) from e
