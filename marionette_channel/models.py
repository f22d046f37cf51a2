"""
Pydantic models for the data crossing the transport boundary.

Both models are frozen. Payloads stay opaque: only the envelope id and the
handshake fields are ever looked at by the channel.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ResponseEnvelope(BaseModel):
    """
    Inbound response as delivered by a transport.

    The id identifies the connection the response was read from. The
    response payload is handed to the waiting callback untouched.

    Example:
        >>> envelope = ResponseEnvelope.model_validate({"id": 7, "response": {"ok": True}})
        >>> envelope.id
        7
    """

    model_config = ConfigDict(frozen=True)

    id: Any = Field(description="Connection identifier the response belongs to")
    response: Any = Field(default=None, description="Opaque response payload")


class HandshakeInfo(BaseModel):
    """
    Server greeting received as the first response on a connection.

    Accepts the wire names (``applicationType``) as well as the Python
    field names. Unknown keys such as ``from`` are kept as extras.

    Example:
        >>> info = HandshakeInfo.model_validate(
        ...     {"from": "root", "applicationType": "gecko", "traits": []}
        ... )
        >>> info.application_type
        'gecko'
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    application_type: Any = Field(
        default=None,
        alias="applicationType",
        description="Remote application type, e.g. 'gecko'",
    )
    traits: Any = Field(default=None, description="Remote traits list")
