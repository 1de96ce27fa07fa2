"""
Pydantic models for the cloud session.

Covers:
- The credential handed over by the login flow
- Wire packets (handshake, set), one JSON object per line
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scratchcloud.validation import normalize_value

RoomId = Union[str, int]


class Credential(BaseModel):
    """Account name and session id produced by a Scratch login."""

    model_config = ConfigDict(frozen=True)

    username: str
    session_id: str = ""


# ─── Wire Packets ────────────────────────────────────────────────────


class HandshakePacket(BaseModel):
    """Client → Server: identifies the account and room after connecting."""

    method: Literal["handshake"] = "handshake"
    user: str | None = None
    project_id: RoomId | None = None


class SetPacket(BaseModel):
    """Both directions: a variable write."""

    method: Literal["set"] = "set"
    user: str | None = None
    project_id: RoomId | None = None
    name: str
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, value: Any) -> Any:
        # the server echoes numbers as JSON numbers
        if isinstance(value, bool):
            raise ValueError("boolean is not a cloud value")
        if isinstance(value, (int, float)):
            return normalize_value(value)
        return value


Packet = Annotated[Union[HandshakePacket, SetPacket], Field(discriminator="method")]
