"""
Cloud session for scratchcloud.

A Session keeps a WebSocket open to a cloud backend, mirrors the project's
cloud variables locally and sends writes back, reconnecting whenever the
connection drops.
"""

from scratchcloud.session.codec import decode, encode
from scratchcloud.session.connection import (
    ConnectionManager,
    ConnectionState,
    ReconnectPolicy,
)
from scratchcloud.session.events import EventEmitter, SessionEvent
from scratchcloud.session.models import (
    Credential,
    HandshakePacket,
    Packet,
    RoomId,
    SetPacket,
)
from scratchcloud.session.outbound import OutboundQueue
from scratchcloud.session.session import Session
from scratchcloud.session.store import VariableStore

__all__ = [
    "ConnectionManager",
    "ConnectionState",
    "Credential",
    "EventEmitter",
    "HandshakePacket",
    "OutboundQueue",
    "Packet",
    "ReconnectPolicy",
    "RoomId",
    "Session",
    "SessionEvent",
    "SetPacket",
    "VariableStore",
    "decode",
    "encode",
]
