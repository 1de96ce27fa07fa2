"""
Newline-delimited JSON codec for cloud packets.

A single transport frame may carry several packets, one per line. Each line
is parsed on its own so that one bad line does not spoil the frame.
"""

from pydantic import TypeAdapter, ValidationError

from scratchcloud.logger import get_logger
from scratchcloud.session.models import Packet

logger = get_logger(__name__)

_packet_adapter = TypeAdapter(Packet)


def encode(packet: Packet) -> str:
    """Serialize one packet to a newline-terminated JSON line."""
    return packet.model_dump_json(exclude_none=True) + "\n"


def decode(frame: str | bytes) -> list[Packet]:
    """Split a frame into packets, dropping empty and malformed lines."""
    if isinstance(frame, (bytes, bytearray)):
        frame = frame.decode("utf-8", errors="replace")

    packets: list[Packet] = []
    for segment in frame.split("\n"):
        if not segment:
            continue
        try:
            packets.append(_packet_adapter.validate_json(segment))
        except ValidationError as e:
            logger.debug(f"Dropping malformed packet {segment[:80]!r}: {e}")
    return packets
