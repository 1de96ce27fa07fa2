"""Buffer for packets produced while no connection is open."""

from collections import deque

from scratchcloud.session.models import Packet


class OutboundQueue:
    """FIFO of packets waiting for the next open connection."""

    def __init__(self):
        self._packets: deque[Packet] = deque()

    def enqueue(self, packet: Packet) -> None:
        self._packets.append(packet)

    def drain(self) -> list[Packet]:
        """Remove and return every queued packet, oldest first."""
        packets = list(self._packets)
        self._packets.clear()
        return packets

    def __len__(self) -> int:
        return len(self._packets)

    def __bool__(self) -> bool:
        return bool(self._packets)
