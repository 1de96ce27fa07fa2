"""
Connection manager for a cloud session.

Owns the WebSocket to the cloud endpoint and drives its lifecycle:

    idle -> connecting -> open -> closed -> connecting -> ... -> stopped

Every close is followed by a reconnect after a randomized exponential
backoff, until ``stop()`` is called or the ``ReconnectPolicy`` gives up.
Packets written while no connection is open wait in the ``OutboundQueue``
and go out right after the next handshake.
"""

import asyncio
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from scratchcloud.config import CONFIG, CloudEndpoint
from scratchcloud.logger import get_logger
from scratchcloud.session.codec import decode, encode
from scratchcloud.session.events import EventEmitter, SessionEvent
from scratchcloud.session.models import (
    Credential,
    HandshakePacket,
    Packet,
    RoomId,
    SetPacket,
)
from scratchcloud.session.outbound import OutboundQueue
from scratchcloud.session.store import VariableStore

logger = get_logger(__name__)

TRANSPORT_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    WebSocketException,
)


class ConnectionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ReconnectPolicy:
    """
    Backoff between connection attempts.

    The delay after a close is ``random() * (2 ** min(attempts, max_exponent) - 1)
    * base_delay`` seconds. ``max_attempts`` of None retries forever; otherwise
    the manager stops after that many consecutive failed attempts. An attempt
    that reaches the open state resets the count.
    """

    base_delay: float = 1.0
    max_exponent: int = 5
    max_attempts: Optional[int] = None

    def delay(self, attempts: int, rng: Callable[[], float] = random.random) -> float:
        exponent = min(max(attempts, 0), self.max_exponent)
        return rng() * (2**exponent - 1) * self.base_delay

    def should_retry(self, failures: int) -> bool:
        return self.max_attempts is None or failures < self.max_attempts


class ConnectionManager:
    """
    Keeps one live WebSocket per session and feeds inbound packets into the
    variable store.

    Args:
        endpoint: Cloud backend to connect to.
        credential: Account used for the handshake and the session cookie.
        project_id: Room to join.
        store: Variable state updated from inbound ``set`` packets.
        events: Emitter receiving lifecycle and variable events.
        queue: Buffer for packets sent while disconnected.
        policy: Reconnect backoff; retries forever by default.
    """

    def __init__(
        self,
        endpoint: CloudEndpoint,
        credential: Credential,
        project_id: RoomId,
        store: VariableStore,
        events: EventEmitter,
        queue: Optional[OutboundQueue] = None,
        policy: Optional[ReconnectPolicy] = None,
        open_timeout: Optional[float] = None,
    ):
        self.endpoint = endpoint
        self.credential = credential
        self.project_id = project_id
        self.store = store
        self.events = events
        self.queue = queue if queue is not None else OutboundQueue()
        self.policy = policy or ReconnectPolicy()
        self.open_timeout = (
            open_timeout if open_timeout is not None else CONFIG.open_timeout
        )

        self.state = ConnectionState.IDLE
        self._attempts = 0
        self._failures = 0
        self._setup_done = False
        self._stopping = False
        self._task: Optional[asyncio.Task] = None
        self._live: Optional[asyncio.Queue] = None
        self._in_flight: Optional[Packet] = None
        # live queue of the last epoch that closed with packets unsent
        self._interrupted: Optional[asyncio.Queue] = None

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    @property
    def stopping(self) -> bool:
        """True once ``stop()`` has been called, including while it tears down."""
        return self._stopping

    # -- Lifecycle ------------------------------------------------------------

    def start(self) -> None:
        """Spawn the connection task on the running event loop."""
        if self._task is not None and not self._task.done():
            raise RuntimeError("Connection already started")
        loop = asyncio.get_running_loop()
        self._stopping = False
        self._failures = 0
        self._task = loop.create_task(self._run())

    async def stop(self) -> None:
        """Cancel the connection task and close the transport."""
        self._stopping = True
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.state = ConnectionState.STOPPED
        logger.info(f"Connection to {self.endpoint.name} stopped.")

    async def wait_stopped(self) -> None:
        """Wait until the reconnect loop ends (policy exhausted or stopped)."""
        if self._task is not None:
            await asyncio.shield(self._task)

    # -- Sending --------------------------------------------------------------

    def send_packet(self, packet: Packet) -> None:
        """Send on the live connection, or queue until the next open."""
        if self.is_open and self._live is not None:
            self._live.put_nowait(packet)
        else:
            self.queue.enqueue(packet)

    def make_set_packet(self, name: str, value: str) -> SetPacket:
        return SetPacket(
            user=self.credential.username,
            project_id=self.project_id,
            name=name,
            value=value,
        )

    async def flush(self) -> None:
        """
        Wait until every packet handed to the live connection is written.

        Raises:
            ConnectionError: If packets are waiting for a connection, or the
                connection closed before they were written.
        """
        live = self._live
        if live is None:
            if self.queue:
                raise ConnectionError(
                    f"{len(self.queue)} packets waiting for a connection to {self.endpoint.name}"
                )
            return
        await live.join()
        if self._interrupted is live:
            raise ConnectionError(
                f"Connection to {self.endpoint.name} closed before all packets were sent"
            )

    def reconnect_delay(self) -> float:
        return self.policy.delay(self._attempts)

    # -- Connection loop ------------------------------------------------------

    async def _run(self) -> None:
        while not self._stopping:
            await self._run_epoch()
            if self._stopping:
                break
            if not self.policy.should_retry(self._failures):
                logger.warning(
                    f"Giving up on {self.endpoint.url} after {self._failures} failed attempts"
                )
                break
            delay = self.reconnect_delay()
            logger.info(f"Reconnecting to {self.endpoint.url} in {delay:.2f}s...")
            await asyncio.sleep(delay)
        self.state = ConnectionState.STOPPED

    async def _run_epoch(self) -> None:
        """Connect once and pump messages until the transport closes."""
        self._attempts += 1
        self._failures += 1
        self.state = ConnectionState.CONNECTING
        logger.debug(f"Connecting to {self.endpoint.url} (attempt {self._attempts})")

        try:
            async with websockets.connect(
                self.endpoint.url,
                additional_headers=self._build_headers(),
                origin=self.endpoint.origin,
                open_timeout=self.open_timeout,
            ) as ws:
                self._on_open(ws)
                await self._pump(ws)
        except ConnectionClosed as e:
            logger.info(f"Connection to {self.endpoint.name} closed: {e}")
        except TRANSPORT_ERRORS as e:
            logger.warning(f"Transport error on {self.endpoint.url}: {e}")
            self.events.emit(SessionEvent.ERROR, e)
        finally:
            self._on_close()

    def _build_headers(self) -> dict[str, str]:
        if self.endpoint.credential_strategy == "cookie":
            return {"Cookie": f"scratchsessionsid={self.credential.session_id};"}
        return {}

    async def _pump(self, ws) -> None:
        writer = asyncio.create_task(self._write_loop(ws))
        try:
            async for message in ws:
                self._on_message(message)
        finally:
            if not writer.done():
                writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass

    async def _write_loop(self, ws) -> None:
        live = self._live
        while True:
            packet = await live.get()
            self._in_flight = packet
            await ws.send(encode(packet))
            self._in_flight = None
            live.task_done()

    # -- Transport callbacks --------------------------------------------------

    def _on_open(self, ws) -> None:
        self._attempts = 1
        self._failures = 0
        self._live = asyncio.Queue()
        self._live.put_nowait(
            HandshakePacket(user=self.credential.username, project_id=self.project_id)
        )
        backlog = self.queue.drain()
        for packet in backlog:
            self._live.put_nowait(packet)
        self.state = ConnectionState.OPEN
        logger.info(
            f"Connected to {self.endpoint.name} cloud for project {self.project_id} "
            f"({len(backlog)} queued packets)"
        )
        self.events.emit(SessionEvent.OPEN)

    def _on_message(self, message: str | bytes) -> None:
        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="replace")
        # a frame carrying the initial state arrives while the store is still empty
        initial_setup = (
            not self._setup_done and len(message) > 2 and len(self.store) == 0
        )

        for packet in decode(message):
            if not isinstance(packet, SetPacket):
                continue
            if self.store.apply(packet.name, packet.value):
                self.events.emit(SessionEvent.ADD_VARIABLE, packet.name, packet.value)
            else:
                self.events.emit(SessionEvent.SET, packet.name, packet.value)

        if initial_setup:
            self._setup_done = True
            logger.debug(f"Initial cloud state loaded ({len(self.store)} variables)")
            self.events.emit(SessionEvent.SETUP)

    def _on_close(self) -> None:
        requeued = self._requeue_unsent()
        self._live = None
        self.state = ConnectionState.CLOSED
        if requeued:
            logger.debug(f"Requeued {requeued} unsent packets")
        self.events.emit(SessionEvent.CLOSE)

    def _requeue_unsent(self) -> int:
        """Move packets the last epoch never wrote back into the outbound queue."""
        unsent: list[Packet] = []
        live = self._live
        if self._in_flight is not None:
            unsent.append(self._in_flight)
            self._in_flight = None
            if live is not None:
                live.task_done()
        if live is not None:
            while not live.empty():
                unsent.append(live.get_nowait())
                live.task_done()

        count = 0
        for packet in unsent:
            if isinstance(packet, SetPacket):
                self.queue.enqueue(packet)
                count += 1
        if count:
            self._interrupted = live
        return count
