"""Shared pytest fixtures and fakes."""

import asyncio
import json

import pytest
from loguru import logger

from scratchcloud.session.models import Credential

_CLOSE = object()


class FakeWebSocket:
    """Stands in for a websockets client connection."""

    def __init__(self, url: str, **kwargs):
        self.url = url
        self.kwargs = kwargs
        self.sent: list[str] = []
        self.closed = False
        self._incoming: asyncio.Queue = asyncio.Queue()
        # while set and not released, send() blocks like a stalled transport
        self.send_gate: asyncio.Event | None = None

    async def send(self, data: str) -> None:
        if self.send_gate is not None:
            await self.send_gate.wait()
        self.sent.append(data)

    def feed(self, frame) -> None:
        """Deliver an inbound frame."""
        self._incoming.put_nowait(frame)

    def drop(self) -> None:
        """End the message stream as if the server closed the connection."""
        self._incoming.put_nowait(_CLOSE)

    def sent_packets(self) -> list[dict]:
        return [json.loads(line) for line in self.sent]

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._incoming.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.closed = True
        return False


class _FailingConnect:
    def __init__(self, exc: BaseException):
        self.exc = exc

    async def __aenter__(self):
        raise self.exc

    async def __aexit__(self, *exc):
        return False


class FakeConnector:
    """Replacement for ``websockets.connect`` recording every attempt."""

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []
        self.sockets: list[FakeWebSocket] = []
        self.failures: list[BaseException] = []
        # frames every new socket receives right after connecting
        self.initial_frames: list[str] = []

    def __call__(self, url: str, **kwargs):
        self.calls.append((url, kwargs))
        if self.failures:
            return _FailingConnect(self.failures.pop(0))
        ws = FakeWebSocket(url, **kwargs)
        for frame in self.initial_frames:
            ws.feed(frame)
        self.sockets.append(ws)
        return ws


async def wait_until(predicate, timeout: float = 1.0) -> None:
    """Poll ``predicate`` on the event loop until it holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture
def credential():
    return Credential(username="griffpatch", session_id="sess-123")


@pytest.fixture
def connector(monkeypatch):
    fake = FakeConnector()
    monkeypatch.setattr("scratchcloud.session.connection.websockets.connect", fake)
    return fake


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
