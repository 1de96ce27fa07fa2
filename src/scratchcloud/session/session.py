"""
Session: the public surface for reading and writing cloud variables.

Writes update the local store immediately, before any server echo, so a
``get`` always reflects the caller's own last ``set`` whatever the state of
the connection. The packet itself goes out on the live connection or waits
in the outbound queue for the next one.
"""

import asyncio
from typing import Any, Optional

from scratchcloud.config import CloudEndpoint, endpoint_for
from scratchcloud.logger import get_logger
from scratchcloud.session.connection import ConnectionManager, ReconnectPolicy
from scratchcloud.session.events import EventEmitter, Listener, SessionEvent
from scratchcloud.session.models import Credential, RoomId
from scratchcloud.session.outbound import OutboundQueue
from scratchcloud.session.store import VariableStore
from scratchcloud.validation import (
    CloudValue,
    apply_prefix,
    is_numeric_string,
    normalize_value,
)

logger = get_logger(__name__)


class Session:
    """
    A connection to one project's cloud variables.

    Args:
        credential: Username and session id from a Scratch login.
        project_id: The project (room) to join.
        turbowarp: Use the TurboWarp cloud servers instead of Scratch's.
        endpoint: Explicit backend; overrides ``turbowarp`` when given.
        reconnect: Backoff policy; reconnects forever by default.

    Usage::

        async with Session(Credential(username="me", session_id=sid), 1234) as s:
            await s.wait_for(SessionEvent.SETUP)
            s.set("score", 42)
    """

    def __init__(
        self,
        credential: Credential,
        project_id: RoomId,
        *,
        turbowarp: bool = False,
        endpoint: Optional[CloudEndpoint] = None,
        reconnect: Optional[ReconnectPolicy] = None,
        open_timeout: Optional[float] = None,
    ):
        self.credential = credential
        self.project_id = project_id
        self.endpoint = endpoint or endpoint_for(turbowarp)
        self.store = VariableStore()
        self.events = EventEmitter()
        self.queue = OutboundQueue()
        self.connection = ConnectionManager(
            self.endpoint,
            credential,
            project_id,
            self.store,
            self.events,
            queue=self.queue,
            policy=reconnect,
            open_timeout=open_timeout,
        )
        self._auto_prefix = True

    # -- Lifecycle ------------------------------------------------------------

    def start(self) -> None:
        """Start connecting. Must be called from a running event loop."""
        self.connection.start()

    async def close(self) -> None:
        """Stop reconnecting and close the connection."""
        await self.connection.stop()

    async def flush(self, timeout: Optional[float] = None) -> None:
        """
        Wait until writes handed to the open connection have been sent.

        Raises:
            ConnectionError: If writes are still queued for a future connection,
                or the connection dropped before they went out.
            asyncio.TimeoutError: If ``timeout`` elapses first.
        """
        await asyncio.wait_for(self.connection.flush(), timeout=timeout)

    async def __aenter__(self) -> "Session":
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    @property
    def is_open(self) -> bool:
        return self.connection.is_open

    @property
    def is_closing(self) -> bool:
        """True once ``close()`` has been called."""
        return self.connection.stopping

    @property
    def max_value_length(self) -> int:
        return self.endpoint.max_value_length

    @property
    def variables(self) -> dict[str, str]:
        """Snapshot of every known variable."""
        return self.store.to_dict()

    # -- Variables ------------------------------------------------------------

    def set(self, name: str, value: CloudValue) -> bool:
        """
        Set a cloud variable.

        Invalid values are logged and ignored rather than raised.

        Returns:
            True if the write was accepted.
        """
        value = normalize_value(value)
        name = apply_prefix(name, self._auto_prefix)

        if not is_numeric_string(value):
            logger.warning("Invalid cloud variable value. Can only contain numbers.")
            return False
        if len(value) > self.max_value_length:
            logger.warning(
                f"Variable length is too long. Maximum of {self.max_value_length} digits."
            )
            return False

        self.connection.send_packet(self.connection.make_set_packet(name, value))
        self.store.apply(name, value)
        return True

    def get(self, name: str) -> Optional[str]:
        """Current value of a cloud variable, or None if never seen."""
        return self.store.get(apply_prefix(name, self._auto_prefix))

    @property
    def auto_prefix(self) -> bool:
        """Whether ``set``/``get`` prepend ``CLOUD_PREFIX`` to bare names."""
        return self._auto_prefix

    def enable_auto_prefix(self) -> None:
        self._auto_prefix = True

    def disable_auto_prefix(self) -> None:
        self._auto_prefix = False

    # -- Events ---------------------------------------------------------------

    def on(self, event: SessionEvent | str, listener: Optional[Listener] = None):
        return self.events.on(event, listener)

    def once(self, event: SessionEvent | str, listener: Optional[Listener] = None):
        return self.events.once(event, listener)

    def off(self, event: SessionEvent | str, listener: Listener) -> bool:
        return self.events.off(event, listener)

    async def wait_for(
        self, event: SessionEvent | str, timeout: Optional[float] = None
    ) -> tuple:
        """
        Wait for the next occurrence of ``event`` and return its payload.

        Raises:
            asyncio.TimeoutError: If ``timeout`` elapses first.
        """
        future: asyncio.Future = asyncio.get_running_loop().create_future()

        def _resolve(*args):
            if not future.done():
                future.set_result(args)

        self.events.once(event, _resolve)
        try:
            return await asyncio.wait_for(future, timeout=timeout)
        finally:
            self.events.off(event, _resolve)
