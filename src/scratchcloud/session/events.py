"""
Typed event dispatch for cloud sessions.

Event payloads:
    OPEN, CLOSE, SETUP:   no arguments
    ERROR:                (exception,)
    SET, ADD_VARIABLE:    (name, value)

Listeners may be plain callables or coroutine functions; coroutines are
scheduled on the running loop.
"""

import asyncio
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from scratchcloud.logger import get_logger

logger = get_logger(__name__)

Listener = Callable[..., Any]


class SessionEvent(str, Enum):
    OPEN = "open"
    CLOSE = "close"
    ERROR = "error"
    SETUP = "setup"
    SET = "set"
    ADD_VARIABLE = "addvariable"


@dataclass(eq=False)
class _Registration:
    listener: Listener
    once: bool = False


class EventEmitter:
    """Per-event listener lists, invoked in registration order."""

    def __init__(self):
        self._listeners: dict[SessionEvent, list[_Registration]] = defaultdict(list)
        self._background_tasks: set[asyncio.Task] = set()

    def on(self, event: SessionEvent | str, listener: Optional[Listener] = None):
        """
        Register ``listener`` for ``event``.

        Can also be used as a decorator::

            @session.on(SessionEvent.SET)
            def changed(name, value): ...
        """
        return self._register(event, listener, once=False)

    def once(self, event: SessionEvent | str, listener: Optional[Listener] = None):
        """Like ``on``, but the listener is removed before its first call."""
        return self._register(event, listener, once=True)

    def off(self, event: SessionEvent | str, listener: Listener) -> bool:
        """Remove the earliest registration of ``listener``. Returns True if found."""
        registrations = self._listeners[SessionEvent(event)]
        for i, reg in enumerate(registrations):
            if reg.listener is listener:
                del registrations[i]
                return True
        return False

    def listener_count(self, event: SessionEvent | str) -> int:
        return len(self._listeners[SessionEvent(event)])

    def emit(self, event: SessionEvent | str, *args: Any) -> int:
        """Invoke every listener of ``event``. Returns how many were called."""
        event = SessionEvent(event)
        called = 0
        for reg in list(self._listeners[event]):
            if reg.once:
                try:
                    self._listeners[event].remove(reg)
                except ValueError:
                    # removed by an earlier listener during this emit
                    continue
            called += 1
            try:
                result = reg.listener(*args)
                if asyncio.iscoroutine(result):
                    self._fire_task(result)
            except Exception as e:
                logger.error(f"Listener error for '{event.value}': {e}")
        return called

    def _register(self, event, listener, once: bool):
        event = SessionEvent(event)

        def decorator(fn: Listener) -> Listener:
            self._listeners[event].append(_Registration(fn, once=once))
            return fn

        if listener is None:
            return decorator
        return decorator(listener)

    def _fire_task(self, coro: Any) -> None:
        """Schedule a coroutine listener, keeping a reference until it finishes."""
        task = asyncio.ensure_future(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(_log_task_error)


def _log_task_error(task: asyncio.Task) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error(f"Async listener failed: {task.exception()}")
