"""Change notification for locally stored data."""

import asyncio
import logging
import threading
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")

_logger = logging.getLogger(__name__)


class ChangeNotifier:
    """Wakes up observers whenever the underlying data changes.

    Writers call ``notify`` after committing a change. Each observer re-runs its
    query and emits the fresh result, so an observer always sees the latest state
    even when several changes land before it gets scheduled.

    ``notify`` may be called from any thread. Observers on another thread's
    event loop are woken through ``call_soon_threadsafe``.
    """

    def __init__(self) -> None:
        self._listeners: dict[asyncio.Event, asyncio.AbstractEventLoop] = {}
        self._lock = threading.Lock()

    def notify(self) -> None:
        """Signal every active observer that the data changed."""
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None
        with self._lock:
            listeners = list(self._listeners.items())
        for listener, loop in listeners:
            if loop is current_loop:
                listener.set()
                continue
            try:
                loop.call_soon_threadsafe(listener.set)
            except RuntimeError:
                # The observer's loop is already closed.
                _logger.debug("Skipping observer on a closed event loop")

    @property
    def observer_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    async def observe(self, fetch: Callable[[], Awaitable[T]]) -> AsyncIterator[T]:
        """Yield ``fetch()`` now and again after every change, until closed."""
        changed = asyncio.Event()
        with self._lock:
            self._listeners[changed] = asyncio.get_running_loop()
        try:
            while True:
                yield await fetch()
                await changed.wait()
                changed.clear()
        finally:
            with self._lock:
                self._listeners.pop(changed, None)
