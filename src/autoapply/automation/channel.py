"""Per-job progress channel.

Each submission job owns one channel. Listeners and subscribers attach to
that job only, and nothing is delivered after the channel is closed.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

logger = logging.getLogger(__name__)

_CLOSED = object()


class ProgressChannel:
    """Fan-out of progress updates for a single job.

    Supports plain callbacks (``add_listener``) and async iteration
    (``subscribe``). A late subscriber first receives the latest update.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Callable[[Any], None]] = []
        self._queues: list[asyncio.Queue] = []
        self._latest: Any = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def latest(self) -> Any:
        return self._latest

    def add_listener(self, callback: Callable[[Any], None]) -> None:
        if not self._closed:
            self._listeners.append(callback)

    def publish(self, update: Any) -> bool:
        """Deliver an update. Returns False if the channel is closed."""
        if self._closed:
            return False
        self._latest = update
        for queue in self._queues:
            queue.put_nowait(update)
        for callback in list(self._listeners):
            try:
                callback(update)
            except Exception as e:
                logger.warning(f"Progress listener failed on channel {self.name}: {e}")
        return True

    async def subscribe(self) -> AsyncIterator[Any]:
        queue: asyncio.Queue = asyncio.Queue()
        if self._latest is not None:
            queue.put_nowait(self._latest)
        if self._closed:
            queue.put_nowait(_CLOSED)
        else:
            self._queues.append(queue)

        try:
            while True:
                update = await queue.get()
                if update is _CLOSED:
                    return
                yield update
        finally:
            if queue in self._queues:
                self._queues.remove(queue)

    def close(self) -> None:
        """Stop delivery and release every listener and subscriber."""
        if self._closed:
            return
        self._closed = True
        self._listeners.clear()
        for queue in self._queues:
            queue.put_nowait(_CLOSED)
        self._queues.clear()
