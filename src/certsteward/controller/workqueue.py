"""
De-duplicating asyncio work queue.

Semantics follow the classic controller work queue:
- a key is queued at most once at a time
- a key handed out by ``get`` is not handed out again until ``done``
- a key added while it is being processed is queued again on ``done``
- ``add_after`` keeps only the earliest pending timer per key
"""

import asyncio
from collections.abc import Hashable
from datetime import timedelta

from loguru import logger

_SHUTDOWN = object()


class WorkQueue:
    """Work queue serializing processing per key."""

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._dirty: set[Hashable] = set()
        self._processing: set[Hashable] = set()
        self._timers: dict[Hashable, asyncio.TimerHandle] = {}
        self._shutting_down = False

    def __len__(self) -> int:
        return len(self._dirty - self._processing)

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def is_processing(self, key: Hashable) -> bool:
        return key in self._processing

    def has_timer(self, key: Hashable) -> bool:
        return key in self._timers

    def add(self, key: Hashable) -> None:
        """Queue a key unless it is already queued."""
        if self._shutting_down or key in self._dirty:
            return

        self._dirty.add(key)
        if key not in self._processing:
            self._queue.put_nowait(key)

    def add_after(self, key: Hashable, delay: timedelta | float) -> None:
        """
        Queue a key once ``delay`` has elapsed.

        Args:
            key: Key to queue
            delay: timedelta or seconds; zero or negative queues immediately
        """
        if self._shutting_down:
            return

        seconds = delay.total_seconds() if isinstance(delay, timedelta) else delay
        if seconds <= 0:
            self.add(key)
            return

        loop = asyncio.get_running_loop()
        deadline = loop.time() + seconds
        existing = self._timers.get(key)
        if existing is not None:
            if existing.when() <= deadline:
                return
            existing.cancel()

        self._timers[key] = loop.call_at(deadline, self._fire, key)

    def _fire(self, key: Hashable) -> None:
        self._timers.pop(key, None)
        self.add(key)

    async def get(self) -> Hashable | None:
        """
        Wait for the next key.

        Returns:
            The key to process, or None once the queue is shut down
        """
        key = await self._queue.get()
        if key is _SHUTDOWN:
            # Let the other waiting workers see it too
            self._queue.put_nowait(_SHUTDOWN)
            return None

        self._dirty.discard(key)
        self._processing.add(key)
        return key

    def done(self, key: Hashable) -> None:
        """Mark a key as processed; re-queue it if it was added meanwhile."""
        self._processing.discard(key)
        if key in self._dirty and not self._shutting_down:
            self._queue.put_nowait(key)

    def shutdown(self) -> None:
        """Stop accepting keys, cancel timers and release waiting workers."""
        if self._shutting_down:
            return

        self._shutting_down = True
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._queue.put_nowait(_SHUTDOWN)
        logger.debug("Work queue shut down")
