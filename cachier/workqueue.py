"""De-duplicating, rate-limited work queue for reconcile keys."""

import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class ShutDown(Exception):
    """Raised by WorkQueue.get once the queue has been shut down."""


class WorkQueue:
    """
    Work queue of reconcile keys.

    Guarantees:
    - A key is queued at most once, however often it is added.
    - A key is never handed to two workers at once. Adding a key while it is
      being processed queues it again when the worker calls done().
    - Keys that keep failing are requeued with per-key exponential backoff.

    All methods except get() must be called from the event loop thread.
    """

    def __init__(self, base_delay: float = 0.005, max_delay: float = 1000.0):
        """
        Initialize work queue.

        Args:
            base_delay: Requeue delay after the first failure (seconds)
            max_delay: Upper bound on the requeue delay (seconds)
        """
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._queue: asyncio.Queue[Optional[str]] = asyncio.Queue()
        self._dirty: set[str] = set()
        self._processing: set[str] = set()
        self._failures: dict[str, int] = {}
        self._timers: set[asyncio.TimerHandle] = set()
        self._shutting_down = False

    def __len__(self) -> int:
        return len(self._dirty - self._processing)

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def add(self, key: str) -> None:
        """Queue a key for processing."""
        if self._shutting_down or key in self._dirty:
            return
        self._dirty.add(key)
        if key in self._processing:
            return
        self._queue.put_nowait(key)

    def add_after(self, key: str, delay: float) -> None:
        """Queue a key once a delay has passed."""
        if self._shutting_down:
            return
        if delay <= 0:
            self.add(key)
            return
        loop = asyncio.get_running_loop()
        handle: Optional[asyncio.TimerHandle] = None

        def fire() -> None:
            self._timers.discard(handle)
            self.add(key)

        handle = loop.call_later(delay, fire)
        self._timers.add(handle)

    def when(self, key: str) -> float:
        """Backoff delay for a key's next failure-driven requeue."""
        failures = self._failures.get(key, 0)
        return min(self.base_delay * (2**failures), self.max_delay)

    def add_rate_limited(self, key: str) -> None:
        """Requeue a key after its backoff delay and bump its failure count."""
        delay = self.when(key)
        self._failures[key] = self._failures.get(key, 0) + 1
        self.add_after(key, delay)

    def forget(self, key: str) -> None:
        """Reset a key's failure count."""
        self._failures.pop(key, None)

    def num_requeues(self, key: str) -> int:
        return self._failures.get(key, 0)

    async def get(self) -> str:
        """
        Wait for the next key and mark it as being processed.

        Raises:
            ShutDown: If the queue has been shut down
        """
        if self._shutting_down:
            raise ShutDown()
        key = await self._queue.get()
        if key is None or self._shutting_down:
            # Wake the next waiter as well
            self._queue.put_nowait(None)
            raise ShutDown()
        self._processing.add(key)
        self._dirty.discard(key)
        return key

    def done(self, key: str) -> None:
        """Mark a key as processed, requeueing it if it was added meanwhile."""
        self._processing.discard(key)
        if key in self._dirty and not self._shutting_down:
            self._queue.put_nowait(key)

    def shut_down(self) -> None:
        """Stop handing out keys and drop pending delayed adds."""
        if self._shutting_down:
            return
        self._shutting_down = True
        for handle in self._timers:
            handle.cancel()
        self._timers.clear()
        self._queue.put_nowait(None)
