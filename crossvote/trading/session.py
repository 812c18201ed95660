"""
Session lock serializing decision cycles across threads and event loops.
"""

import asyncio
import threading
from collections import deque
from typing import Deque, Tuple


def _hand_over(future: asyncio.Future) -> None:
    if not future.done():
        future.set_result(None)


class SessionLock:
    """FIFO mutex that can be awaited from any event loop in any thread.

    Each synchronous `evaluate` call runs on its own loop, so an
    asyncio.Lock cannot be shared between them. Waiters here park on a
    future of their own loop and are woken through call_soon_threadsafe;
    ownership passes directly to the oldest waiter on release.
    """

    def __init__(self):
        self._mutex = threading.Lock()
        self._held = False
        self._waiters: Deque[Tuple[asyncio.AbstractEventLoop, asyncio.Future]] = deque()

    def locked(self) -> bool:
        with self._mutex:
            return self._held

    def try_acquire(self) -> bool:
        """Take the lock only if it is free and nobody is queued."""
        with self._mutex:
            if self._held or self._waiters:
                return False
            self._held = True
            return True

    async def acquire(self) -> None:
        """Wait in arrival order until the lock is handed to this caller."""
        loop = asyncio.get_running_loop()
        with self._mutex:
            if not self._held and not self._waiters:
                self._held = True
                return
            waiter = (loop, loop.create_future())
            self._waiters.append(waiter)

        try:
            await waiter[1]
        except asyncio.CancelledError:
            with self._mutex:
                queued = waiter in self._waiters
                if queued:
                    self._waiters.remove(waiter)
            if not queued:
                # Ownership was handed over before the cancellation landed
                self.release()
            raise

    def release(self) -> None:
        """Hand the lock to the oldest waiter, or free it.

        Raises:
            RuntimeError: If the lock is not held
        """
        with self._mutex:
            if not self._held:
                raise RuntimeError("Session lock released while not held")
            if self._waiters:
                loop, future = self._waiters.popleft()
                loop.call_soon_threadsafe(_hand_over, future)
                return
            self._held = False
