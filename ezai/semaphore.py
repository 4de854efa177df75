"""Per-provider concurrency limit."""

from __future__ import annotations

import threading


class SemaphoreTimeout(TimeoutError):
    """Raised when a slot could not be acquired in time."""


class Semaphore:
    """A counting semaphore that reports how many slots are free."""

    def __init__(self, name: str, max_concurrent: int) -> None:
        if max_concurrent <= 0:
            max_concurrent = 1
        self.name = name
        self.capacity = max_concurrent
        self._held = 0
        self._cond = threading.Condition()

    def acquire(self, timeout: float | None = None) -> None:
        """Take a slot, waiting at most ``timeout`` seconds (forever if None)."""
        with self._cond:
            if not self._cond.wait_for(lambda: self._held < self.capacity, timeout):
                raise SemaphoreTimeout(f"semaphore acquire timed out ({self.name})")
            self._held += 1

    def release(self) -> None:
        """Return a slot."""
        with self._cond:
            if self._held == 0:
                raise RuntimeError(f"semaphore released more than acquired ({self.name})")
            self._held -= 1
            self._cond.notify()

    def available(self) -> int:
        """Approximate number of free slots; for display only."""
        return self.capacity - self._held

    def __enter__(self) -> Semaphore:
        self.acquire()
        return self

    def __exit__(self, *args: object) -> None:
        self.release()