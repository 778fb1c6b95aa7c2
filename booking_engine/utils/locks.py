"""Per-resource mutual exclusion with bounded waits."""

from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Iterator

from booking_engine.domain.errors import BusyError
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)


class ResourceLockRegistry:
    """Hands out one lock per resource id; unrelated resources never contend."""

    def __init__(self, timeout_seconds: float) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        self._timeout_seconds = timeout_seconds
        self._guard = Lock()
        self._locks: dict[str, Lock] = {}

    def _lock_for(self, resource_id: str) -> Lock:
        with self._guard:
            lock = self._locks.get(resource_id)
            if lock is None:
                lock = Lock()
                self._locks[resource_id] = lock
            return lock

    @contextmanager
    def hold(self, resource_id: str) -> Iterator[None]:
        lock = self._lock_for(resource_id)
        if not lock.acquire(timeout=self._timeout_seconds):
            logger.warning(
                "Room lock timed out | room_id=%s | timeout_seconds=%.2f",
                resource_id,
                self._timeout_seconds,
            )
            raise BusyError(f"room {resource_id} is busy, retry shortly")
        try:
            yield
        finally:
            lock.release()
