"""In-process document locks for synchronized writes."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LockInfo:
    """Information about an active lock."""

    key: str
    timestamp: float

    @property
    def age(self) -> float:
        return time.time() - self.timestamp

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "timestamp": self.timestamp,
        }


class LockManager:
    """Manage non-blocking locks on document keys.

    Locks live in memory only and are scoped to the running process.
    Acquisition is a test-and-set: it either takes the lock immediately
    or reports that the key is busy. There is no queueing and no timeout.

    Locks carry no owner token, so any caller that knows a key can
    release it.
    """

    def __init__(self) -> None:
        self._locks: dict[str, LockInfo] = {}
        self._mutex = threading.Lock()

    def acquire(self, key: str) -> bool:
        """Try to lock *key*.

        Returns True if the lock was taken, False if it is already held.
        """
        with self._mutex:
            if key in self._locks:
                return False
            self._locks[key] = LockInfo(key=key, timestamp=time.time())

        logger.debug("Acquired lock for %s", key)
        return True

    def release(self, key: str) -> None:
        """Remove the lock on *key*. Does nothing if it is not locked."""
        with self._mutex:
            removed = self._locks.pop(key, None)

        if removed is not None:
            logger.debug("Released lock for %s after %.3fs", key, removed.age)

    def clear_all(self) -> None:
        """Drop every lock."""
        with self._mutex:
            count = len(self._locks)
            self._locks.clear()

        if count:
            logger.info("Cleared %d stale lock(s)", count)

    def is_locked(self, key: str) -> LockInfo | None:
        """Return the LockInfo for *key* if it is locked, else None."""
        with self._mutex:
            return self._locks.get(key)

    def active_locks(self) -> list[LockInfo]:
        with self._mutex:
            return list(self._locks.values())

    def __len__(self) -> int:
        with self._mutex:
            return len(self._locks)

    @contextmanager
    def hold(self, key: str) -> Iterator[bool]:
        """Scoped acquisition of *key*.

        Yields True when the lock was taken; it is then released on every
        exit from the block. Yields False when the key was already locked,
        in which case nothing is released on exit.
        """
        acquired = self.acquire(key)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(key)
