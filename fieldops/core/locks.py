"""
Per-resource locks held across an availability check and the write that
depends on it.

The row lock taken by the gateway (``SELECT ... FOR UPDATE``) serializes
writers across processes on PostgreSQL. SQLite ignores row locks, so a
process-local lock keyed on the resource id is taken as well.
"""

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator


class ResourceLockRegistry:
    """
    Hands out one re-entrant lock per resource id.

    Entries are weak: a lock disappears once no caller holds or waits on it,
    so the registry only tracks resources that are currently contended.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[int, threading.RLock]" = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def get(self, resource_id: int) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(resource_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[resource_id] = lock
            return lock

    @contextmanager
    def hold(self, resource_id: int) -> Iterator[None]:
        lock = self.get(resource_id)
        with lock:
            yield


resource_locks = ResourceLockRegistry()
