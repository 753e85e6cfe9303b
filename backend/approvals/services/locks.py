"""Per-key serialisation for check-then-act sections.

Quota and conflict answers are only valid at the instant they are computed,
so the guard check and the write that depends on it run under one lock per
key. Different keys never block each other.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Hashable, Iterator

logger = logging.getLogger(__name__)


class KeyedLocks:
    """Re-entrant lock per hashable key, dropped once no thread holds or awaits it."""

    def __init__(self):
        self._registry_lock = threading.Lock()
        # key -> [lock, number of holders and waiters]
        self._locks: dict[Hashable, list] = {}

    def _checkout(self, key: Hashable) -> threading.RLock:
        with self._registry_lock:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.RLock(), 0]
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: Hashable) -> None:
        with self._registry_lock:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)

    @contextmanager
    def hold(self, *keys: Hashable) -> Iterator[None]:
        """Acquire the locks for ``keys`` in a stable order and release on exit."""
        ordered = sorted(set(keys), key=repr)
        acquired = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                try:
                    lock.acquire()
                except BaseException:
                    self._checkin(key)
                    raise
                acquired.append((key, lock))
            yield
        finally:
            for key, lock in reversed(acquired):
                lock.release()
                self._checkin(key)


guard_locks = KeyedLocks()


def quota_key(requester_id: str) -> tuple:
    return ("quota", requester_id)


def request_key(request_id: str) -> tuple:
    return ("request", request_id)


def booking_key(normalized_resource: str, booking_date) -> tuple:
    return ("booking", normalized_resource, booking_date.isoformat())
