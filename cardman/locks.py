"""Per-key locks serializing mutations of the same card number."""

import threading
from contextlib import contextmanager


class KeyedLock:
    """
    Registry of one lock per key, created on demand.

    Entries are refcounted and dropped once no caller holds or waits on
    them, so the registry does not grow with every card ever touched.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, tuple[threading.Lock, int]] = {}

    @contextmanager
    def hold(self, key: str):
        with self._guard:
            lock, users = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[key] = (lock, users + 1)

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                _, users = self._locks[key]
                if users <= 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)

    def __len__(self):
        return len(self._locks)
