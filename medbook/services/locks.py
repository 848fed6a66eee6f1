"""
Process-wide locks keyed by record id.

Bookings are serialized per doctor and mutations per appointment. Entries
are reference counted so the registry does not grow with every id it has
ever seen.
"""
import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, List


class KeyedLock:
    def __init__(self, name: str):
        self.name = name
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, List] = {}  # key -> [lock, holders]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1

        entry[0].acquire()
        try:
            yield
        finally:
            entry[0].release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


doctor_locks = KeyedLock("doctor")
appointment_locks = KeyedLock("appointment")
