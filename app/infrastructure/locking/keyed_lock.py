import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class KeyedLock:
    """In-process mutual exclusion per key. Unrelated keys never block each other.

    An entry lives only while some thread holds or waits for its key."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: Dict[str, _Entry] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    def _checkout(self, key: str) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, key: str, entry: _Entry) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._entries[key]

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        # sorted acquisition order keeps two multi-key holders from deadlocking
        acquired: List[tuple] = []
        try:
            for key in sorted(set(keys)):
                entry = self._checkout(key)
                try:
                    entry.lock.acquire()
                except BaseException:
                    self._checkin(key, entry)
                    raise
                acquired.append((key, entry))
            yield
        finally:
            for key, entry in reversed(acquired):
                entry.lock.release()
                self._checkin(key, entry)
