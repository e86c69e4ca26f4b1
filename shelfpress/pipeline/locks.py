"""Per-identifier mutual exclusion for concurrent pipeline runs."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from threading import Lock


class IdentifierLockRegistry:
    """Hand out one lock per base identifier, dropping entries nobody holds.

    Runs resolving to the same identifier write the same final paths, so they
    are serialized; runs for different identifiers proceed in parallel.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: dict[str, Lock] = {}
        self._users: dict[str, int] = {}

    @contextmanager
    def hold(self, identifier: str) -> Iterator[None]:
        """Block until `identifier` is free and keep it reserved for the block."""

        with self._guard:
            lock = self._locks.setdefault(identifier, Lock())
            self._users[identifier] = self._users.get(identifier, 0) + 1

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._users[identifier] -= 1
                if self._users[identifier] == 0:
                    del self._users[identifier]
                    del self._locks[identifier]

    def active_identifiers(self) -> tuple[str, ...]:
        """Return identifiers currently held or awaited."""

        with self._guard:
            return tuple(sorted(self._locks))
