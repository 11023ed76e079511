"""Bookkeeping for optimistic local writes awaiting server confirmation."""

from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True)
class _PendingWrite(Generic[V]):
    value: V
    version: int


@dataclass
class PendingWrites(Generic[K, V]):
    """Tracks values written locally but not yet reflected by the server.

    Each entry is dirty until a server read reports the written value. The
    version returned by ``record`` lets a failed write roll back its own
    entry without discarding a newer write to the same key.
    """

    _entries: dict[K, _PendingWrite[V]] = field(default_factory=dict)
    _next_version: int = 0

    def record(self, key: K, value: V) -> int:
        self._next_version += 1
        self._entries[key] = _PendingWrite(value=value, version=self._next_version)
        return self._next_version

    def resolve(self, key: K, local: V | None, server: V) -> V:
        """Return the value to keep for ``key`` after a server read.

        The local value wins only while a write is pending, the local copy
        still holds the written value and the server has not caught up. A
        server read that matches the written value confirms the write.
        """
        pending = self._entries.get(key)
        if pending is None:
            return server
        if server == pending.value:
            del self._entries[key]
            return server
        if local == pending.value:
            return pending.value
        return server

    def rollback(self, key: K, version: int) -> bool:
        """Drop the entry for ``key`` if it still belongs to ``version``."""
        pending = self._entries.get(key)
        if pending is None or pending.version != version:
            return False
        del self._entries[key]
        return True

    def is_pending(self, key: K) -> bool:
        return key in self._entries

    def keys(self) -> set[K]:
        return set(self._entries)

    def clear(self) -> None:
        self._entries.clear()
