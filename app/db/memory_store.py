"""
app/db/memory_store.py

Purpose: Process-local key-value storage

- Holds rate limit and verification records keyed by destination
- Per-key asyncio locks so read-modify-write sequences are atomic
  for one destination without serializing unrelated destinations
- Volatile: contents are lost on restart and are not shared between
  processes (single-process deployment only)
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class _KeyLock:
    """A lock plus the number of tasks holding or waiting on it."""

    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class KeyedStore(Generic[T]):
    """
    In-memory key-value store with per-key locking.

    Reads and writes themselves are plain dict operations. Callers that
    need an atomic read-modify-write wrap it in ``locked(key)``:

        async with store.locked(destination):
            record = store.get(destination)
            ...
            store.put(destination, record)
    """

    def __init__(self, name: str = "store"):
        self.name = name
        self._data: Dict[str, T] = {}
        self._locks: Dict[str, _KeyLock] = {}

    @asynccontextmanager
    async def locked(self, key: str):
        """
        Holds the lock for a single key.

        Lock objects are reference counted and dropped once no task
        holds or awaits them, so idle keys cost nothing.
        """
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _KeyLock()

        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0 and self._locks.get(key) is entry:
                del self._locks[key]

    def get(self, key: str) -> Optional[T]:
        return self._data.get(key)

    def put(self, key: str, value: T) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        """Removes a key. Returns True if it existed."""
        return self._data.pop(key, None) is not None

    def keys(self) -> List[str]:
        """Snapshot of current keys (safe to iterate while mutating)."""
        return list(self._data.keys())

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data
