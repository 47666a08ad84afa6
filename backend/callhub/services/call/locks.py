"""
Per-call mutual exclusion.

Each call id maps to one asyncio.Lock for as long as anyone holds or waits on
it. Entries live in a WeakValueDictionary, so locks for finished calls are
collected once no coroutine references them.
"""
import asyncio
from weakref import WeakValueDictionary


class CallLocks:
    """Hands out the lock that serializes mutations of one call."""

    def __init__(self):
        self._locks: "WeakValueDictionary[str, asyncio.Lock]" = WeakValueDictionary()

    def lock_for(self, call_id: str) -> asyncio.Lock:
        lock = self._locks.get(call_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[call_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)
