# =============================================================================
# health_store/storage/loop_lock.py
# Asyncio Lock Scoped to the Running Event Loop
# =============================================================================
"""
An asyncio.Lock binds itself to the first event loop it waits in. Stores are
cached for the life of a Database, and a Streamlit rerun typically drives
them from a fresh `asyncio.run`, so each loop gets its own lock here.
"""

from __future__ import annotations
import asyncio
import threading
import weakref


class LoopLocalLock:
    """
    Async context manager holding one asyncio.Lock per running event loop.

    Usage:
        lock = LoopLocalLock()
        async with lock:
            ...
    """

    def __init__(self):
        self._locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = (
            weakref.WeakKeyDictionary()
        )
        self._guard = threading.Lock()

    def get(self) -> asyncio.Lock:
        """The lock for the currently running loop (created on first use)."""
        loop = asyncio.get_running_loop()
        with self._guard:
            lock = self._locks.get(loop)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[loop] = lock
            return lock

    def locked(self) -> bool:
        return self.get().locked()

    async def __aenter__(self) -> LoopLocalLock:
        await self.get().acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.get().release()
        return False
