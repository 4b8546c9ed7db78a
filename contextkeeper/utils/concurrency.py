"""Per-key serialization for the multi-step context pipelines.

Ingest, update, delete and reprocess each span several store and embedder
calls.  :class:`KeyedLock` hands out one ``asyncio.Lock`` per context id so
that two pipelines touching the same context run one after the other, while
pipelines on different contexts proceed concurrently.

Locks are created on first use and discarded once the last waiter releases
them, so the table only ever holds ids with an in-flight pipeline.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class KeyedLock:
    """A table of ``asyncio.Lock`` objects keyed by string id.

    Usage::

        locks = KeyedLock()
        async with locks.hold(context_id):
            ...  # no other holder of context_id runs here
    """

    def __init__(self) -> None:
        # key -> (lock, number of tasks holding or waiting on it)
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Acquire the lock for *key* for the duration of the ``async with`` block."""
        lock, users = self._locks.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[key] = (lock, users + 1)

        try:
            async with lock:
                yield
        finally:
            _, users = self._locks[key]
            if users <= 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)

    def is_held(self, key: str) -> bool:
        """Return ``True`` while some task holds or waits on *key*."""
        return key in self._locks

    def __len__(self) -> int:
        return len(self._locks)
