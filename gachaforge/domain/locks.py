"""Per-account serialization of read-modify-write sequences."""

from __future__ import annotations

import asyncio
import weakref


class AccountLocks:
    """Hand out one ``asyncio.Lock`` per account id.

    Batches and statistics rebuilds for the same account run one at a time;
    different accounts never wait on each other. A lock is dropped once no
    caller holds or waits on it, so unknown account ids leave nothing behind.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def for_account(self, account_id: str) -> asyncio.Lock:
        lock = self._locks.get(account_id)
        if lock is None:
            lock = self._locks[account_id] = asyncio.Lock()
        return lock

    def __len__(self) -> int:
        return len(self._locks)
