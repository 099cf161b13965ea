"""Read-through TTL cache for derived statistics."""

from __future__ import annotations

import copy
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Union

from .cards import GameplayType

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UserStatisticsKey:
    account_id: str
    gameplay_type: GameplayType | None = None


@dataclass(frozen=True, slots=True)
class GlobalStatisticsKey:
    gameplay_type: GameplayType | None = None


StatisticsKey = Union[UserStatisticsKey, GlobalStatisticsKey]


class StatisticsCache:
    """Cache user and global statistics with separate lifetimes.

    Values are copied on the way in and out so callers can never mutate a
    cached entry. A TTL of zero or less disables caching for that key type.
    """

    def __init__(
        self,
        *,
        user_ttl: float = 120.0,
        global_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._user_ttl = user_ttl
        self._global_ttl = global_ttl
        self._clock = clock
        self._entries: dict[StatisticsKey, tuple[float, Any]] = {}

    def get(self, key: StatisticsKey) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return copy.deepcopy(value)

    def put(self, key: StatisticsKey, value: Any) -> None:
        ttl = self._user_ttl if isinstance(key, UserStatisticsKey) else self._global_ttl
        if ttl <= 0:
            return
        self._entries[key] = (self._clock() + ttl, copy.deepcopy(value))

    def invalidate_account(self, account_id: str) -> None:
        for key in [k for k in self._entries if isinstance(k, UserStatisticsKey)]:
            if key.account_id == account_id:
                del self._entries[key]
        logger.debug("Invalidated cached statistics for account %s", account_id)

    def invalidate_global(self) -> None:
        for key in [k for k in self._entries if isinstance(k, GlobalStatisticsKey)]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: StatisticsKey) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
