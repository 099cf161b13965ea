"""Statistics aggregation over the history log."""

from __future__ import annotations

import copy
import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable

from .cache import GlobalStatisticsKey, StatisticsCache, UserStatisticsKey
from .cards import GameplayType
from .exceptions import AccountNotFound
from .locks import AccountLocks
from .statistics import (
    GlobalStatistics,
    UserStatistics,
    build_global_statistics,
    creation_order,
    replay,
)
from ..storage.base import (
    AccountRecord,
    AccountStore,
    BatchRecord,
    CatalogStore,
    HistoryStore,
    utcnow,
)

logger = logging.getLogger(__name__)


class StatisticsService:
    """Rebuild and serve user and global statistics.

    The history log is the source of truth. The statistics embedded in each
    account are only a cache: ``update_user_statistics_from_history``
    overwrites them with a fresh replay.
    """

    def __init__(
        self,
        account_store: AccountStore,
        history_store: HistoryStore,
        catalog: CatalogStore,
        *,
        cache: StatisticsCache,
        locks: AccountLocks,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._accounts = account_store
        self._history = history_store
        self._catalog = catalog
        self._cache = cache
        self._locks = locks
        self._clock = clock

    async def update_user_statistics_from_history(self, account: AccountRecord) -> UserStatistics:
        """Replace the stored statistics of ``account`` with a replay of its history.

        Only the statistics change: the account is read again under its lock,
        so balances in a stale ``account`` never overwrite newer ones.
        Idempotent: two calls in a row produce equal statistics.
        """
        async with self._locks.for_account(account.account_id):
            current = await self._accounts.get(account.account_id)
            if current is None:
                raise AccountNotFound(account.account_id)
            records = await self._history.for_account(account.account_id)
            stats = replay(creation_order(records))
            await self._accounts.save(replace(current, statistics=stats))
        self._cache.invalidate_account(account.account_id)
        logger.debug(
            "Rebuilt statistics for account %s from %d records", account.account_id, len(records)
        )
        return copy.deepcopy(stats)

    async def get_user_statistics(
        self, account_id: str, gameplay_type: GameplayType | None = None
    ) -> UserStatistics:
        key = UserStatisticsKey(account_id, gameplay_type)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        account = await self._accounts.get(account_id)
        if account is None:
            raise AccountNotFound(account_id)

        if gameplay_type is None:
            stats = await self.update_user_statistics_from_history(account)
        else:
            records = await self._history.for_account(account_id)
            pack_ids = await self._pack_ids(gameplay_type)
            stats = replay(creation_order(r for r in records if r.pack_id in pack_ids))

        self._cache.put(key, stats)
        return stats

    async def get_statistics(
        self, gameplay_type: GameplayType | None = None, *, now: datetime | None = None
    ) -> GlobalStatistics:
        """Global statistics across every account's history.

        Results are cached only when ``now`` is not supplied, since activity
        windows depend on it.
        """
        key = GlobalStatisticsKey(gameplay_type)
        if now is None:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        packs = await self._catalog.list_packs(gameplay_type)
        pack_names = {pack.pack_id: pack.name for pack in packs}
        records: Iterable[BatchRecord] = await self._history.all()
        if gameplay_type is not None:
            records = [record for record in records if record.pack_id in pack_names]

        stats = build_global_statistics(
            records,
            total_users=len(await self._accounts.all()),
            pack_names=pack_names,
            now=now or self._clock(),
        )
        if now is None:
            self._cache.put(key, stats)
        return stats

    async def _pack_ids(self, gameplay_type: GameplayType) -> set[str]:
        return {pack.pack_id for pack in await self._catalog.list_packs(gameplay_type)}
