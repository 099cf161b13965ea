"""Top level application object for gachaforge."""

from __future__ import annotations

from datetime import datetime
from random import Random
from typing import Any, Callable

from .admin.service import CatalogAdminService
from .config import GachaConfig
from .domain.accounts import AccountService
from .domain.analytics import StatisticsService
from .domain.cache import StatisticsCache
from .domain.catalog import CatalogService
from .domain.duplicates import DuplicateReconciler
from .domain.events import EventBus
from .domain.gacha import GachaService
from .domain.locks import AccountLocks
from .domain.pity import PityTracker
from .storage.base import (
    AccountStore,
    AuditStore,
    CatalogStore,
    CollectionStore,
    HistoryStore,
    PityStore,
    SettlementStore,
    utcnow,
)
from .storage.memory import (
    CompensatingSettlementStore,
    InMemoryAccountStore,
    InMemoryAuditStore,
    InMemoryCatalogStore,
    InMemoryCollectionStore,
    InMemoryHistoryStore,
    InMemoryPityStore,
)
from .storage.sqlalchemy import AsyncSQLAlchemyStorage


class GachaApp:
    """Central dependency container wiring stores and services."""

    def __init__(
        self,
        config: GachaConfig | None = None,
        *,
        catalog_store: CatalogStore | None = None,
        account_store: AccountStore | None = None,
        pity_store: PityStore | None = None,
        collection_store: CollectionStore | None = None,
        history_store: HistoryStore | None = None,
        audit_store: AuditStore | None = None,
        event_bus: EventBus | None = None,
        rng: Random | None = None,
        clock: Callable[[], datetime] = utcnow,
        cache_clock: Callable[[], float] | None = None,
    ) -> None:
        self.config = config or GachaConfig()
        self.event_bus = event_bus or EventBus()
        self._rng = rng or (
            Random(self.config.rng_seed) if self.config.rng_seed is not None else Random()
        )

        self._sqlalchemy_storage: AsyncSQLAlchemyStorage | None = None
        (
            self.catalog_store,
            self.account_store,
            self.pity_store,
            self.collection_store,
            self.history_store,
            self.audit_store,
        ) = self._wire_storage(
            catalog_store, account_store, pity_store, collection_store, history_store, audit_store
        )
        self.settlement_store = self._wire_settlements(
            overridden=any(
                store is not None
                for store in (account_store, pity_store, collection_store, history_store)
            )
        )

        cache_kwargs = {"clock": cache_clock} if cache_clock is not None else {}
        self.cache = StatisticsCache(
            user_ttl=self.config.statistics.user_ttl_seconds,
            global_ttl=self.config.statistics.global_ttl_seconds,
            **cache_kwargs,
        )
        self.locks = AccountLocks()

        self.catalog = CatalogService(self.catalog_store)
        self.accounts = AccountService(
            self.account_store,
            self.collection_store,
            self.history_store,
            self.catalog_store,
            locks=self.locks,
            starting_balances=self.config.rules.starting_balances,
            clock=clock,
        )
        self.gacha = GachaService(
            self.catalog_store,
            self.account_store,
            self.history_store,
            PityTracker(self.pity_store),
            DuplicateReconciler(self.collection_store),
            self.config.rules,
            self.event_bus,
            settlements=self.settlement_store,
            cache=self.cache,
            locks=self.locks,
            rng=self._rng,
            clock=clock,
        )
        self.statistics = StatisticsService(
            self.account_store,
            self.history_store,
            self.catalog_store,
            cache=self.cache,
            locks=self.locks,
            clock=clock,
        )
        self.admin = CatalogAdminService(
            self.catalog_store,
            self.audit_store,
            self.accounts,
            self.event_bus,
            self.cache,
        )

    @property
    def rng(self) -> Random:
        return self._rng

    def _wire_storage(
        self,
        catalog_store: CatalogStore | None,
        account_store: AccountStore | None,
        pity_store: PityStore | None,
        collection_store: CollectionStore | None,
        history_store: HistoryStore | None,
        audit_store: AuditStore | None,
    ) -> tuple[CatalogStore, AccountStore, PityStore, CollectionStore, HistoryStore, AuditStore]:
        backend = self.config.storage.backend
        if backend == "memory":
            return (
                catalog_store or InMemoryCatalogStore(),
                account_store or InMemoryAccountStore(),
                pity_store or InMemoryPityStore(),
                collection_store or InMemoryCollectionStore(),
                history_store or InMemoryHistoryStore(),
                audit_store or InMemoryAuditStore(),
            )
        if backend == "sqlalchemy":
            dsn = self.config.storage.resolve_dsn()
            if not dsn:
                raise ValueError("SQLAlchemy backend requires a DSN")
            storage = AsyncSQLAlchemyStorage(dsn, echo=self.config.storage.echo_sql)
            self._sqlalchemy_storage = storage
            return (
                catalog_store or storage.catalog_store(),
                account_store or storage.account_store(),
                pity_store or storage.pity_store(),
                collection_store or storage.collection_store(),
                history_store or storage.history_store(),
                audit_store or storage.audit_store(),
            )
        raise ValueError(f"Unsupported storage backend {backend}")

    def _wire_settlements(self, *, overridden: bool) -> SettlementStore:
        # A single SQL transaction only covers stores that share its engine.
        if self._sqlalchemy_storage is not None and not overridden:
            return self._sqlalchemy_storage.settlement_store()
        return CompensatingSettlementStore(
            self.account_store, self.pity_store, self.collection_store, self.history_store
        )

    async def snapshot(self) -> dict[str, Any]:
        """Export current configuration and catalog ids for debugging."""
        return {
            "storage": self.config.storage.backend,
            "allowed_quantities": list(self.config.rules.allowed_quantities),
            "templates": [t.template_id for t in await self.catalog_store.list_templates()],
            "cards": [card.card_id for card in await self.catalog_store.list_cards()],
            "packs": [pack.pack_id for pack in await self.catalog_store.list_packs()],
        }

    async def init_backend(self) -> None:
        """Initialize storage backend resources (e.g., database tables)."""
        if self._sqlalchemy_storage:
            await self._sqlalchemy_storage.init_models()

    async def close(self) -> None:
        if self._sqlalchemy_storage:
            await self._sqlalchemy_storage.dispose()
