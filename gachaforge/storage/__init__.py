"""Storage backends for gachaforge."""

from .base import (
    AccountRecord,
    AccountStore,
    AuditStore,
    BatchRecord,
    BatchSettlement,
    CatalogStore,
    CollectionStore,
    HistoryStore,
    OwnedCardRecord,
    PityStore,
    SettlementStore,
)
from .memory import (
    CompensatingSettlementStore,
    InMemoryAccountStore,
    InMemoryAuditStore,
    InMemoryCatalogStore,
    InMemoryCollectionStore,
    InMemoryHistoryStore,
    InMemoryPityStore,
)
from .sqlalchemy import AsyncSQLAlchemyStorage

__all__ = [
    "AccountRecord",
    "AccountStore",
    "AuditStore",
    "BatchRecord",
    "BatchSettlement",
    "CatalogStore",
    "CollectionStore",
    "HistoryStore",
    "OwnedCardRecord",
    "PityStore",
    "SettlementStore",
    "CompensatingSettlementStore",
    "InMemoryAccountStore",
    "InMemoryAuditStore",
    "InMemoryCatalogStore",
    "InMemoryCollectionStore",
    "InMemoryHistoryStore",
    "InMemoryPityStore",
    "AsyncSQLAlchemyStorage",
]
