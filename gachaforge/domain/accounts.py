"""Account-centric utilities."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Mapping, Sequence

from .cards import CardDefinition
from .economy import CurrencyType, Wallet
from .exceptions import AccountNotFound
from .locks import AccountLocks
from ..storage.base import (
    AccountRecord,
    AccountStore,
    BatchRecord,
    CatalogStore,
    CollectionStore,
    HistoryStore,
    utcnow,
)


@dataclass(slots=True)
class AccountProfile:
    account_id: str
    username: str | None
    email: str | None
    currencies: Mapping[CurrencyType, int]
    created_at: datetime
    updated_at: datetime


@dataclass(slots=True)
class CollectionEntry:
    """Owned card joined with its definition; ``card`` is None once deleted."""

    card_id: str
    quantity: int
    obtained_at: datetime
    card: CardDefinition | None


class AccountService:
    """Expose read/write operations for account state."""

    def __init__(
        self,
        store: AccountStore,
        collection_store: CollectionStore,
        history_store: HistoryStore,
        catalog: CatalogStore,
        *,
        locks: AccountLocks,
        starting_balances: Mapping[CurrencyType, int] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._collection = collection_store
        self._history = history_store
        self._catalog = catalog
        self._locks = locks
        self._starting_balances = dict(starting_balances or {})
        self._clock = clock

    async def create_account(
        self,
        *,
        username: str | None = None,
        email: str | None = None,
        account_id: str | None = None,
    ) -> AccountProfile:
        account_id = account_id or uuid.uuid4().hex
        if await self._store.get(account_id) is not None:
            raise ValueError(f"Account {account_id} already exists")
        now = self._clock()
        wallet = Wallet.from_mapping(self._starting_balances)
        record = AccountRecord(
            account_id=account_id,
            username=username,
            email=email,
            currencies=dict(wallet.balances),
            created_at=now,
            updated_at=now,
        )
        await self._store.save(record)
        return self._to_profile(record)

    async def fetch(self, account_id: str) -> AccountProfile:
        return self._to_profile(await self._require(account_id))

    async def credit(self, account_id: str, currency: CurrencyType, amount: int) -> AccountProfile:
        if amount <= 0:
            raise ValueError("Amount must be positive")
        async with self._locks.for_account(account_id):
            record = await self._require(account_id)
            wallet = Wallet.from_mapping(record.currencies)
            wallet.credit(currency, amount)
            return await self._save_wallet(record, wallet)

    async def spend(self, account_id: str, currency: CurrencyType, amount: int) -> AccountProfile:
        if amount <= 0:
            raise ValueError("Amount must be positive")
        async with self._locks.for_account(account_id):
            record = await self._require(account_id)
            wallet = Wallet.from_mapping(record.currencies)
            wallet.debit(currency, amount)
            return await self._save_wallet(record, wallet)

    async def collection(self, account_id: str) -> Sequence[CollectionEntry]:
        await self._require(account_id)
        owned = await self._collection.for_account(account_id)
        cards = {
            card.card_id: card
            for card in await self._catalog.get_cards_by_ids([entry.card_id for entry in owned])
        }
        return [
            CollectionEntry(
                card_id=entry.card_id,
                quantity=entry.quantity,
                obtained_at=entry.obtained_at,
                card=cards.get(entry.card_id),
            )
            for entry in owned
        ]

    async def history(self, account_id: str) -> Sequence[BatchRecord]:
        await self._require(account_id)
        return await self._history.for_account(account_id)

    async def _require(self, account_id: str) -> AccountRecord:
        record = await self._store.get(account_id)
        if record is None:
            raise AccountNotFound(account_id)
        return record

    async def _save_wallet(self, record: AccountRecord, wallet: Wallet) -> AccountProfile:
        record.currencies = dict(wallet.balances)
        record.updated_at = self._clock()
        await self._store.save(record)
        return self._to_profile(record)

    def _to_profile(self, record: AccountRecord) -> AccountProfile:
        return AccountProfile(
            account_id=record.account_id,
            username=record.username,
            email=record.email,
            currencies=dict(record.currencies),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
