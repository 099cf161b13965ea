"""In-memory storage backend for gachaforge."""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Deque, Sequence

from ..domain.cards import CardDefinition, CardTemplate, GameplayType, PackDefinition
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

logger = logging.getLogger(__name__)


class InMemoryCatalogStore(CatalogStore):
    def __init__(self) -> None:
        self._cards: dict[str, CardDefinition] = {}
        self._packs: dict[str, PackDefinition] = {}
        self._templates: dict[str, CardTemplate] = {}

    async def get_card(self, card_id: str) -> CardDefinition | None:
        return self._cards.get(card_id)

    async def get_cards_by_ids(self, card_ids: Sequence[str]) -> Sequence[CardDefinition]:
        return [self._cards[card_id] for card_id in card_ids if card_id in self._cards]

    async def list_cards(self, gameplay_type: GameplayType | None = None) -> Sequence[CardDefinition]:
        return [
            card
            for card in self._cards.values()
            if gameplay_type is None or card.gameplay_type == gameplay_type
        ]

    async def save_card(self, card: CardDefinition) -> None:
        self._cards[card.card_id] = card

    async def delete_card(self, card_id: str) -> None:
        self._cards.pop(card_id, None)

    async def get_pack(self, pack_id: str) -> PackDefinition | None:
        return self._packs.get(pack_id)

    async def list_packs(
        self, gameplay_type: GameplayType | None = None, *, active_only: bool = False
    ) -> Sequence[PackDefinition]:
        return [
            pack
            for pack in self._packs.values()
            if (gameplay_type is None or pack.gameplay_type == gameplay_type)
            and (pack.is_active or not active_only)
        ]

    async def save_pack(self, pack: PackDefinition) -> None:
        self._packs[pack.pack_id] = pack

    async def delete_pack(self, pack_id: str) -> None:
        self._packs.pop(pack_id, None)

    async def get_template(self, template_id: str) -> CardTemplate | None:
        return self._templates.get(template_id)

    async def list_templates(self, gameplay_type: GameplayType | None = None) -> Sequence[CardTemplate]:
        return [
            template
            for template in self._templates.values()
            if gameplay_type is None or template.gameplay_type == gameplay_type
        ]

    async def save_template(self, template: CardTemplate) -> None:
        self._templates[template.template_id] = template


class InMemoryAccountStore(AccountStore):
    def __init__(self) -> None:
        self._records: dict[str, AccountRecord] = {}

    async def get(self, account_id: str) -> AccountRecord | None:
        return self._records.get(account_id)

    async def save(self, record: AccountRecord) -> None:
        self._records[record.account_id] = record

    async def all(self) -> Sequence[AccountRecord]:
        return list(self._records.values())


class InMemoryPityStore(PityStore):
    def __init__(self) -> None:
        self._counters: dict[tuple[str, str], int] = {}

    async def get(self, account_id: str, pack_id: str) -> int:
        return self._counters.get((account_id, pack_id), 0)

    async def put(self, account_id: str, pack_id: str, counter: int) -> None:
        self._counters[(account_id, pack_id)] = counter


class InMemoryCollectionStore(CollectionStore):
    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], OwnedCardRecord] = {}

    async def get(self, account_id: str, card_id: str) -> OwnedCardRecord | None:
        return self._entries.get((account_id, card_id))

    async def put(self, entry: OwnedCardRecord) -> None:
        self._entries[(entry.account_id, entry.card_id)] = entry

    async def delete(self, account_id: str, card_id: str) -> None:
        self._entries.pop((account_id, card_id), None)

    async def for_account(self, account_id: str) -> Sequence[OwnedCardRecord]:
        return [entry for (owner, _), entry in self._entries.items() if owner == account_id]


class InMemoryHistoryStore(HistoryStore):
    """Append-only; nothing is ever evicted because statistics replay from it."""

    def __init__(self) -> None:
        self._history: list[BatchRecord] = []

    async def append(self, record: BatchRecord) -> None:
        self._history.append(record)

    async def for_account(self, account_id: str) -> Sequence[BatchRecord]:
        return [rec for rec in reversed(self._history) if rec.account_id == account_id]

    async def all(self) -> Sequence[BatchRecord]:
        return list(self._history)


class InMemoryAuditStore(AuditStore):
    def __init__(self, *, maxlen: int = 1000) -> None:
        self._entries: Deque[tuple[datetime, str, dict]] = deque(maxlen=maxlen)

    async def add_entry(self, action: str, payload: dict) -> None:
        self._entries.append((datetime.now(timezone.utc), action, payload))

    def dump(self) -> list[tuple[datetime, str, dict]]:
        return list(self._entries)


class CompensatingSettlementStore(SettlementStore):
    """Settle a batch through separate stores, undoing earlier writes if a later one fails.

    The history record is written last, so a failure anywhere leaves no
    record behind and every earlier write is restored from a snapshot.
    """

    def __init__(
        self,
        accounts: AccountStore,
        pity: PityStore,
        collection: CollectionStore,
        history: HistoryStore,
    ) -> None:
        self._accounts = accounts
        self._pity = pity
        self._collection = collection
        self._history = history

    async def settle(self, settlement: BatchSettlement) -> None:
        account_id = settlement.account.account_id
        previous_account = await self._accounts.get(account_id)
        previous_counter = await self._pity.get(account_id, settlement.pack_id)
        previous_owned = [
            (entry.card_id, await self._collection.get(account_id, entry.card_id))
            for entry in settlement.owned_cards
        ]

        try:
            await self._pity.put(account_id, settlement.pack_id, settlement.pity_counter)
            for entry in settlement.owned_cards:
                await self._collection.put(entry)
            await self._accounts.save(settlement.account)
            await self._history.append(settlement.record)
        except Exception:
            logger.warning(
                "Settlement of batch %s failed; restoring account %s",
                settlement.record.record_id,
                account_id,
            )
            await self._pity.put(account_id, settlement.pack_id, previous_counter)
            for card_id, owned in previous_owned:
                if owned is None:
                    await self._collection.delete(account_id, card_id)
                else:
                    await self._collection.put(owned)
            if previous_account is not None:
                await self._accounts.save(previous_account)
            raise
