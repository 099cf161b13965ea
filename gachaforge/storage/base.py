"""Storage abstractions used by the gachaforge services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol, Sequence

from ..domain.cards import CardDefinition, CardTemplate, GameplayType, PackDefinition
from ..domain.economy import CurrencyType, zero_balances
from ..domain.results import DrawBatchResult
from ..domain.statistics import UserStatistics


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class AccountRecord:
    account_id: str
    username: str | None = None
    email: str | None = None
    currencies: dict[CurrencyType, int] = field(default_factory=zero_balances)
    statistics: UserStatistics = field(default_factory=UserStatistics)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class OwnedCardRecord:
    account_id: str
    card_id: str
    quantity: int
    obtained_at: datetime


@dataclass(frozen=True, slots=True)
class BatchRecord:
    """History log entry. Pack fields are copied at draw time."""

    record_id: str
    account_id: str
    pack_id: str
    pack_name: str
    pack_description: str
    pack_cover_image_url: str | None
    pack_currency: CurrencyType
    pack_cost: int
    quantity: int
    result: DrawBatchResult
    created_at: datetime


@dataclass(frozen=True, slots=True)
class BatchSettlement:
    """Every write a batch makes, committed together or not at all."""

    account: AccountRecord
    pack_id: str
    pity_counter: int
    owned_cards: tuple[OwnedCardRecord, ...]
    record: BatchRecord


class CatalogStore(Protocol):
    async def get_card(self, card_id: str) -> CardDefinition | None:
        ...

    async def get_cards_by_ids(self, card_ids: Sequence[str]) -> Sequence[CardDefinition]:
        ...

    async def list_cards(self, gameplay_type: GameplayType | None = None) -> Sequence[CardDefinition]:
        ...

    async def save_card(self, card: CardDefinition) -> None:
        ...

    async def delete_card(self, card_id: str) -> None:
        ...

    async def get_pack(self, pack_id: str) -> PackDefinition | None:
        ...

    async def list_packs(
        self, gameplay_type: GameplayType | None = None, *, active_only: bool = False
    ) -> Sequence[PackDefinition]:
        ...

    async def save_pack(self, pack: PackDefinition) -> None:
        ...

    async def delete_pack(self, pack_id: str) -> None:
        ...

    async def get_template(self, template_id: str) -> CardTemplate | None:
        ...

    async def list_templates(self, gameplay_type: GameplayType | None = None) -> Sequence[CardTemplate]:
        ...

    async def save_template(self, template: CardTemplate) -> None:
        ...


class AccountStore(Protocol):
    async def get(self, account_id: str) -> AccountRecord | None:
        ...

    async def save(self, record: AccountRecord) -> None:
        ...

    async def all(self) -> Sequence[AccountRecord]:
        ...


class PityStore(Protocol):
    async def get(self, account_id: str, pack_id: str) -> int:
        ...

    async def put(self, account_id: str, pack_id: str, counter: int) -> None:
        ...


class CollectionStore(Protocol):
    async def get(self, account_id: str, card_id: str) -> OwnedCardRecord | None:
        ...

    async def put(self, entry: OwnedCardRecord) -> None:
        ...

    async def delete(self, account_id: str, card_id: str) -> None:
        ...

    async def for_account(self, account_id: str) -> Sequence[OwnedCardRecord]:
        ...


class HistoryStore(Protocol):
    async def append(self, record: BatchRecord) -> None:
        ...

    async def for_account(self, account_id: str) -> Sequence[BatchRecord]:
        """Return the account's records, newest first."""
        ...

    async def all(self) -> Sequence[BatchRecord]:
        ...


class AuditStore(Protocol):
    async def add_entry(self, action: str, payload: dict) -> None:
        ...


class SettlementStore(Protocol):
    async def settle(self, settlement: BatchSettlement) -> None:
        """Persist the pity counter, owned cards, account and history record atomically."""
        ...
