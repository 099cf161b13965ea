"""Classify drawn cards as new or duplicate and update the ownership ledger."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from .cards import CardDefinition
from .results import DuplicateEntry
from ..storage.base import CollectionStore, OwnedCardRecord


@dataclass(frozen=True, slots=True)
class ReconciliationPlan:
    """Outcome of reconciling one batch, not yet written to the store."""

    account_id: str
    new_cards: tuple[CardDefinition, ...]
    duplicates: tuple[DuplicateEntry, ...]
    entries: tuple[OwnedCardRecord, ...]


class DuplicateReconciler:
    """Group a batch by card id and compare it with the account's collection.

    Planning only reads the collection. The resulting entries are written
    with the rest of the batch settlement, so a failure while planning leaves
    the ledger untouched.
    """

    def __init__(self, store: CollectionStore) -> None:
        self._store = store

    async def plan(
        self, account_id: str, drawn: Sequence[CardDefinition], *, now: datetime
    ) -> ReconciliationPlan:
        first_seen: dict[str, CardDefinition] = {}
        counts: dict[str, int] = {}
        for card in drawn:
            first_seen.setdefault(card.card_id, card)
            counts[card.card_id] = counts.get(card.card_id, 0) + 1

        new_cards: list[CardDefinition] = []
        duplicates: list[DuplicateEntry] = []
        entries: list[OwnedCardRecord] = []
        for card_id, card in first_seen.items():
            count = counts[card_id]
            owned = await self._store.get(account_id, card_id)
            if owned is not None and owned.quantity >= 1:
                duplicates.append(DuplicateEntry(card=card, count=count))
                entries.append(
                    OwnedCardRecord(
                        account_id=account_id,
                        card_id=card_id,
                        quantity=owned.quantity + count,
                        obtained_at=owned.obtained_at,
                    )
                )
            else:
                new_cards.append(card)
                entries.append(
                    OwnedCardRecord(
                        account_id=account_id,
                        card_id=card_id,
                        quantity=count,
                        obtained_at=now,
                    )
                )

        return ReconciliationPlan(
            account_id=account_id,
            new_cards=tuple(new_cards),
            duplicates=tuple(duplicates),
            entries=tuple(entries),
        )
