"""Value objects produced by draws and batches."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .cards import CardDefinition
from .economy import CurrencyType


@dataclass(frozen=True, slots=True)
class DrawOutcome:
    card: CardDefinition
    pity_triggered: bool = False


@dataclass(frozen=True, slots=True)
class DuplicateEntry:
    card: CardDefinition
    count: int


@dataclass(frozen=True, slots=True)
class DrawBatchResult:
    """Everything a player sees after a batch.

    ``cards`` is in draw order; ``new_cards`` and ``duplicates`` follow the
    order in which each card id was first drawn.
    """

    cards: tuple[CardDefinition, ...]
    new_cards: tuple[CardDefinition, ...]
    duplicates: tuple[DuplicateEntry, ...]
    currency_spent: int
    currency: CurrencyType
    pity_triggered: bool
    timestamp: datetime
