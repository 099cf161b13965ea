"""Factories for tests and prototyping."""

from __future__ import annotations

from dataclasses import dataclass, field
from random import Random
from typing import Iterable, Sequence

from faker import Faker

from ..domain.cards import CardDefinition, PackDefinition, PitySystem, Rarity
from ..domain.economy import CurrencyType


@dataclass(slots=True)
class CardFactory:
    faker: Faker = field(default_factory=Faker)
    rng: Random = field(default_factory=Random)

    def build(self, rarity: Rarity | None = None, **overrides) -> CardDefinition:
        rarity = rarity or self.rng.choice(list(Rarity))
        values = {
            "card_id": f"card_{self.faker.unique.lexify(text='????????')}",
            "name": self.faker.word().title(),
            "description": self.faker.sentence(),
            "rarity": rarity,
            "image_url": self.faker.image_url(),
        }
        values.update(overrides)
        return CardDefinition(**values)

    def batch(self, count: int, rarity: Rarity | None = None) -> Iterable[CardDefinition]:
        for _ in range(count):
            yield self.build(rarity=rarity)


@dataclass(slots=True)
class PackFactory:
    """Build valid packs; probabilities are uniform unless given."""

    faker: Faker = field(default_factory=Faker)

    def build(
        self,
        cards: Sequence[CardDefinition],
        *,
        probabilities: dict[str, float] | None = None,
        cost: int = 100,
        currency: CurrencyType = CurrencyType.GOLD,
        pity_system: PitySystem | None = None,
        **overrides,
    ) -> PackDefinition:
        if probabilities is None:
            share = 1.0 / len(cards)
            probabilities = {card.card_id: share for card in cards}
        values = {
            "pack_id": f"pack_{self.faker.unique.lexify(text='????????')}",
            "name": f"{self.faker.word().title()} Pack",
            "description": self.faker.sentence(),
            "cost": cost,
            "currency": currency,
            "available_cards": tuple(card.card_id for card in cards),
            "card_probabilities": probabilities,
            "pity_system": pity_system,
        }
        values.update(overrides)
        return PackDefinition(**values)


@dataclass(slots=True)
class AccountFactory:
    faker: Faker = field(default_factory=Faker)

    def build_identity(self) -> dict[str, str]:
        return {"username": self.faker.user_name(), "email": self.faker.email()}
