"""Monte-Carlo drop-rate simulation."""

from __future__ import annotations

from dataclasses import dataclass, field
from random import Random
from typing import TYPE_CHECKING, Dict

from ..domain.cards import Rarity, cards_by_id
from ..domain.pity import advance
from ..domain.resolver import DrawResolver
from ..domain.statistics import zero_rarities

if TYPE_CHECKING:
    from ..app import GachaApp


@dataclass(slots=True)
class SimulationResult:
    pack_id: str
    pulls: int
    rarity_counts: Dict[Rarity, int] = field(default_factory=zero_rarities)
    card_counts: Dict[str, int] = field(default_factory=dict)
    expected_rates: Dict[Rarity, float] = field(default_factory=dict)
    pity_triggers: int = 0

    def observed_rates(self) -> Dict[Rarity, float]:
        if not self.pulls:
            return {rarity: 0.0 for rarity in self.rarity_counts}
        return {rarity: count / self.pulls for rarity, count in self.rarity_counts.items()}


class DropRateSimulator:
    """Pull a pack repeatedly through the real resolver and pity rules.

    Nothing is written: the pity counter lives only for the simulation and
    no currency is charged.
    """

    def __init__(self, app: "GachaApp", *, rng: Random | None = None) -> None:
        self._app = app
        self._rng = rng or Random()

    async def simulate(self, pack_id: str, *, pulls: int = 1000) -> SimulationResult:
        if pulls <= 0:
            raise ValueError("Pulls must be positive")
        pack = await self._app.catalog.get_pack(pack_id)
        cards = cards_by_id(await self._app.catalog_store.get_cards_by_ids(pack.available_cards))

        result = SimulationResult(pack_id=pack_id, pulls=pulls)
        for card_id, probability in pack.card_probabilities.items():
            card = cards.get(card_id)
            if card is not None and card_id in pack.available_cards:
                result.expected_rates[card.rarity] = (
                    result.expected_rates.get(card.rarity, 0.0) + probability
                )

        resolver = DrawResolver(self._rng)
        counter = 0
        for _ in range(pulls):
            outcome = resolver.resolve(pack, counter, cards)
            result.rarity_counts[outcome.card.rarity] += 1
            result.card_counts[outcome.card.card_id] = (
                result.card_counts.get(outcome.card.card_id, 0) + 1
            )
            if outcome.pity_triggered:
                result.pity_triggers += 1
            counter = advance(counter, outcome.pity_triggered, pack.pity_system)
        return result
