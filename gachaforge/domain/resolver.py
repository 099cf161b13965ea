"""Single-draw resolution: weighted sampling with soft and hard pity."""

from __future__ import annotations

import logging
from random import Random
from typing import Mapping, Sequence

from .cards import CardDefinition, PackDefinition
from .exceptions import NoAvailableCards, PitySystemError
from .pity import is_hard_pity, soft_pity_bonus
from .results import DrawOutcome

logger = logging.getLogger(__name__)


class DrawResolver:
    """Turn one draw request into one card.

    ``cards`` maps card ids to definitions; ids that cannot be resolved are
    skipped during the cumulative walk.
    """

    def __init__(self, rng: Random | None = None) -> None:
        self._rng = rng or Random()

    def resolve(
        self,
        pack: PackDefinition,
        counter: int,
        cards: Mapping[str, CardDefinition],
    ) -> DrawOutcome:
        if is_hard_pity(counter, pack.pity_system):
            card = self._guaranteed_card(pack, cards)
            logger.debug("Hard pity hit on pack %s at counter %d: %s", pack.pack_id, counter, card.card_id)
            return DrawOutcome(card=card, pity_triggered=True)
        return DrawOutcome(card=self._card_by_probability(pack, counter, cards))

    def _card_by_probability(
        self,
        pack: PackDefinition,
        counter: int,
        cards: Mapping[str, CardDefinition],
    ) -> CardDefinition:
        roll = self._rng.random()
        bonus = soft_pity_bonus(counter, pack.pity_system)
        if bonus:
            roll *= 1 - bonus

        cumulative = 0.0
        for card_id, probability in pack.draw_table():
            cumulative += probability
            if cumulative >= roll:
                card = cards.get(card_id)
                if card is not None:
                    return card

        fallback = cards.get(pack.available_cards[0]) if pack.available_cards else None
        if fallback is None:
            raise NoAvailableCards(
                f"No available cards in pack {pack.pack_id}",
                {"pack_id": pack.pack_id, "available_cards": list(pack.available_cards)},
            )
        logger.warning(
            "Roll %.6f fell outside the draw table of pack %s; using %s",
            roll,
            pack.pack_id,
            fallback.card_id,
        )
        return fallback

    def _guaranteed_card(
        self, pack: PackDefinition, cards: Mapping[str, CardDefinition]
    ) -> CardDefinition:
        pity = pack.pity_system
        if pity is None or not pity.guaranteed_cards:
            raise PitySystemError(
                f"No guaranteed cards configured for pack {pack.pack_id}",
                {"pack_id": pack.pack_id},
            )

        if pity.guaranteed_card_weights:
            index = self._weighted_index(pity.guaranteed_card_weights)
        else:
            index = self._uniform_index(len(pity.guaranteed_cards))
        card_id = pity.guaranteed_cards[index]

        card = cards.get(card_id)
        if card is None:
            raise PitySystemError(
                f"Guaranteed card {card_id} not found in pack {pack.pack_id}",
                {"pack_id": pack.pack_id, "card_id": card_id},
            )
        return card

    def _weighted_index(self, weights: Sequence[float]) -> int:
        threshold = self._rng.random() * sum(weights)
        cumulative = 0.0
        for idx, weight in enumerate(weights):
            cumulative += weight
            if threshold < cumulative:
                return idx
        return len(weights) - 1

    def _uniform_index(self, size: int) -> int:
        return min(int(self._rng.random() * size), size - 1)
