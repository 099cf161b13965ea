"""Pre-draw validation of pack draw tables and pity configuration."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from .exceptions import InvalidProbability, PitySystemError

if TYPE_CHECKING:
    from .cards import PackDefinition, PitySystem


PROBABILITY_TOLERANCE = 0.001


def validate_pack(pack: "PackDefinition", *, tolerance: float = PROBABILITY_TOLERANCE) -> None:
    """Raise if ``pack`` cannot be used for drawing."""
    validate_probabilities(pack, tolerance=tolerance)
    if pack.pity_system is not None:
        validate_pity_system(pack.pack_id, pack.available_cards, pack.pity_system)


def validate_probabilities(
    pack: "PackDefinition", *, tolerance: float = PROBABILITY_TOLERANCE
) -> None:
    available = pack.available_cards
    probabilities = pack.card_probabilities

    seen: set[str] = set()
    for card_id in available:
        if card_id in seen:
            raise InvalidProbability(
                f"Card {card_id} is listed more than once in pack {pack.pack_id}",
                {"pack_id": pack.pack_id, "card_id": card_id},
            )
        seen.add(card_id)
        if card_id not in probabilities:
            raise InvalidProbability(
                f"Card {card_id} is available but has no probability assigned",
                {"pack_id": pack.pack_id, "card_id": card_id},
            )

    total = 0.0
    for card_id in available:
        probability = probabilities[card_id]
        if isinstance(probability, bool) or not isinstance(probability, (int, float)):
            raise InvalidProbability(
                f"Probability for card {card_id} must be a number, got {probability!r}",
                {"pack_id": pack.pack_id, "card_id": card_id, "probability": probability},
            )
        if math.isnan(probability) or probability < 0 or probability > 1:
            raise InvalidProbability(
                f"Invalid probability value for card {card_id}: {probability}",
                {"pack_id": pack.pack_id, "card_id": card_id, "probability": probability},
            )
        total += probability

    if abs(total - 1.0) > tolerance:
        raise InvalidProbability(
            f"Total probability must be 1.0, got {total:.4f}",
            {"pack_id": pack.pack_id, "total": total, "tolerance": tolerance},
        )


def validate_pity_system(
    pack_id: str, available_cards: tuple[str, ...], pity: "PitySystem"
) -> None:
    if pity.max_pity <= 0:
        raise PitySystemError(
            f"maxPity must be positive, got {pity.max_pity}",
            {"pack_id": pack_id, "max_pity": pity.max_pity},
        )
    if not 0 <= pity.soft_pity_start < pity.max_pity:
        raise PitySystemError(
            f"softPityStart must be in [0, {pity.max_pity}), got {pity.soft_pity_start}",
            {"pack_id": pack_id, "soft_pity_start": pity.soft_pity_start},
        )

    available = set(available_cards)
    for card_id in pity.guaranteed_cards:
        if card_id not in available:
            raise PitySystemError(
                f"Guaranteed card {card_id} is not in available cards",
                {"pack_id": pack_id, "card_id": card_id},
            )

    weights = pity.guaranteed_card_weights
    if weights is None:
        return
    if len(weights) != len(pity.guaranteed_cards):
        raise PitySystemError(
            "Guaranteed card weights length must match guaranteed cards length",
            {
                "pack_id": pack_id,
                "weights_length": len(weights),
                "cards_length": len(pity.guaranteed_cards),
            },
        )
    for card_id, weight in zip(pity.guaranteed_cards, weights):
        if not weight > 0:
            raise PitySystemError(
                f"Invalid weight for guaranteed card {card_id}: {weight}",
                {"pack_id": pack_id, "card_id": card_id, "weight": weight},
            )
