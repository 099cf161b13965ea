import logging

import pytest

from gachaforge.domain.cards import CardDefinition, PackDefinition, PitySystem, Rarity
from gachaforge.domain.economy import CurrencyType
from gachaforge.domain.exceptions import NoAvailableCards, PitySystemError
from gachaforge.domain.resolver import DrawResolver
from gachaforge.testing import fixed_random

CARDS = {
    "A": CardDefinition(card_id="A", name="Alpha", rarity=Rarity.N),
    "B": CardDefinition(card_id="B", name="Beta", rarity=Rarity.SR),
    "C": CardDefinition(card_id="C", name="Gamma", rarity=Rarity.SSR),
}


def make_pack(probabilities, *, available=None, pity=None):
    return PackDefinition(
        pack_id="p",
        name="Pack",
        cost=10,
        currency=CurrencyType.GOLD,
        available_cards=tuple(available or probabilities),
        card_probabilities=probabilities,
        pity_system=pity,
    )


def test_roll_resolves_to_first_cumulative_match():
    pack = make_pack({"A": 0.6, "B": 0.4})
    outcome = DrawResolver(fixed_random(0.5)).resolve(pack, 0, CARDS)
    assert outcome.card.card_id == "A"
    assert outcome.pity_triggered is False


def test_table_is_walked_in_descending_probability_order():
    pack = make_pack({"B": 0.4, "A": 0.6}, available=("B", "A"))
    assert DrawResolver(fixed_random(0.5)).resolve(pack, 0, CARDS).card.card_id == "A"
    assert DrawResolver(fixed_random(0.7)).resolve(pack, 0, CARDS).card.card_id == "B"


def test_soft_pity_shrinks_the_roll():
    pity = PitySystem(max_pity=10, soft_pity_start=0, guaranteed_cards=("B",))
    pack = make_pack({"A": 0.6, "B": 0.4}, pity=pity)
    # counter 5 -> bonus 0.25, roll 0.7 becomes 0.525
    assert DrawResolver(fixed_random(0.7)).resolve(pack, 5, CARDS).card.card_id == "A"
    assert DrawResolver(fixed_random(0.7)).resolve(pack, 0, CARDS).card.card_id == "B"


def test_soft_pity_bonus_grows_from_soft_start():
    pity = PitySystem(max_pity=4, soft_pity_start=2, guaranteed_cards=("B",))
    pack = make_pack({"A": 0.4, "B": 0.6}, pity=pity)
    # counter 2 -> bonus 0; counter 3 -> bonus 0.25, roll 0.7 becomes 0.525
    assert DrawResolver(fixed_random(0.7)).resolve(pack, 2, CARDS).card.card_id == "A"
    assert DrawResolver(fixed_random(0.7)).resolve(pack, 3, CARDS).card.card_id == "B"


def test_hard_pity_draws_from_guaranteed_pool():
    pity = PitySystem(max_pity=10, soft_pity_start=8, guaranteed_cards=("C",))
    pack = make_pack({"A": 0.7, "B": 0.25, "C": 0.05}, pity=pity)
    outcome = DrawResolver(fixed_random(0.0)).resolve(pack, 10, CARDS)
    assert outcome.card.card_id == "C"
    assert outcome.pity_triggered is True


@pytest.mark.parametrize(("roll", "expected"), [(0.1, "B"), (0.5, "C"), (0.99, "C")])
def test_weighted_guaranteed_choice(roll, expected):
    pity = PitySystem(
        max_pity=5,
        soft_pity_start=1,
        guaranteed_cards=("B", "C"),
        guaranteed_card_weights=(1.0, 3.0),
    )
    pack = make_pack({"A": 0.7, "B": 0.2, "C": 0.1}, pity=pity)
    assert DrawResolver(fixed_random(roll)).resolve(pack, 5, CARDS).card.card_id == expected


@pytest.mark.parametrize(("roll", "expected"), [(0.0, "B"), (0.49, "B"), (0.6, "C")])
def test_uniform_guaranteed_choice(roll, expected):
    pity = PitySystem(max_pity=5, soft_pity_start=1, guaranteed_cards=("B", "C"))
    pack = make_pack({"A": 0.7, "B": 0.2, "C": 0.1}, pity=pity)
    assert DrawResolver(fixed_random(roll)).resolve(pack, 5, CARDS).card.card_id == expected


def test_empty_guaranteed_pool_fails_at_trigger():
    pity = PitySystem(max_pity=2, soft_pity_start=0)
    pack = make_pack({"A": 1.0}, pity=pity)
    resolver = DrawResolver(fixed_random(0.5))
    assert resolver.resolve(pack, 1, CARDS).card.card_id == "A"
    with pytest.raises(PitySystemError):
        resolver.resolve(pack, 2, CARDS)


def test_unresolvable_guaranteed_card_fails():
    pity = PitySystem(max_pity=2, soft_pity_start=0, guaranteed_cards=("C",))
    pack = make_pack({"A": 0.5, "C": 0.5}, pity=pity)
    with pytest.raises(PitySystemError):
        DrawResolver(fixed_random(0.5)).resolve(pack, 2, {"A": CARDS["A"]})


def test_unresolvable_entries_are_skipped():
    pack = make_pack({"A": 0.6, "B": 0.4})
    outcome = DrawResolver(fixed_random(0.5)).resolve(pack, 0, {"B": CARDS["B"]})
    assert outcome.card.card_id == "B"


def test_roll_past_table_falls_back_to_first_available(caplog):
    pack = make_pack({"B": 0.3995, "A": 0.6}, available=("B", "A"))
    with caplog.at_level(logging.WARNING, logger="gachaforge.domain.resolver"):
        outcome = DrawResolver(fixed_random(0.9999)).resolve(pack, 0, CARDS)
    assert outcome.card.card_id == "B"
    assert "fell outside the draw table" in caplog.text


def test_no_resolvable_card_raises():
    pack = make_pack({"A": 0.6, "B": 0.4})
    with pytest.raises(NoAvailableCards) as exc_info:
        DrawResolver(fixed_random(0.5)).resolve(pack, 0, {})
    assert exc_info.value.details["pack_id"] == "p"
