from random import Random

import pytest

from gachaforge.app import GachaApp
from gachaforge.config import GachaConfig
from gachaforge.domain.cards import CardDefinition, PackDefinition, PitySystem, Rarity
from gachaforge.domain.economy import CurrencyType
from gachaforge.domain.pity import PityTracker, advance, is_hard_pity, soft_pity_bonus
from gachaforge.domain.resolver import DrawResolver
from gachaforge.storage.memory import InMemoryPityStore
from gachaforge.testing import fixed_random

PITY = PitySystem(max_pity=10, soft_pity_start=8, guaranteed_cards=("C",))


def make_pack(pity=PITY):
    return PackDefinition(
        pack_id="banner",
        name="Banner",
        cost=10,
        currency=CurrencyType.GOLD,
        available_cards=("A", "B", "C"),
        card_probabilities={"A": 0.8, "B": 0.15, "C": 0.05},
        pity_system=pity,
    )


async def seeded_app(rng):
    app = GachaApp(GachaConfig(), rng=rng)
    for card_id, rarity in (("A", Rarity.N), ("B", Rarity.SR), ("C", Rarity.SSR)):
        await app.admin.save_card(CardDefinition(card_id=card_id, name=card_id, rarity=rarity))
    await app.admin.save_pack(make_pack())
    await app.accounts.create_account(account_id="u1")
    return app


def test_advance_increments_and_resets():
    assert advance(0, False, PITY) == 1
    assert advance(9, False, PITY) == 10
    assert advance(10, True, PITY) == 0


def test_advance_without_reset_stays_at_max():
    pity = PitySystem(max_pity=3, soft_pity_start=1, guaranteed_cards=("C",), reset_on_trigger=False)
    assert advance(3, True, pity) == 3
    assert advance(2, False, pity) == 3


def test_advance_without_pity_system_keeps_counting():
    assert advance(41, False, None) == 42


def test_thresholds():
    assert not is_hard_pity(9, PITY)
    assert is_hard_pity(10, PITY)
    assert not is_hard_pity(1000, None)
    assert soft_pity_bonus(7, PITY) == 0.0
    assert soft_pity_bonus(8, PITY) == 0.0
    assert soft_pity_bonus(9, PITY) == pytest.approx(0.25)
    assert soft_pity_bonus(10, PITY) == pytest.approx(0.5)


def test_counter_stays_in_range_and_only_drops_to_zero():
    pack = make_pack()
    cards = {cid: CardDefinition(card_id=cid, name=cid) for cid in pack.available_cards}
    resolver = DrawResolver(Random(7))
    counter = 0
    triggers = 0
    for _ in range(500):
        outcome = resolver.resolve(pack, counter, cards)
        following = advance(counter, outcome.pity_triggered, pack.pity_system)
        assert 0 <= following <= PITY.max_pity
        if following < counter:
            assert following == 0
            assert outcome.pity_triggered
        if outcome.pity_triggered:
            triggers += 1
            assert outcome.card.card_id in PITY.guaranteed_cards
        counter = following
    assert triggers == 500 // (PITY.max_pity + 1)


@pytest.mark.asyncio()
async def test_tracker_round_trip_and_rejects_negative():
    tracker = PityTracker(InMemoryPityStore())
    assert await tracker.load("u1", "banner") == 0
    await tracker.save("u1", "banner", 4)
    assert await tracker.load("u1", "banner") == 4
    assert await tracker.load("u1", "other") == 0
    with pytest.raises(ValueError):
        await tracker.save("u1", "banner", -1)


@pytest.mark.asyncio()
async def test_eleventh_draw_forces_guaranteed_card_and_resets():
    app = await seeded_app(fixed_random(0.0))

    first = await app.gacha.perform_gacha("u1", "banner", 10)
    assert [card.card_id for card in first.cards] == ["A"] * 10
    assert first.pity_triggered is False
    assert await app.pity_store.get("u1", "banner") == 10

    second = await app.gacha.perform_gacha("u1", "banner", 1)
    assert [card.card_id for card in second.cards] == ["C"]
    assert second.pity_triggered is True
    assert await app.pity_store.get("u1", "banner") == 0


@pytest.mark.asyncio()
async def test_pity_counter_is_per_pack():
    app = await seeded_app(fixed_random(0.0))
    other = PackDefinition(
        pack_id="other",
        name="Other",
        cost=10,
        currency=CurrencyType.GOLD,
        available_cards=("A",),
        card_probabilities={"A": 1.0},
    )
    await app.admin.save_pack(other)

    await app.gacha.perform_gacha("u1", "banner", 10)
    await app.gacha.perform_gacha("u1", "other", 10)

    assert await app.pity_store.get("u1", "banner") == 10
    assert await app.pity_store.get("u1", "other") == 10
