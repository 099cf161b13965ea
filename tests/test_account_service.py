import pytest

from gachaforge.app import GachaApp
from gachaforge.config import GachaConfig
from gachaforge.domain.cards import CardDefinition, PackDefinition, Rarity
from gachaforge.domain.economy import CurrencyType
from gachaforge.domain.exceptions import AccountNotFound, InsufficientCurrency
from gachaforge.testing import AccountFactory, fixed_random


@pytest.fixture()
def app():
    return GachaApp(GachaConfig(), rng=fixed_random(0.0))


@pytest.mark.asyncio()
async def test_create_account_uses_starting_balances(app):
    identity = AccountFactory().build_identity()
    profile = await app.accounts.create_account(**identity)

    assert profile.username == identity["username"]
    assert profile.email == identity["email"]
    assert profile.currencies == {
        CurrencyType.GOLD: 10000,
        CurrencyType.TICKET: 10,
        CurrencyType.PREMIUM: 0,
    }
    assert (await app.accounts.fetch(profile.account_id)).account_id == profile.account_id


@pytest.mark.asyncio()
async def test_duplicate_account_id_is_rejected(app):
    await app.accounts.create_account(account_id="u1")
    with pytest.raises(ValueError):
        await app.accounts.create_account(account_id="u1")


@pytest.mark.asyncio()
async def test_credit_and_spend(app):
    await app.accounts.create_account(account_id="u1")

    profile = await app.accounts.credit("u1", CurrencyType.PREMIUM, 30)
    assert profile.currencies[CurrencyType.PREMIUM] == 30

    profile = await app.accounts.spend("u1", CurrencyType.PREMIUM, 10)
    assert profile.currencies[CurrencyType.PREMIUM] == 20


@pytest.mark.asyncio()
async def test_spend_more_than_balance_fails_without_change(app):
    await app.accounts.create_account(account_id="u1")
    with pytest.raises(InsufficientCurrency):
        await app.accounts.spend("u1", CurrencyType.TICKET, 11)
    profile = await app.accounts.fetch("u1")
    assert profile.currencies[CurrencyType.TICKET] == 10


@pytest.mark.asyncio()
async def test_amounts_must_be_positive(app):
    await app.accounts.create_account(account_id="u1")
    with pytest.raises(ValueError):
        await app.accounts.credit("u1", CurrencyType.GOLD, 0)
    with pytest.raises(ValueError):
        await app.accounts.spend("u1", CurrencyType.GOLD, -5)


@pytest.mark.asyncio()
async def test_unknown_account(app):
    with pytest.raises(AccountNotFound) as exc_info:
        await app.accounts.fetch("ghost")
    assert exc_info.value.details == {"account_id": "ghost"}
    with pytest.raises(AccountNotFound):
        await app.accounts.collection("ghost")


@pytest.mark.asyncio()
async def test_collection_keeps_entries_for_deleted_cards(app):
    await app.admin.save_card(CardDefinition(card_id="relic", name="Relic", rarity=Rarity.LR))
    await app.admin.save_pack(
        PackDefinition(
            pack_id="relics",
            name="Relics",
            cost=1,
            currency=CurrencyType.GOLD,
            available_cards=("relic",),
            card_probabilities={"relic": 1.0},
        )
    )
    await app.accounts.create_account(account_id="u1")
    await app.gacha.perform_gacha("u1", "relics", 1)

    await app.admin.delete_card("relic")

    collection = await app.accounts.collection("u1")
    assert [(entry.card_id, entry.quantity, entry.card) for entry in collection] == [
        ("relic", 1, None)
    ]
