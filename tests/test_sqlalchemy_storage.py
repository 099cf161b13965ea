import asyncio
import uuid
from pathlib import Path

import pytest
from sqlalchemy.exc import IntegrityError

from gachaforge.app import GachaApp
from gachaforge.config import GachaConfig, StorageConfig
from gachaforge.domain import gacha as gacha_module
from gachaforge.domain.cards import (
    AttributeKind,
    AttributeSpec,
    CardDefinition,
    CardTemplate,
    GameplayType,
    PackDefinition,
    PitySystem,
    Rarity,
)
from gachaforge.domain.economy import CurrencyType
from gachaforge.domain.exceptions import InsufficientCurrency
from gachaforge.testing import fixed_random


def sqlite_config(tmp_path: Path) -> GachaConfig:
    dsn = f"sqlite+aiosqlite:///{(tmp_path / 'gacha.db').as_posix()}"
    return GachaConfig(storage=StorageConfig(backend="sqlalchemy", dsn=dsn))


async def seed(app: GachaApp) -> None:
    await app.init_backend()
    await app.admin.save_template(
        CardTemplate(
            template_id="hero",
            name="Hero",
            schema={"attack": AttributeSpec(kind=AttributeKind.NUMBER, required=True)},
            gameplay_type=GameplayType.BATTLE,
        )
    )
    await app.admin.save_card(
        CardDefinition(
            card_id="A",
            name="Alpha",
            rarity=Rarity.N,
            template_id="hero",
            gameplay_type=GameplayType.BATTLE,
            attributes={"attack": 10},
        )
    )
    await app.admin.save_card(CardDefinition(card_id="B", name="Beta", rarity=Rarity.SSR))
    await app.admin.save_pack(
        PackDefinition(
            pack_id="banner",
            name="Banner",
            cost=100,
            currency=CurrencyType.GOLD,
            available_cards=("A", "B"),
            card_probabilities={"A": 0.9, "B": 0.1},
            pity_system=PitySystem(max_pity=3, soft_pity_start=1, guaranteed_cards=("B",)),
            gameplay_type=GameplayType.BATTLE,
        )
    )
    await app.accounts.create_account(account_id="u1", username="alice")


@pytest.mark.asyncio()
async def test_catalog_round_trip(tmp_path: Path):
    app = GachaApp(sqlite_config(tmp_path))
    try:
        await seed(app)
        card = await app.catalog.get_card("A")
        assert card.attributes == {"attack": 10}
        assert card.template_id == "hero"

        pack = await app.catalog.get_pack("banner")
        assert pack.pity_system.guaranteed_cards == ("B",)
        assert [p.pack_id for p in await app.catalog.list_packs(GameplayType.BATTLE)] == ["banner"]
        assert await app.catalog.list_packs(GameplayType.PUZZLE) == []
        assert [c.card_id for c in await app.catalog.list_cards(GameplayType.BATTLE)] == ["A"]
        assert [c.card_id for c in await app.catalog.pack_cards("banner")] == ["A", "B"]

        template = await app.catalog.get_template("hero")
        assert template.schema["attack"].required

        await app.admin.delete_card("B")
        assert await app.catalog.get_card("B") is None
    finally:
        await app.close()


@pytest.mark.asyncio()
async def test_batches_persist_across_app_instances(tmp_path: Path):
    config = sqlite_config(tmp_path)
    app = GachaApp(config, rng=fixed_random(0.0))
    try:
        await seed(app)
        first = await app.gacha.perform_gacha("u1", "banner", 10)
        second = await app.gacha.perform_gacha("u1", "banner", 1)
    finally:
        await app.close()

    reopened = GachaApp(config)
    try:
        profile = await reopened.accounts.fetch("u1")
        assert profile.currencies[CurrencyType.GOLD] == 10000 - 1100
        assert profile.username == "alice"

        history = await reopened.accounts.history("u1")
        assert [record.quantity for record in history] == [1, 10]
        assert history[1].result.cards == first.cards
        assert history[0].result.pity_triggered == second.pity_triggered
        assert history[0].created_at.tzinfo is not None

        # Pity fires on every fourth draw, the rest roll the common card.
        assert [card.card_id for card in first.cards] == list("AAABAAABAA")
        owned = {entry.card_id: entry.quantity for entry in await reopened.accounts.collection("u1")}
        assert owned == {"A": 9, "B": 2}
        assert await reopened.pity_store.get("u1", "banner") == 3

        rebuilt = await reopened.statistics.update_user_statistics_from_history(
            await reopened.account_store.get("u1")
        )
        stored = (await reopened.account_store.get("u1")).statistics
        assert rebuilt == stored
        assert rebuilt.total_gachas == 11
        assert rebuilt.total_spent[CurrencyType.GOLD] == 1100

        overall = await reopened.statistics.get_statistics()
        assert overall.total_users == 1
        assert overall.popular_packs[0].name == "Banner"
    finally:
        await reopened.close()


@pytest.mark.asyncio()
async def test_failed_batch_writes_nothing(tmp_path: Path):
    app = GachaApp(sqlite_config(tmp_path))
    try:
        await seed(app)
        await app.accounts.spend("u1", CurrencyType.GOLD, 9950)
        with pytest.raises(InsufficientCurrency):
            await app.gacha.perform_gacha("u1", "banner", 1)
        assert await app.history_store.for_account("u1") == []
        assert await app.pity_store.get("u1", "banner") == 0
        assert await app.collection_store.for_account("u1") == []
    finally:
        await app.close()


async def queued(lock: asyncio.Lock, count: int) -> None:
    # asyncio.Lock exposes no public waiter count.
    for _ in range(500):
        if len(lock._waiters or ()) >= count:
            return
        await asyncio.sleep(0.01)
    raise AssertionError(f"expected {count} waiters on the account lock")


@pytest.mark.asyncio()
async def test_rebuild_from_stale_record_keeps_the_debit(tmp_path: Path):
    app = GachaApp(sqlite_config(tmp_path), rng=fixed_random(0.0))
    try:
        await seed(app)
        stale = await app.account_store.get("u1")
        await app.gacha.perform_gacha("u1", "banner", 1)

        rebuilt = await app.statistics.update_user_statistics_from_history(stale)

        account = await app.account_store.get("u1")
        assert account.currencies[CurrencyType.GOLD] == 9900
        assert account.statistics == rebuilt
        assert rebuilt.total_gachas == 1
    finally:
        await app.close()


@pytest.mark.asyncio()
async def test_statistics_rebuild_queued_behind_a_batch_keeps_the_debit(tmp_path: Path):
    app = GachaApp(sqlite_config(tmp_path), rng=fixed_random(0.0))
    try:
        await seed(app)
        lock = app.locks.for_account("u1")
        await lock.acquire()
        try:
            batch = asyncio.create_task(app.gacha.perform_gacha("u1", "banner", 1))
            await queued(lock, 1)
            stats = asyncio.create_task(app.statistics.get_user_statistics("u1"))
            await queued(lock, 2)
        finally:
            lock.release()
        await batch
        stats_result = await stats

        account = await app.account_store.get("u1")
        assert account.currencies[CurrencyType.GOLD] == 9900
        assert stats_result.total_gachas == 1
        assert len(await app.history_store.for_account("u1")) == 1
    finally:
        await app.close()


@pytest.mark.asyncio()
async def test_rejected_history_row_rolls_back_the_whole_batch(tmp_path: Path, monkeypatch):
    app = GachaApp(sqlite_config(tmp_path), rng=fixed_random(0.0))
    try:
        await seed(app)
        fixed = uuid.UUID(int=1)
        monkeypatch.setattr(gacha_module.uuid, "uuid4", lambda: fixed)
        await app.gacha.perform_gacha("u1", "banner", 1)

        # Same record id again violates the unique constraint on history.
        with pytest.raises(IntegrityError):
            await app.gacha.perform_gacha("u1", "banner", 5)

        account = await app.account_store.get("u1")
        assert account.currencies[CurrencyType.GOLD] == 9900
        assert account.statistics.total_gachas == 1
        assert await app.pity_store.get("u1", "banner") == 1
        owned = {entry.card_id: entry.quantity for entry in await app.collection_store.for_account("u1")}
        assert owned == {"A": 1}
        assert len(await app.history_store.for_account("u1")) == 1
    finally:
        await app.close()
