"""Example module for ``gachaforge-validate --module`` and ``gachaforge-simulate --module``.

Run from the ``examples`` directory::

    gachaforge-simulate --module basic_gacha starter --pulls 5000 --seed 7
"""

from __future__ import annotations

import logging

from gachaforge import GachaApp
from gachaforge.abstractions import CatalogBuilder
from gachaforge.domain.events import BATCH_COMPLETED
from gachaforge.loaders import parse_catalog_dict

logger = logging.getLogger(__name__)


def build_catalog() -> dict:
    builder = CatalogBuilder()
    builder.add_template(
        "spirit",
        "Spirit",
        properties={"power": {"type": "number", "minimum": 0}, "aura": {"type": "string"}},
        required=["power"],
        gameplay_type="COLLECTION",
    )
    for card_id, name, rarity, power in [
        ("wisp", "Wisp", "N", 5),
        ("sprite", "Sprite", "N", 8),
        ("dryad", "Dryad", "R", 20),
        ("phoenix", "Phoenix", "SSR", 90),
    ]:
        builder.add_card(
            card_id,
            name,
            rarity=rarity,
            template_id="spirit",
            gameplay_type="COLLECTION",
            attributes={"power": power},
        )
    builder.add_pack(
        "starter",
        "Starter Spirits",
        cards=["wisp", "sprite", "dryad", "phoenix"],
        cost=50,
        rarity_weights={"N": 0.8, "R": 0.17, "SSR": 0.03},
        max_pity=60,
        soft_pity_start=45,
        guaranteed_cards=["phoenix"],
        gameplay_type="COLLECTION",
    )
    return builder.build()


async def log_batch(payload) -> None:
    logger.info("Account %s drew %s", payload["account_id"], ", ".join(payload["cards"]))


async def register(app: GachaApp) -> None:
    definition = parse_catalog_dict(build_catalog())
    for template in definition.templates:
        await app.admin.save_template(template)
    for card in definition.cards:
        await app.admin.save_card(card)
    for pack in definition.packs:
        await app.admin.save_pack(pack)
    app.event_bus.subscribe(BATCH_COMPLETED, log_batch)
