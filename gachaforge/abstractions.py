"""High-level helpers that simplify bootstrapping a gachaforge catalog.

This module provides a straightforward, batteries-included API for people who
want a working app from a catalog file without wiring the async stores and
config objects themselves.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

from rich.console import Console

from .app import GachaApp
from .config import GachaConfig
from .loaders import load_catalog_from_json, validate_catalog_dict

console = Console()


async def bootstrap_app(
    catalog_path: str | Path,
    *,
    database: str | Path | None = None,
    config: GachaConfig | None = None,
) -> GachaApp:
    """Create an app, initialize its backend and load ``catalog_path`` into it.

    ``database`` is a SQLite file path; when omitted the app keeps everything in
    memory.
    """
    config = config or GachaConfig.from_env()
    if database is not None:
        db_path = Path(database).expanduser().resolve()
        db_path.parent.mkdir(parents=True, exist_ok=True)
        config.storage.backend = "sqlalchemy"
        config.storage.dsn = f"sqlite+aiosqlite:///{db_path.as_posix()}"

    app = GachaApp(config)
    await app.init_backend()
    definition = await load_catalog_from_json(app, catalog_path)
    console.print(
        f"[bold green]gachaforge ready![/bold green] "
        f"{len(definition.cards)} cards, {len(definition.packs)} packs"
    )
    return app


@dataclass(slots=True)
class CatalogBuilder:
    """Imperative builder that produces JSON catalogs."""

    templates: list[dict] = field(default_factory=list)
    cards: list[dict] = field(default_factory=list)
    packs: list[dict] = field(default_factory=list)

    def add_template(
        self,
        template_id: str,
        name: str,
        *,
        properties: Mapping[str, Mapping[str, Any]],
        required: Sequence[str] = (),
        description: str = "",
        gameplay_type: str = "DEFAULT",
    ) -> "CatalogBuilder":
        self.templates.append(
            {
                "id": template_id,
                "name": name,
                "description": description,
                "gameplayType": gameplay_type,
                "schema": {
                    "type": "object",
                    "properties": {key: dict(spec) for key, spec in properties.items()},
                    "required": list(required),
                },
            }
        )
        return self

    def add_card(
        self,
        card_id: str,
        name: str,
        *,
        rarity: str = "N",
        description: str = "",
        image_url: str | None = None,
        template_id: str | None = None,
        gameplay_type: str = "DEFAULT",
        attributes: Mapping[str, Any] | None = None,
    ) -> "CatalogBuilder":
        card: dict = {
            "id": card_id,
            "name": name,
            "rarity": rarity,
            "description": description,
            "gameplayType": gameplay_type,
            "attributes": dict(attributes or {}),
        }
        if image_url:
            card["imageUrl"] = image_url
        if template_id:
            card["templateId"] = template_id
        self.cards.append(card)
        return self

    def add_pack(
        self,
        pack_id: str,
        name: str,
        *,
        cards: Sequence[str],
        cost: int,
        currency: str = "GOLD",
        card_probabilities: Mapping[str, float] | None = None,
        rarity_weights: Mapping[str, float] | None = None,
        max_pity: int | None = None,
        soft_pity_start: int | None = None,
        guaranteed_cards: Sequence[str] = (),
        guaranteed_card_weights: Sequence[float] | None = None,
        reset_on_trigger: bool = True,
        description: str = "",
        cover_image_url: str | None = None,
        is_active: bool = True,
        gameplay_type: str = "DEFAULT",
    ) -> "CatalogBuilder":
        pack: dict = {
            "id": pack_id,
            "name": name,
            "description": description,
            "cost": cost,
            "currency": currency,
            "availableCards": list(cards),
            "isActive": is_active,
            "gameplayType": gameplay_type,
        }
        if card_probabilities:
            pack["cardProbabilities"] = dict(card_probabilities)
        if rarity_weights:
            pack["rarityWeights"] = dict(rarity_weights)
        if cover_image_url:
            pack["coverImageUrl"] = cover_image_url
        if max_pity is not None:
            pity: dict = {
                "maxPity": max_pity,
                "softPityStart": soft_pity_start if soft_pity_start is not None else 0,
                "guaranteedCards": list(guaranteed_cards),
                "resetOnTrigger": reset_on_trigger,
            }
            if guaranteed_card_weights is not None:
                pity["guaranteedCardWeights"] = list(guaranteed_card_weights)
            pack["pitySystem"] = pity
        self.packs.append(pack)
        return self

    def build(self) -> dict:
        catalog = {
            "templates": self.templates,
            "cards": self.cards,
            "packs": self.packs,
        }
        errors = validate_catalog_dict(catalog)
        if errors:
            raise ValueError("Catalog validation failed:\n" + "\n".join(f"- {err}" for err in errors))
        return catalog

    def save(self, path: Path) -> None:
        catalog = self.build()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(catalog, ensure_ascii=False, indent=2), encoding="utf-8")


__all__ = [
    "CatalogBuilder",
    "bootstrap_app",
]
