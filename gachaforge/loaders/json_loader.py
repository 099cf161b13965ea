"""Load card templates, cards and packs from JSON definitions."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence, TYPE_CHECKING

from ..domain.cards import (
    AttributeKind,
    AttributeSpec,
    CardDefinition,
    CardTemplate,
    GameplayType,
    PackDefinition,
    PitySystem,
    Rarity,
    probabilities_from_rarity_weights,
)
from ..domain.economy import CurrencyType
from ..domain.exceptions import GachaError

if TYPE_CHECKING:
    from ..app import GachaApp


@dataclass(slots=True)
class CatalogDefinition:
    templates: Sequence[CardTemplate]
    cards: Sequence[CardDefinition]
    packs: Sequence[PackDefinition]


async def load_catalog_from_json(app: "GachaApp", path: str | Path) -> CatalogDefinition:
    """Load templates/cards/packs from a JSON file and save them through the admin service."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    definition = parse_catalog_dict(data)
    for template in definition.templates:
        await app.admin.save_template(template)
    for card in definition.cards:
        await app.admin.save_card(card)
    for pack in definition.packs:
        await app.admin.save_pack(pack)
    return definition


def parse_catalog_dict(data: dict[str, Any]) -> CatalogDefinition:
    """Parse a JSON dict (already decoded) into domain objects."""
    errors = validate_catalog_dict(data)
    if errors:
        raise ValueError(_format_errors("Catalog validation failed", errors))
    templates = tuple(parse_template(entry) for entry in data.get("templates", []))
    cards = tuple(parse_card(entry) for entry in data.get("cards", []))
    by_id = {card.card_id: card for card in cards}
    packs = tuple(parse_pack(entry, cards=by_id) for entry in data.get("packs", []))
    return CatalogDefinition(templates=templates, cards=cards, packs=packs)


def parse_template(entry: dict[str, Any]) -> CardTemplate:
    schema_data = entry.get("schema") or {}
    required = set(schema_data.get("required", ()))
    schema = {
        str(name): AttributeSpec(
            kind=AttributeKind(spec.get("type", AttributeKind.STRING.value)),
            required=name in required,
            minimum=spec.get("minimum"),
            maximum=spec.get("maximum"),
            title=spec.get("title", ""),
        )
        for name, spec in schema_data.get("properties", {}).items()
    }
    return CardTemplate(
        template_id=entry["id"],
        name=entry.get("name", entry["id"]),
        description=entry.get("description", ""),
        schema=schema,
        gameplay_type=GameplayType(entry.get("gameplayType", GameplayType.DEFAULT.value)),
    )


def parse_card(entry: dict[str, Any]) -> CardDefinition:
    return CardDefinition(
        card_id=entry["id"],
        name=entry["name"],
        rarity=Rarity(entry.get("rarity", Rarity.N.value)),
        description=entry.get("description", ""),
        image_url=entry.get("imageUrl"),
        template_id=entry.get("templateId"),
        gameplay_type=GameplayType(entry.get("gameplayType", GameplayType.DEFAULT.value)),
        attributes=dict(entry.get("attributes", {})),
    )


def parse_pity(entry: dict[str, Any]) -> PitySystem:
    weights = entry.get("guaranteedCardWeights")
    return PitySystem(
        max_pity=int(entry["maxPity"]),
        soft_pity_start=int(entry["softPityStart"]),
        guaranteed_cards=tuple(entry.get("guaranteedCards", ())),
        guaranteed_card_weights=tuple(float(w) for w in weights) if weights is not None else None,
        reset_on_trigger=bool(entry.get("resetOnTrigger", True)),
    )


def parse_pack(
    entry: dict[str, Any], *, cards: Mapping[str, CardDefinition] | None = None
) -> PackDefinition:
    available = tuple(entry.get("availableCards", ()))
    probabilities = entry.get("cardProbabilities")
    if probabilities is None and entry.get("rarityWeights") and cards is not None:
        probabilities = probabilities_from_rarity_weights(
            (cards[card_id] for card_id in available if card_id in cards),
            {Rarity(k): float(v) for k, v in entry["rarityWeights"].items()},
        )
    pity_data = entry.get("pitySystem")
    return PackDefinition(
        pack_id=entry["id"],
        name=entry.get("name", entry["id"]),
        cost=int(entry.get("cost", 0)),
        currency=CurrencyType(entry.get("currency", CurrencyType.GOLD.value)),
        available_cards=available,
        card_probabilities={str(k): float(v) for k, v in (probabilities or {}).items()},
        pity_system=parse_pity(pity_data) if pity_data else None,
        description=entry.get("description", ""),
        cover_image_url=entry.get("coverImageUrl"),
        is_active=bool(entry.get("isActive", True)),
        gameplay_type=GameplayType(entry.get("gameplayType", GameplayType.DEFAULT.value)),
    )


def dump_template(template: CardTemplate) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    for name, spec in template.schema.items():
        prop: dict[str, Any] = {"type": spec.kind.value}
        if spec.minimum is not None:
            prop["minimum"] = spec.minimum
        if spec.maximum is not None:
            prop["maximum"] = spec.maximum
        if spec.title:
            prop["title"] = spec.title
        properties[name] = prop
    return {
        "id": template.template_id,
        "name": template.name,
        "description": template.description,
        "gameplayType": template.gameplay_type.value,
        "schema": {
            "type": "object",
            "properties": properties,
            "required": [name for name, spec in template.schema.items() if spec.required],
        },
    }


def dump_card(card: CardDefinition) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": card.card_id,
        "name": card.name,
        "rarity": card.rarity.value,
        "description": card.description,
        "gameplayType": card.gameplay_type.value,
        "attributes": dict(card.attributes),
    }
    if card.image_url:
        data["imageUrl"] = card.image_url
    if card.template_id:
        data["templateId"] = card.template_id
    return data


def dump_pack(pack: PackDefinition) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": pack.pack_id,
        "name": pack.name,
        "description": pack.description,
        "cost": pack.cost,
        "currency": pack.currency.value,
        "isActive": pack.is_active,
        "gameplayType": pack.gameplay_type.value,
        "availableCards": list(pack.available_cards),
        "cardProbabilities": dict(pack.card_probabilities),
    }
    if pack.cover_image_url:
        data["coverImageUrl"] = pack.cover_image_url
    pity = pack.pity_system
    if pity is not None:
        data["pitySystem"] = {
            "maxPity": pity.max_pity,
            "softPityStart": pity.soft_pity_start,
            "guaranteedCards": list(pity.guaranteed_cards),
            "resetOnTrigger": pity.reset_on_trigger,
        }
        if pity.guaranteed_card_weights is not None:
            data["pitySystem"]["guaranteedCardWeights"] = list(pity.guaranteed_card_weights)
    return data


def validate_catalog_file(path: str | Path) -> list[str]:
    """Validate catalog JSON file and return a list of errors."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return validate_catalog_dict(data)


def validate_catalog_dict(data: dict[str, Any]) -> list[str]:
    errors: list[str] = []

    templates: dict[str, CardTemplate] = {}
    templates_raw = data.get("templates", [])
    if not isinstance(templates_raw, list):
        errors.append("Catalog 'templates' must be an array.")
        templates_raw = []
    for idx, entry in enumerate(templates_raw, start=1):
        if not isinstance(entry, dict):
            errors.append(f"Template #{idx} must be an object.")
            continue
        template_id = entry.get("id")
        if not isinstance(template_id, str) or not template_id.strip():
            errors.append(f"Template #{idx} must define non-empty 'id'.")
            continue
        if template_id in templates:
            errors.append(f"Template id '{template_id}' defined multiple times.")
        try:
            templates[template_id] = parse_template(entry)
        except (ValueError, TypeError, AttributeError) as exc:
            errors.append(f"Template '{template_id}' is invalid: {exc}")

    cards: dict[str, CardDefinition] = {}
    cards_raw = data.get("cards")
    if not isinstance(cards_raw, list) or not cards_raw:
        errors.append("Catalog must contain non-empty 'cards' array.")
        cards_raw = []
    for idx, entry in enumerate(cards_raw, start=1):
        if not isinstance(entry, dict):
            errors.append(f"Card #{idx} must be an object.")
            continue
        card_id = entry.get("id")
        if not isinstance(card_id, str) or not card_id.strip():
            errors.append(f"Card #{idx} must define non-empty 'id'.")
            continue
        if card_id in cards:
            errors.append(f"Card id '{card_id}' defined multiple times.")
        if not isinstance(entry.get("name"), str) or not entry["name"].strip():
            errors.append(f"Card '{card_id}' must define non-empty 'name'.")
            continue

        rarity_value = entry.get("rarity")
        try:
            Rarity(rarity_value)
        except ValueError:
            errors.append(f"Card '{card_id}' has invalid rarity '{rarity_value}'.")
            continue

        attributes = entry.get("attributes", {})
        if not isinstance(attributes, dict):
            errors.append(f"Card '{card_id}' attributes must be an object.")
            continue

        try:
            card = parse_card(entry)
        except GachaError as exc:
            errors.append(exc.message)
            continue
        except ValueError as exc:
            errors.append(f"Card '{card_id}' is invalid: {exc}")
            continue

        if card.template_id is not None:
            template = templates.get(card.template_id)
            if template is None:
                errors.append(f"Card '{card_id}' references unknown template '{card.template_id}'.")
            else:
                try:
                    template.validate_attributes(card.card_id, card.attributes)
                except GachaError as exc:
                    errors.append(exc.message)
        cards[card_id] = card

    packs_raw = data.get("packs")
    if not isinstance(packs_raw, list) or not packs_raw:
        errors.append("Catalog must contain non-empty 'packs' array.")
        packs_raw = []
    pack_ids: set[str] = set()
    for idx, entry in enumerate(packs_raw, start=1):
        if not isinstance(entry, dict):
            errors.append(f"Pack #{idx} must be an object.")
            continue
        pack_id = entry.get("id")
        if not isinstance(pack_id, str) or not pack_id.strip():
            errors.append(f"Pack #{idx} must define non-empty 'id'.")
            continue
        if pack_id in pack_ids:
            errors.append(f"Pack id '{pack_id}' defined multiple times.")
        pack_ids.add(pack_id)

        available = entry.get("availableCards")
        if not isinstance(available, list) or not available:
            errors.append(f"Pack '{pack_id}' must define non-empty 'availableCards' array.")
            continue
        for card_id in available:
            if card_id not in cards:
                errors.append(f"Pack '{pack_id}' references unknown card '{card_id}'.")

        cost = entry.get("cost", 0)
        if isinstance(cost, bool) or not isinstance(cost, int) or cost < 0:
            errors.append(f"Pack '{pack_id}' has invalid 'cost' value '{cost}'.")
            continue

        currency = entry.get("currency", CurrencyType.GOLD.value)
        try:
            CurrencyType(currency)
        except ValueError:
            errors.append(f"Pack '{pack_id}' has invalid currency '{currency}'.")
            continue

        if "cardProbabilities" not in entry and "rarityWeights" not in entry:
            errors.append(f"Pack '{pack_id}' must define 'cardProbabilities' or 'rarityWeights'.")
            continue

        pity = entry.get("pitySystem")
        if pity is not None and (
            not isinstance(pity, dict) or "maxPity" not in pity or "softPityStart" not in pity
        ):
            errors.append(f"Pack '{pack_id}' pitySystem must define 'maxPity' and 'softPityStart'.")
            continue

        try:
            parse_pack(entry, cards=cards)
        except GachaError as exc:
            errors.append(f"Pack '{pack_id}': {exc.message}")
        except (ValueError, TypeError) as exc:
            errors.append(f"Pack '{pack_id}' is invalid: {exc}")

    return errors


def _format_errors(prefix: str, errors: Iterable[str]) -> str:
    formatted = "\n".join(f"- {err}" for err in errors)
    return f"{prefix}:\n{formatted}"
