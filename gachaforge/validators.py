"""Validation utilities for gachaforge applications."""

from __future__ import annotations

from .app import GachaApp
from .domain.exceptions import GachaError
from .domain.probability import validate_pack


async def validate_app(app: GachaApp) -> list[str]:
    """Return list of validation errors discovered in the stored catalog."""
    errors: list[str] = []

    templates = {t.template_id: t for t in await app.catalog_store.list_templates()}
    cards = {card.card_id: card for card in await app.catalog_store.list_cards()}
    packs = list(await app.catalog_store.list_packs())

    if not cards:
        errors.append("No cards defined in catalog.")
    if not packs:
        errors.append("No packs defined in catalog.")

    for card in cards.values():
        if card.template_id is None:
            continue
        template = templates.get(card.template_id)
        if template is None:
            errors.append(f"Card '{card.card_id}' references unknown template '{card.template_id}'.")
            continue
        try:
            template.validate_attributes(card.card_id, card.attributes)
        except GachaError as exc:
            errors.append(exc.message)

    for pack in packs:
        try:
            validate_pack(pack)
        except GachaError as exc:
            errors.append(f"Pack '{pack.pack_id}': {exc.message}")
        for card_id in pack.available_cards:
            if card_id not in cards:
                errors.append(f"Pack '{pack.pack_id}' references unknown card '{card_id}'.")
        if pack.pity_system is not None and not pack.pity_system.guaranteed_cards:
            errors.append(f"Pack '{pack.pack_id}' has a pity system without guaranteed cards.")

    quantities = app.config.rules.allowed_quantities
    if not quantities or any(q <= 0 for q in quantities):
        errors.append("Rules configuration 'allowed_quantities' must list positive integers.")
    for currency, amount in app.config.rules.starting_balances.items():
        if amount < 0:
            errors.append(f"Starting balance for '{currency.value}' cannot be negative.")

    return errors


__all__ = ["validate_app"]
