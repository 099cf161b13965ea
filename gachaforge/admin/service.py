"""Administrative operations on the catalog and accounts."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..domain.accounts import AccountProfile, AccountService
from ..domain.cache import StatisticsCache
from ..domain.cards import CardDefinition, CardTemplate, PackDefinition
from ..domain.economy import CurrencyType
from ..domain.events import (
    CARD_DELETED,
    CARD_SAVED,
    CURRENCY_GRANTED,
    PACK_DELETED,
    PACK_SAVED,
    TEMPLATE_SAVED,
    EventBus,
)
from ..domain.exceptions import AttributeSchemaError
from ..domain.probability import validate_pack
from ..storage.base import AuditStore, CatalogStore

logger = logging.getLogger(__name__)


class CatalogAdminService:
    """Create, update and delete catalog entries.

    Every write is validated first, then audited and published so connected
    viewers can refresh.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        audit_store: AuditStore,
        accounts: AccountService,
        event_bus: EventBus,
        cache: StatisticsCache,
    ) -> None:
        self._catalog = catalog
        self._audit_store = audit_store
        self._accounts = accounts
        self._events = event_bus
        self._cache = cache

    async def save_template(self, template: CardTemplate) -> None:
        await self._catalog.save_template(template)
        logger.info("Saved card template %s", template.template_id)
        await self._audit("save_template", {"template_id": template.template_id})
        await self._events.publish(TEMPLATE_SAVED, {"template_id": template.template_id})

    async def save_card(self, card: CardDefinition) -> None:
        if card.template_id is not None:
            template = await self._catalog.get_template(card.template_id)
            if template is None:
                raise AttributeSchemaError(
                    f"Card {card.card_id} references unknown template {card.template_id}",
                    {"card_id": card.card_id, "template_id": card.template_id},
                )
            template.validate_attributes(card.card_id, card.attributes)
        await self._catalog.save_card(card)
        logger.info("Saved card %s (%s)", card.card_id, card.rarity.value)
        await self._audit("save_card", {"card_id": card.card_id})
        await self._events.publish(CARD_SAVED, {"card_id": card.card_id})

    async def delete_card(self, card_id: str) -> None:
        await self._catalog.delete_card(card_id)
        logger.info("Deleted card %s", card_id)
        await self._audit("delete_card", {"card_id": card_id})
        await self._events.publish(CARD_DELETED, {"card_id": card_id})

    async def save_pack(self, pack: PackDefinition) -> None:
        validate_pack(pack)
        known = {card.card_id for card in await self._catalog.get_cards_by_ids(pack.available_cards)}
        missing = [card_id for card_id in pack.available_cards if card_id not in known]
        if missing:
            logger.warning("Pack %s references unknown cards: %s", pack.pack_id, ", ".join(missing))
        await self._catalog.save_pack(pack)
        # Pack names and gameplay types feed every derived statistic.
        self._cache.clear()
        logger.info("Saved pack %s", pack.pack_id)
        await self._audit("save_pack", {"pack_id": pack.pack_id})
        await self._events.publish(PACK_SAVED, {"pack_id": pack.pack_id})

    async def delete_pack(self, pack_id: str) -> None:
        await self._catalog.delete_pack(pack_id)
        self._cache.clear()
        logger.info("Deleted pack %s", pack_id)
        await self._audit("delete_pack", {"pack_id": pack_id})
        await self._events.publish(PACK_DELETED, {"pack_id": pack_id})

    async def grant_currency(
        self, account_id: str, currency: CurrencyType, amount: int
    ) -> AccountProfile:
        profile = await self._accounts.credit(account_id, currency, amount)
        logger.info("Granted %d %s to account %s", amount, currency.value, account_id)
        await self._audit(
            "grant_currency",
            {"account_id": account_id, "currency": currency.value, "amount": amount},
        )
        await self._events.publish(
            CURRENCY_GRANTED,
            {"account_id": account_id, "currency": currency.value, "amount": amount},
        )
        return profile

    async def _audit(self, action: str, payload: dict) -> None:
        await self._audit_store.add_entry(
            action,
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                **payload,
            },
        )
