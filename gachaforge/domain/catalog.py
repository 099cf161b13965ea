"""Read-side access to cards, packs and templates."""

from __future__ import annotations

from typing import Sequence

from .cards import CardDefinition, CardTemplate, GameplayType, PackDefinition
from .exceptions import CardPackNotFound
from ..storage.base import CatalogStore


class CatalogService:
    """Query the catalog store. Writes go through the admin service."""

    def __init__(self, store: CatalogStore) -> None:
        self._store = store

    async def get_card(self, card_id: str) -> CardDefinition | None:
        return await self._store.get_card(card_id)

    async def list_cards(self, gameplay_type: GameplayType | None = None) -> Sequence[CardDefinition]:
        return await self._store.list_cards(gameplay_type)

    async def get_pack(self, pack_id: str) -> PackDefinition:
        pack = await self._store.get_pack(pack_id)
        if pack is None:
            raise CardPackNotFound(pack_id)
        return pack

    async def list_packs(
        self, gameplay_type: GameplayType | None = None, *, active_only: bool = False
    ) -> Sequence[PackDefinition]:
        return await self._store.list_packs(gameplay_type, active_only=active_only)

    async def pack_cards(self, pack_id: str) -> Sequence[CardDefinition]:
        """Cards of a pack in ``available_cards`` order; missing ids are skipped."""
        pack = await self.get_pack(pack_id)
        return await self._store.get_cards_by_ids(pack.available_cards)

    async def get_template(self, template_id: str) -> CardTemplate | None:
        return await self._store.get_template(template_id)

    async def list_templates(self, gameplay_type: GameplayType | None = None) -> Sequence[CardTemplate]:
        return await self._store.list_templates(gameplay_type)
