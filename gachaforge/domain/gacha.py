"""Batch orchestration: pay for a pack, draw, reconcile and record."""

from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from dataclasses import replace
from datetime import datetime
from random import Random
from typing import Callable, Sequence

from .cache import StatisticsCache
from .cards import CardDefinition, PackDefinition, cards_by_id
from .duplicates import DuplicateReconciler
from .economy import Wallet
from .events import BATCH_COMPLETED, EventBus
from .exceptions import AccountNotFound, CardPackNotFound, InsufficientCurrency
from .locks import AccountLocks
from .pity import PityTracker, advance
from .probability import validate_pack
from .resolver import DrawResolver
from .results import DrawBatchResult
from .statistics import apply_record
from ..config import GachaRulesConfig
from ..storage.base import (
    AccountStore,
    BatchRecord,
    BatchSettlement,
    CatalogStore,
    HistoryStore,
    SettlementStore,
    utcnow,
)

logger = logging.getLogger(__name__)


class GachaService:
    """Run draw batches for accounts.

    A batch is all-or-nothing: every check and every draw happens before the
    first write, and the writes for one account are serialized by its lock.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        account_store: AccountStore,
        history_store: HistoryStore,
        pity_tracker: PityTracker,
        reconciler: DuplicateReconciler,
        rules: GachaRulesConfig,
        event_bus: EventBus,
        *,
        settlements: SettlementStore,
        cache: StatisticsCache,
        locks: AccountLocks,
        rng: Random | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._catalog = catalog
        self._accounts = account_store
        self._history = history_store
        self._pity = pity_tracker
        self._reconciler = reconciler
        self._settlements = settlements
        self._rules = rules
        self._event_bus = event_bus
        self._cache = cache
        self._locks = locks
        self._resolver = DrawResolver(rng)
        self._clock = clock

    async def perform_gacha(
        self, account_id: str, pack_id: str, quantity: int = 1
    ) -> DrawBatchResult:
        if quantity not in self._rules.allowed_quantities:
            allowed = ", ".join(str(q) for q in self._rules.allowed_quantities)
            raise ValueError(f"Quantity must be one of {allowed}, got {quantity}")

        pack = await self._catalog.get_pack(pack_id)
        if pack is None:
            raise CardPackNotFound(pack_id)
        validate_pack(pack)

        async with self._locks.for_account(account_id):
            account = await self._accounts.get(account_id)
            if account is None:
                raise AccountNotFound(account_id)

            total_cost = pack.cost * quantity
            wallet = Wallet.from_mapping(account.currencies)
            if not wallet.can_afford(pack.currency, total_cost):
                raise InsufficientCurrency(
                    pack.currency.value, total_cost, wallet.balance(pack.currency)
                )

            counter = await self._pity.load(account_id, pack_id)
            drawn, counter, pity_triggered = self._draw(
                pack,
                counter,
                quantity,
                cards_by_id(await self._catalog.get_cards_by_ids(pack.available_cards)),
            )

            now = self._clock()
            plan = await self._reconciler.plan(account_id, drawn, now=now)
            result = DrawBatchResult(
                cards=tuple(drawn),
                new_cards=plan.new_cards,
                duplicates=plan.duplicates,
                currency_spent=total_cost,
                currency=pack.currency,
                pity_triggered=pity_triggered,
                timestamp=now,
            )
            record = BatchRecord(
                record_id=uuid.uuid4().hex,
                account_id=account_id,
                pack_id=pack.pack_id,
                pack_name=pack.name,
                pack_description=pack.description,
                pack_cover_image_url=pack.cover_image_url,
                pack_currency=pack.currency,
                pack_cost=pack.cost,
                quantity=quantity,
                result=result,
                created_at=now,
            )

            wallet.debit(pack.currency, total_cost)
            statistics = copy.deepcopy(account.statistics)
            apply_record(statistics, record)
            settlement = BatchSettlement(
                account=replace(
                    account,
                    currencies=dict(wallet.balances),
                    statistics=statistics,
                    updated_at=now,
                ),
                pack_id=pack_id,
                pity_counter=counter,
                owned_cards=plan.entries,
                record=record,
            )
            await self._commit(settlement)

        self._cache.invalidate_account(account_id)
        self._cache.invalidate_global()

        logger.info(
            "Account %s drew %d from pack %s for %d %s (pity triggered: %s)",
            account_id,
            quantity,
            pack_id,
            total_cost,
            pack.currency.value,
            pity_triggered,
        )
        await self._event_bus.publish(
            BATCH_COMPLETED,
            {
                "account_id": account_id,
                "pack_id": pack_id,
                "record_id": record.record_id,
                "quantity": quantity,
                "cards": [card.card_id for card in drawn],
                "new_cards": [card.card_id for card in result.new_cards],
                "currency": pack.currency.value,
                "currency_spent": total_cost,
                "pity_triggered": pity_triggered,
            },
        )
        return result

    async def _commit(self, settlement: BatchSettlement) -> None:
        # Once writing starts the batch lands whole; cancellation waits for it.
        commit = asyncio.ensure_future(self._settlements.settle(settlement))
        try:
            await asyncio.shield(commit)
        except asyncio.CancelledError:
            await asyncio.wait({commit})
            raise

    async def get_history(self, account_id: str) -> Sequence[BatchRecord]:
        """Batch records for ``account_id``, newest first."""
        if await self._accounts.get(account_id) is None:
            raise AccountNotFound(account_id)
        return await self._history.for_account(account_id)

    def _draw(
        self,
        pack: PackDefinition,
        counter: int,
        quantity: int,
        cards: dict[str, CardDefinition],
    ) -> tuple[list[CardDefinition], int, bool]:
        drawn: list[CardDefinition] = []
        triggered_any = False
        for _ in range(quantity):
            outcome = self._resolver.resolve(pack, counter, cards)
            drawn.append(outcome.card)
            if outcome.pity_triggered:
                triggered_any = True
            counter = advance(counter, outcome.pity_triggered, pack.pity_system)
        return drawn, counter, triggered_any
