"""Per (account, pack) pity counter state machine."""

from __future__ import annotations

import logging

from .cards import PitySystem
from ..storage.base import PityStore

logger = logging.getLogger(__name__)

MAX_SOFT_PITY_BONUS = 0.5


def is_hard_pity(counter: int, pity: PitySystem | None) -> bool:
    return pity is not None and counter >= pity.max_pity


def soft_pity_bonus(counter: int, pity: PitySystem | None) -> float:
    """Fraction by which the roll is shrunk once soft pity has started."""
    if pity is None or counter < pity.soft_pity_start:
        return 0.0
    progress = (counter - pity.soft_pity_start) / (pity.max_pity - pity.soft_pity_start)
    return min(MAX_SOFT_PITY_BONUS, MAX_SOFT_PITY_BONUS * progress)


def advance(counter: int, triggered: bool, pity: PitySystem | None) -> int:
    """Return the counter value after one draw.

    The counter never exceeds ``max_pity``; with ``reset_on_trigger`` disabled
    it stays pinned there, so every following draw is a pity draw.
    """
    if triggered and pity is not None:
        if pity.reset_on_trigger:
            return 0
        return min(counter + 1, pity.max_pity)
    if pity is None:
        return counter + 1
    return min(counter + 1, pity.max_pity)


class PityTracker:
    """Load and persist pity counters through a ``PityStore``."""

    def __init__(self, store: PityStore) -> None:
        self._store = store

    async def load(self, account_id: str, pack_id: str) -> int:
        return await self._store.get(account_id, pack_id)

    async def save(self, account_id: str, pack_id: str, counter: int) -> None:
        if counter < 0:
            raise ValueError("Pity counter cannot be negative")
        await self._store.put(account_id, pack_id, counter)
        logger.debug("Pity counter for %s/%s is now %d", account_id, pack_id, counter)
