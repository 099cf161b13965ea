"""Statistics models and the history replay that rebuilds them.

Statistics are never a source of truth: they are derived by replaying batch
records in creation order. ``apply_record`` is the single place a record is
folded into a ``UserStatistics``; both the settlement path and the full
replay go through it, so the cached and rebuilt values cannot drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Iterable, Mapping

from .cards import Rarity
from .economy import CurrencyType, zero_balances

if TYPE_CHECKING:
    from ..storage.base import BatchRecord


POPULAR_PACKS_LIMIT = 5
ACTIVITY_WINDOWS = {
    "daily": timedelta(hours=24),
    "weekly": timedelta(days=7),
    "monthly": timedelta(days=30),
}


def zero_rarities() -> dict[Rarity, int]:
    return {rarity: 0 for rarity in Rarity.ordered()}


@dataclass(slots=True)
class PackGachaSummary:
    pack_id: str
    pack_name: str
    pack_description: str
    pack_cover_image_url: str | None
    currency: CurrencyType
    cost: int
    total_gachas: int
    last_gacha_at: datetime


@dataclass(slots=True)
class UserStatistics:
    total_gachas: int = 0
    total_spent: dict[CurrencyType, int] = field(default_factory=zero_balances)
    cards_by_rarity: dict[Rarity, int] = field(default_factory=zero_rarities)
    gacha_by_rarity: dict[Rarity, int] = field(default_factory=zero_rarities)
    pack_summaries: list[PackGachaSummary] = field(default_factory=list)
    last_gacha_at: datetime | None = None


@dataclass(slots=True)
class PopularPack:
    pack_id: str
    name: str
    count: int


@dataclass(slots=True)
class UserActivity:
    daily: int = 0
    weekly: int = 0
    monthly: int = 0


@dataclass(slots=True)
class GlobalStatistics:
    total_users: int
    total_gachas: int
    total_revenue: dict[CurrencyType, int]
    card_distribution: dict[Rarity, int]
    popular_packs: list[PopularPack]
    user_activity: UserActivity


def apply_record(stats: UserStatistics, record: "BatchRecord") -> None:
    """Fold one batch record into ``stats`` in place."""
    stats.total_gachas += record.quantity
    stats.total_spent[record.pack_currency] = (
        stats.total_spent.get(record.pack_currency, 0) + record.result.currency_spent
    )
    for card in record.result.cards:
        stats.cards_by_rarity[card.rarity] = stats.cards_by_rarity.get(card.rarity, 0) + 1
        stats.gacha_by_rarity[card.rarity] = stats.gacha_by_rarity.get(card.rarity, 0) + 1

    summary = next((s for s in stats.pack_summaries if s.pack_id == record.pack_id), None)
    if summary is None:
        stats.pack_summaries.append(
            PackGachaSummary(
                pack_id=record.pack_id,
                pack_name=record.pack_name,
                pack_description=record.pack_description,
                pack_cover_image_url=record.pack_cover_image_url,
                currency=record.pack_currency,
                cost=record.pack_cost,
                total_gachas=record.quantity,
                last_gacha_at=record.created_at,
            )
        )
    else:
        summary.total_gachas += record.quantity
        if record.created_at >= summary.last_gacha_at:
            summary.pack_name = record.pack_name
            summary.pack_description = record.pack_description
            summary.pack_cover_image_url = record.pack_cover_image_url
            summary.currency = record.pack_currency
            summary.cost = record.pack_cost
            summary.last_gacha_at = record.created_at
    stats.pack_summaries.sort(key=lambda s: s.pack_id)
    stats.pack_summaries.sort(key=lambda s: s.last_gacha_at, reverse=True)

    if stats.last_gacha_at is None or record.created_at > stats.last_gacha_at:
        stats.last_gacha_at = record.created_at


def replay(records: Iterable["BatchRecord"]) -> UserStatistics:
    """Rebuild statistics from records given in creation order."""
    stats = UserStatistics()
    for record in records:
        apply_record(stats, record)
    return stats


def creation_order(records_newest_first: Iterable["BatchRecord"]) -> list["BatchRecord"]:
    oldest_first = list(records_newest_first)
    oldest_first.reverse()
    return sorted(oldest_first, key=lambda record: record.created_at)


def build_global_statistics(
    records: Iterable["BatchRecord"],
    *,
    total_users: int,
    pack_names: Mapping[str, str],
    now: datetime,
) -> GlobalStatistics:
    total_gachas = 0
    revenue = zero_balances()
    distribution = zero_rarities()
    pack_counts: dict[str, int] = {}
    recorded_names: dict[str, str] = {}
    last_draw: dict[str, datetime] = {}

    for record in records:
        total_gachas += record.quantity
        revenue[record.result.currency] = (
            revenue.get(record.result.currency, 0) + record.result.currency_spent
        )
        for card in record.result.cards:
            distribution[card.rarity] = distribution.get(card.rarity, 0) + 1
        pack_counts[record.pack_id] = pack_counts.get(record.pack_id, 0) + 1
        recorded_names[record.pack_id] = record.pack_name
        previous = last_draw.get(record.account_id)
        if previous is None or record.created_at > previous:
            last_draw[record.account_id] = record.created_at

    ranked = sorted(pack_counts.items(), key=lambda item: (-item[1], item[0]))
    popular = [
        PopularPack(
            pack_id=pack_id,
            name=pack_names.get(pack_id) or recorded_names.get(pack_id, "Unknown"),
            count=count,
        )
        for pack_id, count in ranked[:POPULAR_PACKS_LIMIT]
    ]

    activity = UserActivity(
        **{
            bucket: sum(1 for seen in last_draw.values() if seen > now - window)
            for bucket, window in ACTIVITY_WINDOWS.items()
        }
    )

    return GlobalStatistics(
        total_users=total_users,
        total_gachas=total_gachas,
        total_revenue=revenue,
        card_distribution=distribution,
        popular_packs=popular,
        user_activity=activity,
    )
