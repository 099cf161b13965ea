"""JSON-compatible encoding of results and statistics for persistent backends."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from ..domain.cards import Rarity
from ..domain.economy import CurrencyType, zero_balances
from ..domain.results import DrawBatchResult, DuplicateEntry
from ..domain.statistics import PackGachaSummary, UserStatistics, zero_rarities
from ..loaders.json_loader import dump_card, parse_card


def _dt(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def result_to_dict(result: DrawBatchResult) -> dict[str, Any]:
    return {
        "cards": [dump_card(card) for card in result.cards],
        "newCards": [dump_card(card) for card in result.new_cards],
        "duplicates": [
            {"card": dump_card(entry.card), "count": entry.count} for entry in result.duplicates
        ],
        "currencySpent": result.currency_spent,
        "currency": result.currency.value,
        "pityTriggered": result.pity_triggered,
        "timestamp": _dt(result.timestamp),
    }


def result_from_dict(data: dict[str, Any]) -> DrawBatchResult:
    return DrawBatchResult(
        cards=tuple(parse_card(card) for card in data["cards"]),
        new_cards=tuple(parse_card(card) for card in data["newCards"]),
        duplicates=tuple(
            DuplicateEntry(card=parse_card(entry["card"]), count=int(entry["count"]))
            for entry in data["duplicates"]
        ),
        currency_spent=int(data["currencySpent"]),
        currency=CurrencyType(data["currency"]),
        pity_triggered=bool(data["pityTriggered"]),
        timestamp=_parse_dt(data["timestamp"]),
    )


def statistics_to_dict(stats: UserStatistics) -> dict[str, Any]:
    return {
        "totalGachas": stats.total_gachas,
        "totalSpent": {currency.value: amount for currency, amount in stats.total_spent.items()},
        "cardsByRarity": {rarity.value: count for rarity, count in stats.cards_by_rarity.items()},
        "gachaByRarity": {rarity.value: count for rarity, count in stats.gacha_by_rarity.items()},
        "packGachaSummary": [
            {
                "packId": summary.pack_id,
                "packName": summary.pack_name,
                "packDescription": summary.pack_description,
                "packCoverImageUrl": summary.pack_cover_image_url,
                "currency": summary.currency.value,
                "cost": summary.cost,
                "totalGachas": summary.total_gachas,
                "lastGachaAt": _dt(summary.last_gacha_at),
            }
            for summary in stats.pack_summaries
        ],
        "lastGachaAt": _dt(stats.last_gacha_at),
    }


def statistics_from_dict(data: dict[str, Any] | None) -> UserStatistics:
    if not data:
        return UserStatistics()
    total_spent = zero_balances()
    total_spent.update({CurrencyType(k): int(v) for k, v in data.get("totalSpent", {}).items()})
    cards_by_rarity = zero_rarities()
    cards_by_rarity.update({Rarity(k): int(v) for k, v in data.get("cardsByRarity", {}).items()})
    gacha_by_rarity = zero_rarities()
    gacha_by_rarity.update({Rarity(k): int(v) for k, v in data.get("gachaByRarity", {}).items()})
    return UserStatistics(
        total_gachas=int(data.get("totalGachas", 0)),
        total_spent=total_spent,
        cards_by_rarity=cards_by_rarity,
        gacha_by_rarity=gacha_by_rarity,
        pack_summaries=[
            PackGachaSummary(
                pack_id=entry["packId"],
                pack_name=entry["packName"],
                pack_description=entry.get("packDescription", ""),
                pack_cover_image_url=entry.get("packCoverImageUrl"),
                currency=CurrencyType(entry["currency"]),
                cost=int(entry["cost"]),
                total_gachas=int(entry["totalGachas"]),
                last_gacha_at=_parse_dt(entry["lastGachaAt"]),
            )
            for entry in data.get("packGachaSummary", [])
        ],
        last_gacha_at=_parse_dt(data.get("lastGachaAt")),
    )


def balances_to_dict(balances: dict[CurrencyType, int]) -> dict[str, int]:
    return {currency.value: amount for currency, amount in balances.items()}


def balances_from_dict(data: dict[str, int] | None) -> dict[CurrencyType, int]:
    balances = zero_balances()
    balances.update({CurrencyType(k): int(v) for k, v in (data or {}).items()})
    return balances
