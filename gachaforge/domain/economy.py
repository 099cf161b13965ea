"""Economy primitives."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping

from .exceptions import InsufficientCurrency


class CurrencyType(str, Enum):
    GOLD = "GOLD"
    TICKET = "TICKET"
    PREMIUM = "PREMIUM"


def zero_balances() -> dict[CurrencyType, int]:
    return {currency: 0 for currency in CurrencyType}


@dataclass(slots=True)
class Wallet:
    """Mutable wallet representation used by services."""

    balances: Dict[CurrencyType, int] = field(default_factory=zero_balances)

    def balance(self, currency: CurrencyType) -> int:
        return self.balances.get(currency, 0)

    def can_afford(self, currency: CurrencyType, amount: int) -> bool:
        return self.balance(currency) >= amount

    def credit(self, currency: CurrencyType, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot credit negative amount")
        self.balances[currency] = self.balance(currency) + amount

    def debit(self, currency: CurrencyType, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot debit negative amount")
        current = self.balance(currency)
        if current < amount:
            raise InsufficientCurrency(currency.value, amount, current)
        self.balances[currency] = current - amount

    @classmethod
    def from_mapping(cls, balances: Mapping[CurrencyType, int]) -> "Wallet":
        wallet = cls()
        for currency, amount in balances.items():
            wallet.balances[CurrencyType(currency)] = int(amount)
        return wallet
