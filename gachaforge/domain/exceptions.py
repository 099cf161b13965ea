"""Exceptions raised by gachaforge domain services."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping


class ErrorKind(str, Enum):
    INVALID_PROBABILITY = "INVALID_PROBABILITY"
    PITY_SYSTEM_ERROR = "PITY_SYSTEM_ERROR"
    CARD_PACK_NOT_FOUND = "CARD_PACK_NOT_FOUND"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    INSUFFICIENT_CURRENCY = "INSUFFICIENT_CURRENCY"
    NO_AVAILABLE_CARDS = "NO_AVAILABLE_CARDS"
    ATTRIBUTE_SCHEMA = "ATTRIBUTE_SCHEMA"


class GachaError(RuntimeError):
    """Base class for domain exceptions.

    ``operator_facing`` errors point at a data-authoring defect and should be
    surfaced to whoever maintains the catalog, not to the player.
    """

    kind: ErrorKind
    operator_facing: bool = True

    def __init__(self, message: str, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})


class InvalidProbability(GachaError):
    """Raised when a pack's draw table is malformed."""

    kind = ErrorKind.INVALID_PROBABILITY


class PitySystemError(GachaError):
    """Raised when a pack's pity configuration is unusable."""

    kind = ErrorKind.PITY_SYSTEM_ERROR


class NoAvailableCards(GachaError):
    """Raised when a draw cannot be resolved to any card definition."""

    kind = ErrorKind.NO_AVAILABLE_CARDS


class AttributeSchemaError(GachaError):
    """Raised when card attributes do not match the card template."""

    kind = ErrorKind.ATTRIBUTE_SCHEMA


class CardPackNotFound(GachaError):
    kind = ErrorKind.CARD_PACK_NOT_FOUND
    operator_facing = False

    def __init__(self, pack_id: str) -> None:
        super().__init__(f"Card pack {pack_id} not found", {"pack_id": pack_id})
        self.pack_id = pack_id


class AccountNotFound(GachaError):
    kind = ErrorKind.ACCOUNT_NOT_FOUND
    operator_facing = False

    def __init__(self, account_id: str) -> None:
        super().__init__(f"Account {account_id} not found", {"account_id": account_id})
        self.account_id = account_id


class InsufficientCurrency(GachaError):
    """Raised when a wallet cannot satisfy a spend operation."""

    kind = ErrorKind.INSUFFICIENT_CURRENCY
    operator_facing = False

    def __init__(self, currency: str, required: int, available: int) -> None:
        super().__init__(
            f"Insufficient {currency}: required {required}, available {available}",
            {"currency": currency, "required": required, "available": available},
        )
        self.currency = currency
        self.required = required
        self.available = available
