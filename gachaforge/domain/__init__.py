"""Domain models and exceptions."""

from .cards import (
    AttributeKind,
    AttributeSpec,
    CardDefinition,
    CardTemplate,
    GameplayType,
    PackDefinition,
    PitySystem,
    Rarity,
)
from .economy import CurrencyType, Wallet
from .exceptions import (
    AccountNotFound,
    AttributeSchemaError,
    CardPackNotFound,
    ErrorKind,
    GachaError,
    InsufficientCurrency,
    InvalidProbability,
    NoAvailableCards,
    PitySystemError,
)
from .results import DrawBatchResult, DrawOutcome, DuplicateEntry
from .statistics import GlobalStatistics, PackGachaSummary, UserStatistics

__all__ = [
    "AttributeKind",
    "AttributeSpec",
    "CardDefinition",
    "CardTemplate",
    "GameplayType",
    "PackDefinition",
    "PitySystem",
    "Rarity",
    "CurrencyType",
    "Wallet",
    "AccountNotFound",
    "AttributeSchemaError",
    "CardPackNotFound",
    "ErrorKind",
    "GachaError",
    "InsufficientCurrency",
    "InvalidProbability",
    "NoAvailableCards",
    "PitySystemError",
    "DrawBatchResult",
    "DrawOutcome",
    "DuplicateEntry",
    "GlobalStatistics",
    "PackGachaSummary",
    "UserStatistics",
]
