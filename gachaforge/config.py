"""Configuration models for gachaforge."""

from __future__ import annotations

import os
import json
from dataclasses import dataclass, field
from typing import Literal, Mapping, Sequence

from .domain.economy import CurrencyType


StorageBackend = Literal["memory", "sqlalchemy"]

DEFAULT_STARTING_BALANCES = {
    CurrencyType.GOLD: 10000,
    CurrencyType.TICKET: 10,
    CurrencyType.PREMIUM: 0,
}


@dataclass(slots=True)
class StorageConfig:
    """Configure where catalogs, accounts and history are persisted."""

    backend: StorageBackend = "memory"
    dsn: str | None = None
    echo_sql: bool = False

    def resolve_dsn(self) -> str | None:
        if self.dsn:
            return self.dsn
        if self.backend == "sqlalchemy":
            return "sqlite+aiosqlite:///./gachaforge.db"
        return None


@dataclass(slots=True)
class GachaRulesConfig:
    """Rules applied to every batch and every new account."""

    allowed_quantities: Sequence[int] = (1, 10)
    starting_balances: Mapping[CurrencyType, int] = field(
        default_factory=lambda: dict(DEFAULT_STARTING_BALANCES)
    )


@dataclass(slots=True)
class StatisticsConfig:
    """Lifetimes (seconds) of cached statistics."""

    user_ttl_seconds: float = 120.0
    global_ttl_seconds: float = 300.0


@dataclass(slots=True)
class GachaConfig:
    """Top-level configuration container."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    rules: GachaRulesConfig = field(default_factory=GachaRulesConfig)
    statistics: StatisticsConfig = field(default_factory=StatisticsConfig)
    rng_seed: int | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "GachaConfig":
        """Create config from environment variables prefixed with GACHAFORGE_."""
        prefix = "GACHAFORGE_"
        storage_backend = os.getenv(f"{prefix}STORAGE_BACKEND", "memory")
        if storage_backend not in {"memory", "sqlalchemy"}:
            raise ValueError(f"Unsupported storage backend {storage_backend}")
        dsn = os.getenv(f"{prefix}STORAGE_DSN")
        echo_sql = os.getenv(f"{prefix}STORAGE_ECHO_SQL", "false").lower() in {"1", "true", "yes"}

        rules = GachaRulesConfig(
            allowed_quantities=_parse_quantities(os.getenv(f"{prefix}ALLOWED_QUANTITIES")),
            starting_balances=_parse_balances(os.getenv(f"{prefix}STARTING_BALANCES")),
        )

        statistics = StatisticsConfig(
            user_ttl_seconds=float(os.getenv(f"{prefix}STATS_USER_TTL", "120")),
            global_ttl_seconds=float(os.getenv(f"{prefix}STATS_GLOBAL_TTL", "300")),
        )

        return cls(
            storage=StorageConfig(backend=storage_backend, dsn=dsn, echo_sql=echo_sql),
            rules=rules,
            statistics=statistics,
            rng_seed=(
                int(os.getenv(f"{prefix}RNG_SEED")) if os.getenv(f"{prefix}RNG_SEED") else None
            ),
            log_level=os.getenv(f"{prefix}LOG_LEVEL", "INFO").upper(),
        )


def _parse_quantities(raw: str | None) -> tuple[int, ...]:
    if not raw:
        return (1, 10)
    quantities = tuple(int(part.strip()) for part in raw.split(",") if part.strip())
    if not quantities or any(q <= 0 for q in quantities):
        raise ValueError("GACHAFORGE_ALLOWED_QUANTITIES must list positive integers")
    return quantities


def _parse_balances(raw: str | None) -> Mapping[CurrencyType, int]:
    if not raw:
        return dict(DEFAULT_STARTING_BALANCES)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("Invalid JSON for GACHAFORGE_STARTING_BALANCES") from exc
    if not isinstance(data, dict):
        raise ValueError("GACHAFORGE_STARTING_BALANCES must be a JSON object")
    balances = {currency: 0 for currency in CurrencyType}
    for code, amount in data.items():
        amount = int(amount)
        if amount < 0:
            raise ValueError(f"Starting balance for {code} cannot be negative")
        balances[CurrencyType(str(code).upper())] = amount
    return balances
