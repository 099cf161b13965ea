import pytest

from gachaforge.app import GachaApp
from gachaforge.config import GachaConfig, StorageConfig
from gachaforge.domain.economy import CurrencyType


def test_defaults_use_memory_storage():
    config = GachaConfig()
    assert config.storage.backend == "memory"
    assert config.storage.resolve_dsn() is None
    assert tuple(config.rules.allowed_quantities) == (1, 10)
    assert config.rules.starting_balances[CurrencyType.GOLD] == 10000


def test_sqlalchemy_backend_has_default_dsn():
    assert StorageConfig(backend="sqlalchemy").resolve_dsn() == "sqlite+aiosqlite:///./gachaforge.db"
    assert StorageConfig(backend="sqlalchemy", dsn="sqlite+aiosqlite:///x.db").resolve_dsn() == (
        "sqlite+aiosqlite:///x.db"
    )


def test_from_env(monkeypatch):
    monkeypatch.setenv("GACHAFORGE_ALLOWED_QUANTITIES", "1, 5, 10")
    monkeypatch.setenv("GACHAFORGE_STARTING_BALANCES", '{"gold": 500, "TICKET": 3}')
    monkeypatch.setenv("GACHAFORGE_STATS_USER_TTL", "15")
    monkeypatch.setenv("GACHAFORGE_RNG_SEED", "42")
    monkeypatch.setenv("GACHAFORGE_LOG_LEVEL", "debug")

    config = GachaConfig.from_env()

    assert config.rules.allowed_quantities == (1, 5, 10)
    assert config.rules.starting_balances == {
        CurrencyType.GOLD: 500,
        CurrencyType.TICKET: 3,
        CurrencyType.PREMIUM: 0,
    }
    assert config.statistics.user_ttl_seconds == 15.0
    assert config.statistics.global_ttl_seconds == 300.0
    assert config.rng_seed == 42
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("GACHAFORGE_STORAGE_BACKEND", "redis"),
        ("GACHAFORGE_STARTING_BALANCES", "{not json"),
        ("GACHAFORGE_STARTING_BALANCES", '{"GOLD": -1}'),
        ("GACHAFORGE_ALLOWED_QUANTITIES", "0,10"),
    ],
)
def test_from_env_rejects_bad_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError):
        GachaConfig.from_env()


def test_app_rejects_unknown_backend():
    with pytest.raises(ValueError):
        GachaApp(GachaConfig(storage=StorageConfig(backend="redis")))  # type: ignore[arg-type]


@pytest.mark.asyncio()
async def test_custom_quantities_are_enforced():
    config = GachaConfig()
    config.rules.allowed_quantities = (3,)
    app = GachaApp(config)
    await app.accounts.create_account(account_id="u1")
    with pytest.raises(ValueError):
        await app.gacha.perform_gacha("u1", "missing", 1)
