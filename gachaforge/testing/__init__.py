"""Testing utilities for gachaforge."""

from .factory import AccountFactory, CardFactory, PackFactory
from .fixtures import app_fixture, memory_app
from .rng import FixedRandom, fixed_random
from .test_client import GachaTestClient, ScenarioStep

__all__ = [
    "AccountFactory",
    "CardFactory",
    "PackFactory",
    "FixedRandom",
    "fixed_random",
    "app_fixture",
    "memory_app",
    "GachaTestClient",
    "ScenarioStep",
]
