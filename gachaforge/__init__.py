"""gachaforge public API."""

from .app import GachaApp
from .config import GachaConfig, GachaRulesConfig, StatisticsConfig, StorageConfig

__all__ = [
    "GachaApp",
    "GachaConfig",
    "GachaRulesConfig",
    "StatisticsConfig",
    "StorageConfig",
]
