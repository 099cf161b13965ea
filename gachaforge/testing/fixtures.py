"""Pytest fixtures for gachaforge."""

from __future__ import annotations

from random import Random

import pytest

from ..app import GachaApp
from ..config import GachaConfig


@pytest.fixture()
def memory_app() -> GachaApp:
    return GachaApp(GachaConfig(), rng=Random(1234))


def app_fixture(*, seed: int | None = None, **kwargs) -> GachaApp:
    """Helper for ad-hoc tests where pytest is not available."""
    config = GachaConfig(**kwargs)
    return GachaApp(config, rng=Random(seed) if seed is not None else None)
