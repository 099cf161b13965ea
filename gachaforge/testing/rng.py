"""Deterministic random sources for draw tests."""

from __future__ import annotations

from random import Random
from typing import Sequence


class FixedRandom(Random):
    """Return scripted values from ``random()``; the last one repeats forever."""

    def script(self, values: Sequence[float]) -> "FixedRandom":
        if not values:
            raise ValueError("At least one value is required")
        self._values = list(values)
        self._position = 0
        return self

    def random(self) -> float:
        values = getattr(self, "_values", None) or [0.0]
        position = getattr(self, "_position", 0)
        value = values[min(position, len(values) - 1)]
        self._position = position + 1
        return value


def fixed_random(*values: float) -> FixedRandom:
    return FixedRandom().script(values)
