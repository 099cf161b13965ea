"""Diagnostics for catalog balancing."""

from .drop_rates import DropRateSimulator, SimulationResult

__all__ = ["DropRateSimulator", "SimulationResult"]
