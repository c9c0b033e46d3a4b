"""High-level quantum algorithms."""

from .mcvqe import MCVQE, EnergyTracker, MCObjective, MCVQEResult

__all__ = ["MCVQE", "MCVQEResult", "MCObjective", "EnergyTracker"]
