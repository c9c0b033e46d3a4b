"""Classical optimizers for MC-VQE."""

from .factory import OptimConfig, create_optimizer
from .optimizers import (
    ObjectiveFunction,
    OptimizationResult,
    Optimizer,
    ScipyOptimizer,
    TorchOptimizer,
)

__all__ = [
    "OptimConfig",
    "create_optimizer",
    "ObjectiveFunction",
    "OptimizationResult",
    "Optimizer",
    "ScipyOptimizer",
    "TorchOptimizer",
]
