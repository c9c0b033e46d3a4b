"""Gradient strategies and their registry."""

from .strategies import (
    CentralDifferenceGradient,
    ForwardDifferenceGradient,
    GradientStrategy,
    ParameterShiftGradient,
    available_gradient_strategies,
    get_gradient_strategy,
    register_gradient_strategy,
)

__all__ = [
    "GradientStrategy",
    "ParameterShiftGradient",
    "CentralDifferenceGradient",
    "ForwardDifferenceGradient",
    "register_gradient_strategy",
    "get_gradient_strategy",
    "available_gradient_strategies",
]
