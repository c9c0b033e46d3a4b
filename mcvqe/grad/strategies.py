"""
Gradient strategies for MC-VQE objectives.

A strategy splits gradient estimation into two steps so that the caller
controls execution:

    circuits = strategy.gradient_circuits(circuit, x)   # bound circuits
    energies = executor.execute(circuits, hamiltonian)
    grad = strategy.compute(energies)

For the RY-only entangler every parameter enters through exactly one gate
with generator Y/2, so the parameter-shift rule

    ∂f/∂θ = (1/2) [f(θ + π/2) − f(θ − π/2)]

is exact. The finite-difference strategies are kept for comparison and
for circuits where that does not hold.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, List, Optional, Protocol, Sequence

import numpy as np
import torch

from ..circuit import QuantumCircuit


class GradientStrategy(Protocol):
    """Protocol for gradient providers."""

    name: str

    def gradient_circuits(
        self, circuit: QuantumCircuit, x: Sequence[float] | np.ndarray
    ) -> List[QuantumCircuit]:
        """Return the bound circuits whose energies determine ∇f(x)."""
        ...

    def compute(self, results: Sequence[float]) -> np.ndarray:
        """Turn the energies of the requested circuits into the gradient."""
        ...


def _as_vector(x: Sequence[float] | np.ndarray | torch.Tensor) -> np.ndarray:
    if isinstance(x, torch.Tensor):
        x = x.detach().cpu().numpy()
    x = np.asarray(x, dtype=float)
    if x.ndim != 1:
        raise ValueError(f"x must be a 1D parameter vector, got shape {x.shape}")
    return x


class _BatchedStrategy:
    """Shared bookkeeping: remember how many results the last batch needs."""

    name = ""

    def __init__(self) -> None:
        self._expected: Optional[int] = None

    def _request(self, circuits: List[QuantumCircuit]) -> List[QuantumCircuit]:
        self._expected = len(circuits)
        return circuits

    def _check(self, results: Sequence[float]) -> np.ndarray:
        if self._expected is None:
            raise ValueError(f"{self.name}: compute() called before gradient_circuits().")
        values = np.asarray(results, dtype=float)
        if values.shape != (self._expected,):
            raise ValueError(
                f"{self.name}: expected {self._expected} results, got {values.size}."
            )
        return values


class ParameterShiftGradient(_BatchedStrategy):
    """
    Parameter-shift gradient.

    Args:
        shift: Shift s (default π/2).
        prefactor: Factor applied to f(θ + s) − f(θ − s) (default 0.5).
    """

    name = "parameter-shift"

    def __init__(self, shift: float = math.pi / 2, prefactor: float = 0.5) -> None:
        super().__init__()
        if not math.isfinite(shift) or shift == 0.0:
            raise ValueError(f"shift must be finite and non-zero, got {shift}")
        if not math.isfinite(prefactor):
            raise ValueError(f"prefactor must be finite, got {prefactor}")
        self.shift = float(shift)
        self.prefactor = float(prefactor)

    def gradient_circuits(self, circuit, x):
        x = _as_vector(x)
        circuits: List[QuantumCircuit] = []
        for i in range(x.size):
            plus = x.copy()
            minus = x.copy()
            plus[i] += self.shift
            minus[i] -= self.shift
            circuits.append(circuit.bind(plus))
            circuits.append(circuit.bind(minus))
        return self._request(circuits)

    def compute(self, results):
        values = self._check(results)
        return self.prefactor * (values[0::2] - values[1::2])


class CentralDifferenceGradient(_BatchedStrategy):
    """Central finite difference: (f(x + h e_i) − f(x − h e_i)) / 2h."""

    name = "central"

    def __init__(self, step: float = 1e-3) -> None:
        super().__init__()
        if not step > 0.0:
            raise ValueError(f"step must be positive, got {step}")
        self.step = float(step)

    def gradient_circuits(self, circuit, x):
        x = _as_vector(x)
        circuits: List[QuantumCircuit] = []
        for i in range(x.size):
            plus = x.copy()
            minus = x.copy()
            plus[i] += self.step
            minus[i] -= self.step
            circuits.append(circuit.bind(plus))
            circuits.append(circuit.bind(minus))
        return self._request(circuits)

    def compute(self, results):
        values = self._check(results)
        return (values[0::2] - values[1::2]) / (2.0 * self.step)


class ForwardDifferenceGradient(_BatchedStrategy):
    """
    Forward finite difference: (f(x + h e_i) − f(x)) / h.

    The first requested circuit is the unshifted one.
    """

    name = "forward"

    def __init__(self, step: float = 1e-7) -> None:
        super().__init__()
        if not step > 0.0:
            raise ValueError(f"step must be positive, got {step}")
        self.step = float(step)

    def gradient_circuits(self, circuit, x):
        x = _as_vector(x)
        circuits = [circuit.bind(x)]
        for i in range(x.size):
            shifted = x.copy()
            shifted[i] += self.step
            circuits.append(circuit.bind(shifted))
        return self._request(circuits)

    def compute(self, results):
        values = self._check(results)
        return (values[1:] - values[0]) / self.step


_REGISTRY: Dict[str, Callable[..., GradientStrategy]] = {}


def register_gradient_strategy(name: str, factory: Callable[..., GradientStrategy]) -> None:
    """
    Register a gradient strategy factory under ``name``.

    Raises:
        ValueError: If ``name`` is already registered.
    """
    if name in _REGISTRY:
        raise ValueError(f"Gradient strategy {name!r} is already registered.")
    _REGISTRY[name] = factory


def available_gradient_strategies() -> List[str]:
    """Return the registered strategy names, sorted."""
    return sorted(_REGISTRY)


def get_gradient_strategy(name: str, **kwargs) -> GradientStrategy:
    """
    Create a new instance of the strategy registered under ``name``.

    Raises:
        ValueError: If no strategy is registered under ``name``.
    """
    try:
        factory = _REGISTRY[name]
    except KeyError:
        raise ValueError(
            f"Unknown gradient strategy {name!r}. "
            f"Available: {available_gradient_strategies()}"
        ) from None
    return factory(**kwargs)


register_gradient_strategy(ParameterShiftGradient.name, ParameterShiftGradient)
register_gradient_strategy(CentralDifferenceGradient.name, CentralDifferenceGradient)
register_gradient_strategy(ForwardDifferenceGradient.name, ForwardDifferenceGradient)


__all__ = [
    "GradientStrategy",
    "ParameterShiftGradient",
    "CentralDifferenceGradient",
    "ForwardDifferenceGradient",
    "register_gradient_strategy",
    "get_gradient_strategy",
    "available_gradient_strategies",
]
