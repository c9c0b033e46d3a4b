"""Classical optimizers driving an MC-VQE objective.

Both adapters minimize an objective ``f(x) -> (value, gradient_or_None)``
over a real parameter vector and report an ``OptimizationResult``.
``ScipyOptimizer`` wraps ``scipy.optimize.minimize`` (COBYLA by default);
``TorchOptimizer`` drives a ``torch.optim`` optimizer built by
``create_optimizer`` and needs gradients.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple

import numpy as np
import torch
from scipy.optimize import minimize

from ..logging import get_logger
from .factory import OptimConfig, create_optimizer

logger = get_logger(__name__)

# scipy.optimize.minimize methods that consume a gradient.
_GRADIENT_METHODS = {
    "cg",
    "bfgs",
    "newton-cg",
    "l-bfgs-b",
    "tnc",
    "slsqp",
    "trust-constr",
}


class ObjectiveFunction(Protocol):
    """Objective returning ``(value, gradient)``; gradient is None when unavailable."""

    @property
    def has_gradient(self) -> bool:
        ...

    def __call__(self, x: np.ndarray) -> Tuple[float, Optional[np.ndarray]]:
        ...


@dataclass
class OptimizationResult:
    """
    Outcome of one optimization run.

    Attributes:
        value: Best objective value found.
        params: Parameters at which ``value`` was found.
        n_evaluations: Number of objective calls.
        converged: Whether the optimizer reported convergence.
        message: Optimizer status message.
    """

    value: float
    params: np.ndarray
    n_evaluations: int
    converged: bool
    message: str = ""


class Optimizer(Protocol):
    def optimize(
        self,
        objective: ObjectiveFunction,
        n_params: int,
        initial_params: Optional[Sequence[float]] = None,
    ) -> OptimizationResult:
        ...


def _initial_point(n_params: int, initial_params: Optional[Sequence[float]]) -> np.ndarray:
    if n_params < 0:
        raise ValueError(f"n_params must be >= 0, got {n_params}")
    if initial_params is None:
        return np.zeros(n_params)
    x0 = np.asarray(initial_params, dtype=float).reshape(-1)
    if x0.size != n_params:
        raise ValueError(f"initial_params has {x0.size} entries, expected {n_params}")
    return x0


class ScipyOptimizer:
    """
    Adapter around ``scipy.optimize.minimize``.

    Args:
        method: Any ``minimize`` method name (default "COBYLA").
        options: Passed through as ``options``, e.g. {"maxiter": 200}.
        tol: Passed through as ``tol``.
    """

    def __init__(
        self,
        method: str = "COBYLA",
        options: Optional[Dict[str, Any]] = None,
        tol: Optional[float] = None,
    ) -> None:
        self.method = method
        self.options = dict(options or {})
        self.tol = tol

    @property
    def uses_gradient(self) -> bool:
        return self.method.lower() in _GRADIENT_METHODS

    def optimize(
        self,
        objective: ObjectiveFunction,
        n_params: int,
        initial_params: Optional[Sequence[float]] = None,
    ) -> OptimizationResult:
        x0 = _initial_point(n_params, initial_params)
        use_jac = self.uses_gradient and objective.has_gradient
        n_calls = 0
        best_value = np.inf
        best_x = x0.copy()

        def fun(x: np.ndarray):
            nonlocal n_calls, best_value, best_x
            n_calls += 1
            value, grad = objective(np.asarray(x, dtype=float))
            if value < best_value:
                best_value = float(value)
                best_x = np.array(x, dtype=float)
            if use_jac:
                return float(value), np.asarray(grad, dtype=float)
            return float(value)

        if self.uses_gradient and not objective.has_gradient:
            logger.info(
                "%s uses gradients but none are configured; scipy will estimate them by finite differences",
                self.method,
            )

        result = minimize(
            fun,
            x0,
            method=self.method,
            jac=True if use_jac else None,
            tol=self.tol,
            options=self.options or None,
        )

        # Report the best point seen; some methods return their last iterate.
        value = float(result.fun)
        params = np.asarray(result.x, dtype=float)
        if best_value < value:
            value, params = best_value, best_x

        logger.debug(
            "scipy %s finished: value=%.12f nfev=%d success=%s (%s)",
            self.method,
            value,
            n_calls,
            result.success,
            result.message,
        )
        return OptimizationResult(
            value=value,
            params=params,
            n_evaluations=n_calls,
            converged=bool(result.success),
            message=str(result.message),
        )


class TorchOptimizer:
    """
    Adapter driving a torch.optim optimizer with externally computed gradients.

    Each step evaluates the objective inside a closure and copies its
    gradient into ``params.grad``.

    Args:
        config: Optimizer configuration (default: Adam, lr=0.05).
        max_iterations: Maximum number of optimizer steps.
        tol_rel: Stop when |Δvalue| <= tol_rel * max(1, |value|).
    """

    def __init__(
        self,
        config: Optional[OptimConfig] = None,
        max_iterations: int = 200,
        tol_rel: float = 1e-8,
    ) -> None:
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")
        self.config = config or OptimConfig(name="adam", lr=0.05)
        self.max_iterations = int(max_iterations)
        self.tol_rel = float(tol_rel)

    def optimize(
        self,
        objective: ObjectiveFunction,
        n_params: int,
        initial_params: Optional[Sequence[float]] = None,
    ) -> OptimizationResult:
        if not objective.has_gradient:
            raise ValueError(
                "TorchOptimizer requires gradients; configure a gradient strategy."
            )

        x0 = _initial_point(n_params, initial_params)
        params = torch.tensor(x0, dtype=torch.float64, requires_grad=True)
        optimizer = create_optimizer(self.config, [params])

        n_calls = 0
        best_value = np.inf
        best_x = x0.copy()

        def closure() -> torch.Tensor:
            nonlocal n_calls, best_value, best_x
            optimizer.zero_grad()
            x = params.detach().numpy().copy()
            value, grad = objective(x)
            n_calls += 1
            if value < best_value:
                best_value = float(value)
                best_x = x
            params.grad = torch.as_tensor(np.asarray(grad, dtype=float), dtype=params.dtype)
            return torch.tensor(float(value), dtype=params.dtype)

        previous: Optional[float] = None
        converged = False
        for step in range(self.max_iterations):
            value = float(optimizer.step(closure))
            logger.debug("torch %s step %d: value=%.12f", self.config.name, step, value)
            if previous is not None and abs(value - previous) <= self.tol_rel * max(1.0, abs(value)):
                converged = True
                break
            previous = value

        return OptimizationResult(
            value=float(best_value),
            params=np.asarray(best_x, dtype=float),
            n_evaluations=n_calls,
            converged=converged,
            message="relative change below tolerance" if converged else "max iterations reached",
        )
