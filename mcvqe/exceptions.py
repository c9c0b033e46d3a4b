"""Exception types raised by MC-VQE."""

from __future__ import annotations

from typing import Optional, Tuple


class MCVQEError(Exception):
    """Base class for all MC-VQE errors."""


class ConfigurationError(MCVQEError, ValueError):
    """Invalid or missing configuration, or an unusable chemistry data file."""


class NumericalError(MCVQEError, ArithmeticError):
    """A numerical step produced or received an unusable value."""


class ExecutionError(MCVQEError, RuntimeError):
    """
    A quantum executor or gradient provider failed during a run.

    Attributes
    ----------
    stage:
        Phase in which the failure happened ("objective", "gradient" or
        "interference").
    state:
        State index for per-state stages, or None.
    pair:
        State pair (A, B) for the interference stage, or None.
    """

    def __init__(
        self,
        message: str,
        stage: str,
        state: Optional[int] = None,
        pair: Optional[Tuple[int, int]] = None,
    ) -> None:
        where = f"stage={stage}"
        if state is not None:
            where += f", state={state}"
        if pair is not None:
            where += f", pair={pair}"
        super().__init__(f"{message} ({where})")
        self.stage = stage
        self.state = state
        self.pair = pair


__all__ = [
    "MCVQEError",
    "ConfigurationError",
    "NumericalError",
    "ExecutionError",
]
