"""Quantum gate implementations."""

from .standard import (
    CNOT,
    RY,
    H,
    I,
    S,
    X,
    Y,
    Z,
    is_unitary,
    single_qubit_gate,
    two_qubit_gate,
)

__all__ = [
    "I",
    "X",
    "Y",
    "Z",
    "H",
    "S",
    "CNOT",
    "RY",
    "is_unitary",
    "single_qubit_gate",
    "two_qubit_gate",
]
