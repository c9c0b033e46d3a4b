"""Operators package for Pauli-sum Hamiltonians and expectation evaluation."""

from .expectation import expectation_pauli_sum, expectation_pauli_term
from .pauli import PauliSum, PauliTerm

__all__ = [
    "PauliTerm",
    "PauliSum",
    "expectation_pauli_term",
    "expectation_pauli_sum",
]
