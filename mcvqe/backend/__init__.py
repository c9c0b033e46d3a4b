"""Statevector simulation backend."""

from .statevector import (
    apply_gate,
    apply_two_qubit_gate,
    measure_probs,
    simulate_circuit,
    zero_state,
)

__all__ = [
    "zero_state",
    "apply_gate",
    "apply_two_qubit_gate",
    "measure_probs",
    "simulate_circuit",
]
