"""Quantum executors: run circuits and return Hamiltonian energies."""

from __future__ import annotations

from typing import List, Protocol, Sequence

import torch

from .backend.statevector import simulate_circuit
from .circuit.core import QuantumCircuit
from .logging import get_logger
from .operators.expectation import expectation_pauli_sum
from .operators.pauli import PauliSum

logger = get_logger(__name__)


class QuantumExecutor(Protocol):
    """
    Protocol for quantum executors.

    An executor turns circuits into energy estimates ⟨ψ|H|ψ⟩. ``verbose``
    toggles executor-side logging of each execution.
    """

    verbose: bool

    def expectation(
        self,
        circuit: QuantumCircuit,
        hamiltonian: PauliSum,
        params: Sequence[float] | torch.Tensor,
    ) -> float:
        """Bind ``params`` to ``circuit`` and return its energy."""
        ...

    def execute(
        self, circuits: Sequence[QuantumCircuit], hamiltonian: PauliSum
    ) -> List[float]:
        """Return the energy of each already-bound circuit, in order."""
        ...


class StatevectorExecutor:
    """
    Exact statevector executor backed by the torch simulator.

    Args:
        device: Torch device for the statevector (default: CPU).
        dtype: Complex dtype for the statevector (default: complex128).
        verbose: Log every executed circuit at DEBUG level.

    Attributes:
        n_executions: Number of circuits executed so far.
    """

    def __init__(
        self,
        device: torch.device | str | None = None,
        dtype: torch.dtype = torch.complex128,
        verbose: bool = False,
    ) -> None:
        self.device = device
        self.dtype = dtype
        self.verbose = verbose
        self.n_executions = 0

    def _run(self, circuit: QuantumCircuit, hamiltonian: PauliSum) -> float:
        if hamiltonian.n_qubits() not in (0, circuit.n_qubits):
            raise ValueError(
                f"Hamiltonian acts on {hamiltonian.n_qubits()} qubits but the "
                f"circuit has {circuit.n_qubits}."
            )
        state = simulate_circuit(circuit, device=self.device, dtype=self.dtype)
        energy = float(expectation_pauli_sum(state, hamiltonian, n_qubits=circuit.n_qubits))
        self.n_executions += 1
        if self.verbose:
            logger.debug(
                "Executed circuit (%d gates, depth %d): energy = %.12f\n%s",
                circuit.num_gates(),
                circuit.depth(),
                energy,
                circuit.to_text(),
            )
        return energy

    def expectation(
        self,
        circuit: QuantumCircuit,
        hamiltonian: PauliSum,
        params: Sequence[float] | torch.Tensor,
    ) -> float:
        return self._run(circuit.bind(params), hamiltonian)

    def execute(
        self, circuits: Sequence[QuantumCircuit], hamiltonian: PauliSum
    ) -> List[float]:
        return [self._run(circuit, hamiltonian) for circuit in circuits]

    def __repr__(self) -> str:
        return f"StatevectorExecutor(device={self.device!r}, dtype={self.dtype})"
