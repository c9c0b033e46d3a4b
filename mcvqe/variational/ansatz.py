"""Circuit templates for MC-VQE: CIS state preparation and the shared entangler."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from ..circuit import QuantumCircuit


def parameter_name(index: int) -> str:
    """Name of entangler parameter ``index`` ("x0", "x1", ...)."""
    return f"x{index}"


def cis_state_preparation(angles: Sequence[float]) -> QuantumCircuit:
    """
    Circuit preparing the CIS state encoded by one angle column.

    The angle column θ of length N encodes amplitudes v_k = cos θ_k Π_{j<k} sin θ_j
    on the configurations |0...0⟩, X̂_0|0...0⟩, ..., X̂_{N-1}|0...0⟩.

    Layout:
        - RY(2θ_0) on qubit 0.
        - For i = 1..N-1 a controlled rotation of qubit i on qubit i-1:
          RY(-θ_i), H, CNOT(i-1, i), H, RY(θ_i) on qubit i.
        - A wall of CNOT(j, i) for i = N-2..0, j = N-1..i+1, which turns
          the ladder states |1^k 0^{N-k}⟩ into single excitations.

    RY(θ) = exp(-iθY/2), so the hyperspherical angles are doubled here.

    Parameters
    ----------
    angles:
        Angle column of length N >= 1.

    Returns
    -------
    QuantumCircuit
        Numeric circuit on N qubits. Identical angles give identical circuits.
    """
    angles = [float(a) for a in np.asarray(angles, dtype=float).reshape(-1)]
    n = len(angles)
    if n < 1:
        raise ValueError("cis_state_preparation needs at least one angle.")

    circuit = QuantumCircuit(n)
    circuit.add_gate("RY", [0], [2.0 * angles[0]])

    for i in range(1, n):
        circuit.add_gate("RY", [i], [-angles[i]])
        circuit.add_gate("H", [i])
        circuit.add_gate("CNOT", [i - 1, i])
        circuit.add_gate("H", [i])
        circuit.add_gate("RY", [i], [angles[i]])

    for i in range(n - 2, -1, -1):
        for j in range(n - 1, i, -1):
            circuit.add_gate("CNOT", [j, i])

    return circuit


def interference_preparation(
    angles_a: Sequence[float], angles_b: Sequence[float], sign: int
) -> QuantumCircuit:
    """State preparation with angle column (θ_A + sign·θ_B)/√2."""
    if sign not in (1, -1):
        raise ValueError(f"sign must be +1 or -1, got {sign}")
    combined = (np.asarray(angles_a, dtype=float) + sign * np.asarray(angles_b, dtype=float)) / math.sqrt(2.0)
    return cis_state_preparation(combined)


def entangler_block(
    circuit: QuantumCircuit, control: int, target: int, start: int
) -> int:
    """
    Append one two-qubit entangler block and return the next free parameter index.

        control: ──●──RY(x_k)────●──RY(x_k+2)──
        target:  ──⊕──RY(x_k+1)──⊕──RY(x_k+3)──
    """
    circuit.add_gate("CNOT", [control, target])
    circuit.add_gate("RY", [control], [parameter_name(start)])
    circuit.add_gate("RY", [target], [parameter_name(start + 1)])
    circuit.add_gate("CNOT", [control, target])
    circuit.add_gate("RY", [control], [parameter_name(start + 2)])
    circuit.add_gate("RY", [target], [parameter_name(start + 3)])
    return start + 4


def entangler_circuit(
    n_qubits: int, cyclic: bool = False, start: int = 0
) -> Tuple[QuantumCircuit, int]:
    """
    Build the symbolic entangler shared by every MC-VQE state.

    One RY per qubit, then nearest-neighbor blocks on even offsets
    (0-1, 2-3, ...), then on odd offsets (1-2, 3-4, ...), then, for a
    cyclic chain, a block closing the ring (N-1, 0). For N = 2 the ring
    block acts on (1, 0), with control and target swapped relative to (0, 1).

    Returns
    -------
    circuit, next_index:
        The circuit with variables "x{start}", "x{start+1}", ... declared
        in order, and the first parameter index it did not use.
    """
    if n_qubits < 1:
        raise ValueError(f"n_qubits must be >= 1, got {n_qubits}")

    circuit = QuantumCircuit(n_qubits)
    index = start
    for q in range(n_qubits):
        circuit.add_gate("RY", [q], [parameter_name(index)])
        index += 1

    for layer in (0, 1):
        for i in range(layer, n_qubits - 1, 2):
            index = entangler_block(circuit, i, i + 1, index)

    if cyclic and n_qubits > 1:
        index = entangler_block(circuit, n_qubits - 1, 0, index)

    return circuit, index


def entangler_parameter_count(n_qubits: int, cyclic: bool = False) -> int:
    """N + 4(N-1) + (4 if cyclic and N > 1 else 0)."""
    ring = 4 if cyclic and n_qubits > 1 else 0
    return n_qubits + 4 * (n_qubits - 1) + ring


@dataclass(frozen=True)
class EntanglerAnsatz:
    """
    The MC-VQE entangler as a variational ansatz.

    The symbolic template is built once; every state circuit appends the
    same template so that one parameter vector binds to all of them.
    """

    num_qubits: int
    cyclic: bool = False

    def __post_init__(self) -> None:
        if self.num_qubits < 1:
            raise ValueError(f"num_qubits must be >= 1, got {self.num_qubits}")

    @property
    def num_parameters(self) -> int:
        return entangler_parameter_count(self.num_qubits, self.cyclic)

    @property
    def parameter_names(self) -> List[str]:
        return [parameter_name(i) for i in range(self.num_parameters)]

    def template(self) -> QuantumCircuit:
        """Return the symbolic entangler circuit."""
        circuit, _ = entangler_circuit(self.num_qubits, self.cyclic)
        return circuit

    def compose(self, preparation: QuantumCircuit) -> QuantumCircuit:
        """Return ``preparation`` followed by the symbolic entangler."""
        return preparation.copy().extend(self.template())
