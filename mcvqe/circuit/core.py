"""Core circuit IR types with symbolic parameters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import torch

ParamValue = Union[float, str]


@dataclass(frozen=True)
class GateOp:
    """
    A single gate application in a quantum circuit.

    Attributes
    ----------
    name:
        Gate name, e.g. "X", "H", "CNOT", "RY".
    qubits:
        Tuple of qubit indices (0-based). For CNOT the first entry is the
        control and the second the target.
    params:
        Optional tuple of parameters. Each entry is either a float or the
        name of a circuit variable. For non-parametric gates this is None.
    """

    name: str
    qubits: Tuple[int, ...]
    params: Optional[Tuple[ParamValue, ...]] = None

    def is_parameterized(self) -> bool:
        """Return True if any parameter is a symbolic variable name."""
        return self.params is not None and any(isinstance(p, str) for p in self.params)


def _format_param(p: ParamValue) -> str:
    if isinstance(p, str):
        return p
    return f"{p:.6g}"


class QuantumCircuit:
    """
    Simple circuit IR: an ordered list of gate applications on n_qubits,
    plus an ordered list of variable names.

    Gate parameters may refer to variables by name. ``bind`` substitutes
    numeric values for the variables in declaration order and returns a
    fully numeric circuit, which is what the statevector backend runs.
    """

    def __init__(self, n_qubits: int, variables: Optional[Iterable[str]] = None) -> None:
        if n_qubits <= 0:
            raise ValueError("QuantumCircuit requires n_qubits >= 1.")

        self._n_qubits = int(n_qubits)
        self._ops: List[GateOp] = []
        self._variables: List[str] = []
        if variables is not None:
            self.add_variables(variables)

    @property
    def n_qubits(self) -> int:
        """Return the number of qubits in this circuit."""
        return self._n_qubits

    @property
    def ops(self) -> Tuple[GateOp, ...]:
        """Return a read-only tuple of all gate operations."""
        return tuple(self._ops)

    @property
    def variables(self) -> Tuple[str, ...]:
        """Return the variable names in binding order."""
        return tuple(self._variables)

    def n_variables(self) -> int:
        return len(self._variables)

    def is_parameterized(self) -> bool:
        """Return True if the circuit has variables or symbolic gate parameters."""
        return bool(self._variables) or any(op.is_parameterized() for op in self._ops)

    def add_variable(self, name: str) -> None:
        """Declare a variable. Declaring an existing name is a no-op."""
        if not isinstance(name, str) or not name:
            raise ValueError(f"Variable name must be a non-empty string, got {name!r}.")
        if name not in self._variables:
            self._variables.append(name)

    def add_variables(self, names: Iterable[str]) -> None:
        for name in names:
            self.add_variable(name)

    def add_gate(
        self,
        name: str,
        qubits: Sequence[int],
        params: Optional[Sequence[ParamValue]] = None,
    ) -> None:
        """
        Append a gate application to the circuit.

        Parameters
        ----------
        name:
            A known gate name such as "X", "H", "CNOT" or "RY".
        qubits:
            Target qubit indices (0-based). For single-qubit gates this
            has length 1, for two-qubit gates like CNOT it has length 2.
        params:
            Optional parameters. Strings are variable names and are
            declared on first use; everything else is converted to float.
        """
        q_tuple = tuple(int(q) for q in qubits)
        if not q_tuple:
            raise ValueError("GateOp must act on at least one qubit.")
        for q in q_tuple:
            if q < 0 or q >= self._n_qubits:
                raise ValueError(
                    f"Qubit index {q} is out of range for this circuit "
                    f"(n_qubits={self._n_qubits})."
                )
        if len(set(q_tuple)) != len(q_tuple):
            raise ValueError(f"Gate {name!r} acts on repeated qubits {q_tuple}.")

        p_tuple: Optional[Tuple[ParamValue, ...]]
        if params is None:
            p_tuple = None
        else:
            values: List[ParamValue] = []
            for p in params:
                if isinstance(p, str):
                    self.add_variable(p)
                    values.append(p)
                else:
                    values.append(float(p))
            p_tuple = tuple(values)

        self._ops.append(GateOp(name=name.upper(), qubits=q_tuple, params=p_tuple))

    def extend(self, other: "QuantumCircuit") -> "QuantumCircuit":
        """
        Append all operations of ``other`` and merge its variables in order.

        Returns ``self`` so that calls can be chained.
        """
        if other.n_qubits != self._n_qubits:
            raise ValueError(
                f"Cannot extend a {self._n_qubits}-qubit circuit with a "
                f"{other.n_qubits}-qubit circuit."
            )
        self._ops.extend(other._ops)
        self.add_variables(other._variables)
        return self

    def bind(self, values: Sequence[float] | torch.Tensor) -> "QuantumCircuit":
        """
        Return a numeric copy of this circuit with variables replaced by values.

        ``values[i]`` is bound to ``variables[i]``.

        Raises
        ------
        ValueError
            If the number of values does not match the number of variables.
        """
        if isinstance(values, torch.Tensor):
            flat = [float(v) for v in values.detach().reshape(-1).tolist()]
        else:
            flat = [float(v) for v in values]
        if len(flat) != len(self._variables):
            raise ValueError(
                f"Expected {len(self._variables)} parameter values, got {len(flat)}."
            )

        mapping = dict(zip(self._variables, flat))
        bound = QuantumCircuit(self._n_qubits)
        for op in self._ops:
            if op.is_parameterized():
                params = tuple(mapping[p] if isinstance(p, str) else p for p in op.params)
                bound._ops.append(GateOp(name=op.name, qubits=op.qubits, params=params))
            else:
                bound._ops.append(op)
        return bound

    def copy(self) -> "QuantumCircuit":
        """Return a copy of this circuit."""
        new = QuantumCircuit(self._n_qubits)
        new._ops.extend(self._ops)
        new._variables.extend(self._variables)
        return new

    def __len__(self) -> int:
        """Return the number of gate operations in this circuit."""
        return len(self._ops)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QuantumCircuit):
            return NotImplemented
        return (
            self._n_qubits == other._n_qubits
            and self._ops == other._ops
            and self._variables == other._variables
        )

    __hash__ = None  # type: ignore[assignment]

    def num_gates(self) -> int:
        """Return the number of gate operations in this circuit."""
        return len(self._ops)

    def gate_counts(self) -> Dict[str, int]:
        """Return a dictionary mapping gate names to their counts."""
        counts: Dict[str, int] = {}
        for op in self._ops:
            counts[op.name] = counts.get(op.name, 0) + 1
        return counts

    def depth(self) -> int:
        """
        Circuit depth as the minimum number of sequential layers when gates
        on disjoint qubits run in parallel.
        """
        qubit_layer = [0] * self._n_qubits
        max_layer = 0
        for op in self._ops:
            layer = max(qubit_layer[q] for q in op.qubits) + 1
            for q in op.qubits:
                qubit_layer[q] = layer
            max_layer = max(max_layer, layer)
        return max_layer

    def simulate_state(
        self,
        device: torch.device | str | None = None,
        dtype: torch.dtype = torch.complex128,
    ) -> torch.Tensor:
        """Simulate this (bound) circuit from the all-zero state."""
        from ..backend.statevector import simulate_circuit

        return simulate_circuit(self, device=device, dtype=dtype)

    def to_text(self) -> str:
        """
        Return a one-instruction-per-line listing of the circuit.

        Example:
            RY(0.5) q0
            CNOT q0, q1
            RY(x3) q1
        """
        lines: List[str] = []
        for op in self._ops:
            qubits = ", ".join(f"q{q}" for q in op.qubits)
            if op.params:
                args = ", ".join(_format_param(p) for p in op.params)
                lines.append(f"{op.name}({args}) {qubits}")
            else:
                lines.append(f"{op.name} {qubits}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"QuantumCircuit(n_qubits={self._n_qubits}, n_gates={len(self._ops)}, "
            f"variables={list(self._variables)})"
        )
