"""Statevector backend for pure quantum states.

This module provides the statevector simulation backend: state creation,
single- and two-qubit gate application, basis-state probabilities, and
whole-circuit simulation from |0...0⟩.

Convention: qubit 0 is the least significant bit (LSB) of the
computational basis index.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import torch

from ..gates.standard import single_qubit_gate, two_qubit_gate

if TYPE_CHECKING:
    from ..circuit.core import QuantumCircuit


def _resolve_device(device: torch.device | str | None) -> torch.device:
    if device is None:
        return torch.device("cpu")
    if isinstance(device, str):
        return torch.device(device)
    if isinstance(device, torch.device):
        return device
    raise TypeError(f"device must be str, torch.device, or None, got {type(device)}")


def _check_dimension(state: torch.Tensor, n_qubits: int | None) -> int:
    dim = state.shape[-1]
    if n_qubits is None:
        n_qubits = int(math.log2(dim))
        if 2**n_qubits != dim:
            raise ValueError(
                f"state dimension {dim} is not a power of 2. "
                "Please specify n_qubits explicitly."
            )
    elif 2**n_qubits != dim:
        raise ValueError(
            f"state dimension {dim} does not match 2**n_qubits = {2**n_qubits}"
        )
    return n_qubits


def zero_state(
    n_qubits: int,
    batch_shape: tuple[int, ...] | None = None,
    device: torch.device | str | None = None,
    dtype: torch.dtype | None = None,
) -> torch.Tensor:
    """
    Create a zero state |0...0⟩ for n_qubits.

    Args:
        n_qubits: Number of qubits. Must be >= 1.
        batch_shape: Optional batch dimensions. If None, no batch dimension.
        device: torch.device or device string. Defaults to CPU.
        dtype: Complex dtype. Defaults to torch.complex128.

    Returns:
        A complex tensor of shape (*batch_shape, 2**n_qubits) representing |0...0⟩.

    Raises:
        ValueError: If n_qubits < 1.
    """
    if n_qubits < 1:
        raise ValueError(f"n_qubits must be >= 1, got {n_qubits}")

    if dtype is None:
        dtype = torch.complex128
    if batch_shape is None:
        batch_shape = ()

    state = torch.zeros((*batch_shape, 2**n_qubits), dtype=dtype, device=_resolve_device(device))
    state[..., 0] = 1.0 + 0.0j
    return state


def apply_gate(
    state: torch.Tensor,
    gate: torch.Tensor,
    qubit: int,
    n_qubits: int | None = None,
) -> torch.Tensor:
    """
    Apply a single-qubit gate to a specific qubit in the statevector.

    Args:
        state: Statevector tensor of shape (..., 2**n_qubits) with complex dtype.
        gate: Single-qubit gate matrix of shape (2, 2).
        qubit: Index of the qubit to apply the gate to (0-indexed, 0 = LSB).
        n_qubits: Number of qubits. If None, inferred from state.shape[-1].

    Returns:
        A new statevector tensor with the gate applied.

    Raises:
        ValueError: If gate shape is not (2, 2), qubit index is invalid, or
            state dimension is not a power of 2.
    """
    if gate.shape != (2, 2):
        raise ValueError(f"gate must have shape (2, 2), got {gate.shape}")
    if not torch.is_complex(state):
        raise ValueError(f"state must be complex dtype, got {state.dtype}")

    n_qubits = _check_dimension(state, n_qubits)
    if qubit < 0 or qubit >= n_qubits:
        raise ValueError(f"qubit index {qubit} out of range [0, {n_qubits})")

    dim = state.shape[-1]
    batch_shape = state.shape[:-1]
    batch_size = math.prod(batch_shape) if batch_shape else 1

    # (batch, left, 2, right) with the target qubit in the middle axis
    left_size = 2 ** (n_qubits - 1 - qubit)
    right_size = 2**qubit
    state_view = state.reshape(batch_size, dim).contiguous().reshape(
        batch_size, left_size, 2, right_size
    )

    transformed = torch.einsum("oq,blqr->blor", gate.to(state.dtype), state_view)
    return transformed.reshape(*batch_shape, dim)


def _swap_gate_qubit_order(gate: torch.Tensor) -> torch.Tensor:
    """Swap qubit order in a two-qubit gate matrix."""
    return gate.reshape(2, 2, 2, 2).permute(1, 0, 3, 2).reshape(4, 4).contiguous()


def apply_two_qubit_gate(
    state: torch.Tensor,
    gate: torch.Tensor,
    qubit1: int,
    qubit2: int,
    n_qubits: int | None = None,
) -> torch.Tensor:
    """
    Apply a two-qubit gate to qubit1 and qubit2 in the statevector.

    The gate matrix is indexed as |q1 q2⟩ where q1 = qubit1 and
    q2 = qubit2, with index = 2*b_q1 + b_q2. For CNOT, qubit1 is the
    control and qubit2 the target, whatever their relative order.
    """
    if gate.shape != (4, 4):
        raise ValueError(f"gate must have shape (4, 4), got {gate.shape}")
    if not torch.is_complex(state):
        raise ValueError(f"state must be complex dtype, got {state.dtype}")

    n_qubits = _check_dimension(state, n_qubits)
    if qubit1 == qubit2:
        raise ValueError(
            f"qubit1 and qubit2 must be distinct, got {qubit1} and {qubit2}"
        )
    for label, q in (("qubit1", qubit1), ("qubit2", qubit2)):
        if q < 0 or q >= n_qubits:
            raise ValueError(f"{label} index {q} out of range [0, {n_qubits})")

    dim = state.shape[-1]
    batch_shape = state.shape[:-1]
    batch_size = math.prod(batch_shape) if batch_shape else 1
    state_flat = state.reshape(batch_size, dim).contiguous()

    q_hi, q_lo = (qubit1, qubit2) if qubit1 > qubit2 else (qubit2, qubit1)
    gate_matrix = gate.to(state.dtype)
    if qubit1 < qubit2:
        gate_matrix = _swap_gate_qubit_order(gate_matrix)

    left_size = 2 ** (n_qubits - q_hi - 1)
    mid_size = 2 ** (q_hi - q_lo - 1)
    right_size = 2**q_lo

    if mid_size == 1:
        state_view = state_flat.reshape(batch_size, left_size, 4, right_size)
        transformed = torch.einsum("oq,blqr->blor", gate_matrix, state_view)
    else:
        state_view = state_flat.reshape(batch_size, left_size, 2, mid_size, 2, right_size)
        transformed = torch.einsum(
            "opij,blimjr->blompr", gate_matrix.reshape(2, 2, 2, 2), state_view
        )

    return transformed.reshape(*batch_shape, dim)


def measure_probs(
    state: torch.Tensor,
    n_qubits: int | None = None,
) -> torch.Tensor:
    """
    Compute the probability distribution over computational basis states.

    The probability of basis state |i⟩ is |⟨i|ψ⟩|² = |state[i]|².
    """
    if not torch.is_complex(state):
        raise ValueError(f"state must be complex dtype, got {state.dtype}")
    _check_dimension(state, n_qubits)
    return (torch.abs(state) ** 2).contiguous()


def simulate_circuit(
    circuit: "QuantumCircuit",
    device: torch.device | str | None = None,
    dtype: torch.dtype = torch.complex128,
) -> torch.Tensor:
    """
    Simulate a fully bound circuit from |0...0⟩.

    Parameters
    ----------
    circuit:
        Circuit whose gate parameters are all numeric.
    device:
        Torch device for the statevector. Defaults to CPU.
    dtype:
        Complex dtype for the statevector.

    Returns
    -------
    state:
        Complex tensor of shape (2**n_qubits,).

    Raises
    ------
    ValueError
        If the circuit still has symbolic parameters, or uses an
        unsupported gate.
    """
    if circuit.is_parameterized():
        raise ValueError(
            "Cannot simulate a circuit with unbound parameters "
            f"{list(circuit.variables)}; call bind() first."
        )

    torch_device = _resolve_device(device)
    n_qubits = circuit.n_qubits
    state = zero_state(n_qubits, device=torch_device, dtype=dtype)

    for op in circuit.ops:
        if len(op.qubits) == 1:
            gate = single_qubit_gate(op.name, op.params, dtype=dtype, device=torch_device)
            state = apply_gate(state, gate, qubit=op.qubits[0], n_qubits=n_qubits)
        elif len(op.qubits) == 2:
            gate = two_qubit_gate(op.name, dtype=dtype, device=torch_device)
            control, target = op.qubits
            state = apply_two_qubit_gate(
                state, gate, qubit1=control, qubit2=target, n_qubits=n_qubits
            )
        else:
            raise ValueError(
                f"Only 1- and 2-qubit gates are supported; "
                f"got gate {op.name!r} on qubits {op.qubits}."
            )

    return state


__all__ = [
    "zero_state",
    "apply_gate",
    "apply_two_qubit_gate",
    "measure_probs",
    "simulate_circuit",
]
