"""Expectation evaluation for Pauli-sum Hamiltonians.

Each term is measured the textbook way: rotate every non-identity qubit
into the Z basis, then weight basis-state probabilities by the parity
sign of the measured qubits.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Tuple

import torch

from ..backend.statevector import apply_gate, measure_probs
from ..gates.standard import H, I, S
from .pauli import PauliSum, PauliTerm


def basis_change_gate(
    label: str, dtype: torch.dtype, device: torch.device
) -> torch.Tensor:
    """
    Get the basis-change gate U with U P U† = Z for a Pauli label P.

    - Z, I: U = I
    - X: U = H
    - Y: U = H S†

    Raises:
        ValueError: If label is not in {"I", "X", "Y", "Z"}.
    """
    if label in ("Z", "I"):
        return I(dtype=dtype, device=device)
    if label == "X":
        return H(dtype=dtype, device=device)
    if label == "Y":
        s_dagger = S(dtype=dtype, device=device).conj().transpose(0, 1)
        return (H(dtype=dtype, device=device) @ s_dagger).contiguous()
    raise ValueError(
        f"Invalid Pauli label '{label}'. Must be one of {{'I', 'X', 'Y', 'Z'}}"
    )


@lru_cache(maxsize=256)
def _sign_pattern(dim: int, qubits: Tuple[int, ...], device_str: str) -> torch.Tensor:
    """(-1)^(parity of the bits at ``qubits``) for every basis index."""
    device = torch.device(device_str)
    basis_indices = torch.arange(dim, dtype=torch.long, device=device).unsqueeze(1)
    positions = torch.tensor(qubits, dtype=torch.long, device=device).unsqueeze(0)
    parity = ((basis_indices >> positions) & 1).sum(dim=1)
    return (1 - 2 * (parity % 2)).to(torch.float64)


def expectation_pauli_term(state: torch.Tensor, term: PauliTerm) -> torch.Tensor:
    """
    Compute ⟨ψ|P|ψ⟩ for a single PauliTerm P (coefficient included).

    Args:
        state: Complex statevector tensor of shape (..., 2**n_qubits).
        term: PauliTerm with n_qubits matching the state dimension.

    Returns:
        Real tensor with the batch shape of ``state``.
    """
    if not torch.is_complex(state):
        raise ValueError(f"state must be complex dtype, got {state.dtype}")

    dim = state.shape[-1]
    n_qubits = term.n_qubits()
    if 2**n_qubits != dim:
        raise ValueError(
            f"state dimension {dim} does not match 2**n_qubits = {2**n_qubits} "
            f"for term with {n_qubits} qubits"
        )

    if term.is_identity():
        return torch.full(
            state.shape[:-1], term.coeff, dtype=state.real.dtype, device=state.device
        )

    rot_state = state
    for qubit_idx, label in enumerate(term.paulis):
        if label in ("I", "Z"):
            continue
        gate = basis_change_gate(label, dtype=state.dtype, device=state.device)
        rot_state = apply_gate(rot_state, gate, qubit=qubit_idx, n_qubits=n_qubits)

    probs = measure_probs(rot_state, n_qubits)
    qubits = tuple(q for q, p in enumerate(term.paulis) if p != "I")
    signs = _sign_pattern(dim, qubits, str(probs.device)).to(probs.dtype)
    return term.coeff * (probs * signs).sum(dim=-1)


def expectation_pauli_sum(
    state: torch.Tensor,
    hamiltonian: PauliSum,
    n_qubits: int | None = None,
) -> torch.Tensor:
    """
    Compute ⟨ψ|H|ψ⟩ = ∑ᵢ cᵢ ⟨ψ|Pᵢ|ψ⟩ for a PauliSum Hamiltonian H.

    Args:
        state: Complex statevector tensor of shape (..., 2**n_qubits).
        hamiltonian: PauliSum with n_qubits matching the state dimension.
        n_qubits: Optional explicit n_qubits override.

    Returns:
        Real tensor with the batch shape of ``state``.

    Raises:
        ValueError: If state dimension does not match hamiltonian.n_qubits().
    """
    if not torch.is_complex(state):
        raise ValueError(f"state must be complex dtype, got {state.dtype}")

    ham_n_qubits = hamiltonian.n_qubits()
    if n_qubits is None:
        n_qubits = ham_n_qubits
    elif ham_n_qubits not in (0, n_qubits):
        raise ValueError(
            f"Provided n_qubits={n_qubits} does not match "
            f"Hamiltonian.n_qubits()={ham_n_qubits}"
        )

    total = torch.zeros(state.shape[:-1], dtype=state.real.dtype, device=state.device)
    if n_qubits == 0:
        return total

    if 2**n_qubits != state.shape[-1]:
        raise ValueError(
            f"state dimension {state.shape[-1]} does not match 2**n_qubits = {2**n_qubits} "
            f"for Hamiltonian with {n_qubits} qubits"
        )

    for term in hamiltonian.terms:
        total = total + expectation_pauli_term(state, term)
    return total


__all__ = [
    "basis_change_gate",
    "expectation_pauli_term",
    "expectation_pauli_sum",
]
