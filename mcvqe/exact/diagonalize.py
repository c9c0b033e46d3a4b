"""Dense exact diagonalization, used to cross-check MC-VQE spectra."""

from __future__ import annotations

from typing import Optional, Tuple

import torch

from ..operators import PauliSum


def paulisum_to_dense(
    hamiltonian: PauliSum,
    num_qubits: int,
    device: Optional[torch.device] = None,
    dtype: torch.dtype = torch.complex128,
) -> torch.Tensor:
    """
    Dense 2**num_qubits square matrix of a PauliSum.

    An empty PauliSum (for instance the AIEM Hamiltonian of an aggregate
    with no couplings and zero site energies) maps to the zero matrix.

    Raises
    ------
    ValueError:
        If num_qubits < 1, or the terms act on a different number of qubits.
    """
    if num_qubits < 1:
        raise ValueError(f"num_qubits must be >= 1, got {num_qubits}")

    if hamiltonian.n_qubits() not in (0, num_qubits):
        raise ValueError(
            f"Hamiltonian acts on {hamiltonian.n_qubits()} qubits, "
            f"which does not match num_qubits = {num_qubits}"
        )

    device = device if device is not None else torch.device("cpu")
    dim = 1 << num_qubits
    if len(hamiltonian) == 0:
        return torch.zeros((dim, dim), dtype=dtype, device=device)

    H = hamiltonian.to_matrix(dtype=dtype, device=device)
    # Symmetrize away roundoff
    return (H + H.conj().T) / 2.0


def exact_eigensystem(
    hamiltonian: PauliSum,
    num_qubits: int,
    device: Optional[torch.device] = None,
    dtype: torch.dtype = torch.complex128,
) -> Tuple[torch.Tensor, torch.Tensor]:
    """Ascending eigenvalues (real) and column eigenvectors of ``hamiltonian``."""
    H = paulisum_to_dense(hamiltonian, num_qubits, device=device, dtype=dtype)
    eigenvalues, eigenvectors = torch.linalg.eigh(H)
    return eigenvalues.real, eigenvectors
