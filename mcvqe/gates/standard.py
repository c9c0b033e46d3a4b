"""Standard quantum gate matrices."""

from __future__ import annotations

import math
from typing import Optional, Sequence

import torch

_DEFAULT_DTYPE = torch.complex128


def _resolve(dtype: torch.dtype | None, device: torch.device | None) -> tuple[torch.dtype, torch.device]:
    if dtype is None:
        dtype = _DEFAULT_DTYPE
    if device is None:
        device = torch.device("cpu")
    return dtype, device


def I(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Identity gate (single-qubit)."""
    dtype, device = _resolve(dtype, device)
    return torch.eye(2, dtype=dtype, device=device)


def X(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Pauli-X gate (bit-flip, NOT gate)."""
    dtype, device = _resolve(dtype, device)
    return torch.tensor([[0.0, 1.0], [1.0, 0.0]], dtype=dtype, device=device)


def Y(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Pauli-Y gate."""
    dtype, device = _resolve(dtype, device)
    return torch.tensor([[0.0, -1.0j], [1.0j, 0.0]], dtype=dtype, device=device)


def Z(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Pauli-Z gate (phase-flip)."""
    dtype, device = _resolve(dtype, device)
    return torch.tensor([[1.0, 0.0], [0.0, -1.0]], dtype=dtype, device=device)


def H(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Hadamard gate."""
    dtype, device = _resolve(dtype, device)
    s = 1.0 / math.sqrt(2.0)
    return torch.tensor([[s, s], [s, -s]], dtype=dtype, device=device)


def S(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """S gate (phase gate, √Z)."""
    dtype, device = _resolve(dtype, device)
    return torch.tensor([[1.0, 0.0], [0.0, 1.0j]], dtype=dtype, device=device)


def CNOT(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """
    CNOT gate (controlled-NOT).

    The matrix is ordered |00⟩, |01⟩, |10⟩, |11⟩ with the first qubit as
    control and the second as target.
    """
    dtype, device = _resolve(dtype, device)
    return torch.tensor(
        [
            [1.0, 0.0, 0.0, 0.0],
            [0.0, 1.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
            [0.0, 0.0, 1.0, 0.0],
        ],
        dtype=dtype,
        device=device,
    )


def RY(theta: float, dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """
    Rotation gate around Y-axis: RY(θ) = exp(-iθY/2).

    Matrix form:
        [[cos(θ/2), -sin(θ/2)],
         [sin(θ/2), cos(θ/2)]]
    """
    dtype, device = _resolve(dtype, device)
    c = math.cos(float(theta) / 2.0)
    s = math.sin(float(theta) / 2.0)
    return torch.tensor([[c, -s], [s, c]], dtype=dtype, device=device)


_FIXED_SINGLE = {"I": I, "X": X, "Y": Y, "Z": Z, "H": H, "S": S}
_ROTATIONS = {"RY": RY}


def single_qubit_gate(
    name: str,
    params: Optional[Sequence[float]] = None,
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
) -> torch.Tensor:
    """
    Map a gate name and optional numeric parameters to a 2x2 unitary.

    Supported non-parametric names: I, X, Y, Z, H, S.
    Supported parametric names: RY.

    Raises:
        ValueError: For unknown names or a wrong parameter count.
    """
    n = name.upper()
    if n in _FIXED_SINGLE:
        return _FIXED_SINGLE[n](dtype=dtype, device=device)
    if n in _ROTATIONS:
        if not params or len(params) != 1:
            raise ValueError(f"Gate {n} requires exactly one parameter.")
        return _ROTATIONS[n](float(params[0]), dtype=dtype, device=device)
    raise ValueError(
        f"Unsupported single-qubit gate name {name!r}. "
        "Supported gates: I, X, Y, Z, H, S, RY."
    )


def two_qubit_gate(
    name: str,
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
) -> torch.Tensor:
    """Map a two-qubit gate name to a 4x4 unitary. Only CNOT is supported."""
    if name.upper() == "CNOT":
        return CNOT(dtype=dtype, device=device)
    raise ValueError(
        f"Unsupported two-qubit gate name {name!r}. "
        "Currently only 'CNOT' is supported."
    )


def is_unitary(matrix: torch.Tensor, atol: float = 1e-10) -> bool:
    """
    Check if a matrix is unitary within a given tolerance.

    A matrix U is unitary if U†U = I, where U† is the conjugate transpose.
    """
    if matrix.shape[-1] != matrix.shape[-2]:
        return False
    product = matrix.conj().transpose(-1, -2) @ matrix
    identity = torch.eye(matrix.shape[-1], dtype=matrix.dtype, device=matrix.device)
    return bool(torch.all(torch.abs(product - identity) < atol).item())
