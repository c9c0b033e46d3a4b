"""Pauli operator primitives for representing Pauli-sum Hamiltonians."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Tuple

import torch

from ..gates.standard import I, X, Y, Z

_VALID_PAULI_LABELS = {"I", "X", "Y", "Z"}

# Dense matrices grow as 4**n; beyond this use expectation evaluation.
_MAX_DENSE_QUBITS = 10


@dataclass(frozen=True)
class PauliTerm:
    """
    A single Pauli term: a coefficient times a tensor product of Pauli operators.

    This represents c * P_0 ⊗ P_1 ⊗ ... ⊗ P_{n-1}, where P_i acts on
    qubit i and is one of I, X, Y, Z.

    Args:
        coeff: Real scalar coefficient.
        paulis: Sequence of Pauli labels, one per qubit. Length must be >= 1.

    Example:
        >>> term = PauliTerm(1.0, ("Z", "I"))  # Z on qubit 0 of 2 qubits
        >>> term.n_qubits()
        2
    """

    coeff: float
    paulis: Tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "coeff", float(self.coeff))
        if not isinstance(self.paulis, tuple):
            object.__setattr__(self, "paulis", tuple(self.paulis))

        if len(self.paulis) < 1:
            raise ValueError(
                f"paulis must have length >= 1, got {len(self.paulis)}"
            )
        invalid_labels = [p for p in self.paulis if p not in _VALID_PAULI_LABELS]
        if invalid_labels:
            raise ValueError(
                f"Invalid Pauli labels: {invalid_labels}. "
                f"All labels must be in {_VALID_PAULI_LABELS}"
            )

    @classmethod
    def from_sparse(
        cls, coeff: float, ops: Mapping[int, str], n_qubits: int
    ) -> "PauliTerm":
        """
        Build a term from a ``{qubit: label}`` mapping; other qubits get I.

        Example:
            >>> PauliTerm.from_sparse(0.5, {0: "X", 2: "Z"}, 3).paulis
            ('X', 'I', 'Z')
        """
        labels = ["I"] * n_qubits
        for qubit, label in ops.items():
            if qubit < 0 or qubit >= n_qubits:
                raise ValueError(
                    f"Qubit index {qubit} out of range for {n_qubits} qubits."
                )
            labels[qubit] = label.upper()
        return cls(coeff=coeff, paulis=tuple(labels))

    def n_qubits(self) -> int:
        """Return the number of qubits this term acts on."""
        return len(self.paulis)

    def is_identity(self) -> bool:
        """Return True if all Pauli labels are "I"."""
        return all(p == "I" for p in self.paulis)

    def __str__(self) -> str:
        ops = " ".join(f"{p}{q}" for q, p in enumerate(self.paulis) if p != "I")
        return f"({self.coeff:+.10g}) {ops or 'I'}"


@dataclass
class PauliSum:
    """
    A Pauli-sum Hamiltonian H = ∑ᵢ cᵢ Pᵢ.

    All terms must act on the same number of qubits.

    Example:
        >>> hamiltonian = PauliSum.from_terms([PauliTerm(1.0, ("Z",)), PauliTerm(0.5, ("X",))])
        >>> hamiltonian.n_qubits()
        1
    """

    terms: List[PauliTerm] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.terms) > 0:
            n_qubits = self.terms[0].n_qubits()
            for i, term in enumerate(self.terms):
                if term.n_qubits() != n_qubits:
                    raise ValueError(
                        f"All terms must have the same n_qubits. "
                        f"Term 0 has {n_qubits} qubits, but term {i} has {term.n_qubits()} qubits."
                    )

    def n_qubits(self) -> int:
        """Return the number of qubits, or 0 if there are no terms."""
        if len(self.terms) == 0:
            return 0
        return self.terms[0].n_qubits()

    def __len__(self) -> int:
        return len(self.terms)

    def add_term(self, term: PauliTerm) -> None:
        """
        Add a term to this Pauli-sum.

        Raises:
            ValueError: If term.n_qubits() does not match existing terms.
        """
        if self.terms and term.n_qubits() != self.n_qubits():
            raise ValueError(
                f"Cannot add term with {term.n_qubits()} qubits to "
                f"PauliSum with {self.n_qubits()} qubits."
            )
        self.terms.append(term)

    @classmethod
    def from_terms(cls, terms: Iterable[PauliTerm]) -> "PauliSum":
        """Create a PauliSum from an iterable of PauliTerm objects."""
        return cls(terms=list(terms))

    @classmethod
    def from_sparse(
        cls,
        n_qubits: int,
        entries: Iterable[Tuple[float, Mapping[int, str]]],
    ) -> "PauliSum":
        """
        Create a PauliSum from ``(coeff, {qubit: label})`` pairs.

        An empty mapping gives an identity term.
        """
        return cls(
            terms=[PauliTerm.from_sparse(coeff, ops, n_qubits) for coeff, ops in entries]
        )

    def identity_coefficient(self) -> float:
        """Return the summed coefficient of all identity terms."""
        return float(sum(term.coeff for term in self.terms if term.is_identity()))

    def coefficient(self, ops: Mapping[int, str]) -> float:
        """Return the summed coefficient of the terms equal to ``ops``."""
        n_qubits = self.n_qubits()
        if n_qubits == 0:
            return 0.0
        key = PauliTerm.from_sparse(0.0, ops, n_qubits).paulis
        return float(sum(term.coeff for term in self.terms if term.paulis == key))

    def simplify(self, tol: float = 1e-12) -> "PauliSum":
        """
        Combine terms with identical Pauli sequences and drop terms with
        |coeff| < tol. First-appearance order is preserved.
        """
        coeff_map: dict[Tuple[str, ...], float] = {}
        for term in self.terms:
            coeff_map[term.paulis] = coeff_map.get(term.paulis, 0.0) + term.coeff

        return PauliSum(
            terms=[
                PauliTerm(coeff=coeff, paulis=paulis)
                for paulis, coeff in coeff_map.items()
                if abs(coeff) >= tol
            ]
        )

    def to_matrix(
        self, dtype: torch.dtype = torch.complex128, device: torch.device | None = None
    ) -> torch.Tensor:
        """
        Compute the full 2ⁿ×2ⁿ matrix representation of this Pauli-sum.

        Intended for small systems and cross-checks only.

        Raises:
            ValueError: If there are no terms or n_qubits is too large.
        """
        if device is None:
            device = torch.device("cpu")

        n_qubits = self.n_qubits()
        if n_qubits == 0:
            raise ValueError("Cannot compute matrix for empty PauliSum")
        if n_qubits > _MAX_DENSE_QUBITS:
            raise ValueError(
                f"to_matrix() is only intended for small systems (n ≤ {_MAX_DENSE_QUBITS}). "
                f"Got n_qubits = {n_qubits}. Use expectation evaluation methods instead."
            )

        dim = 2**n_qubits
        matrix = torch.zeros((dim, dim), dtype=dtype, device=device)
        pauli_matrices = {
            "I": I(dtype=dtype, device=device),
            "X": X(dtype=dtype, device=device),
            "Y": Y(dtype=dtype, device=device),
            "Z": Z(dtype=dtype, device=device),
        }

        # Qubit 0 is the LSB, so the Kronecker product runs P_{n-1} ⊗ ... ⊗ P_0.
        for term in self.terms:
            term_matrix = pauli_matrices[term.paulis[n_qubits - 1]]
            for i in range(n_qubits - 2, -1, -1):
                term_matrix = torch.kron(term_matrix, pauli_matrices[term.paulis[i]])
            matrix = matrix + term.coeff * term_matrix

        return matrix

    def __str__(self) -> str:
        return "\n".join(str(term) for term in self.terms)
