"""Ab initio exciton model (AIEM) Hamiltonian and CIS matrix.

Each chromophore A is a two-level system mapped to qubit A, with |0⟩ its
ground state and |1⟩ its excited state. Chromophores interact through
dipole-dipole couplings between declared neighbors only, giving the
spin Hamiltonian

    H = E + Σ_A (Z_A Ẑ_A + X_A X̂_A)
          + Σ_<AB> (XX_AB X̂_A X̂_B + XZ_AB X̂_A Ẑ_B + ZX_AB Ẑ_A X̂_B + ZZ_AB Ẑ_A Ẑ_B)

where <AB> runs over unordered neighbor pairs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from ..exceptions import NumericalError
from ..io.chemistry import ChromophoreRecord
from ..logging import get_logger
from ..operators import PauliSum, PauliTerm
from .angles import state_preparation_angles
from .topology import interacting_pairs

logger = get_logger(__name__)

ANGSTROM_TO_BOHR = 1.8897161646320724
DEBYE_TO_AU = 0.393430307


def dipole_coupling(mu_a: np.ndarray, mu_b: np.ndarray, r: np.ndarray) -> float:
    """
    Dipole-dipole interaction kernel.

        (μ_A·μ_B - 3 (μ_A·n)(μ_B·n)) / d³,   d = |r|, n = r / d

    Raises:
        NumericalError: If ``r`` has zero length or the result is not finite.
    """
    r = np.asarray(r, dtype=float)
    d = float(np.linalg.norm(r))
    if d == 0.0:
        raise NumericalError("Dipole coupling requested for coincident chromophores (|r| = 0).")
    n = r / d
    mu_a = np.asarray(mu_a, dtype=float)
    mu_b = np.asarray(mu_b, dtype=float)
    value = (mu_a @ mu_b - 3.0 * (mu_a @ n) * (mu_b @ n)) / d**3
    if not np.isfinite(value):
        raise NumericalError(f"Dipole coupling is not finite (d = {d}).")
    return float(value)


@dataclass(frozen=True)
class AIEMCoefficients:
    """
    Coefficients of the AIEM Hamiltonian in atomic units.

    Attributes
    ----------
    energy_offset:
        Scalar offset E (Σ S_A is left out; it only shifts the spectrum).
    z, x:
        One-body fields Z_A and X_A, shape (N,).
    xx, xz, zx, zz:
        Two-body couplings, shape (N, N). Entry (A, B) is the full
        coupling for the directed pair (A, B); non-neighbors stay 0.
    """

    energy_offset: float
    z: np.ndarray
    x: np.ndarray
    xx: np.ndarray
    xz: np.ndarray
    zx: np.ndarray
    zz: np.ndarray

    @property
    def n_chromophores(self) -> int:
        return int(self.z.shape[0])


def _record_arrays(records: Sequence[ChromophoreRecord]) -> Tuple[np.ndarray, ...]:
    e_gs = np.array([r.ground_energy for r in records], dtype=float)
    e_es = np.array([r.excited_energy for r in records], dtype=float)
    com = np.array([r.center_of_mass for r in records], dtype=float) * ANGSTROM_TO_BOHR
    mu_gs = np.array([r.ground_dipole for r in records], dtype=float) * DEBYE_TO_AU
    mu_es = np.array([r.excited_dipole for r in records], dtype=float) * DEBYE_TO_AU
    mu_t = np.array([r.transition_dipole for r in records], dtype=float)

    for name, arr in (
        ("ground-state energies", e_gs),
        ("excited-state energies", e_es),
        ("centers of mass", com),
        ("ground-state dipoles", mu_gs),
        ("excited-state dipoles", mu_es),
        ("transition dipoles", mu_t),
    ):
        if not np.all(np.isfinite(arr)):
            raise NumericalError(f"Chemistry data contains non-finite {name}.")
    return e_gs, e_es, com, mu_gs, mu_es, mu_t


def compute_aiem_coefficients(
    records: Sequence[ChromophoreRecord], pairs: Sequence[Sequence[int]]
) -> AIEMCoefficients:
    """
    Accumulate the AIEM coefficients from chemistry records.

    Positions are converted from angstrom to bohr and the permanent dipoles
    from debye to atomic units; transition dipoles are already atomic.

    Parameters
    ----------
    records:
        One record per chromophore, ordered by index.
    pairs:
        Neighbor lists as returned by ``interacting_pairs``.

    Returns
    -------
    AIEMCoefficients
    """
    n = len(records)
    if len(pairs) != n:
        raise ValueError(f"Got {len(pairs)} neighbor lists for {n} chromophores.")

    e_gs, e_es, com, mu_gs, mu_es, mu_t = _record_arrays(records)

    d_a = (e_gs - e_es) / 2.0
    mu_sum = (mu_gs + mu_es) / 2.0
    mu_diff = (mu_gs - mu_es) / 2.0

    energy = 0.0
    z = d_a.copy()
    x = np.zeros(n)
    xx = np.zeros((n, n))
    xz = np.zeros((n, n))
    zx = np.zeros((n, n))
    zz = np.zeros((n, n))

    for a in range(n):
        for b in pairs[a]:
            r_ab = com[a] - com[b]
            r_ba = com[b] - com[a]

            energy += 0.5 * dipole_coupling(mu_sum[a], mu_sum[b], r_ab)

            x[a] += 0.5 * dipole_coupling(mu_t[a], mu_sum[b], r_ab)
            x[a] += 0.5 * dipole_coupling(mu_sum[b], mu_t[a], r_ba)

            z[a] += 0.5 * dipole_coupling(mu_sum[a], mu_diff[b], r_ab)
            z[a] += 0.5 * dipole_coupling(mu_diff[b], mu_sum[a], r_ba)

            xx[a, b] = dipole_coupling(mu_t[a], mu_t[b], r_ab)
            xz[a, b] = dipole_coupling(mu_t[a], mu_diff[b], r_ab)
            zx[a, b] = dipole_coupling(mu_diff[a], mu_t[b], r_ab)
            zz[a, b] = dipole_coupling(mu_diff[a], mu_diff[b], r_ab)

    return AIEMCoefficients(
        energy_offset=float(energy), z=z, x=x, xx=xx, xz=xz, zx=zx, zz=zz
    )


def build_aiem_hamiltonian(
    coefficients: AIEMCoefficients, pairs: Sequence[Sequence[int]]
) -> PauliSum:
    """
    Assemble the AIEM Hamiltonian as a PauliSum on N qubits.

    Every directed neighbor visit (A, B) contributes half of each two-body
    coupling, so an unordered pair carries its full coupling once.
    """
    n = coefficients.n_chromophores
    c = coefficients
    hamiltonian = PauliSum()

    for a in range(n):
        for b in pairs[a]:
            hamiltonian.add_term(PauliTerm.from_sparse(0.5 * c.xx[a, b], {a: "X", b: "X"}, n))
            hamiltonian.add_term(PauliTerm.from_sparse(0.5 * c.xz[a, b], {a: "X", b: "Z"}, n))
            hamiltonian.add_term(PauliTerm.from_sparse(0.5 * c.zx[a, b], {a: "Z", b: "X"}, n))
            hamiltonian.add_term(PauliTerm.from_sparse(0.5 * c.zz[a, b], {a: "Z", b: "Z"}, n))
        hamiltonian.add_term(PauliTerm.from_sparse(c.z[a], {a: "Z"}, n))
        hamiltonian.add_term(PauliTerm.from_sparse(c.x[a], {a: "X"}, n))

    hamiltonian.add_term(PauliTerm.from_sparse(c.energy_offset, {}, n))
    return hamiltonian.simplify()


def build_cis_matrix(
    coefficients: AIEMCoefficients, pairs: Sequence[Sequence[int]]
) -> np.ndarray:
    """
    CIS matrix in the basis {|0...0⟩, X̂_0|0...0⟩, ..., X̂_{N-1}|0...0⟩}.

    This is the AIEM Hamiltonian restricted to the reference and its
    single excitations, shape (N+1, N+1).
    """
    n = coefficients.n_chromophores
    c = coefficients
    cis = np.zeros((n + 1, n + 1))

    e_ref = c.energy_offset + c.z.sum() + 0.5 * c.zz.sum()
    cis[0, 0] = e_ref

    for a in range(n):
        cis[a + 1, a + 1] = e_ref - 2.0 * c.z[a]
        for b in pairs[a]:
            cis[a + 1, a + 1] -= c.zz[a, b] + c.zz[b, a]

        coupling = c.x[a]
        for b in pairs[a]:
            coupling += 0.5 * (c.xz[a, b] + c.zx[b, a])
        cis[a + 1, 0] = coupling
        cis[0, a + 1] = coupling

        for b in pairs[a]:
            cis[a + 1, b + 1] = c.xx[a, b]

    return cis


def diagonalize_symmetric(matrix: np.ndarray, atol: float = 1e-10) -> Tuple[np.ndarray, np.ndarray]:
    """
    Eigen-decompose a real symmetric matrix.

    Returns
    -------
    eigenvalues, eigenvectors:
        Ascending eigenvalues, and eigenvectors as columns.

    Raises
    ------
    NumericalError
        If the matrix is not square, not finite, not symmetric, or the
        solver does not converge.
    """
    matrix = np.asarray(matrix, dtype=float)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise NumericalError(f"Expected a square matrix, got shape {matrix.shape}.")
    if not np.all(np.isfinite(matrix)):
        raise NumericalError("Cannot diagonalize a matrix with non-finite entries.")
    if not np.allclose(matrix, matrix.T, atol=atol):
        raise NumericalError("Cannot diagonalize a non-symmetric matrix.")
    try:
        eigenvalues, eigenvectors = np.linalg.eigh(matrix)
    except np.linalg.LinAlgError as exc:
        raise NumericalError(f"Eigen-solver failed: {exc}") from exc
    return eigenvalues, eigenvectors


def dense_cis_indices(n_chromophores: int) -> List[int]:
    """Computational-basis indices of the CIS configurations: [0, 1, 2, 4, ...]."""
    return [0] + [1 << a for a in range(n_chromophores)]


@dataclass(frozen=True)
class AIEMModel:
    """
    Preprocessed MC-VQE model of a chromophore aggregate.

    Attributes
    ----------
    records:
        Chemistry records, ordered by chromophore index.
    cyclic:
        Whether the chain closes into a ring.
    pairs:
        Neighbor list of each chromophore.
    coefficients:
        AIEM Hamiltonian coefficients.
    hamiltonian:
        AIEM Hamiltonian as a PauliSum on N qubits.
    cis_matrix:
        (N+1, N+1) CIS matrix.
    cis_energies, cis_eigenvectors:
        Ascending CIS eigenvalues and the matching eigenvector columns.
    gate_angles:
        (N, N+1) state-preparation angles, one column per CIS state.
    """

    records: Tuple[ChromophoreRecord, ...]
    cyclic: bool
    pairs: Tuple[Tuple[int, ...], ...]
    coefficients: AIEMCoefficients
    hamiltonian: PauliSum
    cis_matrix: np.ndarray
    cis_energies: np.ndarray
    cis_eigenvectors: np.ndarray
    gate_angles: np.ndarray

    @property
    def n_chromophores(self) -> int:
        return len(self.records)

    @classmethod
    def from_records(
        cls, records: Sequence[ChromophoreRecord], cyclic: bool = False
    ) -> "AIEMModel":
        """Run the full preprocessing pipeline on chemistry records."""
        records = tuple(records)
        n = len(records)
        pairs = interacting_pairs(n, cyclic)
        coefficients = compute_aiem_coefficients(records, pairs)
        hamiltonian = build_aiem_hamiltonian(coefficients, pairs)
        cis_matrix = build_cis_matrix(coefficients, pairs)
        cis_energies, cis_eigenvectors = diagonalize_symmetric(cis_matrix)
        gate_angles = state_preparation_angles(cis_eigenvectors, n)

        logger.debug(
            "AIEM model: %d chromophores (%s), %d Hamiltonian terms, CIS energies %s",
            n,
            "cyclic" if cyclic else "linear",
            len(hamiltonian),
            np.array2string(cis_energies, precision=8),
        )

        return cls(
            records=records,
            cyclic=bool(cyclic),
            pairs=tuple(tuple(p) for p in pairs),
            coefficients=coefficients,
            hamiltonian=hamiltonian,
            cis_matrix=cis_matrix,
            cis_energies=cis_energies,
            cis_eigenvectors=cis_eigenvectors,
            gate_angles=gate_angles,
        )
