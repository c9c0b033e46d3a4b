"""Gate angles that encode CIS eigenvectors in the state-preparation circuit.

A unit vector v of length N+1 is written in hyperspherical form

    v_k = cos θ_k Π_{j<k} sin θ_j    (k < N)
    v_N = Π_{j<N} sin θ_j

so that θ_k = arccos(v_k / ‖v_{k..N}‖). The arccos branch only covers
[0, π], so the sign of v_N is carried by flipping the sign of θ_{N-1}.
"""

from __future__ import annotations

import numpy as np

from ..exceptions import NumericalError

# Tail norms below this are treated as zero (all amplitude already placed).
TAIL_NORM_TOLERANCE = 1e-14

# Largest |ratio| - 1 accepted as rounding error before clipping.
_RATIO_SLACK = 1e-8


def _column_angles(column: np.ndarray, state: int) -> np.ndarray:
    n = column.shape[0] - 1
    if not np.all(np.isfinite(column)):
        raise NumericalError(f"CIS eigenvector {state} has non-finite entries.")
    if np.linalg.norm(column) == 0.0:
        raise NumericalError(f"CIS eigenvector {state} is the zero vector.")

    angles = np.zeros(n)
    for k in range(n):
        tail = np.linalg.norm(column[k:])
        if tail < TAIL_NORM_TOLERANCE:
            # Exact degeneracy: no amplitude left to place, any angle prepares the same state.
            angles[k] = 0.0
            continue
        ratio = column[k] / tail
        if abs(ratio) > 1.0 + _RATIO_SLACK:
            raise NumericalError(
                f"Angle ratio {ratio!r} out of range for eigenvector {state}, index {k}."
            )
        angles[k] = np.arccos(np.clip(ratio, -1.0, 1.0))

    if n > 0 and column[n] < 0.0:
        angles[n - 1] = -angles[n - 1]
    return angles


def state_preparation_angles(eigenvectors: np.ndarray, n_chromophores: int) -> np.ndarray:
    """
    Angle matrix for a set of CIS eigenvectors.

    Parameters
    ----------
    eigenvectors:
        Array of shape (N+1, M) whose columns are CIS eigenvectors.
    n_chromophores:
        Number of chromophores N.

    Returns
    -------
    np.ndarray
        Array of shape (N, M); column s holds the angles of eigenvector s.

    Raises
    ------
    NumericalError
        For non-finite or zero columns, or a ratio outside [-1, 1] by more
        than rounding error.
    """
    eigenvectors = np.asarray(eigenvectors, dtype=float)
    if eigenvectors.ndim != 2 or eigenvectors.shape[0] != n_chromophores + 1:
        raise ValueError(
            f"Expected eigenvectors of shape ({n_chromophores + 1}, M), got {eigenvectors.shape}."
        )
    columns = [
        _column_angles(eigenvectors[:, s], s) for s in range(eigenvectors.shape[1])
    ]
    return np.stack(columns, axis=1) if columns else np.zeros((n_chromophores, 0))


def coefficients_from_angles(angles: np.ndarray) -> np.ndarray:
    """
    Inverse of ``state_preparation_angles``.

    Accepts a single angle column of length N (returns length N+1) or an
    (N, M) matrix (returns (N+1, M)).
    """
    angles = np.asarray(angles, dtype=float)
    if angles.ndim == 2:
        return np.stack(
            [coefficients_from_angles(angles[:, s]) for s in range(angles.shape[1])], axis=1
        )

    n = angles.shape[0]
    coefficients = np.zeros(n + 1)
    running = 1.0
    for k in range(n):
        coefficients[k] = np.cos(angles[k]) * running
        running *= np.sin(angles[k])
    coefficients[n] = running
    return coefficients
