"""Interacting-neighbor topology of a chromophore chain."""

from __future__ import annotations

from typing import List


def interacting_pairs(n_chromophores: int, cyclic: bool = False) -> List[List[int]]:
    """
    Neighbor lists for a 1D chain of chromophores.

    Parameters
    ----------
    n_chromophores:
        Number of chromophores N (must be positive).
    cyclic:
        If True, the chain ends wrap around (N-1 neighbors 0).

    Returns
    -------
    List whose entry A is the ordered list of neighbors of chromophore A.
    Interior chromophores have ``[A-1, A+1]``; linear chain ends have one
    neighbor. Duplicates are dropped, so N=2 has one neighbor per site in
    both topologies and N=1 has none.

    Example:
        >>> interacting_pairs(3, cyclic=True)
        [[2, 1], [0, 2], [1, 0]]
    """
    if n_chromophores <= 0:
        raise ValueError("n_chromophores must be positive.")

    pairs: List[List[int]] = []
    for a in range(n_chromophores):
        candidates = []
        if a > 0:
            candidates.append(a - 1)
        elif cyclic:
            candidates.append(n_chromophores - 1)
        if a < n_chromophores - 1:
            candidates.append(a + 1)
        elif cyclic:
            candidates.append(0)

        neighbors: List[int] = []
        for b in candidates:
            if b != a and b not in neighbors:
                neighbors.append(b)
        pairs.append(neighbors)
    return pairs
