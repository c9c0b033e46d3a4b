"""MC-VQE example: excitonic spectrum of a chromophore dimer.

This example reads the chemistry data of two coupled chromophores, runs the
MC-VQE entangler optimization with COBYLA on the statevector executor, and
compares the interference-corrected spectrum against exact diagonalization
of the AIEM Hamiltonian.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

import mcvqe
from mcvqe.exact import exact_eigensystem

DATA = Path(__file__).parent / "data" / "dimer.txt"


def main() -> None:
    """Run MC-VQE on the sample dimer."""
    run = mcvqe.MCVQE.from_mapping(
        {
            "accelerator": mcvqe.StatevectorExecutor(),
            "optimizer": mcvqe.ScipyOptimizer("COBYLA", options={"maxiter": 200}),
            "nChromophores": 2,
            "data-path": str(DATA),
            "log-level": 1,
        }
    )

    print(f"CIS energies:          {np.array2string(run.model.cis_energies, precision=8)}")

    result = run.execute()

    exact, _ = exact_eigensystem(run.model.hamiltonian, run.model.n_chromophores)
    print(f"Best average energy:   {result.average_energy:.8f}")
    print(f"MC-VQE spectrum:       {np.array2string(result.spectrum, precision=8)}")
    print(f"Exact spectrum:        {np.array2string(exact.numpy(), precision=8)}")
    print(f"Objective evaluations: {result.n_evaluations}")
    print(f"Circuit depth / gates: {result.circuit_depth} / {result.n_gates}")


if __name__ == "__main__":
    main()
