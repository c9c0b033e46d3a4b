"""Chromophore models: pair topology, AIEM Hamiltonian, CIS and gate angles."""

from .aiem import (
    ANGSTROM_TO_BOHR,
    DEBYE_TO_AU,
    AIEMCoefficients,
    AIEMModel,
    build_aiem_hamiltonian,
    build_cis_matrix,
    compute_aiem_coefficients,
    dense_cis_indices,
    diagonalize_symmetric,
    dipole_coupling,
)
from .angles import coefficients_from_angles, state_preparation_angles
from .topology import interacting_pairs

__all__ = [
    "ANGSTROM_TO_BOHR",
    "DEBYE_TO_AU",
    "interacting_pairs",
    "dipole_coupling",
    "AIEMCoefficients",
    "AIEMModel",
    "compute_aiem_coefficients",
    "build_aiem_hamiltonian",
    "build_cis_matrix",
    "dense_cis_indices",
    "diagonalize_symmetric",
    "state_preparation_angles",
    "coefficients_from_angles",
]
