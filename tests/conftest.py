"""Pytest configuration and shared fixtures for MC-VQE tests.

This module provides:
- Deterministic RNG fixtures for numpy and torch
- Synthetic chemistry data files for a dimer, a decoupled dimer and a trimer
"""

import os
from pathlib import Path
from typing import Dict, List, Sequence

import numpy as np
import pytest
import torch

from mcvqe.io import parse_chemistry_text


def _seed() -> int:
    return int(os.environ.get("TEST_RNG_SEED", "0"))


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    """
    return np.random.default_rng(_seed())


@pytest.fixture(scope="function")
def torch_rng() -> torch.Generator:
    """Provide a deterministic CPU torch RNG for tests."""
    generator = torch.Generator(device="cpu")
    generator.manual_seed(_seed())
    return generator


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds() -> None:
    """Auto-use fixture to set global random seeds for reproducibility."""
    np.random.seed(_seed())
    torch.manual_seed(_seed())


# Synthetic records in file units: hartree, angstrom, debye, and atomic
# units for the transition dipole.
DIMER: List[Dict[str, Sequence[float]]] = [
    {
        "gs": 0.0,
        "es": 0.1617,
        "com": (0.0, 0.0, 0.0),
        "mu_gs": (0.47, -0.09, -5.01),
        "mu_es": (1.20, 0.05, -4.44),
        "mu_t": (-0.75, 0.47, 0.21),
    },
    {
        "gs": 0.0,
        "es": 0.1631,
        "com": (3.5, 1.0, 2.0),
        "mu_gs": (-0.31, 0.62, -4.87),
        "mu_es": (0.88, 0.40, -4.12),
        "mu_t": (0.68, -0.52, 0.33),
    },
]

TRIMER: List[Dict[str, Sequence[float]]] = DIMER + [
    {
        "gs": 0.0,
        "es": 0.1602,
        "com": (7.2, 0.4, 3.9),
        "mu_gs": (0.15, -0.44, -5.20),
        "mu_es": (1.02, -0.21, -4.60),
        "mu_t": (-0.59, -0.61, 0.18),
    },
]

# Zero transition dipoles: no X-type couplings survive.
DECOUPLED_DIMER: List[Dict[str, Sequence[float]]] = [
    dict(record, mu_t=(0.0, 0.0, 0.0)) for record in DIMER
]

# Degenerate sites without any dipoles: the Hamiltonian is identically zero.
INERT_DIMER: List[Dict[str, Sequence[float]]] = [
    {
        "gs": 0.0,
        "es": 0.0,
        "com": record["com"],
        "mu_gs": (0.0, 0.0, 0.0),
        "mu_es": (0.0, 0.0, 0.0),
        "mu_t": (0.0, 0.0, 0.0),
    }
    for record in DIMER
]


def _triple(values: Sequence[float]) -> str:
    return ", ".join(repr(float(v)) for v in values)


def chemistry_text(records: Sequence[Dict[str, Sequence[float]]], final_trailer: bool = True) -> str:
    """Render records in the 8-line-per-chromophore file format."""
    lines: List[str] = []
    for i, record in enumerate(records):
        lines.extend(
            [
                f"Chromophore {i + 1}",
                f"Ground state energy: {record['gs']!r}",
                f"Excited state energy: {record['es']!r}",
                f"Center of mass: {_triple(record['com'])}",
                f"Ground state dipole: {_triple(record['mu_gs'])}",
                f"Excited state dipole: {_triple(record['mu_es'])}",
                f"Transition dipole: {_triple(record['mu_t'])}",
                "",
            ]
        )
    if not final_trailer:
        lines.pop()
    return "\n".join(lines)


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text)
    return path


@pytest.fixture
def dimer_path(tmp_path: Path) -> Path:
    return _write(tmp_path, "dimer.txt", chemistry_text(DIMER))


@pytest.fixture
def trimer_path(tmp_path: Path) -> Path:
    return _write(tmp_path, "trimer.txt", chemistry_text(TRIMER))


@pytest.fixture
def decoupled_dimer_path(tmp_path: Path) -> Path:
    return _write(tmp_path, "decoupled.txt", chemistry_text(DECOUPLED_DIMER))


@pytest.fixture
def inert_dimer_path(tmp_path: Path) -> Path:
    return _write(tmp_path, "inert.txt", chemistry_text(INERT_DIMER))


@pytest.fixture
def dimer_records():
    return parse_chemistry_text(chemistry_text(DIMER), 2)


@pytest.fixture
def trimer_records():
    return parse_chemistry_text(chemistry_text(TRIMER), 3)


@pytest.fixture
def decoupled_records():
    return parse_chemistry_text(chemistry_text(DECOUPLED_DIMER), 2)


@pytest.fixture
def dimer_data() -> List[Dict[str, Sequence[float]]]:
    return [dict(record) for record in DIMER]


@pytest.fixture
def make_chemistry_file(tmp_path: Path):
    """Factory writing records (or raw text) to a file under tmp_path."""

    def _make(records=None, text=None, name="data.txt", final_trailer=True) -> Path:
        if text is None:
            text = chemistry_text(records, final_trailer=final_trailer)
        return _write(tmp_path, name, text)

    return _make
