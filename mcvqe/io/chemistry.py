"""Parser for the per-chromophore chemistry data file.

The file holds one fixed-order block of 8 lines per chromophore::

    Chromophore 1                              <- label (ignored)
    Ground state energy: -0.0                  <- E_gs (hartree)
    Excited state energy: 0.1617               <- E_es (hartree)
    Center of mass: -1.42, 7.41, 2.10          <- position (angstrom)
    Ground state dipole: 0.47, -0.09, -5.01    <- mu_gs (debye)
    Excited state dipole: 1.20, 0.05, -4.44    <- mu_es (debye)
    Transition dipole: -0.75, 0.47, 0.21       <- mu_T (atomic units)
                                               <- trailer (ignored)

Only the text after the first ``:`` of each value line is parsed. Vector
fields are comma-separated triples. The trailer of the final block may
be missing. Blocks beyond the requested chromophore count are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..exceptions import ConfigurationError

Vector3 = Tuple[float, float, float]

_LINES_PER_RECORD = 8

# (offset within the block, field name, number of components)
_FIELDS = (
    (1, "ground_energy", 1),
    (2, "excited_energy", 1),
    (3, "center_of_mass", 3),
    (4, "ground_dipole", 3),
    (5, "excited_dipole", 3),
    (6, "transition_dipole", 3),
)


@dataclass(frozen=True)
class ChromophoreRecord:
    """
    Raw chemistry data for one chromophore, in file units.

    Attributes
    ----------
    index:
        0-based chromophore index A (its qubit).
    ground_energy, excited_energy:
        Ground- and excited-state energies (hartree).
    center_of_mass:
        Position in angstrom.
    ground_dipole, excited_dipole:
        Permanent dipoles in debye.
    transition_dipole:
        Ground-to-excited transition dipole in atomic units.
    """

    index: int
    ground_energy: float
    excited_energy: float
    center_of_mass: Vector3
    ground_dipole: Vector3
    excited_dipole: Vector3
    transition_dipole: Vector3


def _parse_value(
    line: str, field: str, n_components: int, chromophore: int, source: str
) -> Union[float, Vector3]:
    if ":" not in line:
        raise ConfigurationError(
            f"{source}: chromophore {chromophore}, field {field!r}: "
            f"expected 'label: value', got {line.strip()!r}"
        )
    raw = line.split(":", 1)[1]
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != n_components:
        raise ConfigurationError(
            f"{source}: chromophore {chromophore}, field {field!r}: "
            f"expected {n_components} comma-separated value(s), got {len(parts)} in {raw.strip()!r}"
        )
    try:
        values = [float(p) for p in parts]
    except ValueError as exc:
        raise ConfigurationError(
            f"{source}: chromophore {chromophore}, field {field!r}: "
            f"cannot parse {raw.strip()!r} as float"
        ) from exc

    if n_components == 1:
        return values[0]
    return (values[0], values[1], values[2])


def parse_chemistry_text(
    text: str, n_chromophores: int, source: Optional[str] = None
) -> List[ChromophoreRecord]:
    """
    Parse chemistry data held in a string.

    Parameters
    ----------
    text:
        File contents.
    n_chromophores:
        Number of records to read (the first N blocks).
    source:
        Name used in error messages (defaults to ``"<string>"``).

    Returns
    -------
    list of ChromophoreRecord
        Exactly ``n_chromophores`` records, ordered by index.

    Raises
    ------
    ConfigurationError
        If there are fewer than N blocks, or a value line is malformed.
    """
    if n_chromophores < 1:
        raise ConfigurationError(f"n_chromophores must be >= 1, got {n_chromophores}")
    source = source or "<string>"
    lines = text.splitlines()

    records: List[ChromophoreRecord] = []
    for a in range(n_chromophores):
        start = a * _LINES_PER_RECORD
        # The trailer line (offset 7) of a block is optional.
        needed = start + _LINES_PER_RECORD - 1
        if len(lines) < needed:
            raise ConfigurationError(
                f"{source}: expected {n_chromophores} chromophore record(s) of "
                f"{_LINES_PER_RECORD} lines, but the data ends inside record {a}"
            )

        values = {
            field: _parse_value(lines[start + offset], field, size, a, source)
            for offset, field, size in _FIELDS
        }
        records.append(ChromophoreRecord(index=a, **values))

    return records


def read_chemistry_file(path: Union[str, Path], n_chromophores: int) -> List[ChromophoreRecord]:
    """
    Read the first ``n_chromophores`` records from a chemistry data file.

    Raises
    ------
    ConfigurationError
        If the file is missing or unreadable, or its contents are malformed.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Chemistry data file not found: {path}")
    try:
        text = path.read_text()
    except OSError as exc:
        raise ConfigurationError(f"Error reading chemistry data file {path}: {exc}") from exc
    return parse_chemistry_text(text, n_chromophores, source=str(path))


__all__ = [
    "ChromophoreRecord",
    "parse_chemistry_text",
    "read_chemistry_file",
]
