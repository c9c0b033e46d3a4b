"""MC-VQE circuit templates."""

from .ansatz import (
    EntanglerAnsatz,
    cis_state_preparation,
    entangler_block,
    entangler_circuit,
    entangler_parameter_count,
    interference_preparation,
    parameter_name,
)

__all__ = [
    "EntanglerAnsatz",
    "cis_state_preparation",
    "interference_preparation",
    "entangler_block",
    "entangler_circuit",
    "entangler_parameter_count",
    "parameter_name",
]
