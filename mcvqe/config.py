"""Configuration for an MC-VQE run.

The run is configured from a flat key-value mapping::

    {
        "accelerator": StatevectorExecutor(),     # required
        "optimizer": ScipyOptimizer("COBYLA"),    # required
        "nChromophores": 2,                       # required, > 0
        "data-path": "dimer.txt",                 # required, readable file
        "cyclic": False,
        "log-level": 0,
        "tnqvm-log": False,
        "interference": True,
        "n-states": 3,                            # 1 <= n-states <= N+1
        "gradient-strategy": "parameter-shift",
        "interference-mode": "angles",            # or "coefficients"
    }

All problems are collected and reported together in one
``ConfigurationError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional

from .exceptions import ConfigurationError
from .grad import available_gradient_strategies
from .logging import get_logger

logger = get_logger(__name__)

REQUIRED_KEYS = ("accelerator", "optimizer", "nChromophores", "data-path")
OPTIONAL_KEYS = (
    "cyclic",
    "log-level",
    "tnqvm-log",
    "interference",
    "n-states",
    "gradient-strategy",
    "interference-mode",
)
INTERFERENCE_MODES = ("angles", "coefficients")


@dataclass(frozen=True)
class MCVQEConfig:
    """
    Validated MC-VQE settings.

    Attributes:
        accelerator: Quantum executor (``QuantumExecutor``).
        optimizer: Classical optimizer (``Optimizer``).
        n_chromophores: Number of chromophores N.
        data_path: Chemistry data file.
        cyclic: Close the chain into a ring.
        log_level: Integer verbosity threshold for run diagnostics.
        tnqvm_log: Enable executor-side logging during executions.
        interference: Run the interference phase and diagonalization.
        n_states: Number of CIS states (defaults to N+1).
        gradient_strategy: Registered gradient strategy name, or None.
        interference_mode: "angles" combines gate angles of the two states;
            "coefficients" prepares the exact superposition of the two CIS
            vectors.
    """

    accelerator: Any
    optimizer: Any
    n_chromophores: int
    data_path: Path
    cyclic: bool = False
    log_level: int = 0
    tnqvm_log: bool = False
    interference: bool = True
    n_states: Optional[int] = None
    gradient_strategy: Optional[str] = None
    interference_mode: str = "angles"

    @property
    def resolved_n_states(self) -> int:
        return self.n_states if self.n_states is not None else self.n_chromophores + 1

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "MCVQEConfig":
        """
        Validate a key-value mapping and build the config.

        Raises:
            ConfigurationError: Listing every missing key and invalid value.
        """
        errors: List[str] = []

        missing = [key for key in REQUIRED_KEYS if key not in mapping]
        if missing:
            errors.append(f"missing required key(s): {', '.join(repr(k) for k in missing)}")

        unknown = sorted(set(mapping) - set(REQUIRED_KEYS) - set(OPTIONAL_KEYS))
        if unknown:
            logger.warning("Ignoring unknown MC-VQE option(s): %s", ", ".join(unknown))

        accelerator = mapping.get("accelerator")
        if "accelerator" in mapping and not (
            callable(getattr(accelerator, "expectation", None))
            and callable(getattr(accelerator, "execute", None))
        ):
            errors.append("'accelerator' must provide expectation() and execute()")

        optimizer = mapping.get("optimizer")
        if "optimizer" in mapping and not callable(getattr(optimizer, "optimize", None)):
            errors.append("'optimizer' must provide optimize()")

        n_chromophores = mapping.get("nChromophores")
        if "nChromophores" in mapping and not _is_int(n_chromophores, minimum=1):
            errors.append(f"'nChromophores' must be a positive integer, got {n_chromophores!r}")
            n_chromophores = None

        data_path = mapping.get("data-path")
        if "data-path" in mapping:
            if not isinstance(data_path, (str, Path)) or not Path(data_path).is_file():
                errors.append(f"'data-path' must name a readable file, got {data_path!r}")
            else:
                data_path = Path(data_path)

        flags = {}
        for key, default in (("cyclic", False), ("tnqvm-log", False), ("interference", True)):
            value = mapping.get(key, default)
            if not isinstance(value, bool):
                errors.append(f"{key!r} must be a bool, got {value!r}")
            flags[key] = value

        log_level = mapping.get("log-level", 0)
        if not _is_int(log_level, minimum=0):
            errors.append(f"'log-level' must be a non-negative integer, got {log_level!r}")

        n_states = mapping.get("n-states")
        if n_states is not None:
            if not _is_int(n_states, minimum=1):
                errors.append(f"'n-states' must be a positive integer, got {n_states!r}")
            elif n_chromophores is not None and n_states > n_chromophores + 1:
                errors.append(
                    f"'n-states' must be <= nChromophores + 1 = {n_chromophores + 1}, got {n_states}"
                )

        gradient_strategy = mapping.get("gradient-strategy")
        if gradient_strategy is not None and gradient_strategy not in available_gradient_strategies():
            errors.append(
                f"unknown 'gradient-strategy' {gradient_strategy!r}; "
                f"registered: {available_gradient_strategies()}"
            )

        interference_mode = mapping.get("interference-mode", "angles")
        if interference_mode not in INTERFERENCE_MODES:
            errors.append(
                f"'interference-mode' must be one of {list(INTERFERENCE_MODES)}, got {interference_mode!r}"
            )

        if errors:
            raise ConfigurationError("Invalid MC-VQE configuration: " + "; ".join(errors))

        return cls(
            accelerator=accelerator,
            optimizer=optimizer,
            n_chromophores=int(n_chromophores),
            data_path=data_path,
            cyclic=flags["cyclic"],
            log_level=int(log_level),
            tnqvm_log=flags["tnqvm-log"],
            interference=flags["interference"],
            n_states=n_states,
            gradient_strategy=gradient_strategy,
            interference_mode=interference_mode,
        )


def _is_int(value: Any, minimum: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= minimum


__all__ = ["MCVQEConfig", "REQUIRED_KEYS", "OPTIONAL_KEYS", "INTERFERENCE_MODES"]
