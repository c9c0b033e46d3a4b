"""MC-VQE: multistate variational quantum eigensolver for chromophore aggregates."""

from .algorithms import MCVQE, EnergyTracker, MCObjective, MCVQEResult
from .circuit import GateOp, QuantumCircuit
from .config import MCVQEConfig
from .exceptions import ConfigurationError, ExecutionError, MCVQEError, NumericalError
from .executor import QuantumExecutor, StatevectorExecutor
from .io import ChromophoreRecord, parse_chemistry_text, read_chemistry_file
from .logging import configure_logging, get_logger, set_log_level
from .models import AIEMModel
from .operators import PauliSum, PauliTerm
from .optim import OptimConfig, ScipyOptimizer, TorchOptimizer

__version__ = "0.1.0"

__all__ = [
    "MCVQE",
    "MCVQEConfig",
    "MCVQEResult",
    "MCObjective",
    "EnergyTracker",
    "AIEMModel",
    "ChromophoreRecord",
    "read_chemistry_file",
    "parse_chemistry_text",
    "QuantumCircuit",
    "GateOp",
    "PauliSum",
    "PauliTerm",
    "QuantumExecutor",
    "StatevectorExecutor",
    "OptimConfig",
    "ScipyOptimizer",
    "TorchOptimizer",
    "MCVQEError",
    "ConfigurationError",
    "NumericalError",
    "ExecutionError",
    "get_logger",
    "set_log_level",
    "configure_logging",
]
