"""Circuit IR: gate operations and parameterized circuits."""

from .core import GateOp, ParamValue, QuantumCircuit

__all__ = ["GateOp", "ParamValue", "QuantumCircuit"]
