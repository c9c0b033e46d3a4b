"""Tests for circuit IR core functionality."""

from __future__ import annotations

import math

import pytest
import torch

from mcvqe.circuit import GateOp, QuantumCircuit


def test_circuit_simulates_bell_state() -> None:
    """Test that a circuit can simulate a Bell state."""
    circuit = QuantumCircuit(n_qubits=2)
    circuit.add_gate("H", [0])
    circuit.add_gate("CNOT", [0, 1])

    state = circuit.simulate_state()

    probs = state.abs() ** 2
    assert torch.allclose(
        probs, torch.tensor([0.5, 0.0, 0.0, 0.5], dtype=probs.dtype), atol=1e-12
    )


def test_circuit_depth_and_gate_counts() -> None:
    """Test depth calculation and gate counting."""
    circuit = QuantumCircuit(n_qubits=2)
    circuit.add_gate("H", [0])
    circuit.add_gate("H", [1])  # Can be parallel with previous H
    circuit.add_gate("CNOT", [0, 1])  # Next layer

    assert circuit.num_gates() == 3
    assert len(circuit) == 3
    assert circuit.gate_counts() == {"H": 2, "CNOT": 1}
    assert circuit.depth() == 2


def test_gate_names_are_normalized() -> None:
    circuit = QuantumCircuit(1)
    circuit.add_gate("ry", [0], [0.25])
    assert circuit.ops[0] == GateOp(name="RY", qubits=(0,), params=(0.25,))


def test_symbolic_parameters_declare_variables() -> None:
    circuit = QuantumCircuit(2)
    circuit.add_gate("RY", [0], ["a"])
    circuit.add_gate("RY", [1], ["b"])
    circuit.add_gate("RY", [0], ["a"])

    assert circuit.variables == ("a", "b")
    assert circuit.n_variables() == 2
    assert circuit.is_parameterized()
    assert circuit.ops[0].is_parameterized()


def test_bind_substitutes_in_declaration_order() -> None:
    circuit = QuantumCircuit(2)
    circuit.add_gate("RY", [1], ["b"])
    circuit.add_gate("RY", [0], ["a"])
    circuit.add_gate("CNOT", [0, 1])

    bound = circuit.bind([0.1, 0.2])

    assert not bound.is_parameterized()
    assert bound.variables == ()
    assert bound.ops[0].params == (0.1,)
    assert bound.ops[1].params == (0.2,)
    assert bound.ops[2] == circuit.ops[2]
    # The symbolic circuit is untouched.
    assert circuit.ops[0].params == ("b",)


def test_bind_accepts_tensors() -> None:
    circuit = QuantumCircuit(1)
    circuit.add_gate("RY", [0], ["t"])
    bound = circuit.bind(torch.tensor([math.pi]))
    assert bound.ops[0].params == pytest.approx((math.pi,))


def test_bind_length_mismatch_raises() -> None:
    circuit = QuantumCircuit(1)
    circuit.add_gate("RY", [0], ["t"])
    with pytest.raises(ValueError, match="Expected 1 parameter values, got 2"):
        circuit.bind([0.1, 0.2])


def test_extend_merges_variables_in_order() -> None:
    first = QuantumCircuit(2)
    first.add_gate("RY", [0], ["x0"])
    second = QuantumCircuit(2)
    second.add_gate("RY", [1], ["x1"])
    second.add_gate("RY", [0], ["x0"])

    result = first.copy().extend(second)

    assert result.variables == ("x0", "x1")
    assert result.num_gates() == 3
    assert first.num_gates() == 1


def test_extend_rejects_width_mismatch() -> None:
    with pytest.raises(ValueError, match="Cannot extend"):
        QuantumCircuit(2).extend(QuantumCircuit(3))


def test_equality_and_copy() -> None:
    a = QuantumCircuit(2)
    a.add_gate("H", [0])
    a.add_gate("RY", [1], ["x0"])
    b = a.copy()

    assert a == b
    b.add_gate("X", [0])
    assert a != b
    assert QuantumCircuit(1) != QuantumCircuit(2)


def test_to_text_listing() -> None:
    circuit = QuantumCircuit(2)
    circuit.add_gate("RY", [0], [0.5])
    circuit.add_gate("CNOT", [0, 1])
    circuit.add_gate("RY", [1], ["x3"])

    assert circuit.to_text() == "RY(0.5) q0\nCNOT q0, q1\nRY(x3) q1"


def test_circuit_invalid_qubit_raises() -> None:
    """Test that invalid qubit indices raise ValueError."""
    circuit = QuantumCircuit(n_qubits=1)
    with pytest.raises(ValueError, match="out of range"):
        circuit.add_gate("H", [1])


def test_repeated_qubits_raise() -> None:
    circuit = QuantumCircuit(n_qubits=2)
    with pytest.raises(ValueError, match="repeated"):
        circuit.add_gate("CNOT", [1, 1])


def test_simulate_unsupported_gate_raises() -> None:
    """Test that unsupported gate names raise ValueError during simulation."""
    circuit = QuantumCircuit(n_qubits=1)
    circuit.add_gate("FOO", [0])
    with pytest.raises(ValueError, match="Unsupported"):
        circuit.simulate_state()


def test_simulate_unbound_circuit_raises() -> None:
    circuit = QuantumCircuit(n_qubits=1)
    circuit.add_gate("RY", [0], ["theta"])
    with pytest.raises(ValueError, match="unbound"):
        circuit.simulate_state()
