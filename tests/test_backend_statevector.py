"""Tests for gates and the statevector backend."""

from __future__ import annotations

import math

import pytest
import torch

from mcvqe.backend import apply_gate, apply_two_qubit_gate, measure_probs, simulate_circuit, zero_state
from mcvqe.circuit import QuantumCircuit
from mcvqe.gates import CNOT, H, RY, S, X, Y, is_unitary, single_qubit_gate, two_qubit_gate


def _basis_index(state: torch.Tensor) -> int:
    probs = measure_probs(state)
    index = int(torch.argmax(probs))
    assert probs[index].item() == pytest.approx(1.0)
    return index


def test_zero_state() -> None:
    state = zero_state(3)
    assert state.shape == (8,)
    assert state.dtype == torch.complex128
    assert state[0] == 1.0
    assert zero_state(2, batch_shape=(4,)).shape == (4, 4)
    with pytest.raises(ValueError):
        zero_state(0)


@pytest.mark.parametrize("name", ["I", "X", "Y", "Z", "H", "S"])
def test_fixed_gates_are_unitary(name: str) -> None:
    assert is_unitary(single_qubit_gate(name))


def test_rotations_are_unitary(rng) -> None:
    theta = float(rng.uniform(-math.pi, math.pi))
    assert is_unitary(single_qubit_gate("RY", [theta]))
    assert is_unitary(CNOT())


@pytest.mark.parametrize("name", ["RX", "RZ", "T"])
def test_gates_outside_the_mcvqe_set_are_rejected(name: str) -> None:
    with pytest.raises(ValueError, match="Unsupported single-qubit gate"):
        single_qubit_gate(name, [0.3])


def test_ry_half_angle_convention() -> None:
    theta = 0.7
    state = apply_gate(zero_state(1), RY(theta), qubit=0)
    assert state.real.tolist() == pytest.approx([math.cos(theta / 2), math.sin(theta / 2)])


def test_y_equals_s_x_sdagger() -> None:
    s = S()
    assert torch.allclose(s @ X() @ s.conj().T, Y())


def test_rotation_requires_parameter() -> None:
    with pytest.raises(ValueError, match="exactly one parameter"):
        single_qubit_gate("RY")
    with pytest.raises(ValueError, match="Unsupported"):
        two_qubit_gate("SWAP")


def test_qubit_zero_is_least_significant() -> None:
    state = apply_gate(zero_state(2), X(), qubit=1)
    assert _basis_index(state) == 2


@pytest.mark.parametrize(
    "n_qubits, flip, control, target, expected",
    [
        (2, 0, 0, 1, 3),
        (2, 1, 1, 0, 3),
        (2, 1, 0, 1, 2),
        (3, 0, 0, 2, 5),
        (3, 2, 2, 0, 5),
        (3, 1, 2, 0, 2),
    ],
)
def test_cnot_control_and_target(n_qubits, flip, control, target, expected) -> None:
    state = apply_gate(zero_state(n_qubits), X(), qubit=flip)
    state = apply_two_qubit_gate(state, CNOT(), qubit1=control, qubit2=target)
    assert _basis_index(state) == expected


def test_batched_gate_application() -> None:
    states = zero_state(2, batch_shape=(3,))
    out = apply_gate(states, H(), qubit=0)
    assert out.shape == (3, 4)
    assert torch.allclose(measure_probs(out)[:, 1], torch.full((3,), 0.5, dtype=torch.float64))


def test_simulate_circuit_matches_manual_application() -> None:
    circuit = QuantumCircuit(3)
    circuit.add_gate("RY", [0], [0.4])
    circuit.add_gate("CNOT", [0, 2])
    circuit.add_gate("H", [1])

    manual = zero_state(3)
    manual = apply_gate(manual, RY(0.4), qubit=0)
    manual = apply_two_qubit_gate(manual, CNOT(), qubit1=0, qubit2=2)
    manual = apply_gate(manual, H(), qubit=1)

    assert torch.allclose(simulate_circuit(circuit), manual)


def test_invalid_arguments_raise() -> None:
    with pytest.raises(ValueError, match="out of range"):
        apply_gate(zero_state(1), X(), qubit=1)
    with pytest.raises(ValueError, match="distinct"):
        apply_two_qubit_gate(zero_state(2), CNOT(), qubit1=0, qubit2=0)
    with pytest.raises(ValueError, match="complex"):
        apply_gate(torch.zeros(2), X(), qubit=0)
