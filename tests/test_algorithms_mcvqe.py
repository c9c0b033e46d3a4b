"""Tests for the MC-VQE driver, its objective and its result bookkeeping."""

from __future__ import annotations

import numpy as np
import pytest

from mcvqe import MCVQE, EnergyTracker, MCObjective, MCVQEResult
from mcvqe.circuit import QuantumCircuit
from mcvqe.exact import exact_eigensystem, paulisum_to_dense
from mcvqe.exceptions import ExecutionError, MCVQEError
from mcvqe.executor import StatevectorExecutor
from mcvqe.grad import ParameterShiftGradient
from mcvqe.models import AIEMModel
from mcvqe.optim import OptimConfig, OptimizationResult, ScipyOptimizer, TorchOptimizer
from mcvqe.variational import EntanglerAnsatz


class FailingExecutor(StatevectorExecutor):
    """Executor that fails from the ``fail_at``-th expectation call on."""

    def __init__(self, fail_at: int = 0) -> None:
        super().__init__()
        self.fail_at = fail_at
        self.calls = 0

    def expectation(self, circuit, hamiltonian, params):
        if self.calls >= self.fail_at:
            raise RuntimeError("backend unavailable")
        self.calls += 1
        return super().expectation(circuit, hamiltonian, params)


def _run(path, n_chromophores=2, **options) -> MCVQE:
    mapping = {
        "accelerator": options.pop("accelerator", StatevectorExecutor()),
        "optimizer": options.pop("optimizer", ScipyOptimizer("COBYLA", options={"maxiter": 80})),
        "nChromophores": n_chromophores,
        "data-path": str(path),
    }
    mapping.update(options)
    return MCVQE.from_mapping(mapping)


def _entangled_states(run: MCVQE, x: np.ndarray) -> np.ndarray:
    """Columns are the statevectors of every prepared state after the entangler."""
    objective = MCObjective(run.model, run.entangler, run.executor, run.n_states, EnergyTracker())
    states = [c.bind(x).simulate_state().real.numpy() for c in objective.circuits]
    return np.stack(states, axis=1)


# EnergyTracker


def test_tracker_commits_first_positive_average() -> None:
    tracker = EnergyTracker()
    assert tracker.update(1.5, [1.0, 2.0]) is True
    assert tracker.best_average == 1.5
    assert tracker.best_diagonal.tolist() == [1.0, 2.0]


def test_tracker_keeps_best() -> None:
    tracker = EnergyTracker()
    tracker.update(0.5, [0.4, 0.6])
    assert tracker.update(0.7, [0.1, 1.3]) is False
    assert tracker.update(0.5, [0.5, 0.5]) is False
    assert tracker.best_diagonal.tolist() == [0.4, 0.6]

    assert tracker.update(-0.2, [-0.3, -0.1]) is True
    assert tracker.update(3.0, [3.0, 3.0]) is False
    assert tracker.best_average == -0.2
    assert tracker.best_diagonal.tolist() == [-0.3, -0.1]
    assert tracker.n_evaluations == 5
    assert tracker.history == [0.5, 0.7, 0.5, -0.2, 3.0]


def test_tracker_copies_diagonal() -> None:
    tracker = EnergyTracker()
    buffer = np.array([1.0, 2.0])
    tracker.update(1.5, buffer)
    buffer[0] = 10.0
    assert tracker.best_diagonal[0] == 1.0


# MCObjective


def test_objective_at_zero_reproduces_cis_energies(trimer_records) -> None:
    model = AIEMModel.from_records(trimer_records, cyclic=True)
    entangler = EntanglerAnsatz(3, cyclic=True)
    tracker = EnergyTracker()
    objective = MCObjective(model, entangler, StatevectorExecutor(), 4, tracker)

    value, grad = objective(np.zeros(entangler.num_parameters))

    assert grad is None
    assert not objective.has_gradient
    assert value == pytest.approx(model.cis_energies.mean(), abs=1e-12)
    assert np.allclose(tracker.best_diagonal, model.cis_energies, atol=1e-12)
    assert objective.n_gates == objective.circuits[-1].num_gates()
    assert objective.circuit_depth == objective.circuits[-1].depth()


def test_objective_gradient_matches_finite_difference(dimer_records, rng) -> None:
    model = AIEMModel.from_records(dimer_records)
    entangler = EntanglerAnsatz(2)
    objective = MCObjective(
        model,
        entangler,
        StatevectorExecutor(),
        3,
        EnergyTracker(),
        gradient_strategy=ParameterShiftGradient(),
    )
    x = rng.uniform(-1.0, 1.0, size=entangler.num_parameters)

    _, grad = objective(x)

    step = 1e-5
    numeric = np.zeros_like(x)
    for i in range(x.size):
        shift = np.zeros_like(x)
        shift[i] = step
        numeric[i] = (objective(x + shift)[0] - objective(x - shift)[0]) / (2.0 * step)
    assert np.allclose(grad, numeric, atol=1e-8)


def test_objective_uses_lowest_states(dimer_records) -> None:
    model = AIEMModel.from_records(dimer_records)
    tracker = EnergyTracker()
    objective = MCObjective(model, EntanglerAnsatz(2), StatevectorExecutor(), 2, tracker)
    value, _ = objective(np.zeros(6))
    assert value == pytest.approx(model.cis_energies[:2].mean(), abs=1e-12)


def test_objective_rejects_bad_sizes(dimer_records) -> None:
    model = AIEMModel.from_records(dimer_records)
    with pytest.raises(ValueError, match="n_states"):
        MCObjective(model, EntanglerAnsatz(2), StatevectorExecutor(), 4, EnergyTracker())
    objective = MCObjective(model, EntanglerAnsatz(2), StatevectorExecutor(), 3, EnergyTracker())
    with pytest.raises(ValueError, match="Expected 6"):
        objective(np.zeros(5))


def test_objective_wraps_executor_failure(dimer_records) -> None:
    model = AIEMModel.from_records(dimer_records)
    objective = MCObjective(model, EntanglerAnsatz(2), FailingExecutor(fail_at=1), 3, EnergyTracker())

    with pytest.raises(ExecutionError) as excinfo:
        objective(np.zeros(6))

    assert excinfo.value.stage == "objective"
    assert excinfo.value.state == 1
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert objective.tracker.n_evaluations == 0


def test_objective_wraps_gradient_failure(dimer_records) -> None:
    class BrokenGradient(ParameterShiftGradient):
        def compute(self, results):
            raise RuntimeError("provider failed")

    model = AIEMModel.from_records(dimer_records)
    objective = MCObjective(
        model, EntanglerAnsatz(2), StatevectorExecutor(), 3, EnergyTracker(), BrokenGradient()
    )
    with pytest.raises(ExecutionError, match="stage=gradient, state=0"):
        objective(np.zeros(6))


def test_inert_aggregate_objective_is_independent_of_parameters(inert_dimer_path, rng) -> None:
    run = _run(inert_dimer_path)
    objective = MCObjective(run.model, run.entangler, run.executor, 3, EnergyTracker())
    values = [objective(rng.uniform(-np.pi, np.pi, size=6))[0] for _ in range(3)]
    assert values == pytest.approx([values[0]] * 3, abs=1e-14)


@pytest.mark.parametrize("log_level, expected_listings", [(0, 0), (2, 0), (3, 3)])
def test_objective_lists_circuits_only_at_level_three(
    dimer_records, monkeypatch, log_level, expected_listings
) -> None:
    calls = []
    original = QuantumCircuit.to_text

    def counting_to_text(self):
        calls.append(self.n_qubits)
        return original(self)

    monkeypatch.setattr(QuantumCircuit, "to_text", counting_to_text)
    model = AIEMModel.from_records(dimer_records)
    entangler = EntanglerAnsatz(2)
    objective = MCObjective(
        model, entangler, StatevectorExecutor(), 3, EnergyTracker(), log_level=log_level
    )

    objective(np.zeros(entangler.num_parameters))

    assert len(calls) == expected_listings


# Decoupled limit


def test_decoupled_dimer_run(decoupled_dimer_path) -> None:
    run = _run(decoupled_dimer_path, **{"interference-mode": "coefficients"})
    coefficients = run.model.coefficients
    assert not coefficients.xx.any() and not coefficients.xz.any() and not coefficients.zx.any()
    assert np.allclose(run.model.cis_matrix, np.diag(np.diag(run.model.cis_matrix)))
    assert np.allclose(np.sin(2.0 * run.model.gate_angles), 0.0, atol=1e-12)

    result = run.execute_with_parameters(np.zeros(6))
    assert np.allclose(result.diagonal, run.model.cis_energies, atol=1e-12)
    assert np.allclose(result.spectrum, run.model.cis_energies, atol=1e-12)


# MCVQE driver


def test_driver_preprocessing(trimer_path) -> None:
    run = _run(trimer_path, n_chromophores=3, cyclic=True)
    assert run.n_states == 4
    assert run.entangler.num_parameters == 15
    assert run.model.pairs[0] == (2, 1)
    assert run.gradient_strategy is None
    assert "preprocessing" in run.timings


def test_evaluation_mode_at_zero(dimer_path) -> None:
    run = _run(dimer_path, **{"interference-mode": "coefficients"})
    result = run.execute_with_parameters(np.zeros(6))

    assert isinstance(result, MCVQEResult)
    assert result.n_evaluations == 1
    assert result.average_energy == pytest.approx(run.model.cis_energies.mean(), abs=1e-12)
    # At x = 0 the entangled states are the CIS states themselves.
    assert np.allclose(result.entangled_hamiltonian, np.diag(run.model.cis_energies), atol=1e-10)
    assert np.allclose(result.spectrum, run.model.cis_energies, atol=1e-10)
    assert {"preprocessing", "evaluation", "interference"} <= set(result.timings)


def test_coefficient_interference_is_exact(dimer_path, rng) -> None:
    run = _run(dimer_path, **{"interference-mode": "coefficients"})
    x = rng.uniform(-1.0, 1.0, size=6)

    result = run.execute_with_parameters(x)

    states = _entangled_states(run, x)
    dense = paulisum_to_dense(run.model.hamiltonian, 2).real.numpy()
    assert np.allclose(result.entangled_hamiltonian, states.T @ dense @ states, atol=1e-10)

    exact, _ = exact_eigensystem(run.model.hamiltonian, 2)
    assert np.all(result.spectrum >= exact.numpy()[:3] - 1e-10)


def test_angle_interference_matrix_is_symmetric(trimer_path, rng) -> None:
    run = _run(trimer_path, n_chromophores=3)
    x = rng.uniform(-1.0, 1.0, size=run.entangler.num_parameters)
    diagonal = np.arange(4, dtype=float)

    matrix = run.interference_matrix(x, diagonal)

    assert matrix.shape == (4, 4)
    assert np.allclose(matrix, matrix.T)
    assert np.allclose(np.diag(matrix), diagonal)
    assert np.all(np.isfinite(matrix))


def test_interference_matrix_checks_diagonal(dimer_path) -> None:
    run = _run(dimer_path)
    with pytest.raises(ValueError, match="Expected 3 diagonal entries"):
        run.interference_matrix(np.zeros(6), [0.0, 1.0])


def test_interference_failure_names_pair(dimer_path) -> None:
    run = _run(dimer_path, accelerator=FailingExecutor(fail_at=3))
    with pytest.raises(ExecutionError) as excinfo:
        run.execute_with_parameters(np.zeros(6))
    assert excinfo.value.stage == "interference"
    assert excinfo.value.pair == (0, 1)


def test_interference_disabled(dimer_path) -> None:
    run = _run(dimer_path, interference=False)
    result = run.execute_with_parameters(np.zeros(6))

    assert result.spectrum is None
    assert result.eigenvectors is None
    assert np.allclose(result.entangled_hamiltonian, np.diag(result.diagonal))
    assert "opt-spectrum" not in result.to_metadata()
    assert "interference" not in result.timings


def test_partial_spectrum(dimer_path) -> None:
    run = _run(dimer_path, **{"n-states": 2})
    result = run.execute_with_parameters(np.zeros(6))
    assert result.entangled_hamiltonian.shape == (2, 2)
    assert result.spectrum.shape == (2,)
    assert np.allclose(result.diagonal, run.model.cis_energies[:2], atol=1e-12)


def test_evaluation_mode_rejects_wrong_length(dimer_path) -> None:
    with pytest.raises(ValueError, match="Expected 6 entangler parameters"):
        _run(dimer_path).execute_with_parameters(np.zeros(4))


def test_training_with_cobyla(dimer_path) -> None:
    run = _run(dimer_path, **{"interference-mode": "coefficients"})
    result = run.execute()

    exact, _ = exact_eigensystem(run.model.hamiltonian, 2)
    exact = exact.numpy()

    assert result.n_evaluations > 1
    assert result.average_energy <= run.model.cis_energies.mean() + 1e-12
    # Ky Fan bound: the average over three orthonormal states.
    assert result.average_energy >= exact[:3].mean() - 1e-10
    assert result.average_energy == pytest.approx(result.diagonal.mean(), abs=1e-12)
    assert np.all(np.diff(result.spectrum) >= 0.0)
    assert np.all(result.spectrum >= exact[:3] - 1e-10)
    assert result.circuit_depth > 0 and result.n_gates > 0


def test_training_reports_best_iteration(dimer_path) -> None:
    run = _run(dimer_path, optimizer=ScipyOptimizer("COBYLA", options={"maxiter": 20}))
    result = run.execute()
    states = _entangled_states(run, result.optimal_params)
    dense = paulisum_to_dense(run.model.hamiltonian, 2).real.numpy()
    energies = np.einsum("is,ij,js->s", states, dense, states)
    assert np.allclose(result.diagonal, energies, atol=1e-10)


def test_training_with_torch_and_parameter_shift(trimer_path) -> None:
    run = _run(
        trimer_path,
        n_chromophores=3,
        cyclic=True,
        optimizer=TorchOptimizer(OptimConfig(name="adam", lr=0.05), max_iterations=15),
        **{"gradient-strategy": "parameter-shift"},
    )
    result = run.execute()

    assert result.n_evaluations == 15 or result.converged
    assert result.average_energy <= run.model.cis_energies.mean() + 1e-12
    assert result.spectrum.shape == (4,)
    assert result.optimal_params.shape == (15,)


def test_torch_optimizer_without_strategy_fails(dimer_path) -> None:
    run = _run(dimer_path, optimizer=TorchOptimizer())
    with pytest.raises(ValueError, match="requires gradients"):
        run.execute()


def test_training_requires_an_evaluation(dimer_path) -> None:
    class LazyOptimizer:
        def optimize(self, objective, n_params, initial_params=None):
            return OptimizationResult(0.0, np.zeros(n_params), 0, True)

    with pytest.raises(MCVQEError, match="without evaluating"):
        _run(dimer_path, optimizer=LazyOptimizer()).execute()


def test_executor_logging_is_restored(dimer_path) -> None:
    executor = StatevectorExecutor()
    run = _run(dimer_path, accelerator=executor, interference=False, **{"tnqvm-log": True, "log-level": 3})
    run.execute_with_parameters(np.zeros(6))
    assert executor.verbose is False
    assert executor.n_executions == 3


def test_result_metadata(dimer_path) -> None:
    result = _run(dimer_path).execute_with_parameters(np.full(6, 0.1))
    metadata = result.to_metadata()

    assert set(metadata) == {"opt-average-energy", "opt-params", "circuit-depth", "n-gates", "opt-spectrum"}
    assert metadata["opt-params"] == pytest.approx([0.1] * 6)
    assert len(metadata["opt-spectrum"]) == 3
    assert isinstance(metadata["circuit-depth"], int)


def test_initial_params_are_forwarded(dimer_path) -> None:
    class SinglePointOptimizer:
        def optimize(self, objective, n_params, initial_params=None):
            x = np.asarray(initial_params, dtype=float)
            value, _ = objective(x)
            return OptimizationResult(value, x, 1, True)

    run = _run(dimer_path, optimizer=SinglePointOptimizer(), interference=False)
    result = run.execute(initial_params=[0.2] * 6)

    assert result.n_evaluations == 1
    assert result.optimal_params.tolist() == pytest.approx([0.2] * 6)
    assert result.converged
