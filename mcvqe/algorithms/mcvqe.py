"""Multistate, contracted variational quantum eigensolver (MC-VQE).

Given an aggregate of N chromophores, MC-VQE

1. builds the AIEM Hamiltonian and solves the CIS problem classically,
2. prepares each of the lowest CIS states with a fixed circuit, followed
   by one shared, parameterized entangler,
3. minimizes the average energy of all prepared states over the
   entangler parameters (keeping the per-state energies of the best
   iteration),
4. optionally measures the off-diagonal couplings between the entangled
   states with interference circuits and diagonalizes the resulting
   matrix to obtain the excitonic spectrum.

Example:
    >>> from mcvqe import MCVQE, ScipyOptimizer, StatevectorExecutor
    >>> run = MCVQE.from_mapping({
    ...     "accelerator": StatevectorExecutor(),
    ...     "optimizer": ScipyOptimizer("COBYLA", options={"maxiter": 200}),
    ...     "nChromophores": 2,
    ...     "data-path": "examples/data/dimer.txt",
    ... })
    >>> result = run.execute()
    >>> result.spectrum  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import math
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..circuit import QuantumCircuit
from ..config import MCVQEConfig
from ..exceptions import ExecutionError, MCVQEError
from ..grad import GradientStrategy, get_gradient_strategy
from ..io.chemistry import read_chemistry_file
from ..logging import get_logger, log_control, verbose_logging
from ..models import AIEMModel, diagonalize_symmetric, state_preparation_angles
from ..variational import EntanglerAnsatz, cis_state_preparation, interference_preparation

logger = get_logger(__name__)


@dataclass
class EnergyTracker:
    """
    Keep-best accumulator for one optimization run.

    Only an evaluation with a strictly lower average energy than every
    earlier one replaces ``best_diagonal``.

    Attributes:
        best_average: Lowest average energy seen (+inf before any commit).
        best_diagonal: Per-state energies of that evaluation.
        n_evaluations: Number of evaluations reported.
        history: Every reported average energy, in order.
    """

    best_average: float = math.inf
    best_diagonal: Optional[np.ndarray] = None
    n_evaluations: int = 0
    history: List[float] = field(default_factory=list)

    def update(self, average: float, diagonal: Sequence[float]) -> bool:
        """Record one evaluation; return True if it became the new best."""
        self.n_evaluations += 1
        self.history.append(float(average))
        if average < self.best_average:
            self.best_average = float(average)
            self.best_diagonal = np.array(diagonal, dtype=float)
            return True
        return False


class MCObjective:
    """
    Average-energy objective over the prepared CIS states.

    Calling it with entangler parameters x evaluates every state circuit
    (preparation + shared entangler), averages the energies, optionally
    averages the per-state gradients, and reports to the tracker.

    Args:
        model: Preprocessed AIEM model.
        entangler: Shared entangler ansatz.
        executor: Quantum executor.
        n_states: Number of CIS states (lowest energies first).
        tracker: Keep-best accumulator owned by the current run.
        gradient_strategy: Optional gradient provider.
        log_level: Verbosity threshold for ``log_control``.
    """

    def __init__(
        self,
        model: AIEMModel,
        entangler: EntanglerAnsatz,
        executor: Any,
        n_states: int,
        tracker: EnergyTracker,
        gradient_strategy: Optional[GradientStrategy] = None,
        log_level: int = 0,
    ) -> None:
        if not 1 <= n_states <= model.n_chromophores + 1:
            raise ValueError(
                f"n_states must be in [1, {model.n_chromophores + 1}], got {n_states}"
            )
        self.model = model
        self.entangler = entangler
        self.executor = executor
        self.n_states = int(n_states)
        self.tracker = tracker
        self.gradient_strategy = gradient_strategy
        self.log_level = int(log_level)
        self.circuit_depth = 0
        self.n_gates = 0

        self.circuits: List[QuantumCircuit] = [
            entangler.compose(cis_state_preparation(model.gate_angles[:, s]))
            for s in range(self.n_states)
        ]

    @property
    def has_gradient(self) -> bool:
        return self.gradient_strategy is not None

    @property
    def n_params(self) -> int:
        return self.entangler.num_parameters

    def __call__(self, x: Sequence[float]) -> Tuple[float, Optional[np.ndarray]]:
        x = np.asarray(x, dtype=float).reshape(-1)
        if x.size != self.n_params:
            raise ValueError(f"Expected {self.n_params} entangler parameters, got {x.size}")

        hamiltonian = self.model.hamiltonian
        diagonal = np.zeros(self.n_states)
        average = 0.0
        gradient = np.zeros(self.n_params) if self.has_gradient else None

        for s, circuit in enumerate(self.circuits):
            if self.log_level >= 3:
                log_control(logger, f"State {s} circuit:\n{circuit.to_text()}", 3, self.log_level)
            try:
                energy = float(self.executor.expectation(circuit, hamiltonian, x))
            except Exception as exc:
                raise ExecutionError(f"Energy evaluation failed: {exc}", "objective", state=s) from exc

            if gradient is not None:
                try:
                    batch = self.gradient_strategy.gradient_circuits(circuit, x)
                    results = self.executor.execute(batch, hamiltonian)
                    gradient += np.asarray(self.gradient_strategy.compute(results)) / self.n_states
                except Exception as exc:
                    raise ExecutionError(f"Gradient evaluation failed: {exc}", "gradient", state=s) from exc

            diagonal[s] = energy
            average += energy / self.n_states
            self.circuit_depth = circuit.depth()
            self.n_gates = circuit.num_gates()
            log_control(logger, f"State {s} energy: {energy:.12f}", 2, self.log_level)

        improved = self.tracker.update(average, diagonal)
        log_control(
            logger,
            f"Iteration {self.tracker.n_evaluations}: average energy {average:.12f}"
            + (" (new best)" if improved else ""),
            2,
            self.log_level,
        )
        return average, gradient


@dataclass
class MCVQEResult:
    """
    Outcome of an MC-VQE run.

    Attributes:
        average_energy: Best average energy over the prepared states.
        optimal_params: Entangler parameters used for the final phase.
        circuit_depth: Depth of the last evaluated state circuit.
        n_gates: Gate count of the last evaluated state circuit.
        entangled_hamiltonian: n_states × n_states matrix; diagonal from the
            best evaluation, off-diagonals from interference (zero if off).
        spectrum: Ascending eigenvalues of ``entangled_hamiltonian`` when
            interference ran, else None.
        eigenvectors: Matching eigenvector columns, or None.
        n_evaluations: Number of objective evaluations.
        timings: Wall-clock seconds per phase.
        converged: Whether the optimizer reported convergence.
    """

    average_energy: float
    optimal_params: np.ndarray
    circuit_depth: int
    n_gates: int
    entangled_hamiltonian: np.ndarray
    spectrum: Optional[np.ndarray]
    eigenvectors: Optional[np.ndarray]
    n_evaluations: int
    timings: Dict[str, float] = field(default_factory=dict)
    converged: bool = True

    @property
    def diagonal(self) -> np.ndarray:
        return np.diag(self.entangled_hamiltonian).copy()

    def to_metadata(self) -> Dict[str, Any]:
        """Result metadata under the run-output key names."""
        metadata: Dict[str, Any] = {
            "opt-average-energy": float(self.average_energy),
            "opt-params": [float(v) for v in self.optimal_params],
            "circuit-depth": int(self.circuit_depth),
            "n-gates": int(self.n_gates),
        }
        if self.spectrum is not None:
            metadata["opt-spectrum"] = [float(v) for v in self.spectrum]
        return metadata


class MCVQE:
    """
    MC-VQE driver.

    Construction validates the configuration, reads the chemistry file,
    and runs the classical preprocessing. ``execute`` optimizes the
    entangler; ``execute_with_parameters`` evaluates a given one.
    """

    def __init__(self, config: MCVQEConfig) -> None:
        self.config = config
        self.executor = config.accelerator
        self.optimizer = config.optimizer
        self.timings: Dict[str, float] = {}

        start = time.perf_counter()
        records = read_chemistry_file(config.data_path, config.n_chromophores)
        self.model = AIEMModel.from_records(records, cyclic=config.cyclic)
        self.entangler = EntanglerAnsatz(config.n_chromophores, cyclic=config.cyclic)
        self.gradient_strategy: Optional[GradientStrategy] = (
            get_gradient_strategy(config.gradient_strategy)
            if config.gradient_strategy is not None
            else None
        )
        self.timings["preprocessing"] = time.perf_counter() - start

        self._log(
            f"MC-VQE preprocessing finished [{self.timings['preprocessing']:.3f} s]: "
            f"{config.n_chromophores} chromophores, {self.n_states} states, "
            f"{self.entangler.num_parameters} entangler parameters",
            1,
        )
        self._log(f"CIS energies: {np.array2string(self.model.cis_energies, precision=10)}", 2)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "MCVQE":
        """Build a driver from the key-value configuration map."""
        return cls(MCVQEConfig.from_mapping(mapping))

    @property
    def n_states(self) -> int:
        return self.config.resolved_n_states

    def _log(self, message: str, level: int) -> None:
        log_control(logger, message, level, self.config.log_level)

    @contextmanager
    def _executor_logging(self) -> Iterator[None]:
        if not self.config.tnqvm_log or not hasattr(self.executor, "verbose"):
            yield
            return
        previous = self.executor.verbose
        self.executor.verbose = True
        try:
            with verbose_logging(get_logger("mcvqe.executor"), logging.DEBUG):
                yield
        finally:
            self.executor.verbose = previous

    def _objective(self, tracker: EnergyTracker) -> MCObjective:
        return MCObjective(
            self.model,
            self.entangler,
            self.executor,
            self.n_states,
            tracker,
            gradient_strategy=self.gradient_strategy,
            log_level=self.config.log_level,
        )

    def execute(self, initial_params: Optional[Sequence[float]] = None) -> MCVQEResult:
        """Optimize the entangler, then run the interference phase if enabled."""
        timings = dict(self.timings)
        tracker = EnergyTracker()
        objective = self._objective(tracker)

        self._log("Starting the MC-VQE entangler optimization", 1)
        start = time.perf_counter()
        with self._executor_logging():
            optimum = self.optimizer.optimize(
                objective, self.entangler.num_parameters, initial_params=initial_params
            )
        timings["optimization"] = time.perf_counter() - start
        self._log(
            f"MC-VQE entangler optimization finished [{timings['optimization']:.3f} s], "
            f"{tracker.n_evaluations} evaluations, best average energy {tracker.best_average:.12f}",
            1,
        )

        if tracker.best_diagonal is None:
            raise MCVQEError("The optimizer finished without evaluating the objective.")

        return self._finish(
            np.asarray(optimum.params, dtype=float),
            tracker,
            objective,
            timings,
            converged=bool(optimum.converged),
        )

    def execute_with_parameters(self, params: Sequence[float]) -> MCVQEResult:
        """Evaluate fixed entangler parameters, then run the interference phase if enabled."""
        x = np.asarray(params, dtype=float).reshape(-1)
        if x.size != self.entangler.num_parameters:
            raise ValueError(
                f"Expected {self.entangler.num_parameters} entangler parameters, got {x.size}"
            )

        timings = dict(self.timings)
        tracker = EnergyTracker()
        objective = self._objective(tracker)

        start = time.perf_counter()
        with self._executor_logging():
            objective(x)
        timings["evaluation"] = time.perf_counter() - start
        self._log(f"MC-VQE evaluation finished [{timings['evaluation']:.3f} s]", 1)

        return self._finish(x, tracker, objective, timings, converged=True)

    def _finish(
        self,
        x: np.ndarray,
        tracker: EnergyTracker,
        objective: MCObjective,
        timings: Dict[str, float],
        converged: bool,
    ) -> MCVQEResult:
        diagonal = tracker.best_diagonal
        spectrum = None
        eigenvectors = None
        matrix = np.diag(diagonal)

        if self.config.interference:
            self._log("Computing Hamiltonian matrix elements in the interference state basis", 1)
            start = time.perf_counter()
            with self._executor_logging():
                matrix = self.interference_matrix(x, diagonal)
            spectrum, eigenvectors = diagonalize_symmetric(matrix)
            timings["interference"] = time.perf_counter() - start
            self._log(
                f"MC-VQE interference phase finished [{timings['interference']:.3f} s]; "
                f"spectrum {np.array2string(spectrum, precision=10)}",
                1,
            )

        return MCVQEResult(
            average_energy=float(tracker.best_average),
            optimal_params=x,
            circuit_depth=objective.circuit_depth,
            n_gates=objective.n_gates,
            entangled_hamiltonian=matrix,
            spectrum=spectrum,
            eigenvectors=eigenvectors,
            n_evaluations=tracker.n_evaluations,
            timings=timings,
            converged=converged,
        )

    def _interference_circuits(self, a: int, b: int) -> Tuple[QuantumCircuit, QuantumCircuit, float]:
        """Plus/minus circuits for states (a, b) and the divisor of their energy difference."""
        if self.config.interference_mode == "coefficients":
            n = self.model.n_chromophores
            v_a = self.model.cis_eigenvectors[:, a]
            v_b = self.model.cis_eigenvectors[:, b]
            combined = np.stack([v_a + v_b, v_a - v_b], axis=1) / math.sqrt(2.0)
            angles = state_preparation_angles(combined, n)
            plus = cis_state_preparation(angles[:, 0])
            minus = cis_state_preparation(angles[:, 1])
            divisor = 2.0
        else:
            angles = self.model.gate_angles
            plus = interference_preparation(angles[:, a], angles[:, b], +1)
            minus = interference_preparation(angles[:, a], angles[:, b], -1)
            divisor = math.sqrt(2.0)
        return self.entangler.compose(plus), self.entangler.compose(minus), divisor

    def interference_matrix(self, params: Sequence[float], diagonal: Sequence[float]) -> np.ndarray:
        """
        Fill the off-diagonal couplings between the entangled states.

        Parameters
        ----------
        params:
            Entangler parameters.
        diagonal:
            Per-state energies for the diagonal.

        Returns
        -------
        np.ndarray
            Symmetric n_states × n_states matrix.
        """
        x = np.asarray(params, dtype=float).reshape(-1)
        diagonal = np.asarray(diagonal, dtype=float).reshape(-1)
        if diagonal.size != self.n_states:
            raise ValueError(f"Expected {self.n_states} diagonal entries, got {diagonal.size}")

        hamiltonian = self.model.hamiltonian
        matrix = np.diag(diagonal)
        for a in range(self.n_states - 1):
            for b in range(a + 1, self.n_states):
                plus, minus, divisor = self._interference_circuits(a, b)
                try:
                    e_plus = float(self.executor.expectation(plus, hamiltonian, x))
                    e_minus = float(self.executor.expectation(minus, hamiltonian, x))
                except Exception as exc:
                    raise ExecutionError(
                        f"Interference evaluation failed: {exc}", "interference", pair=(a, b)
                    ) from exc
                element = (e_plus - e_minus) / divisor
                matrix[a, b] = element
                matrix[b, a] = element
                self._log(f"Interference element ({a}, {b}): {element:.12f}", 2)
        return matrix


__all__ = ["EnergyTracker", "MCObjective", "MCVQE", "MCVQEResult"]
