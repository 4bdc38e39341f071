"""Learning algorithms: batch selection, update rule and convergence test.

A :class:`LearningAlgorithm` is a strategy object holding explicit closures
rather than a subclass per policy, so new optimizers plug into the same
training loop by supplying different functions.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from ..core.errors import TrainingStateError
from ..core.params import NetworkParams
from ..core.types import TrainingExample

BatchSelector = Callable[[Sequence[TrainingExample], Optional[np.random.Generator]], List[TrainingExample]]
UpdateRule = Callable[[NetworkParams, NetworkParams, float], NetworkParams]
ConvergenceTest = Callable[["LearningAlgorithm"], bool]


class AlgorithmState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    COMPUTE_GRADIENT = "compute_gradient"
    APPLY_UPDATE = "apply_update"
    CHECK_CONVERGENCE = "check_convergence"
    CONVERGED = "converged"


def full_batch(
    examples: Sequence[TrainingExample], rng: Optional[np.random.Generator]
) -> List[TrainingExample]:
    """Every example, every step; ``rng`` only changes the order."""

    batch = list(examples)
    if rng is not None:
        order = rng.permutation(len(batch))
        batch = [batch[i] for i in order]
    return batch


def gradient_descent_update(
    current: NetworkParams, gradient: NetworkParams, learning_rate: float
) -> NetworkParams:
    return current.minus(gradient.scale(learning_rate))


@dataclass
class LearningAlgorithm:
    """Holds the training set and the policy that turns gradients into updates."""

    name: str
    learning_rate: float
    compute_update: UpdateRule
    is_converged: ConvergenceTest
    select: BatchSelector = full_batch
    rng: Optional[np.random.Generator] = None
    examples: Tuple[TrainingExample, ...] = field(init=False, default=())
    state: AlgorithmState = field(init=False, default=AlgorithmState.UNINITIALIZED)
    steps: int = field(init=False, default=0)
    last_gradient: Optional[NetworkParams] = field(init=False, default=None, repr=False)

    def init(self, examples: Sequence[TrainingExample]) -> "LearningAlgorithm":
        examples = tuple(examples)
        if not examples:
            raise TrainingStateError("A learning algorithm needs at least one training example")
        self.examples = examples
        self.steps = 0
        self.last_gradient = None
        self.state = AlgorithmState.READY
        return self

    def _require_initialized(self, op: str) -> None:
        if self.state is AlgorithmState.UNINITIALIZED:
            raise TrainingStateError(f"{op} called before init()")

    def select_batch(self) -> List[TrainingExample]:
        self._require_initialized("select_batch")
        self.state = AlgorithmState.COMPUTE_GRADIENT
        return self.select(self.examples, self.rng)

    def learn_step(self, current: NetworkParams, gradient: NetworkParams) -> NetworkParams:
        self._require_initialized("learn_step")
        self.state = AlgorithmState.APPLY_UPDATE
        self.last_gradient = gradient
        self.steps += 1
        return self.compute_update(current, gradient, self.learning_rate)

    def does_converge(self) -> bool:
        if self.state is AlgorithmState.UNINITIALIZED:
            return False
        converged = bool(self.is_converged(self))
        self.state = AlgorithmState.CONVERGED if converged else AlgorithmState.CHECK_CONVERGENCE
        return converged

    @property
    def epoch(self) -> int:
        """For full-batch policies one step is one epoch."""

        return self.steps


# ----------------------------------------------------------------------
# Presets


def batch_gradient_descent(
    learning_rate: float,
    epochs: int,
    *,
    rng: Optional[np.random.Generator] = None,
) -> LearningAlgorithm:
    """Full-batch gradient descent that stops after ``epochs`` steps."""

    if epochs < 0:
        raise ValueError(f"epochs must be non-negative, got {epochs}")

    def converged(algorithm: LearningAlgorithm) -> bool:
        return algorithm.steps >= epochs

    return LearningAlgorithm(
        name="batch_gd",
        learning_rate=float(learning_rate),
        compute_update=gradient_descent_update,
        is_converged=converged,
        rng=rng,
    )


def threshold_batch_gradient_descent(
    learning_rate: float,
    threshold: float,
    *,
    max_epochs: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> LearningAlgorithm:
    """Full-batch gradient descent that stops once the last gradient is small.

    Converged when the sum of absolute gradient entries is at or below
    ``threshold``; never converged before the first gradient exists.
    ``max_epochs`` optionally caps the run.
    """

    if threshold < 0:
        raise ValueError(f"threshold must be non-negative, got {threshold}")

    def converged(algorithm: LearningAlgorithm) -> bool:
        if max_epochs is not None and algorithm.steps >= max_epochs:
            return True
        if algorithm.last_gradient is None:
            return False
        return algorithm.last_gradient.abs_sum() <= threshold

    return LearningAlgorithm(
        name="threshold_batch_gd",
        learning_rate=float(learning_rate),
        compute_update=gradient_descent_update,
        is_converged=converged,
        rng=rng,
    )


__all__ = [
    "AlgorithmState",
    "LearningAlgorithm",
    "batch_gradient_descent",
    "threshold_batch_gradient_descent",
    "full_batch",
    "gradient_descent_update",
]
