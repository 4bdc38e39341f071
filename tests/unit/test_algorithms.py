import numpy as np
import pytest

from neuralcore.core.errors import TrainingStateError
from neuralcore.core.matrix import Matrix, Tensor
from neuralcore.core.params import NetworkParams
from neuralcore.core.types import TrainingExample
from neuralcore.training.algorithms import (
    AlgorithmState,
    LearningAlgorithm,
    batch_gradient_descent,
    gradient_descent_update,
    threshold_batch_gradient_descent,
)


def _params(value: float) -> NetworkParams:
    return NetworkParams(
        Tensor([Matrix.zeros(1, 0), Matrix.full(1, 1, value)]),
        Tensor([Matrix.zeros(1, 1), Matrix.full(1, 1, value)]),
    )


EXAMPLES = [TrainingExample([float(i)], [float(i % 2)]) for i in range(5)]


def test_using_algorithm_before_init_fails():
    algo = batch_gradient_descent(0.1, 3)
    assert algo.state is AlgorithmState.UNINITIALIZED
    with pytest.raises(TrainingStateError):
        algo.select_batch()
    with pytest.raises(TrainingStateError):
        algo.learn_step(_params(1.0), _params(0.0))
    assert algo.does_converge() is False


def test_init_requires_examples():
    with pytest.raises(TrainingStateError):
        batch_gradient_descent(0.1, 3).init([])


def test_epoch_policy_converges_at_epoch_count():
    algo = batch_gradient_descent(0.1, 3).init(EXAMPLES)
    current = _params(1.0)
    observed = [algo.does_converge()]
    for _ in range(4):
        algo.select_batch()
        current = algo.learn_step(current, _params(0.5))
        observed.append(algo.does_converge())
    assert observed == [False, False, False, True, True]
    assert algo.state is AlgorithmState.CONVERGED


def test_threshold_policy():
    algo = threshold_batch_gradient_descent(0.1, threshold=0.5).init(EXAMPLES)
    assert algo.does_converge() is False
    algo.learn_step(_params(1.0), _params(1.0))
    assert algo.does_converge() is False
    assert algo.state is AlgorithmState.CHECK_CONVERGENCE
    algo.learn_step(_params(1.0), _params(0.25))
    assert algo.does_converge() is True


def test_threshold_policy_epoch_cap():
    algo = threshold_batch_gradient_descent(0.1, threshold=0.0, max_epochs=2).init(EXAMPLES)
    algo.learn_step(_params(1.0), _params(1.0))
    assert not algo.does_converge()
    algo.learn_step(_params(1.0), _params(1.0))
    assert algo.does_converge()


def test_learn_step_applies_gradient_descent():
    algo = batch_gradient_descent(0.5, 1).init(EXAMPLES)
    updated = algo.learn_step(_params(1.0), _params(0.5))
    assert updated.TW[1].get(0) == pytest.approx(0.75)
    assert updated.Tb[1].get(0) == pytest.approx(0.75)
    assert algo.state is AlgorithmState.APPLY_UPDATE


def test_full_batch_keeps_order_without_rng():
    algo = batch_gradient_descent(0.1, 1).init(EXAMPLES)
    assert algo.select_batch() == list(EXAMPLES)
    assert algo.state is AlgorithmState.COMPUTE_GRADIENT


def test_rng_changes_order_only():
    algo = batch_gradient_descent(0.1, 1, rng=np.random.default_rng(0)).init(EXAMPLES)
    batch = algo.select_batch()
    assert sorted(ex.X.get(0) for ex in batch) == [0.0, 1.0, 2.0, 3.0, 4.0]
    assert algo.examples == tuple(EXAMPLES)


def test_custom_strategy():
    halving = LearningAlgorithm(
        name="halving",
        learning_rate=1.0,
        compute_update=lambda current, gradient, lr: current.scale(0.5),
        is_converged=lambda algorithm: algorithm.steps >= 2,
    ).init(EXAMPLES)
    current = _params(8.0)
    while True:
        halving.select_batch()
        current = halving.learn_step(current, current.skeleton())
        if halving.does_converge():
            break
    assert current.TW[1].get(0) == 2.0
    assert gradient_descent_update(_params(1.0), _params(1.0), 1.0).abs_sum() == 0.0


def test_invalid_preset_arguments():
    with pytest.raises(ValueError):
        batch_gradient_descent(0.1, -1)
    with pytest.raises(ValueError):
        threshold_batch_gradient_descent(0.1, -0.5)
