"""Training loop, learning algorithms and pipeline assembly."""

from .algorithms import (
    AlgorithmState,
    LearningAlgorithm,
    batch_gradient_descent,
    threshold_batch_gradient_descent,
)
from .trainer import Trainer

__all__ = [
    "AlgorithmState",
    "LearningAlgorithm",
    "Trainer",
    "batch_gradient_descent",
    "threshold_batch_gradient_descent",
]
