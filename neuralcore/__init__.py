"""neuralcore public API."""

from .core import activations, losses  # noqa: F401
from .core.errors import (
    DimensionMismatch,
    NeuralCoreError,
    ParseError,
    TopologyError,
    TrainingStateError,
)
from .core.layer import InputNeuron, Layer, Neuron
from .core.matrix import Matrix, Tensor
from .core.mechanics import DEFAULT_MECHANICS, MechIndex, Mechanics, MechNetworkIndex
from .core.network import NeuralNetwork
from .core.params import NetworkParams
from .core.types import Recording, RunResult, TrainingExample
from .training.algorithms import (
    LearningAlgorithm,
    batch_gradient_descent,
    threshold_batch_gradient_descent,
)
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer

__all__ = [
    "DEFAULT_MECHANICS",
    "DimensionMismatch",
    "InputNeuron",
    "Layer",
    "LearningAlgorithm",
    "Matrix",
    "MechIndex",
    "MechNetworkIndex",
    "Mechanics",
    "NetworkParams",
    "NeuralCoreError",
    "NeuralNetwork",
    "Neuron",
    "ParseError",
    "Recording",
    "RunResult",
    "Tensor",
    "TopologyError",
    "Trainer",
    "TrainingExample",
    "TrainingStateError",
    "activations",
    "batch_gradient_descent",
    "load_preset",
    "losses",
    "presets",
    "run_pipeline",
    "threshold_batch_gradient_descent",
]
