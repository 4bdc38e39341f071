"""Core typing contracts for neuralcore."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from .matrix import Array, Matrix, Tensor, vector_to_string


def _as_column(values: "Matrix | Array | Sequence[float]") -> Matrix:
    if isinstance(values, Matrix):
        return Matrix(values.to_array().reshape(-1, 1))
    return Matrix(np.asarray(values, dtype=np.float64).reshape(-1, 1))


@dataclass(frozen=True)
class TrainingExample:
    """An input vector ``X`` paired with its target vector ``Y``.

    Both are stored as private column-vector copies so the caller cannot
    mutate an example after handing it to a learning algorithm.
    """

    X: Matrix
    Y: Matrix

    def __post_init__(self) -> None:
        object.__setattr__(self, "X", _as_column(self.X))
        object.__setattr__(self, "Y", _as_column(self.Y))

    @property
    def input_size(self) -> int:
        return self.X.rows

    @property
    def target_size(self) -> int:
        return self.Y.rows

    def __str__(self) -> str:
        return (
            "TrainingExample {\n"
            f"X: {vector_to_string(self.X)}\n"
            f"Y: {vector_to_string(self.Y)}\n"
            "}"
        )


@dataclass(frozen=True)
class Recording:
    """Everything captured by a recording forward pass.

    ``activations`` has one slot per layer (slot 0 is the input ``X``);
    ``preactivations[l]`` is ``z_l`` for ``l >= 1`` and ``X`` for slot 0.
    """

    activations: Tensor
    preactivations: Tensor

    @property
    def output(self) -> Matrix:
        return self.activations.get_last()


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :meth:`neuralcore.training.trainer.Trainer.run`."""

    steps: int
    final_loss: float
    metrics_path: str = ""
    manifest_path: str = ""
    summary_path: str = ""


@dataclass(frozen=True)
class ModelDescription:
    """Description of the feed-forward network architecture."""

    layer_dims: List[int] = field(default_factory=list)


__all__ = [
    "Array",
    "TrainingExample",
    "Recording",
    "RunResult",
    "ModelDescription",
]
