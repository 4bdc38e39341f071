"""Trainable state of a network as a pair of per-layer tensors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Tuple

from .errors import DimensionMismatch
from .matrix import Matrix, Tensor


@dataclass(frozen=True)
class NetworkParams:
    """Weights tensor ``TW`` and biases tensor ``Tb``, one slot per layer.

    The same shape doubles as a gradient or an update delta, so every
    operation is defined entrywise per ``(layer, row, col)`` and returns a
    new instance.
    """

    TW: Tensor
    Tb: Tensor

    def __post_init__(self) -> None:
        if len(self.TW) != len(self.Tb):
            raise DimensionMismatch(
                f"Weights and biases must have the same slot count, "
                f"got {len(self.TW)} and {len(self.Tb)}"
            )

    @property
    def num_layers(self) -> int:
        return len(self.TW)

    def layer(self, l: int) -> Tuple[Matrix, Matrix]:
        return self.TW[l], self.Tb[l]

    def with_layer(self, l: int, W: Matrix, b: Matrix) -> "NetworkParams":
        if W.shape != self.TW[l].shape or b.shape != self.Tb[l].shape:
            raise DimensionMismatch(
                f"Layer {l} expects W {self.TW[l].shape} and b {self.Tb[l].shape}, "
                f"got {W.shape} and {b.shape}"
            )
        return NetworkParams(self.TW.with_slot(l, W), self.Tb.with_slot(l, b))

    def shapes(self) -> List[Tuple[Tuple[int, int], Tuple[int, int]]]:
        return list(zip(self.TW.shapes(), self.Tb.shapes()))

    # ------------------------------------------------------------------
    # Entrywise algebra

    def plus(self, other: "NetworkParams") -> "NetworkParams":
        return NetworkParams(self.TW.plus(other.TW), self.Tb.plus(other.Tb))

    def minus(self, other: "NetworkParams") -> "NetworkParams":
        return NetworkParams(self.TW.minus(other.TW), self.Tb.minus(other.Tb))

    def scale(self, scalar: float) -> "NetworkParams":
        return NetworkParams(self.TW.scale(scalar), self.Tb.scale(scalar))

    def divide(self, value: float) -> "NetworkParams":
        return NetworkParams(self.TW.divide(value), self.Tb.divide(value))

    def fill(self, value: float) -> "NetworkParams":
        return NetworkParams(self.TW.fill(value), self.Tb.fill(value))

    def skeleton(self) -> "NetworkParams":
        """Zero-filled params with the same shape."""

        return self.fill(0.0)

    def apply_entrywise(self, operation: Callable[[float], float]) -> "NetworkParams":
        return NetworkParams(
            self.TW.apply_entrywise(operation), self.Tb.apply_entrywise(operation)
        )

    def fold(self, func: Callable[[float, float], float], initial: float = 0.0) -> float:
        """Visit every weight entry, then every bias entry."""

        return self.Tb.fold(func, self.TW.fold(func, initial))

    def abs_sum(self) -> float:
        return self.fold(lambda acc, value: acc + abs(value), 0.0)

    __add__ = plus
    __sub__ = minus

    def __mul__(self, scalar: float) -> "NetworkParams":
        return self.scale(scalar)

    __rmul__ = __mul__

    def __truediv__(self, value: float) -> "NetworkParams":
        return self.divide(value)

    def __str__(self) -> str:
        return f"NETWORK PARAMS\nTensor W: {self.TW}\nTensor b: {self.Tb}"


__all__ = ["NetworkParams"]
