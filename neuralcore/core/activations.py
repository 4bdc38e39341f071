"""Activation functions for neuralcore.

Every activation is evaluated against the full pre-activation vector of its
layer plus the index of the neuron being evaluated.  Elementwise functions
simply ignore the sibling entries; normalising functions such as softmax
read all of them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Sequence

import numpy as np

from .matrix import Array, Matrix
from .operations import DERIVATIVE_STEP, derivative as forward_difference

VectorFn = Callable[[Array, int], float]
ScalarFn = Callable[[float], float]


def _as_vector(zs: "Array | Matrix | Sequence[float]") -> Array:
    if isinstance(zs, Matrix):
        return zs.to_array().reshape(-1)
    return np.asarray(zs, dtype=np.float64).reshape(-1)


@dataclass(frozen=True)
class Activation:
    """A named activation with its derivative at the pre-activation.

    ``analytic`` is ``False`` when the derivative is a forward-difference
    approximation; tests pick looser tolerances for those instances.
    ``layerwise`` is ``True`` for activations that read the whole layer.
    """

    name: str
    fn: VectorFn
    d_dz: VectorFn
    analytic: bool
    layerwise: bool = False

    @classmethod
    def elementwise(
        cls,
        name: str,
        func: ScalarFn,
        d_dz: ScalarFn | None = None,
        *,
        step: float = DERIVATIVE_STEP,
    ) -> "Activation":
        """Build an activation whose output only depends on its own ``z``."""

        def apply(zs: Array, i: int) -> float:
            return func(float(zs[i]))

        if d_dz is not None:
            analytic_d = d_dz

            def derivative(zs: Array, i: int) -> float:
                return analytic_d(float(zs[i]))

            return cls(name=name, fn=apply, d_dz=derivative, analytic=True)

        def approx(zs: Array, i: int) -> float:
            return forward_difference(func, float(zs[i]), step)

        return cls(name=name, fn=apply, d_dz=approx, analytic=False)

    @classmethod
    def normalizing(
        cls,
        name: str,
        func: VectorFn,
        d_dz: VectorFn | None = None,
        *,
        step: float = DERIVATIVE_STEP,
    ) -> "Activation":
        """Build an activation whose output depends on the whole layer.

        Without ``d_dz`` the partial derivative with respect to ``z_i`` is
        approximated by nudging only entry ``i`` of the vector.
        """

        if d_dz is not None:
            return cls(name=name, fn=func, d_dz=d_dz, analytic=True, layerwise=True)

        def approx(zs: Array, i: int) -> float:
            def along_i(z_i: float) -> float:
                moved = np.array(zs, dtype=np.float64, copy=True)
                moved[i] = z_i
                return func(moved, i)

            return forward_difference(along_i, float(zs[i]), step)

        return cls(name=name, fn=func, d_dz=approx, analytic=False, layerwise=True)

    def apply(self, zs: "Array | Matrix | Sequence[float]", i: int) -> float:
        return float(self.fn(_as_vector(zs), i))

    def derivative(self, zs: "Array | Matrix | Sequence[float]", i: int) -> float:
        return float(self.d_dz(_as_vector(zs), i))

    def apply_all(self, zs: "Array | Matrix | Sequence[float]") -> Array:
        vec = _as_vector(zs)
        return np.array([self.fn(vec, i) for i in range(vec.size)], dtype=np.float64)

    def derivative_all(self, zs: "Array | Matrix | Sequence[float]") -> Array:
        vec = _as_vector(zs)
        return np.array([self.d_dz(vec, i) for i in range(vec.size)], dtype=np.float64)

    def __repr__(self) -> str:
        mode = "analytic" if self.analytic else "approximate"
        return f"Activation({self.name!r}, {mode})"


# ----------------------------------------------------------------------
# Standard library


def sigmoid(z: float) -> float:
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    exp = math.exp(z)
    return exp / (1.0 + exp)


def sigmoid_deriv(z: float) -> float:
    s = sigmoid(z)
    return s * (1.0 - s)


def relu(z: float) -> float:
    return max(0.0, z)


def tanh(z: float) -> float:
    return math.tanh(z)


def softmax(zs: Array, i: int) -> float:
    shifted = np.exp(zs - np.max(zs))
    return float(shifted[i] / shifted.sum())


def softmax_deriv(zs: Array, i: int) -> float:
    s = softmax(zs, i)
    return s * (1.0 - s)


IDENTITY = Activation.elementwise("identity", lambda z: z, lambda z: 1.0)
LINEAR = IDENTITY
SIGMOID = Activation.elementwise("sigmoid", sigmoid, sigmoid_deriv)
RELU = Activation.elementwise("relu", relu)
TANH = Activation.elementwise("tanh", tanh)
SOFTMAX = Activation.normalizing("softmax", softmax, softmax_deriv)
SOFTMAX_APPROX = Activation.normalizing("softmax_approx", softmax)


class ActivationRegistry:
    """Name lookup for activations referenced from configs."""

    def __init__(self) -> None:
        self._registry: Dict[str, Activation] = {}

    def register(self, activation: Activation, *aliases: str) -> None:
        for name in (activation.name, *aliases):
            self._registry[name] = activation

    def get(self, name: str) -> Activation:
        if name not in self._registry:
            available = ", ".join(sorted(self._registry))
            raise KeyError(f"Unknown activation {name!r}. Available activations: {available}")
        return self._registry[name]

    def names(self) -> Iterable[str]:
        return sorted(self._registry)


REGISTRY = ActivationRegistry()
REGISTRY.register(IDENTITY, "linear")
REGISTRY.register(SIGMOID)
REGISTRY.register(RELU)
REGISTRY.register(TANH)
REGISTRY.register(SOFTMAX)
REGISTRY.register(SOFTMAX_APPROX)

__all__ = [
    "Activation",
    "ActivationRegistry",
    "REGISTRY",
    "IDENTITY",
    "LINEAR",
    "SIGMOID",
    "RELU",
    "TANH",
    "SOFTMAX",
    "SOFTMAX_APPROX",
    "sigmoid",
    "relu",
    "tanh",
    "softmax",
]
