"""Neurons and the layers that aggregate them."""

from __future__ import annotations

from typing import Iterator, List, Sequence

import numpy as np

from .errors import DimensionMismatch, TopologyError
from .matrix import Array, Matrix
from .mechanics import DEFAULT_MECHANICS, MechIndex, Mechanics
from .operations import col_vector, row_vector, to_array


class Neuron:
    """A weight row-vector, a bias and the mechanics that shape its output."""

    def __init__(
        self,
        mechanics: Mechanics = DEFAULT_MECHANICS,
        weights: Matrix | Sequence[float] | None = None,
        bias: float = 0.0,
    ) -> None:
        self.mechanics = mechanics
        self.weights = row_vector([] if weights is None else to_vector(weights))
        self.bias = float(bias)

    @property
    def activation_function(self):
        return self.mechanics.activation

    @property
    def loss_function(self):
        return self.mechanics.loss

    def z(self, prev_activations: Matrix) -> float:
        return self.weights.dot(prev_activations) + self.bias

    def activation(self, prev_activations: Matrix) -> float:
        """Output of this neuron alone; only defined for elementwise activations."""
        act = self.mechanics.activation
        if act.layerwise:
            raise ValueError(
                f"{act.name} reads the whole layer; use Layer.activations instead"
            )
        return act.apply([self.z(prev_activations)], 0)

    def __repr__(self) -> str:
        return f"Neuron(inputs={self.weights.cols}, bias={self.bias!r}, {self.mechanics.activation!r})"


class InputNeuron(Neuron):
    """Neuron of the input layer: no weights, the bias is the raw input."""

    def __init__(self, value: float = 0.0) -> None:
        super().__init__(DEFAULT_MECHANICS, None, value)

    def activation(self, prev_activations: Matrix | None = None) -> float:
        return self.bias


def to_vector(values: Matrix | Sequence[float]) -> Array:
    if isinstance(values, Matrix):
        return to_array(values)
    return np.asarray(values, dtype=np.float64).reshape(-1)


class Layer:
    """An ordered sequence of neurons sharing one previous-layer size.

    ``mechanics`` is the layer default; individual neurons may override it
    through :meth:`set_mechanics`.  Because mechanics can differ per neuron,
    activations are dispatched row by row rather than by one matrix-wide
    function call.
    """

    def __init__(
        self,
        size: int,
        prev_size: int,
        mechanics: Mechanics = DEFAULT_MECHANICS,
    ) -> None:
        _check_sizes(size, prev_size)
        self._init(
            [Neuron(mechanics, np.zeros(prev_size)) for _ in range(size)],
            prev_size,
            mechanics,
        )

    @classmethod
    def from_neurons(
        cls,
        neurons: Sequence[Neuron],
        prev_size: int,
        mechanics: Mechanics = DEFAULT_MECHANICS,
    ) -> "Layer":
        _check_sizes(len(neurons), prev_size)
        for idx, neuron in enumerate(neurons):
            if neuron.weights.cols == 0 and prev_size:
                neuron.weights = row_vector(np.zeros(prev_size))
            elif neuron.weights.cols != prev_size:
                raise TopologyError(
                    f"Neuron {idx} has {neuron.weights.cols} weights but the "
                    f"previous layer has {prev_size} neurons"
                )
        layer = cls.__new__(cls)
        layer._init(list(neurons), prev_size, mechanics)
        return layer

    @classmethod
    def from_mechanics(cls, mechanics: Sequence[Mechanics], prev_size: int) -> "Layer":
        """One neuron per entry of ``mechanics``; layer default stays identity."""

        neurons = [Neuron(mech, np.zeros(prev_size)) for mech in mechanics]
        return cls.from_neurons(neurons, prev_size, DEFAULT_MECHANICS)

    def _init(self, neurons: List[Neuron], prev_size: int, mechanics: Mechanics) -> None:
        self._neurons = neurons
        self._prev_size = int(prev_size)
        self._mechanics = mechanics
        self._is_input = False

    # ------------------------------------------------------------------
    # Structure

    def __len__(self) -> int:
        return len(self._neurons)

    def __iter__(self) -> Iterator[Neuron]:
        return iter(self._neurons)

    def __getitem__(self, i: int) -> Neuron:
        return self._neurons[i]

    def size(self) -> int:
        return len(self._neurons)

    @property
    def prev_size(self) -> int:
        return self._prev_size

    @property
    def neurons(self) -> List[Neuron]:
        return list(self._neurons)

    @property
    def is_input(self) -> bool:
        return self._is_input

    def designate_input(self) -> "Layer":
        """Turn this layer into the network's input layer.

        The previous size drops to zero, every weight vector becomes empty
        and the biases are reset; :meth:`load_input` fills them with ``X``.
        """

        self._is_input = True
        self._prev_size = 0
        self._neurons = [InputNeuron(n.bias) for n in self._neurons]
        return self

    # ------------------------------------------------------------------
    # Mechanics

    @property
    def standard_mechanics(self) -> Mechanics:
        return self._mechanics

    @property
    def actual_mechanics(self) -> List[Mechanics]:
        return [neuron.mechanics for neuron in self._neurons]

    def set_mechanics(self, *mechs: MechIndex) -> "Layer":
        for mech in mechs:
            self._neurons[mech.i].mechanics = mech.mechanics
        return self

    def set_dense_mechanics(self, mechanics: Mechanics) -> "Layer":
        self._mechanics = mechanics
        for neuron in self._neurons:
            neuron.mechanics = mechanics
        return self

    # ------------------------------------------------------------------
    # Parameters

    @property
    def weights(self) -> Matrix:
        """Weight matrix ``W`` of shape ``(size, prev_size)``."""

        W = np.zeros((len(self._neurons), self._prev_size), dtype=np.float64)
        for i, neuron in enumerate(self._neurons):
            W[i, :] = to_array(neuron.weights)
        return Matrix(W)

    @property
    def biases(self) -> Matrix:
        """Bias column vector of length ``size``."""

        return col_vector(neuron.bias for neuron in self._neurons)

    def set_weights(self, W: Matrix) -> None:
        if W.shape != (len(self._neurons), self._prev_size):
            raise DimensionMismatch(
                f"Layer expects a {len(self._neurons)}x{self._prev_size} weight matrix, "
                f"got {W.rows}x{W.cols}"
            )
        rows = [W.row(i) for i in range(W.rows)]
        for neuron, row in zip(self._neurons, rows):
            neuron.weights = row

    def set_biases(self, biases: Matrix | Sequence[float]) -> None:
        values = to_vector(biases)
        if values.size != len(self._neurons):
            raise DimensionMismatch(
                f"Layer expects {len(self._neurons)} biases, got {values.size}"
            )
        for neuron, value in zip(self._neurons, values):
            neuron.bias = float(value)

    def zero_weights(self) -> None:
        for neuron in self._neurons:
            neuron.weights = row_vector(np.zeros(self._prev_size))

    def load_input(self, X: Matrix | Sequence[float]) -> None:
        """Pin the weights to zero and store ``X`` in the bias slots."""

        self.zero_weights()
        self.set_biases(X)

    # ------------------------------------------------------------------
    # Evaluation

    def _check_prev(self, prev_activations: Matrix) -> None:
        if prev_activations.shape != (self._prev_size, 1):
            raise DimensionMismatch(
                f"Layer expects {self._prev_size} previous activations as a column, "
                f"got {prev_activations.rows}x{prev_activations.cols}"
            )

    def preactivation(self, prev_activations: Matrix) -> Matrix:
        """``z = W a + b`` as a column vector."""

        if self._is_input:
            return self.biases
        self._check_prev(prev_activations)
        return self.weights.mult(prev_activations).plus(self.biases)

    def activations_from_z(self, z: Matrix) -> Matrix:
        if self._is_input:
            return z.copy()
        zs = to_array(z)
        return col_vector(
            neuron.mechanics.activation.apply(zs, i) for i, neuron in enumerate(self._neurons)
        )

    def derivatives_from_z(self, z: Matrix) -> Matrix:
        if self._is_input:
            return Matrix.full(len(self._neurons), 1, 1.0)
        zs = to_array(z)
        return col_vector(
            neuron.mechanics.activation.derivative(zs, i)
            for i, neuron in enumerate(self._neurons)
        )

    def activations(self, prev_activations: Matrix | None = None) -> Matrix:
        """Column vector ``a' = activation(W a + b)``; the input layer echoes ``X``."""

        if self._is_input:
            return self.biases
        return self.activations_from_z(self.preactivation(prev_activations))

    def activation_derivatives(self, prev_activations: Matrix | None = None) -> Matrix:
        """Each neuron's activation derivative evaluated at its own ``z``."""

        if self._is_input:
            return Matrix.full(len(self._neurons), 1, 1.0)
        return self.derivatives_from_z(self.preactivation(prev_activations))

    def __repr__(self) -> str:
        kind = "InputLayer" if self._is_input else "Layer"
        return f"{kind}(size={len(self._neurons)}, prev_size={self._prev_size})"


def _check_sizes(size: int, prev_size: int) -> None:
    if int(size) <= 0:
        raise TopologyError(f"Layer size must be positive, got {size}")
    if int(prev_size) < 0:
        raise TopologyError(f"Previous layer size must be non-negative, got {prev_size}")


__all__ = ["Neuron", "InputNeuron", "Layer"]
