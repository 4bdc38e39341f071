"""Feed-forward network: topology, forward passes and backpropagation."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence, Tuple

import numpy as np

from .errors import DimensionMismatch, TopologyError
from .layer import Layer
from .matrix import Matrix, Tensor
from .mechanics import DEFAULT_MECHANICS, MechIndex, MechNetworkIndex, Mechanics
from .operations import plot_matrix, to_array
from .params import NetworkParams
from .types import ModelDescription, Recording, TrainingExample


class NeuralNetwork:
    """Topology-ordered sequence of layers.

    Layer 0 is always the input layer: its weights are pinned to zero, its
    biases hold the current input and it never receives gradient updates.
    """

    def __init__(
        self,
        layers: Sequence[Layer],
        *,
        rng: np.random.Generator | None = None,
        randomize: bool = True,
    ) -> None:
        layers = list(layers)
        if len(layers) < 2:
            raise TopologyError("A network needs an input layer and at least one more layer")
        for idx in range(1, len(layers)):
            expected = layers[idx - 1].size()
            if layers[idx].prev_size != expected:
                raise TopologyError(
                    f"Layer {idx} expects {layers[idx].prev_size} inputs but "
                    f"layer {idx - 1} has {expected} neurons"
                )
        layers[0].designate_input()
        self._layers = layers
        if randomize:
            self.reset(rng)

    @classmethod
    def from_topology(
        cls,
        sizes: Sequence[int],
        mechanics: Mechanics | Sequence[Mechanics] | None = None,
        *,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
    ) -> "NeuralNetwork":
        """Allocate layers for ``sizes`` and randomize every non-input layer.

        ``mechanics`` is either one default for every layer or one entry per
        layer (the input layer's entry is ignored at evaluation time).
        """

        sizes = [int(s) for s in sizes]
        if len(sizes) < 2:
            raise TopologyError(f"Topology needs at least two layers, got {sizes}")
        if any(s <= 0 for s in sizes):
            raise TopologyError(f"Layer sizes must be positive, got {sizes}")
        if mechanics is None or isinstance(mechanics, Mechanics):
            per_layer = [mechanics or DEFAULT_MECHANICS] * len(sizes)
        else:
            per_layer = list(mechanics)
            if len(per_layer) != len(sizes):
                raise TopologyError(
                    f"Got {len(per_layer)} mechanics for a {len(sizes)}-layer topology"
                )
        layers = []
        prev_size = 0
        for size, mech in zip(sizes, per_layer):
            layers.append(Layer(size, prev_size, mech))
            prev_size = size
        if rng is None:
            rng = np.random.default_rng(seed)
        return cls(layers, rng=rng)

    # ------------------------------------------------------------------
    # Structure

    def __len__(self) -> int:
        return len(self._layers)

    @property
    def layers(self) -> List[Layer]:
        return list(self._layers)

    @property
    def topology(self) -> List[int]:
        return [layer.size() for layer in self._layers]

    def get_layer(self, i: int) -> Layer:
        return self._layers[i]

    @property
    def input_layer(self) -> Layer:
        return self._layers[0]

    @property
    def output_layer(self) -> Layer:
        return self._layers[-1]

    def describe(self) -> ModelDescription:
        return ModelDescription(layer_dims=self.topology)

    def set_mechanics(self, *mechs: MechNetworkIndex) -> "NeuralNetwork":
        """Override mechanics of individual neurons."""

        for mech in mechs:
            self._layers[mech.layer].set_mechanics(mech.mech_index)
        return self

    def set_dense_mechanics(self, *mechs: MechIndex) -> "NeuralNetwork":
        """Override mechanics of whole layers (``MechIndex.i`` is the layer)."""

        for mech in mechs:
            self._layers[mech.i].set_dense_mechanics(mech.mechanics)
        return self

    def reset(
        self,
        rng: np.random.Generator | None = None,
        *,
        low: float = 0.0,
        high: float = 1.0,
    ) -> None:
        """Draw every weight and bias outside the input layer from ``U[low, high)``."""

        rng = rng if rng is not None else np.random.default_rng()
        shape = self.get_network_params()
        randomized = shape.apply_entrywise(lambda _: float(rng.uniform(low, high)))
        self._layers[0].zero_weights()
        self.set_network_params(randomized, start_layer=1)

    # ------------------------------------------------------------------
    # Parameter snapshots

    def get_network_params(self) -> NetworkParams:
        return NetworkParams(
            Tensor(layer.weights for layer in self._layers),
            Tensor(layer.biases for layer in self._layers),
        )

    def set_network_params(self, params: NetworkParams, start_layer: int = 0) -> None:
        """Install ``params`` into every layer from ``start_layer`` on.

        All shapes are validated before any layer is touched.
        """

        if params.num_layers != len(self._layers):
            raise DimensionMismatch(
                f"Params have {params.num_layers} slots, network has {len(self._layers)} layers"
            )
        for l in range(start_layer, len(self._layers)):
            layer = self._layers[l]
            W, b = params.layer(l)
            if W.shape != (layer.size(), layer.prev_size) or b.shape != (layer.size(), 1):
                raise DimensionMismatch(
                    f"Layer {l} expects W {layer.size()}x{layer.prev_size} and "
                    f"b {layer.size()}x1, got {W.rows}x{W.cols} and {b.rows}x{b.cols}"
                )
        for l in range(start_layer, len(self._layers)):
            W, b = params.layer(l)
            self._layers[l].set_weights(W)
            self._layers[l].set_biases(b)

    # ------------------------------------------------------------------
    # Forward passes

    def _as_input(self, X) -> Matrix:
        if isinstance(X, Matrix):
            x = Matrix(to_array(X))
        else:
            x = Matrix(np.asarray(X, dtype=np.float64).reshape(-1))
        if x.rows != self._layers[0].size():
            raise DimensionMismatch(
                f"Input has {x.rows} values, input layer has {self._layers[0].size()} neurons"
            )
        return x

    def _record(self, params: NetworkParams, x: Matrix) -> Recording:
        activations = [x.copy()]
        preactivations = [x.copy()]
        a = x
        for l in range(1, len(self._layers)):
            W, b = params.layer(l)
            z = W.mult(a).plus(b)
            a = self._layers[l].activations_from_z(z)
            preactivations.append(z)
            activations.append(a)
        return Recording(activations=Tensor(activations), preactivations=Tensor(preactivations))

    def predict_with_recording(self, X) -> Recording:
        """Forward pass that keeps every layer's activation and pre-activation."""

        x = self._as_input(X)
        self._layers[0].load_input(x)
        a0 = self._layers[0].activations()
        return self._record(self.get_network_params(), a0)

    def predict(self, X) -> Matrix:
        """Forward pass without recording; returns the output column vector."""

        x = self._as_input(X)
        self._layers[0].load_input(x)
        activations = self._layers[0].activations()
        for layer in self._layers[1:]:
            activations = layer.activations(activations)
        return activations

    fast_predict = predict

    # ------------------------------------------------------------------
    # Loss and gradients

    def _check_example(self, example: TrainingExample) -> None:
        if example.X.rows != self._layers[0].size():
            raise DimensionMismatch(
                f"Example X has {example.X.rows} values, expected {self._layers[0].size()}"
            )
        if example.Y.rows != self._layers[-1].size():
            raise DimensionMismatch(
                f"Example Y has {example.Y.rows} values, expected {self._layers[-1].size()}"
            )

    def _example_loss(self, predicted: Matrix, target: Matrix) -> float:
        total = 0.0
        for i, mech in enumerate(self._layers[-1].actual_mechanics):
            total += mech.loss.apply(predicted.get(i), target.get(i))
        return total

    def loss(self, example: TrainingExample, params: NetworkParams | None = None) -> float:
        """Sum of the output neurons' losses for one example."""

        self._check_example(example)
        params = params if params is not None else self.get_network_params()
        return self._example_loss(self._record(params, example.X).output, example.Y)

    def mean_loss(
        self, examples: Sequence[TrainingExample], params: NetworkParams | None = None
    ) -> float:
        if not examples:
            raise ValueError("mean_loss needs at least one example")
        params = params if params is not None else self.get_network_params()
        return sum(self.loss(ex, params) for ex in examples) / len(examples)

    def _output_error(self, predicted: Matrix, target: Matrix, z: Matrix) -> Matrix:
        zs = to_array(z)
        error = np.empty(predicted.rows, dtype=np.float64)
        for i, mech in enumerate(self._layers[-1].actual_mechanics):
            dloss = mech.loss.derivative(predicted.get(i), target.get(i))
            dact = mech.activation.derivative(zs, i)
            error[i] = dloss * dact
        return Matrix(error)

    def _backprop(
        self, example: TrainingExample, params: NetworkParams
    ) -> Tuple[NetworkParams, float]:
        self._check_example(example)
        recording = self._record(params, example.X)
        acts = recording.activations
        zs = recording.preactivations
        L = len(self._layers) - 1

        grad_W = [Matrix.zeros(*params.TW[l].shape) for l in range(L + 1)]
        grad_b = [Matrix.zeros(*params.Tb[l].shape) for l in range(L + 1)]

        error = self._output_error(acts[L], example.Y, zs[L])
        grad_W[L] = plot_matrix(acts[L - 1], error)
        grad_b[L] = error.copy()

        W_next = params.TW[L]
        for l in range(L - 1, 0, -1):
            primed = self._layers[l].derivatives_from_z(zs[l])
            error = W_next.transpose().mult(error).element_mult(primed)
            grad_W[l] = plot_matrix(acts[l - 1], error)
            grad_b[l] = error.copy()
            W_next = params.TW[l]

        gradient = NetworkParams(Tensor(grad_W), Tensor(grad_b))
        return gradient, self._example_loss(acts[L], example.Y)

    def backpropagation(
        self, example: TrainingExample, params: NetworkParams | None = None
    ) -> NetworkParams:
        """Gradient of one example's loss with respect to every weight and bias.

        ``params`` defaults to the network's current state; the input layer's
        slot is always zero.
        """

        params = params if params is not None else self.get_network_params()
        return self._backprop(example, params)[0]

    def compute_gradient_and_loss(
        self,
        examples: Sequence[TrainingExample],
        params: NetworkParams | None = None,
        *,
        workers: int | None = None,
    ) -> Tuple[NetworkParams, float]:
        """Average gradient and mean loss over ``examples`` (sum, then divide)."""

        if not examples:
            raise ValueError("Cannot compute a gradient over an empty batch")
        params = params if params is not None else self.get_network_params()
        if workers and workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(lambda ex: self._backprop(ex, params), examples))
        else:
            results = [self._backprop(ex, params) for ex in examples]

        total = params.skeleton()
        loss_total = 0.0
        for gradient, loss in results:
            total = total.plus(gradient)
            loss_total += loss
        return total.divide(len(examples)), loss_total / len(examples)

    def compute_gradient(
        self,
        examples: Sequence[TrainingExample],
        params: NetworkParams | None = None,
        *,
        workers: int | None = None,
    ) -> NetworkParams:
        return self.compute_gradient_and_loss(examples, params, workers=workers)[0]

    # ------------------------------------------------------------------
    # Training

    def train(
        self,
        examples: Sequence[TrainingExample],
        algorithm,
        callbacks: Sequence[object] = (),
        *,
        workers: int | None = None,
    ) -> NetworkParams:
        """Run ``algorithm`` until it reports convergence.

        Each step computes the averaged gradient over the algorithm's batch
        from one parameter snapshot, asks the algorithm for the next
        snapshot and installs it.  Callbacks receive
        ``on_epoch(epoch, metrics)`` (or are called directly) after every
        step.
        """

        algorithm.init(examples)
        current = self.get_network_params()
        epoch = 0
        while True:
            batch = algorithm.select_batch()
            gradient, loss = self.compute_gradient_and_loss(batch, current, workers=workers)
            current = algorithm.learn_step(current, gradient)
            self.set_network_params(current)
            epoch += 1
            metrics = {
                "loss": float(loss),
                "grad_abs_sum": float(gradient.abs_sum()),
                "learning_rate": float(algorithm.learning_rate),
            }
            emit_epoch(callbacks, epoch, metrics)
            if algorithm.does_converge():
                break
        return current

    def __repr__(self) -> str:
        return f"NeuralNetwork(topology={self.topology})"


def emit_epoch(callbacks: Sequence[object], epoch: int, metrics) -> None:
    """Call ``on_epoch`` on each callback, or the callback itself."""

    for callback in callbacks:
        if hasattr(callback, "on_epoch"):
            callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
        elif callable(callback):
            callback(epoch, metrics)


__all__ = ["NeuralNetwork", "emit_epoch"]
