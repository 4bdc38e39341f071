"""Centered finite-difference gradients for verifying backpropagation."""

from __future__ import annotations

import numpy as np

from .matrix import Matrix, Tensor
from .network import NeuralNetwork
from .params import NetworkParams
from .types import TrainingExample


def numerical_gradient(
    network: NeuralNetwork,
    example: TrainingExample,
    params: NetworkParams | None = None,
    eps: float = 1e-5,
) -> NetworkParams:
    """Finite-diff gradient of ``network.loss(example)`` at ``params``.

    Every weight and bias outside the input layer is nudged by ``+eps`` and
    ``-eps`` in turn; the input layer's slot stays zero.
    """

    params = params if params is not None else network.get_network_params()
    grad_W = [Matrix.zeros(*W.shape) for W in params.TW]
    grad_b = [Matrix.zeros(*b.shape) for b in params.Tb]

    for l in range(1, params.num_layers):
        W, b = params.layer(l)
        base_W = W.to_array()
        base_b = b.to_array()

        out = np.zeros_like(base_W)
        for idx in np.ndindex(base_W.shape):
            old = base_W[idx]
            base_W[idx] = old + eps
            up = network.loss(example, params.with_layer(l, Matrix(base_W), b))
            base_W[idx] = old - eps
            down = network.loss(example, params.with_layer(l, Matrix(base_W), b))
            base_W[idx] = old
            out[idx] = (up - down) / (2 * eps)
        grad_W[l] = Matrix(out)

        out = np.zeros_like(base_b)
        for idx in np.ndindex(base_b.shape):
            old = base_b[idx]
            base_b[idx] = old + eps
            up = network.loss(example, params.with_layer(l, W, Matrix(base_b)))
            base_b[idx] = old - eps
            down = network.loss(example, params.with_layer(l, W, Matrix(base_b)))
            base_b[idx] = old
            out[idx] = (up - down) / (2 * eps)
        grad_b[l] = Matrix(out)

    return NetworkParams(Tensor(grad_W), Tensor(grad_b))


def max_gradient_error(
    network: NeuralNetwork,
    example: TrainingExample,
    params: NetworkParams | None = None,
    eps: float = 1e-5,
) -> float:
    """Largest absolute gap between backprop and the numerical gradient."""

    params = params if params is not None else network.get_network_params()
    analytic = network.backpropagation(example, params)
    numeric = numerical_gradient(network, example, params, eps)
    return analytic.minus(numeric).fold(lambda acc, value: max(acc, abs(value)), 0.0)


__all__ = ["numerical_gradient", "max_gradient_error"]
