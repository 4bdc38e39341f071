"""Core numerical primitives for neuralcore."""

from . import activations, errors, gradcheck, layer, losses, matrix, mechanics, network, operations, params, types

__all__ = [
    "activations",
    "errors",
    "gradcheck",
    "layer",
    "losses",
    "matrix",
    "mechanics",
    "network",
    "operations",
    "params",
    "types",
]
