"""Per-neuron loss functions and the registry used by configs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from .operations import DERIVATIVE_STEP, derivative as forward_difference

LossFn = Callable[[float, float], float]


@dataclass(frozen=True)
class Loss:
    """Scores a prediction ``yhat`` against a target ``y``.

    ``d_dyhat`` differentiates with respect to the prediction while the
    target is held fixed.
    """

    name: str
    fn: LossFn
    d_dyhat: LossFn
    analytic: bool

    @classmethod
    def create(
        cls,
        name: str,
        fn: LossFn,
        d_dyhat: LossFn | None = None,
        *,
        step: float = DERIVATIVE_STEP,
    ) -> "Loss":
        if d_dyhat is not None:
            return cls(name=name, fn=fn, d_dyhat=d_dyhat, analytic=True)

        def approx(yhat: float, y: float) -> float:
            return forward_difference(lambda p: fn(p, y), yhat, step)

        return cls(name=name, fn=fn, d_dyhat=approx, analytic=False)

    def apply(self, yhat: float, y: float) -> float:
        return float(self.fn(float(yhat), float(y)))

    def derivative(self, yhat: float, y: float) -> float:
        return float(self.d_dyhat(float(yhat), float(y)))

    derivative_wrt_predicted = derivative

    __call__ = apply

    def __repr__(self) -> str:
        mode = "analytic" if self.analytic else "approximate"
        return f"Loss({self.name!r}, {mode})"


class LossRegistry:
    """Central registry for loss functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, Loss] = {}

    def register(self, loss: Loss, *aliases: str) -> None:
        for name in (loss.name, *aliases):
            self._registry[name] = loss

    def get(self, name: str) -> Loss:
        try:
            return self._registry[name]
        except KeyError as exc:
            available = ", ".join(sorted(self._registry))
            raise KeyError(f"Unknown loss {name!r}. Available losses: {available}") from exc

    def names(self) -> Iterable[str]:
        return sorted(self._registry)

    def resolve(self, name: str, *, task_type: str) -> Loss:
        if name == "auto":
            if task_type == "regression":
                name = "squared_error"
            elif task_type == "multiclass":
                name = "categorical_crossentropy"
            elif task_type in {"binary", "multilabel"}:
                name = "binary_crossentropy"
            else:
                raise ValueError(f"Unknown task type: {task_type}")
        return self.get(name)


def _log(x: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.log(x))


def _squared_error(yhat: float, y: float) -> float:
    error = yhat - y
    return error * error


def _squared_error_deriv(yhat: float, y: float) -> float:
    return 2.0 * (yhat - y)


def _absolute_error(yhat: float, y: float) -> float:
    return abs(yhat - y)


def _binary_crossentropy(yhat: float, y: float) -> float:
    return y * -_log(yhat) + (1.0 - y) * -_log(1.0 - yhat)


def _binary_crossentropy_deriv(yhat: float, y: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(yhat - y) / np.float64(yhat * (1.0 - yhat)))


def _categorical_crossentropy(yhat: float, y: float) -> float:
    if y == 0.0:
        return 0.0
    return -y * _log(yhat)


def _categorical_crossentropy_deriv(yhat: float, y: float) -> float:
    if y == 0.0:
        return 0.0
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(-np.float64(y) / np.float64(yhat))


SQUARED_ERROR = Loss.create("squared_error", _squared_error, _squared_error_deriv)
ABSOLUTE_ERROR = Loss.create("absolute_error", _absolute_error)
BINARY_CROSSENTROPY = Loss.create(
    "binary_crossentropy", _binary_crossentropy, _binary_crossentropy_deriv
)
CATEGORICAL_CROSSENTROPY = Loss.create(
    "categorical_crossentropy", _categorical_crossentropy, _categorical_crossentropy_deriv
)
NONE = Loss.create("none", lambda yhat, y: 0.0, lambda yhat, y: 0.0)

REGISTRY = LossRegistry()
REGISTRY.register(SQUARED_ERROR, "mse")
REGISTRY.register(ABSOLUTE_ERROR, "mae")
REGISTRY.register(BINARY_CROSSENTROPY, "bce", "logistic")
REGISTRY.register(CATEGORICAL_CROSSENTROPY, "ce")
REGISTRY.register(NONE)

__all__ = [
    "Loss",
    "LossRegistry",
    "REGISTRY",
    "SQUARED_ERROR",
    "ABSOLUTE_ERROR",
    "BINARY_CROSSENTROPY",
    "CATEGORICAL_CROSSENTROPY",
    "NONE",
]
