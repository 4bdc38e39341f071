"""Evaluation metrics over a whole split of network outputs.

Predictions are rows of post-activation outputs, one row per example, so
binary decisions threshold at 0.5 directly and multiclass decisions take
the arg-max output neuron.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping

import numpy as np

from ..core.types import Array

_EPS = 1e-9


@dataclass(frozen=True)
class MetricResult:
    name: str
    value: float


def default_metrics(task_type: str) -> List[str]:
    if task_type == "regression":
        return ["mae", "rmse", "r2"]
    if task_type == "multiclass":
        return ["accuracy"]
    if task_type in {"binary", "multilabel"}:
        return ["accuracy", "precision", "recall", "f1"]
    raise ValueError(f"Unknown task type: {task_type}")


def _mae(preds: Array, targs: Array, task_type: str) -> float:
    return float(np.mean(np.abs(preds - targs)))


def _rmse(preds: Array, targs: Array, task_type: str) -> float:
    return float(np.sqrt(np.mean((preds - targs) ** 2)))


def _r2(preds: Array, targs: Array, task_type: str) -> float:
    ss_tot = float(np.sum((targs - targs.mean(axis=0, keepdims=True)) ** 2))
    if ss_tot == 0:
        return 1.0
    ss_res = float(np.sum((targs - preds) ** 2))
    return 1.0 - ss_res / (ss_tot + _EPS)


def _accuracy(preds: Array, targs: Array, task_type: str) -> float:
    if task_type == "multiclass":
        hits = preds.argmax(axis=1) == targs.argmax(axis=1)
    else:
        hits = (preds >= 0.5) == (targs >= 0.5)
    return float(np.mean(hits))


def _confusion(preds: Array, targs: Array) -> tuple[float, float, float]:
    predicted = preds >= 0.5
    actual = targs >= 0.5
    tp = float(np.sum(predicted & actual))
    fp = float(np.sum(predicted & ~actual))
    fn = float(np.sum(~predicted & actual))
    return tp, fp, fn


def _precision(preds: Array, targs: Array, task_type: str) -> float:
    tp, fp, _ = _confusion(preds, targs)
    return tp / (tp + fp + _EPS)


def _recall(preds: Array, targs: Array, task_type: str) -> float:
    tp, _, fn = _confusion(preds, targs)
    return tp / (tp + fn + _EPS)


def _f1(preds: Array, targs: Array, task_type: str) -> float:
    precision = _precision(preds, targs, task_type)
    recall = _recall(preds, targs, task_type)
    return 2 * precision * recall / (precision + recall + _EPS)


_METRICS: Dict[str, Callable[[Array, Array, str], float]] = {
    "mae": _mae,
    "rmse": _rmse,
    "r2": _r2,
    "accuracy": _accuracy,
    "precision": _precision,
    "recall": _recall,
    "f1": _f1,
}


def compute_metric(
    name: str,
    predictions: Array,
    targets: Array,
    *,
    task_type: str,
) -> MetricResult:
    key = name.lower()
    if key not in _METRICS:
        raise KeyError(f"Unknown metric {name!r}. Available metrics: {', '.join(sorted(_METRICS))}")
    preds = np.asarray(predictions, dtype=np.float64)
    targs = np.asarray(targets, dtype=np.float64)
    if preds.shape != targs.shape:
        raise ValueError(f"Predictions {preds.shape} and targets {targs.shape} differ in shape")
    return MetricResult(name=key, value=float(_METRICS[key](preds, targs, task_type)))


def compute_metrics(
    names: Iterable[str],
    predictions: Array,
    targets: Array,
    *,
    task_type: str,
) -> Mapping[str, float]:
    results: Dict[str, float] = {}
    for name in names:
        metric = compute_metric(name, predictions, targets, task_type=task_type)
        results[metric.name] = metric.value
    return results


__all__ = ["MetricResult", "default_metrics", "compute_metric", "compute_metrics"]
