"""Training loop wrapper that reports per-split metrics to callbacks."""

from __future__ import annotations

from typing import Dict, Mapping, Sequence

import numpy as np

from ..core.network import NeuralNetwork, emit_epoch
from ..core.operations import to_array
from ..core.types import RunResult, TrainingExample
from .algorithms import LearningAlgorithm
from .metrics import compute_metrics, default_metrics


class Trainer:
    """Run a :class:`LearningAlgorithm` against a network and log every epoch."""

    def __init__(
        self,
        network: NeuralNetwork,
        algorithm: LearningAlgorithm,
        callbacks: Sequence[object] | None = None,
    ) -> None:
        self.network = network
        self.algorithm = algorithm
        self.callbacks = list(callbacks or [])

    def run(
        self,
        examples: Sequence[TrainingExample],
        *,
        seed: int | None = None,
        val_examples: Sequence[TrainingExample] | None = None,
        task_type: str = "regression",
        metric_names: Sequence[str] | str = (),
        eval_every: int = 1,
        split_loggers: Mapping[str, Sequence[object]] | None = None,
        workers: int | None = None,
        init_range: tuple[float, float] = (0.0, 1.0),
    ) -> RunResult:
        """Train until the algorithm converges.

        When ``seed`` is given the network is re-initialized from it first,
        so two runs with the same seed and data produce identical params.
        Train metrics are emitted every step; ``val`` metrics every
        ``eval_every`` steps when ``val_examples`` are supplied.  Every
        ``loss`` and score in a record is measured on the parameters the
        step installed; ``grad_abs_sum`` is the gradient that produced them.
        """

        examples = list(examples)
        if isinstance(metric_names, str):
            if metric_names in {"", "default"}:
                metric_names = default_metrics(task_type)
            else:
                metric_names = [m.strip() for m in metric_names.split(",") if m.strip()]
        metric_names = list(metric_names)

        if seed is not None:
            low, high = init_range
            self.network.reset(np.random.default_rng(seed), low=low, high=high)

        split_loggers = split_loggers or {}
        val_examples = list(val_examples or [])

        def on_epoch(epoch: int, metrics: Mapping[str, float]) -> None:
            # loss, scores and the val record all describe the post-step parameters
            train_metrics = dict(metrics)
            train_metrics.update(self.evaluate(examples, metric_names, task_type=task_type))
            self._emit_epoch("train", epoch, train_metrics, split_loggers)
            if val_examples and epoch % max(1, eval_every) == 0:
                val_metrics = self.evaluate(val_examples, metric_names, task_type=task_type)
                self._emit_epoch("val", epoch, val_metrics, split_loggers)

        self.network.train(examples, self.algorithm, [on_epoch], workers=workers)
        return RunResult(
            steps=self.algorithm.steps,
            final_loss=float(self.network.mean_loss(examples)),
        )

    def evaluate(
        self,
        examples: Sequence[TrainingExample],
        metric_names: Sequence[str] = (),
        *,
        task_type: str = "regression",
    ) -> Dict[str, float]:
        """Mean loss plus the requested metrics, without touching parameters."""

        results = {"loss": float(self.network.mean_loss(examples))}
        if metric_names:
            results.update(self._score(examples, metric_names, task_type))
        return results

    # ------------------------------------------------------------------
    # Internal helpers

    def _score(
        self,
        examples: Sequence[TrainingExample],
        metric_names: Sequence[str],
        task_type: str,
    ) -> Mapping[str, float]:
        predictions = np.stack([to_array(self.network.predict(ex.X)) for ex in examples])
        targets = np.stack([to_array(ex.Y) for ex in examples])
        return compute_metrics(metric_names, predictions, targets, task_type=task_type)

    def _emit_epoch(
        self,
        split: str,
        epoch: int,
        metrics: Mapping[str, float],
        loggers: Mapping[str, Sequence[object]],
    ) -> None:
        if split == "train":
            emit_epoch(self.callbacks, epoch, metrics)
        emit_epoch(loggers.get(split, ()), epoch, metrics)


__all__ = ["Trainer"]
