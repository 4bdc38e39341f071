"""Pure in-memory synthetic datasets."""

from __future__ import annotations

import numpy as np

from .registry import DataSpec, DatasetSpec, register_dataset
from .utils import deterministic_split, split_examples


def _make_sine(freq: float, n_points: int, noise: float, seed: int) -> tuple[np.ndarray, np.ndarray]:
    rng = np.random.default_rng(seed)
    x = np.linspace(-1.0, 1.0, n_points).reshape(-1, 1)
    # squashed into (0, 1) so sigmoid outputs can reach every target
    y_true = 0.5 + 0.4 * np.sin(freq * np.pi * x)
    y = y_true + noise * rng.standard_normal(size=y_true.shape)
    return x, np.clip(y, 0.0, 1.0)


@register_dataset("synthetic")
def make_synthetic(
    *,
    freq: float = 1.0,
    n_points: int = 32,
    noise: float = 0.02,
    seed: int = 0,
    val_split: float = 0.0,
    test_split: float = 0.0,
) -> DatasetSpec:
    """Noisy sine regression with one input and one target in ``[0, 1]``."""

    x, y = _make_sine(freq, n_points, noise, seed)
    splits = deterministic_split(n_points, val_split=val_split, test_split=test_split, seed=seed)
    return DatasetSpec(
        name="synthetic",
        examples=split_examples(x, y, splits),
        data_spec=DataSpec(d_in=1, d_out=1, task_type="regression"),
        provenance={
            "type": "synthetic",
            "freq": freq,
            "n_points": n_points,
            "noise": noise,
            "seed": seed,
            "val_split": val_split,
            "test_split": test_split,
        },
    )


@register_dataset("blobs")
def make_blobs(
    *,
    n_points: int = 40,
    spread: float = 0.15,
    one_hot: bool = False,
    seed: int = 0,
    val_split: float = 0.0,
    test_split: float = 0.0,
) -> DatasetSpec:
    """Two Gaussian clusters in the plane; class 1 sits at ``(1, 1)``.

    With ``one_hot`` targets are ``[1, 0]`` / ``[0, 1]`` for a softmax output.
    """

    if n_points < 2:
        raise ValueError("blobs needs at least two points")
    rng = np.random.default_rng(seed)
    labels = np.arange(n_points) % 2
    centers = np.where(labels[:, None] == 1, 1.0, 0.0) * np.ones((1, 2))
    x = centers + spread * rng.standard_normal(size=(n_points, 2))
    if one_hot:
        y = np.eye(2)[labels]
        data_spec = DataSpec(d_in=2, d_out=2, task_type="multiclass", num_classes=2)
    else:
        y = labels.astype(np.float64).reshape(-1, 1)
        data_spec = DataSpec(d_in=2, d_out=1, task_type="binary", num_classes=2)
    splits = deterministic_split(n_points, val_split=val_split, test_split=test_split, seed=seed)
    return DatasetSpec(
        name="blobs",
        examples=split_examples(x, y, splits),
        data_spec=data_spec,
        provenance={
            "type": "blobs",
            "n_points": n_points,
            "spread": spread,
            "one_hot": one_hot,
            "seed": seed,
            "val_split": val_split,
            "test_split": test_split,
        },
    )


__all__ = ["make_synthetic", "make_blobs"]
