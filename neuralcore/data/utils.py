"""Helpers shared by the dataset factories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence, Tuple

import numpy as np

from ..core.types import TrainingExample


@dataclass(frozen=True)
class SplitIndices:
    """Indices for train/validation/test partitions."""

    train: np.ndarray
    val: np.ndarray
    test: np.ndarray

    @property
    def sizes(self) -> Mapping[str, int]:
        return {
            "train": int(self.train.size),
            "val": int(self.val.size),
            "test": int(self.test.size),
        }


def _split_sizes(n_samples: int, val_split: float, test_split: float) -> Tuple[int, int]:
    """Rounded (val, test) sizes; a requested split never rounds down to empty."""

    for label, ratio in (("val_split", val_split), ("test_split", test_split)):
        if not 0 <= ratio < 1:
            raise ValueError(f"{label} must be in [0, 1), got {ratio}")
    if val_split + test_split >= 1:
        raise ValueError("val_split + test_split must be < 1")

    test = min(n_samples, max(int(round(n_samples * test_split)), int(test_split > 0)))
    val = min(n_samples - test, max(int(round(n_samples * val_split)), int(val_split > 0)))
    if n_samples - val - test <= 0:
        raise ValueError(
            f"{n_samples} samples cannot fill val_split={val_split}, test_split={test_split} "
            "and still leave a training example"
        )
    return val, test


def deterministic_split(
    n_samples: int,
    *,
    val_split: float = 0.0,
    test_split: float = 0.0,
    seed: int = 0,
) -> SplitIndices:
    """Seeded partition of ``range(n_samples)``; each split comes back sorted."""

    val_size, test_size = _split_sizes(n_samples, val_split, test_split)
    order = np.random.default_rng(seed).permutation(n_samples)
    test_idx, val_idx, train_idx = np.split(order, [test_size, test_size + val_size])
    return SplitIndices(train=np.sort(train_idx), val=np.sort(val_idx), test=np.sort(test_idx))


def to_examples(
    features: np.ndarray, targets: np.ndarray, indices: Sequence[int]
) -> Tuple[TrainingExample, ...]:
    return tuple(TrainingExample(features[i], targets[i]) for i in indices)


def split_examples(
    features: np.ndarray, targets: np.ndarray, splits: SplitIndices
) -> dict[str, Tuple[TrainingExample, ...]]:
    return {
        "train": to_examples(features, targets, splits.train),
        "val": to_examples(features, targets, splits.val),
        "test": to_examples(features, targets, splits.test),
    }


__all__ = ["SplitIndices", "deterministic_split", "to_examples", "split_examples"]
