"""Generic CSV files turned into training examples."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd
from sklearn.preprocessing import LabelEncoder

from ..core.errors import ParseError
from .registry import DataSpec, DatasetSpec, register_dataset
from .utils import deterministic_split, split_examples


def _numeric_frame(frame: pd.DataFrame, what: str) -> np.ndarray:
    try:
        return frame.apply(pd.to_numeric).to_numpy(dtype=np.float64)
    except (ValueError, TypeError) as exc:
        raise ParseError(f"Non-numeric value in {what} columns: {exc}") from exc


def _target_columns(target_col: str | Sequence[str]) -> list[str]:
    if isinstance(target_col, str):
        return [target_col]
    return list(target_col)


@register_dataset("csv")
def load_csv(
    *,
    csv_path: str | Path,
    target_col: str | Sequence[str] = "target",
    one_hot: bool = False,
    task_type: str | None = None,
    val_split: float = 0.0,
    test_split: float = 0.0,
    seed: int = 0,
) -> DatasetSpec:
    """Load examples from ``csv_path``; every non-target column is an input.

    With ``one_hot`` the single target column is label-encoded and expanded
    into one output per class; otherwise target columns must be numeric.
    """

    path = Path(csv_path)
    df = pd.read_csv(path)
    targets = _target_columns(target_col)
    missing = [col for col in targets if col not in df.columns]
    if missing:
        raise KeyError(f"Target column(s) {missing} not found in CSV")
    features = df.drop(columns=targets)
    if features.shape[1] == 0:
        raise ValueError("CSV has no input columns")
    X = _numeric_frame(features, "input")

    extra: dict[str, object] = {}
    num_classes = None
    if one_hot:
        if len(targets) != 1:
            raise ValueError("one_hot needs exactly one target column")
        encoder = LabelEncoder()
        encoded = encoder.fit_transform(df[targets[0]].astype(str))
        num_classes = int(len(encoder.classes_))
        y = np.eye(num_classes, dtype=np.float64)[encoded]
        extra["classes"] = encoder.classes_.tolist()
        task_type = task_type or "multiclass"
    else:
        y = _numeric_frame(df[targets], "target")
        task_type = task_type or "regression"

    splits = deterministic_split(X.shape[0], val_split=val_split, test_split=test_split, seed=seed)
    return DatasetSpec(
        name="csv",
        examples=split_examples(X, y, splits),
        data_spec=DataSpec(
            d_in=int(X.shape[1]),
            d_out=int(y.shape[1]),
            task_type=task_type,
            num_classes=num_classes,
            extra=extra,
        ),
        provenance={
            "path": str(path),
            "target_col": targets,
            "one_hot": one_hot,
            "val_split": val_split,
            "test_split": test_split,
            "seed": seed,
        },
    )


__all__ = ["load_csv"]
