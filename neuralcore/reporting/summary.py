"""Run summaries: per-metric statistics over a training run's JSONL log."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import numpy as np

SUMMARY_VERSION = 2

# Bookkeeping fields every sink record carries.
_NON_METRIC_KEYS = {"epoch", "seed"}


@dataclass(frozen=True)
class MetricStats:
    first: float
    last: float
    min: float
    max: float
    mean: float
    tail_auc: float


def compute_auc(points: Sequence[float]) -> float:
    """Trapezoidal area under ``points`` with unit spacing between epochs."""

    y = np.asarray(points, dtype=np.float64)
    if y.size < 2:
        return 0.0
    return float(0.5 * np.sum(y[1:] + y[:-1]))


def _series(records: Sequence[Mapping[str, object]]) -> Dict[str, List[float]]:
    series: Dict[str, List[float]] = {}
    for record in records:
        for key, value in record.items():
            if key in _NON_METRIC_KEYS or isinstance(value, bool):
                continue
            if isinstance(value, (int, float)):
                series.setdefault(key, []).append(float(value))
    return series


def _stats(values: List[float], tail_window: int) -> MetricStats:
    arr = np.asarray(values, dtype=np.float64)
    tail = arr[-tail_window:] if tail_window else arr[:0]
    return MetricStats(
        first=float(arr[0]),
        last=float(arr[-1]),
        min=float(arr.min()),
        max=float(arr.max()),
        mean=float(arr.mean()),
        tail_auc=compute_auc(tail),
    )


def build_summary(records: Sequence[Mapping[str, object]], tail: int) -> Mapping[str, object]:
    """Summarize epoch records; ``tail`` bounds the window used for ``tail_auc``."""

    tail_window = min(tail, len(records))
    summary: Dict[str, object] = {
        "version": SUMMARY_VERSION,
        "records": len(records),
        "tail_window": tail_window,
        "metrics": {
            name: asdict(_stats(values, tail_window))
            for name, values in sorted(_series(records).items())
        },
    }

    losses = [(r["epoch"], float(r["loss"])) for r in records if "loss" in r and "epoch" in r]
    if losses:
        best_epoch, best_loss = min(losses, key=lambda item: item[1])
        summary["best"] = {"epoch": best_epoch, "loss": best_loss}
        summary["loss_drop"] = losses[0][1] - losses[-1][1]
    return summary


def write_summary(
    metrics_jsonl: str | Path, out_summary_json: str | Path, *, tail: int = 32
) -> str:
    metrics_path = Path(metrics_jsonl)
    out_path = Path(out_summary_json)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    records = []
    if metrics_path.exists():
        with metrics_path.open() as handle:
            records = [json.loads(line) for line in handle if line.strip()]

    out_path.write_text(json.dumps(build_summary(records, tail), sort_keys=True, indent=2))
    return str(out_path)


__all__ = ["MetricStats", "compute_auc", "build_summary", "write_summary"]
