"""Metric sinks: one record per epoch, appended to a JSONL or CSV file.

Sinks are plain training callbacks (``on_epoch(epoch, metrics)`` or
called directly), so they can be passed wherever the trainer accepts
callbacks.  Non-numeric metric values are dropped.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .artifacts import git_sha


class _EpochSink:
    def __init__(self, path: str | Path, *, split: str) -> None:
        self.path = Path(path)
        self.split = split
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # A sink always starts a fresh file for its run.
        self.path.write_text("")

    def _record(self, epoch: int, metrics: Mapping[str, object]) -> Dict[str, object]:
        record: Dict[str, object] = {"epoch": int(epoch), "split": self.split}
        for key, value in metrics.items():
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                record[key] = float(value)
        return record

    def _append(self, record: Dict[str, object]) -> None:
        raise NotImplementedError

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self._append(self._record(epoch, metrics))

    def __call__(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self.on_epoch(epoch, metrics)


class JsonlSink(_EpochSink):
    """JSON lines tagged with split, seed and git SHA."""

    def __init__(
        self,
        path: str | Path,
        *,
        split: str = "train",
        seed: Optional[int] = None,
        sha: Optional[str] = None,
    ) -> None:
        super().__init__(path, split=split)
        self.seed = seed
        self.sha = sha or git_sha()

    def _record(self, epoch: int, metrics: Mapping[str, object]) -> Dict[str, object]:
        record = {"epoch": int(epoch), "split": self.split, "seed": self.seed, "sha": self.sha}
        record.update(super()._record(epoch, metrics))
        return record

    def _append(self, record: Dict[str, object]) -> None:
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")


class CsvSink(_EpochSink):
    """CSV rows; columns are fixed by the first epoch's metrics."""

    def __init__(self, path: str | Path, *, split: str = "train") -> None:
        super().__init__(path, split=split)
        self._columns: Optional[List[str]] = None

    def _append(self, record: Dict[str, object]) -> None:
        first = self._columns is None
        if first:
            self._columns = sorted(record)
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=self._columns, extrasaction="ignore")
            if first:
                writer.writeheader()
            writer.writerow(record)


__all__ = ["JsonlSink", "CsvSink"]
