import csv
import json

import numpy as np
import pytest

from neuralcore.reporting.artifacts import write_manifest
from neuralcore.reporting.metrics import CsvSink, JsonlSink
from neuralcore.reporting.plots import PlotAdapter
from neuralcore.reporting.summary import compute_auc, write_summary
from neuralcore.training.metrics import compute_metric, compute_metrics, default_metrics


def test_plot_adapter_headless(tmp_path):
    adapter = PlotAdapter(tmp_path, enable_plots=True)
    adapter.on_epoch(1, {"loss": 1.0})
    adapter.on_epoch(2, {"loss": 0.5})
    assert adapter.close() == str(tmp_path / "loss.png")
    assert (tmp_path / "loss.png").exists()


def test_plot_adapter_disabled_is_silent(tmp_path):
    adapter = PlotAdapter(tmp_path / "plots", enable_plots=False)
    adapter(1, {"loss": 1.0})
    assert adapter.history == []
    assert adapter.close() is None
    assert not (tmp_path / "plots").exists()


def test_jsonl_sink_records(tmp_path):
    sink = JsonlSink(tmp_path / "m.jsonl", split="val", seed=3, sha="abc")
    sink.on_epoch(1, {"loss": 0.5, "note": "skipped"})
    sink(2, {"loss": 0.25})
    records = [json.loads(line) for line in (tmp_path / "m.jsonl").read_text().splitlines()]
    assert records[0] == {"epoch": 1, "split": "val", "seed": 3, "sha": "abc", "loss": 0.5}
    assert records[1]["epoch"] == 2


def test_csv_sink_writes_header_once(tmp_path):
    sink = CsvSink(tmp_path / "m.csv")
    sink.on_epoch(1, {"loss": 1.0, "grad_abs_sum": 2.0})
    sink.on_epoch(2, {"loss": 0.5, "grad_abs_sum": 1.0})
    with (tmp_path / "m.csv").open() as handle:
        rows = list(csv.DictReader(handle))
    assert [row["epoch"] for row in rows] == ["1", "2"]
    assert set(rows[0]) == {"epoch", "split", "loss", "grad_abs_sum"}


def test_compute_auc():
    assert compute_auc([]) == 0.0
    assert compute_auc([3.0]) == 0.0
    assert compute_auc([1.0, 1.0, 1.0]) == pytest.approx(2.0)
    assert compute_auc([0.0, 2.0]) == pytest.approx(1.0)


def test_write_summary(tmp_path):
    metrics = tmp_path / "metrics.jsonl"
    lines = [
        {"epoch": i, "split": "train", "seed": 1, "loss": 1.0 / i} for i in range(1, 5)
    ]
    metrics.write_text("\n".join(json.dumps(line) for line in lines) + "\n")
    out = write_summary(metrics, tmp_path / "summary.json", tail=2)
    summary = json.loads((tmp_path / "summary.json").read_text())
    assert out == str(tmp_path / "summary.json")
    assert summary["records"] == 4
    assert summary["tail_window"] == 2
    assert set(summary["metrics"]) == {"loss"}
    assert summary["metrics"]["loss"]["last"] == pytest.approx(0.25)
    assert summary["metrics"]["loss"]["max"] == pytest.approx(1.0)
    assert summary["metrics"]["loss"]["first"] == pytest.approx(1.0)
    assert summary["metrics"]["loss"]["tail_auc"] == pytest.approx((1 / 3 + 0.25) / 2)
    assert summary["best"] == {"epoch": 4, "loss": 0.25}
    assert summary["loss_drop"] == pytest.approx(0.75)


def test_write_manifest(tmp_path):
    path = write_manifest(
        tmp_path / "manifest.json",
        config={"train": {"seed": 1}},
        dataset_provenance={"type": "synthetic"},
        topology=[1, 4, 1],
    )
    manifest = json.loads((tmp_path / "manifest.json").read_text())
    assert path.endswith("manifest.json")
    assert manifest["topology"] == [1, 4, 1]
    assert manifest["dataset"] == {"type": "synthetic"}
    assert "git_sha" in manifest and "generated_at" in manifest


def test_evaluation_metrics():
    preds = np.array([[0.9], [0.2], [0.7], [0.4]])
    targs = np.array([[1.0], [0.0], [0.0], [1.0]])
    scores = compute_metrics(default_metrics("binary"), preds, targs, task_type="binary")
    assert scores["accuracy"] == pytest.approx(0.5)
    assert scores["precision"] == pytest.approx(0.5, abs=1e-6)
    assert compute_metric("mae", preds, targs, task_type="regression").value == pytest.approx(
        (0.1 + 0.2 + 0.7 + 0.6) / 4
    )
    onehot_preds = np.array([[0.8, 0.2], [0.3, 0.7]])
    onehot_targs = np.array([[1.0, 0.0], [1.0, 0.0]])
    assert compute_metric(
        "accuracy", onehot_preds, onehot_targs, task_type="multiclass"
    ).value == pytest.approx(0.5)
    with pytest.raises(KeyError):
        compute_metric("auc", preds, targs, task_type="binary")
    with pytest.raises(ValueError):
        compute_metric("mae", preds, onehot_targs, task_type="regression")
    with pytest.raises(ValueError):
        default_metrics("ranking")
