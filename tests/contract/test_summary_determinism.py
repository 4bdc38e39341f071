from pathlib import Path

from neuralcore.training import pipelines


def test_summary_outputs_are_deterministic(tmp_path):
    config = {
        "data": {"name": "blobs", "options": {"n_points": 12, "seed": 123}},
        "model": {"hidden": [2], "activation": "sigmoid", "loss": "auto"},
        "train": {
            "algorithm": "threshold_batch_gd",
            "lr": 0.3,
            "threshold": 0.0,
            "max_epochs": 5,
            "seed": 55,
            "summary_tail": 3,
            "run_dir": str(tmp_path / "run_a"),
            "enable_plots": False,
        },
    }

    first = pipelines.run_pipeline(config)
    summary_a = Path(first.summary_path).read_bytes()
    metrics_a = Path(first.metrics_path).read_bytes()

    config["train"]["run_dir"] = str(tmp_path / "run_b")
    second = pipelines.run_pipeline(config)
    summary_b = Path(second.summary_path).read_bytes()
    metrics_b = Path(second.metrics_path).read_bytes()

    assert first.steps == 5
    assert metrics_a == metrics_b
    assert summary_a == summary_b
