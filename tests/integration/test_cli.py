import json
from pathlib import Path

import pytest

from cli.main import main


def test_cli_basic_preset(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    main(["--preset", "sine-sigmoid-epochs", "--epochs", "3"])
    run_dir = Path("runs/sine-sigmoid-epochs")
    assert (run_dir / "metrics.jsonl").exists()
    assert (run_dir / "manifest.json").exists()
    payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert payload["steps"] == 3
    assert "final_loss" in payload


def test_cli_list_presets(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--list-presets"])
    assert exc.value.code == 0
    assert "blobs-threshold" in capsys.readouterr().out.split()


def test_cli_yaml_override_and_dump(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    override = tmp_path / "override.yaml"
    override.write_text("train:\n  lr: 0.2\n  epochs: 2\n")
    main(
        [
            "--preset",
            "sine-sigmoid-epochs",
            "--config",
            str(override),
            "--run-dir",
            "out",
            "--dump-config",
            "resolved.json",
        ]
    )
    resolved = json.loads(Path("resolved.json").read_text())
    assert resolved["train"]["lr"] == 0.2
    assert resolved["train"]["epochs"] == 2
    assert resolved["model"]["activation"] == "sigmoid"
    assert (Path("out") / "summary.json").exists()


def test_cli_csv_dataset(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    Path("flowers.csv").write_text(
        "petal,sepal,kind\n0.1,0.2,a\n0.9,0.8,b\n0.2,0.1,a\n0.8,0.9,b\n"
    )
    main(
        [
            "--dataset",
            "csv",
            "--csv-path",
            "flowers.csv",
            "--target-col",
            "kind",
            "--one-hot",
            "--epochs",
            "2",
            "--run-dir",
            "csv-run",
        ]
    )
    config = json.loads((Path("csv-run") / "config.json").read_text())
    assert config["model"]["topology"] == [2, 4, 2]
