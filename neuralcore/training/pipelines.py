"""Pipeline assembly: presets, config files and single training runs."""

from __future__ import annotations

import json
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import numpy as np
import yaml

from ..core import activations as _activations
from ..core import losses as _losses
from ..core.mechanics import DEFAULT_MECHANICS, Mechanics, MechIndex, MechNetworkIndex
from ..core.network import NeuralNetwork
from ..core.types import RunResult
from ..data import registry
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .algorithms import (
    LearningAlgorithm,
    batch_gradient_descent,
    threshold_batch_gradient_descent,
)
from .metrics import default_metrics
from .trainer import Trainer

_PRESETS: Dict[str, Mapping[str, object]] = {
    "sine-sigmoid-epochs": {
        "data": {
            "name": "synthetic",
            "options": {"freq": 1.0, "n_points": 16, "seed": 0},
        },
        "model": {
            "hidden": [4],
            "activation": "sigmoid",
            "loss": "squared_error",
        },
        "train": {
            "algorithm": "batch_gd",
            "lr": 0.5,
            "epochs": 40,
            "seed": 7,
            "run_dir": "runs/sine-sigmoid-epochs",
            "enable_plots": False,
        },
    },
    "blobs-threshold": {
        "data": {
            "name": "blobs",
            "options": {"n_points": 20, "seed": 0, "val_split": 0.2},
        },
        "model": {
            "hidden": [3],
            "activation": "sigmoid",
            "loss": "auto",
        },
        "train": {
            "algorithm": "threshold_batch_gd",
            "lr": 0.5,
            "threshold": 0.05,
            "max_epochs": 60,
            "seed": 11,
            "run_dir": "runs/blobs-threshold",
            "enable_plots": False,
        },
    },
    # Softmax backprop keeps only the s_i(1 - s_i) diagonal of its Jacobian, so
    # this preset descends an approximation of the crossentropy gradient.
    "blobs-softmax-demo": {
        "data": {
            "name": "blobs",
            "options": {"n_points": 20, "seed": 1, "one_hot": True},
        },
        "model": {
            "hidden": [4],
            "activation": "sigmoid",
            "output_activation": "softmax",
            "loss": "auto",
        },
        "train": {
            "algorithm": "batch_gd",
            "lr": 0.3,
            "epochs": 25,
            "seed": 3,
            "run_dir": "runs/blobs-softmax-demo",
            "enable_plots": False,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None


def _read_preset_file(path: Path) -> Mapping[str, object]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported preset file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Preset {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = _read_preset_file(file)
                missing = {"data", "model", "train"} - set(data)
                if missing:
                    raise KeyError(
                        f"Preset {file.name} is missing required sections: "
                        f"{', '.join(sorted(missing))}"
                    )
                found[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_overrides = _file_presets()
    if name in file_overrides:
        return file_overrides[name]
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Build data, network and algorithm from ``config`` and train once.

    Writes ``metrics_{split}.jsonl|csv``, ``metrics.jsonl``/``metrics.csv``
    aliases of the train split, ``summary.json``, ``manifest.json`` and
    ``config.json`` into the run directory.
    """

    data_cfg = dict(config["data"])
    model_cfg = dict(config["model"])
    train_cfg = dict(config["train"])

    dataset = registry.get_dataset(data_cfg["name"], **data_cfg.get("options", {}))
    data_spec = dataset.data_spec
    seed = int(train_cfg.get("seed", 0))

    dims = _build_dims(model_cfg, d_in=data_spec.d_in, d_out=data_spec.d_out)
    mechanics = _build_mechanics(model_cfg, len(dims), data_spec.task_type)
    network = NeuralNetwork.from_topology(dims, mechanics, seed=seed)
    _apply_overrides(network, model_cfg)

    algorithm = _build_algorithm(train_cfg, seed)
    metric_names = _metric_names(train_cfg.get("metrics", "default"), data_spec.task_type)

    run_dir = _resolve_run_dir(train_cfg, dataset.name, algorithm.name)
    run_dir.mkdir(parents=True, exist_ok=True)

    _print_startup_summary(
        dataset_name=dataset.name,
        dims=dims,
        mechanics=mechanics,
        algorithm=algorithm,
        examples=dataset.splits,
        param_count=sum(dims[i] * dims[i + 1] + dims[i + 1] for i in range(len(dims) - 1)),
    )

    train_jsonl = JsonlSink(run_dir / "metrics_train.jsonl", split="train", seed=seed)
    train_csv = CsvSink(run_dir / "metrics_train.csv", split="train")
    val_jsonl = JsonlSink(run_dir / "metrics_val.jsonl", split="val", seed=seed)
    val_csv = CsvSink(run_dir / "metrics_val.csv", split="val")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))

    trainer = Trainer(network, algorithm, callbacks=[plots])
    result = trainer.run(
        dataset.split("train"),
        seed=seed,
        val_examples=dataset.examples.get("val"),
        task_type=data_spec.task_type,
        metric_names=metric_names,
        eval_every=int(train_cfg.get("eval_every", 1)),
        split_loggers={
            "train": [train_jsonl, train_csv],
            "val": [val_jsonl, val_csv],
        },
        workers=int(train_cfg["workers"]) if train_cfg.get("workers") else None,
        init_range=(
            float(train_cfg.get("init_low", 0.0)),
            float(train_cfg.get("init_high", 1.0)),
        ),
    )
    plots.close()

    test_examples = dataset.examples.get("test")
    if test_examples:
        test_metrics = trainer.evaluate(
            test_examples, metric_names, task_type=data_spec.task_type
        )
        (run_dir / "metrics_test.json").write_text(json.dumps(test_metrics, indent=2))

    safe_config = _safe_config(config, dims)
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=safe_config,
        dataset_provenance=dataset.provenance,
        topology=dims,
    )
    summary_path = write_summary(
        train_jsonl.path, run_dir / "summary.json", tail=int(train_cfg.get("summary_tail", 32))
    )
    (run_dir / "config.json").write_text(json.dumps(safe_config, indent=2))

    (run_dir / "metrics.jsonl").write_text(train_jsonl.path.read_text())
    (run_dir / "metrics.csv").write_text(train_csv.path.read_text())

    return RunResult(
        steps=result.steps,
        final_loss=result.final_loss,
        metrics_path=str(train_jsonl.path),
        manifest_path=manifest,
        summary_path=str(summary_path),
    )


def _metric_names(metrics_cfg: object, task_type: str) -> List[str]:
    if isinstance(metrics_cfg, str):
        names = [m.strip() for m in metrics_cfg.split(",") if m.strip()]
    else:
        names = [str(m) for m in metrics_cfg]  # type: ignore[union-attr]
    if not names or names == ["default"]:
        return default_metrics(task_type)
    return names


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str, algorithm: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(train_cfg["run_dir"])
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset / algorithm


def _build_dims(model_cfg: Mapping[str, object], *, d_in: int, d_out: int) -> List[int]:
    if "topology" in model_cfg:
        dims = [int(n) for n in model_cfg["topology"]]  # type: ignore[union-attr]
        if dims and (dims[0] != d_in or dims[-1] != d_out):
            raise ValueError(
                f"Topology {dims} does not match dataset shape (d_in={d_in}, d_out={d_out})"
            )
        return dims
    configured_in = int(model_cfg.get("d_in", d_in))
    configured_out = int(model_cfg.get("d_out", d_out))
    if configured_in != d_in:
        raise ValueError(f"Configured d_in={configured_in} but dataset has {d_in}")
    if configured_out != d_out:
        raise ValueError(f"Configured d_out={configured_out} but dataset has {d_out}")
    dims = [d_in]
    dims.extend(int(h) for h in model_cfg.get("hidden", []))  # type: ignore[union-attr]
    dims.append(d_out)
    return dims


def _mechanics(activation: str, loss: str, task_type: str) -> Mechanics:
    return Mechanics(
        _activations.REGISTRY.get(activation),
        _losses.REGISTRY.resolve(loss, task_type=task_type),
    )


def _build_mechanics(
    model_cfg: Mapping[str, object], n_layers: int, task_type: str
) -> List[Mechanics]:
    """Input layer keeps the default; hidden layers carry no loss."""

    hidden_activation = str(model_cfg.get("activation", "sigmoid"))
    output_activation = str(model_cfg.get("output_activation", hidden_activation))
    output_loss = str(model_cfg.get("output_loss", model_cfg.get("loss", "auto")))

    hidden = _mechanics(hidden_activation, "none", task_type)
    output = _mechanics(output_activation, output_loss, task_type)
    return [DEFAULT_MECHANICS] + [hidden] * (n_layers - 2) + [output]


def _apply_overrides(network: NeuralNetwork, model_cfg: Mapping[str, object]) -> None:
    """Apply ``model.layers`` (whole layer) and ``model.neurons`` overrides."""

    dense: List[MechIndex] = []
    for entry in model_cfg.get("layers", []) or []:  # type: ignore[union-attr]
        layer = network.get_layer(int(entry["index"]))
        current = layer.standard_mechanics
        dense.append(
            MechIndex(
                int(entry["index"]),
                Mechanics(
                    _activations.REGISTRY.get(str(entry.get("activation", current.activation.name))),
                    _losses.REGISTRY.get(str(entry.get("loss", current.loss.name))),
                ),
            )
        )
    if dense:
        network.set_dense_mechanics(*dense)

    per_neuron: List[MechNetworkIndex] = []
    for entry in model_cfg.get("neurons", []) or []:  # type: ignore[union-attr]
        layer = network.get_layer(int(entry["layer"]))
        current = layer.actual_mechanics[int(entry["neuron"])]
        per_neuron.append(
            MechNetworkIndex(
                int(entry["layer"]),
                MechIndex(
                    int(entry["neuron"]),
                    Mechanics(
                        _activations.REGISTRY.get(str(entry.get("activation", current.activation.name))),
                        _losses.REGISTRY.get(str(entry.get("loss", current.loss.name))),
                    ),
                ),
            )
        )
    if per_neuron:
        network.set_mechanics(*per_neuron)


def _build_algorithm(train_cfg: Mapping[str, object], seed: int) -> LearningAlgorithm:
    name = str(train_cfg.get("algorithm", "batch_gd"))
    lr = float(train_cfg.get("lr", 0.1))
    rng = np.random.default_rng(seed + 1) if train_cfg.get("shuffle") else None
    if name == "batch_gd":
        return batch_gradient_descent(lr, int(train_cfg.get("epochs", 1)), rng=rng)
    if name == "threshold_batch_gd":
        if "threshold" not in train_cfg:
            raise KeyError("threshold_batch_gd requires `threshold` in the train config")
        max_epochs = train_cfg.get("max_epochs")
        return threshold_batch_gradient_descent(
            lr,
            float(train_cfg["threshold"]),
            max_epochs=int(max_epochs) if max_epochs is not None else None,
            rng=rng,
        )
    raise ValueError(f"Unknown algorithm: {name}")


def _safe_config(config: Mapping[str, object], dims: Sequence[int]) -> Mapping[str, object]:
    copied = json.loads(json.dumps(config))
    copied.setdefault("model", {})["topology"] = list(dims)
    return copied


def _print_startup_summary(
    *,
    dataset_name: str,
    dims: Sequence[int],
    mechanics: Sequence[Mechanics],
    algorithm: LearningAlgorithm,
    examples: Mapping[str, int],
    param_count: int,
) -> None:
    hidden = mechanics[1] if len(mechanics) > 2 else None
    output = mechanics[-1]
    print("=== neuralcore run ===")
    print(f"Dataset       : {dataset_name} {dict(examples)}")
    print(f"Topology      : {list(dims)}")
    if hidden is not None:
        print(f"Hidden        : {hidden.activation.name}")
    print(f"Output        : {output.activation.name} / {output.loss.name}")
    if output.activation.layerwise:
        print("Note          : output gradient uses the diagonal activation derivative only")
    print(f"Algorithm     : {algorithm.name} (lr={algorithm.learning_rate})")
    print(f"Parameters    : {param_count}")
    print("======================")


__all__ = ["run_pipeline", "load_preset", "presets"]
