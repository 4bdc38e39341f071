"""Command line entry point for neuralcore training runs."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable

import yaml

from neuralcore.data import available_datasets
from neuralcore.training import pipelines


def _format_result(result) -> str:
    payload = {
        "steps": result.steps,
        "final_loss": result.final_loss,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
    }
    if result.summary_path:
        payload["summary"] = result.summary_path
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="sine-sigmoid-epochs",
        help="Preset configuration to execute",
    )
    parser.add_argument(
        "--config", type=Path, help="Optional JSON/YAML config override"
    )
    parser.add_argument(
        "--enable-plots", action="store_true", help="Write loss.png into the run directory"
    )
    parser.add_argument(
        "--dataset",
        choices=sorted(available_datasets()),
        help="Override the dataset used by the run",
    )
    parser.add_argument("--csv-path", help="Path to a CSV file for the csv dataset")
    parser.add_argument("--target-col", help="Target column name for the csv dataset")
    parser.add_argument(
        "--one-hot",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="One-hot encode the target of classification datasets",
    )
    parser.add_argument(
        "--val-split",
        type=float,
        help="Validation split ratio",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed used for dataset splits and initialization",
    )
    parser.add_argument("--lr", type=float, help="Override the learning rate")
    parser.add_argument("--epochs", type=int, help="Override the epoch count")
    parser.add_argument("--run-dir", type=Path, help="Directory receiving run artifacts")
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    return parser.parse_args(argv)


def _load_override(path: Path) -> dict:
    text = path.read_text()
    if path.suffix in {".yml", ".yaml"}:
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must decode to a mapping")
    return data


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


def _dataset_section(args: argparse.Namespace) -> dict:
    options: dict = {}
    if args.dataset == "csv":
        if not args.csv_path:
            raise SystemExit("--csv-path is required for the csv dataset")
        options["csv_path"] = args.csv_path
        if args.target_col:
            options["target_col"] = args.target_col
    if args.one_hot is not None:
        options["one_hot"] = bool(args.one_hot)
    if args.val_split is not None:
        options["val_split"] = float(args.val_split)
    if args.seed is not None:
        options["seed"] = int(args.seed)
    return {"name": args.dataset, "options": options}


_TRAIN_FLAGS = (
    ("seed", "seed", int),
    ("lr", "lr", float),
    ("epochs", "epochs", int),
    ("run_dir", "run_dir", str),
)


def resolve_config(args: argparse.Namespace) -> dict:
    """Preset, then ``--config``, then individual flags."""

    config = json.loads(json.dumps(pipelines.load_preset(args.preset)))

    if args.config:
        override = _load_override(args.config)
        # A file with all three sections is a complete config, not a patch.
        if {"data", "model", "train"} <= set(override):
            config = json.loads(json.dumps(override))
        else:
            config = _merge(config, override)

    if args.dataset:
        config["data"] = _dataset_section(args)
        model_cfg = config.setdefault("model", {})
        for key in ("topology", "d_in", "d_out"):
            model_cfg.pop(key, None)

    train_cfg = config.setdefault("train", {})
    if args.enable_plots:
        train_cfg["enable_plots"] = True
    for attr, key, cast in _TRAIN_FLAGS:
        value = getattr(args, attr)
        if value is not None:
            train_cfg[key] = cast(value)
    return config


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        print("\n".join(sorted(pipelines.presets())))
        raise SystemExit(0)

    config = resolve_config(args)
    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)
    print(_format_result(result))


if __name__ == "__main__":
    main()
