"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, MutableMapping, Tuple

from ..core.types import TrainingExample

TASK_TYPES = frozenset({"regression", "multiclass", "binary", "multilabel"})


@dataclass(frozen=True)
class DataSpec:
    """Structural information about a dataset.

    Attributes
    ----------
    d_in:
        Length of every example's ``X``; the input layer size.
    d_out:
        Length of every example's ``Y``; the output layer size.
    task_type:
        One of ``{"regression", "multiclass", "binary", "multilabel"}``.
        Drives ``"auto"`` loss resolution and default metrics.
    num_classes:
        Number of discrete classes when ``task_type`` is ``"multiclass"``.
    extra:
        Free-form metadata, e.g. the label classes of a CSV target.
    """

    d_in: int
    d_out: int
    task_type: str
    num_classes: int | None = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DatasetSpec:
    """A named, fully materialized set of training examples per split."""

    name: str
    examples: Dict[str, Tuple[TrainingExample, ...]]
    data_spec: DataSpec
    provenance: Dict[str, Any]

    def split(self, split: str) -> Tuple[TrainingExample, ...]:
        if split not in self.examples:
            raise ValueError(f"Unknown split: {split}")
        return self.examples[split]

    @property
    def splits(self) -> Dict[str, int]:
        return {name: len(items) for name, items in self.examples.items()}


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    Works as a decorator::

        @register_dataset("blobs")
        def make_blobs(**kwargs):
            ...

    or directly with ``register_dataset("blobs", make_blobs)``.
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    return _decorator


def get_dataset(dataset: str, /, **options: Any) -> DatasetSpec:
    """Build and validate the :class:`DatasetSpec` for ``dataset``."""

    if dataset not in _REGISTRY:
        raise KeyError(f"Unknown dataset: {dataset}. Available: {', '.join(available_datasets())}")
    spec = _REGISTRY[dataset](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    data_spec = spec.data_spec
    if data_spec.task_type not in TASK_TYPES:
        raise ValueError(f"Invalid task type: {data_spec.task_type}")
    if data_spec.task_type == "multiclass" and data_spec.num_classes is None:
        raise ValueError("Multiclass datasets must define num_classes")
    if not spec.examples.get("train"):
        raise ValueError(f"Dataset {spec.name!r} has no training examples")
    for split, items in spec.examples.items():
        for example in items:
            if example.input_size != data_spec.d_in or example.target_size != data_spec.d_out:
                raise ValueError(
                    f"Split {split!r} holds an example of shape "
                    f"({example.input_size}, {example.target_size}), "
                    f"expected ({data_spec.d_in}, {data_spec.d_out})"
                )


__all__ = [
    "DataSpec",
    "DatasetSpec",
    "TASK_TYPES",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
