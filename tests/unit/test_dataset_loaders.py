import numpy as np
import pytest

from neuralcore.core.errors import ParseError
from neuralcore.core.types import TrainingExample
from neuralcore.data import available_datasets, get_dataset, register_dataset
from neuralcore.data.registry import DataSpec, DatasetSpec
from neuralcore.data.utils import deterministic_split


def test_builtin_datasets_registered():
    assert {"synthetic", "blobs", "csv"} <= set(available_datasets())
    with pytest.raises(KeyError):
        get_dataset("imagenet")


def test_synthetic_sine():
    spec = get_dataset("synthetic", n_points=20, seed=3, val_split=0.2)
    assert spec.data_spec.d_in == 1
    assert spec.data_spec.task_type == "regression"
    assert spec.splits == {"train": 16, "val": 4, "test": 0}
    targets = np.array([ex.Y.get(0) for ex in spec.split("train")])
    assert np.all((targets >= 0.0) & (targets <= 1.0))
    again = get_dataset("synthetic", n_points=20, seed=3, val_split=0.2)
    assert spec.split("val") == again.split("val")


def test_blobs_binary_and_one_hot():
    binary = get_dataset("blobs", n_points=10)
    assert binary.data_spec.task_type == "binary"
    assert binary.data_spec.d_out == 1
    one_hot = get_dataset("blobs", n_points=10, one_hot=True)
    assert one_hot.data_spec.task_type == "multiclass"
    assert one_hot.data_spec.d_out == 2
    for example in one_hot.split("train"):
        assert example.Y.sum() == 1.0
    with pytest.raises(ValueError):
        binary.split("holdout")


def test_csv_regression(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a,b,target\n1,2,0.5\n3,4,1.5\n5,6,2.5\n")
    spec = get_dataset("csv", csv_path=path)
    assert spec.data_spec.d_in == 2
    assert spec.data_spec.d_out == 1
    first = spec.split("train")[0]
    np.testing.assert_allclose(first.X.to_array().ravel(), [1.0, 2.0])
    assert first.Y.get(0) == 0.5


def test_csv_one_hot_labels(tmp_path):
    path = tmp_path / "labels.csv"
    path.write_text("x,y,label\n0,0,cat\n1,1,dog\n0,1,bird\n1,0,cat\n")
    spec = get_dataset("csv", csv_path=path, target_col="label", one_hot=True)
    assert spec.data_spec.task_type == "multiclass"
    assert spec.data_spec.num_classes == 3
    assert spec.data_spec.extra["classes"] == ["bird", "cat", "dog"]
    first = spec.split("train")[0]
    np.testing.assert_array_equal(first.Y.to_array().ravel(), [0.0, 1.0, 0.0])


def test_csv_non_numeric_input_raises_parse_error(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("a,target\n1,0\nfoo,1\n")
    with pytest.raises(ParseError):
        get_dataset("csv", csv_path=path)
    with pytest.raises(KeyError):
        get_dataset("csv", csv_path=path, target_col="missing")


def test_deterministic_split():
    a = deterministic_split(50, val_split=0.2, test_split=0.1, seed=4)
    b = deterministic_split(50, val_split=0.2, test_split=0.1, seed=4)
    np.testing.assert_array_equal(a.train, b.train)
    assert a.sizes == {"train": 35, "val": 10, "test": 5}
    with pytest.raises(ValueError):
        deterministic_split(10, val_split=0.6, test_split=0.5)


def test_register_custom_dataset():
    @register_dataset("xor-test")
    def _xor(**_):
        examples = tuple(
            TrainingExample([a, b], [float(a != b)]) for a in (0.0, 1.0) for b in (0.0, 1.0)
        )
        return DatasetSpec(
            name="xor-test",
            examples={"train": examples},
            data_spec=DataSpec(d_in=2, d_out=1, task_type="binary"),
            provenance={"type": "xor"},
        )

    spec = get_dataset("xor-test")
    assert spec.splits == {"train": 4}


def test_invalid_dataset_spec_is_rejected():
    @register_dataset("broken-test")
    def _broken(**_):
        return DatasetSpec(
            name="broken-test",
            examples={"train": (TrainingExample([1.0], [1.0]),)},
            data_spec=DataSpec(d_in=2, d_out=1, task_type="regression"),
            provenance={},
        )

    with pytest.raises(ValueError):
        get_dataset("broken-test")
