import pytest

from neuralcore.core.errors import DimensionMismatch
from neuralcore.core.matrix import Matrix, Tensor
from neuralcore.core.params import NetworkParams


def _params(w: float, b: float) -> NetworkParams:
    return NetworkParams(
        Tensor([Matrix.zeros(1, 0), Matrix.full(2, 1, w)]),
        Tensor([Matrix.zeros(1, 1), Matrix.full(2, 1, b)]),
    )


def test_algebra_is_entrywise():
    p = _params(1.0, 2.0)
    q = _params(0.5, 0.5)
    assert p.plus(q).TW[1].get(0) == 1.5
    assert p.minus(q).Tb[1].get(1) == 1.5
    assert p.scale(2.0).TW[1].get(1) == 2.0
    assert (p / 4.0).Tb[1].get(0) == 0.5
    assert (p - q * 2.0).TW[1].get(0) == 0.0


def test_abs_sum_and_fold_order():
    p = _params(-1.0, 3.0)
    assert p.abs_sum() == 8.0
    seen = []
    p.fold(lambda acc, v: seen.append(v) or acc, 0.0)
    assert seen == [-1.0, -1.0, 0.0, 3.0, 3.0]


def test_skeleton_and_fill_keep_shapes():
    p = _params(1.0, 2.0)
    assert p.skeleton().abs_sum() == 0.0
    assert p.skeleton().shapes() == p.shapes()
    assert p.fill(1.0).abs_sum() == 5.0


def test_mismatched_slots_and_shapes():
    with pytest.raises(DimensionMismatch):
        NetworkParams(Tensor([Matrix.zeros(1, 1)]), Tensor([]))
    p = _params(1.0, 1.0)
    other = NetworkParams(
        Tensor([Matrix.zeros(1, 0), Matrix.zeros(3, 1)]),
        Tensor([Matrix.zeros(1, 1), Matrix.zeros(3, 1)]),
    )
    with pytest.raises(DimensionMismatch):
        p.plus(other)
    with pytest.raises(DimensionMismatch):
        p.with_layer(1, Matrix.zeros(1, 1), Matrix.zeros(2, 1))


def test_with_layer_is_functional():
    p = _params(1.0, 1.0)
    q = p.with_layer(1, Matrix.full(2, 1, 9.0), Matrix.zeros(2, 1))
    assert p.TW[1].get(0) == 1.0
    assert q.TW[1].get(0) == 9.0
    assert str(q).startswith("NETWORK PARAMS\nTensor W: ")
