import numpy as np
import pytest

from neuralcore.core.errors import DimensionMismatch, ParseError
from neuralcore.core.matrix import Matrix, Tensor, matrix_to_string, vector_to_string
from neuralcore.core.operations import (
    col_vector,
    derivative,
    matrix,
    parse_vector,
    plot_matrix,
    row_vector,
)


def test_binary_ops_require_identical_shapes():
    a = Matrix([[1.0, 2.0]])
    b = Matrix([[1.0], [2.0]])
    with pytest.raises(DimensionMismatch):
        a.plus(b)
    with pytest.raises(DimensionMismatch):
        a.element_mult(b)
    with pytest.raises(DimensionMismatch):
        _ = a - b


def test_matrix_product_checks_inner_dimension():
    a = matrix([[1, 2], [3, 4]])
    b = col_vector([1, 1])
    np.testing.assert_allclose(a.mult(b).to_array(), [[3.0], [7.0]])
    with pytest.raises(DimensionMismatch):
        b.mult(a)


def test_operations_return_new_matrices():
    a = Matrix([[1.0, 2.0], [3.0, 4.0]])
    before = a.to_array()
    a.plus(1.0)
    a.scale(3.0)
    a.map(lambda v: v * v)
    a.transpose()
    np.testing.assert_array_equal(a.to_array(), before)
    a.zero_()
    assert a.sum() == 0.0


def test_plot_matrix_lays_horizontal_along_columns():
    h = row_vector([1.0, 2.0, 3.0])
    v = col_vector([4.0, 5.0])
    out = plot_matrix(h, v)
    assert out.shape == (2, 3)
    for row in range(2):
        for col in range(3):
            assert out.get(row, col) == h.get(col) * v.get(row)


def test_map_fold_and_transpose():
    a = matrix([[1, -2], [3, -4]])
    assert a.map(abs).sum() == 10.0
    assert a.fold(lambda acc, v: max(acc, v), float("-inf")) == 3.0
    assert a.T.get(0, 1) == 3.0


def test_division_by_zero_propagates_infinity():
    out = col_vector([1.0, 0.0]).divide(0.0)
    assert np.isinf(out.get(0))
    assert np.isnan(out.get(1))


def test_tensor_slot_count_must_match():
    t1 = Tensor([Matrix.zeros(2, 1), Matrix.zeros(1, 1)])
    t2 = Tensor([Matrix.zeros(2, 1)])
    with pytest.raises(DimensionMismatch):
        t1.plus(t2)
    summed = t1.plus(t1.fill(2.0))
    assert summed.fold(lambda acc, v: acc + v, 0.0) == 6.0
    assert summed.get_last().shape == (1, 1)


def test_tensor_slot_shapes_must_match():
    t1 = Tensor([Matrix.zeros(2, 1)])
    t2 = Tensor([Matrix.zeros(3, 1)])
    with pytest.raises(DimensionMismatch):
        t1.minus(t2)


def test_string_rendering():
    vec = col_vector([1.0, 2.5])
    assert vector_to_string(vec) == "<1.0, 2.5>"
    assert matrix_to_string(vec) == "<1.0, 2.5> (2x1)"
    tensor = Tensor([vec])
    assert str(tensor) == "[0]: <1.0, 2.5>"


def test_forward_difference_derivative():
    assert derivative(lambda x: x * x, 3.0) == pytest.approx(6.0, abs=1e-4)


def test_parse_vector():
    parsed = parse_vector("1, 2.5 ,-3")
    np.testing.assert_allclose(parsed.to_array().ravel(), [1.0, 2.5, -3.0])
    assert parsed.shape == (3, 1)
    with pytest.raises(ParseError):
        parse_vector("1,abc")
    with pytest.raises(ParseError):
        parse_vector("")
    with pytest.raises(ValueError):
        parse_vector(["4", "x"])
