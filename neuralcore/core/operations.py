"""Vector/matrix construction helpers and small numeric utilities."""

from __future__ import annotations

from typing import Callable, Iterable, Sequence

import numpy as np

from .errors import ParseError
from .matrix import Matrix, matrix_to_string, vector_to_string

ScalarFn = Callable[[float], float]

DERIVATIVE_STEP = 1e-6


def col_vector(data: Iterable[float]) -> Matrix:
    return Matrix(np.asarray(list(data), dtype=np.float64).reshape(-1, 1))


def row_vector(data: Iterable[float]) -> Matrix:
    return Matrix(np.asarray(list(data), dtype=np.float64).reshape(1, -1))


def matrix(data: Sequence[Sequence[float]] | None = None, *, rows: int = 0, cols: int = 0) -> Matrix:
    """Build a matrix from nested rows, or a zero matrix of ``rows`` x ``cols``."""

    if data is None:
        return Matrix.zeros(rows, cols)
    return Matrix(np.asarray(data, dtype=np.float64).reshape(len(data), -1))


def to_array(data: Matrix) -> np.ndarray:
    """Flatten a matrix into a 1-D array in row-major order."""

    return data.to_array().reshape(-1)


def plot_matrix(horizontal: Matrix, vertical: Matrix) -> Matrix:
    """Outer product laid out like a plot of land.

    ``horizontal`` (length m) runs along the columns and ``vertical``
    (length n) along the rows, so entry ``(row, col)`` of the ``n x m``
    result is ``horizontal[col] * vertical[row]``.  Orientation of either
    input vector is ignored.
    """

    h = to_array(horizontal)
    v = to_array(vertical)
    return Matrix(np.outer(v, h))


def derivative(func: ScalarFn, x: float, step: float = DERIVATIVE_STEP) -> float:
    """Forward-difference approximation ``(f(x + h) - f(x)) / h``."""

    return (func(x + step) - func(x)) / step


def parse_number(text: str) -> float:
    try:
        return float(str(text).strip())
    except ValueError as exc:
        raise ParseError(f"Cannot parse {text!r} as a number") from exc


def parse_vector(source: str | Sequence[str], sep: str = ",") -> Matrix:
    """Turn ``"1.0, 2, 3"`` (or a sequence of fields) into a column vector."""

    if isinstance(source, str):
        fields = [part for part in source.split(sep)]
    else:
        fields = list(source)
    if not fields or (len(fields) == 1 and not str(fields[0]).strip()):
        raise ParseError("Cannot parse an empty vector")
    return col_vector(parse_number(field) for field in fields)


__all__ = [
    "DERIVATIVE_STEP",
    "col_vector",
    "row_vector",
    "matrix",
    "to_array",
    "plot_matrix",
    "derivative",
    "parse_number",
    "parse_vector",
    "matrix_to_string",
    "vector_to_string",
]
