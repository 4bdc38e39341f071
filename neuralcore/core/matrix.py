"""Dense matrix and per-layer tensor primitives.

``Matrix`` is a thin, shape-checked wrapper around a 2-D ``float64``
``numpy.ndarray``.  Every binary operation requires both operands to share a
shape; numpy broadcasting is never relied upon.  ``Tensor`` is a fixed-length
sequence of matrices with one slot per network layer.
"""

from __future__ import annotations

from typing import Callable, Iterable, Iterator, List, Sequence, Union

import numpy as np

from .errors import DimensionMismatch

Array = np.ndarray
Scalar = Union[int, float]


class Matrix:
    """Rectangular array of reals with fixed dimensions."""

    __slots__ = ("_data",)

    def __init__(self, data: "Matrix | Array | Sequence") -> None:
        if isinstance(data, Matrix):
            arr = data._data.copy()
        else:
            arr = np.array(data, dtype=np.float64)
        if arr.ndim == 0:
            arr = arr.reshape(1, 1)
        elif arr.ndim == 1:
            arr = arr.reshape(-1, 1)
        elif arr.ndim != 2:
            raise ValueError(f"Matrix data must be at most 2-D, got {arr.ndim} dimensions")
        self._data = arr

    @classmethod
    def _wrap(cls, arr: Array) -> "Matrix":
        out = cls.__new__(cls)
        out._data = arr
        return out

    @classmethod
    def zeros(cls, rows: int, cols: int) -> "Matrix":
        return cls._wrap(np.zeros((rows, cols), dtype=np.float64))

    @classmethod
    def full(cls, rows: int, cols: int, value: float) -> "Matrix":
        return cls._wrap(np.full((rows, cols), float(value), dtype=np.float64))

    # ------------------------------------------------------------------
    # Shape and access

    @property
    def rows(self) -> int:
        return int(self._data.shape[0])

    @property
    def cols(self) -> int:
        return int(self._data.shape[1])

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, self.cols

    def size(self) -> int:
        return int(self._data.size)

    def is_vector(self) -> bool:
        return self.rows == 1 or self.cols == 1

    def get(self, row: int, col: int | None = None) -> float:
        """Return an entry; a single index reads in row-major order."""

        if col is None:
            return float(self._data.reshape(-1)[row])
        return float(self._data[row, col])

    def __getitem__(self, index) -> float:
        if isinstance(index, tuple):
            return self.get(*index)
        return self.get(index)

    def to_array(self) -> Array:
        return self._data.copy()

    def to_list(self) -> List[float]:
        """Row-major flat list of every entry."""

        return [float(v) for v in self._data.reshape(-1)]

    def copy(self) -> "Matrix":
        return Matrix._wrap(self._data.copy())

    def row(self, i: int) -> "Matrix":
        return Matrix._wrap(self._data[i : i + 1, :].copy())

    def col(self, j: int) -> "Matrix":
        return Matrix._wrap(self._data[:, j : j + 1].copy())

    # ------------------------------------------------------------------
    # Arithmetic

    def _require_same_shape(self, other: "Matrix", op: str) -> None:
        if self.shape != other.shape:
            raise DimensionMismatch(
                f"Cannot {op} matrices of shape {self.rows}x{self.cols} "
                f"and {other.rows}x{other.cols}"
            )

    def plus(self, other: "Matrix | Scalar") -> "Matrix":
        if isinstance(other, Matrix):
            self._require_same_shape(other, "add")
            return Matrix._wrap(self._data + other._data)
        return Matrix._wrap(self._data + float(other))

    def minus(self, other: "Matrix | Scalar") -> "Matrix":
        if isinstance(other, Matrix):
            self._require_same_shape(other, "subtract")
            return Matrix._wrap(self._data - other._data)
        return Matrix._wrap(self._data - float(other))

    def element_mult(self, other: "Matrix") -> "Matrix":
        self._require_same_shape(other, "elementwise-multiply")
        return Matrix._wrap(self._data * other._data)

    def scale(self, scalar: Scalar) -> "Matrix":
        return Matrix._wrap(self._data * float(scalar))

    def divide(self, scalar: Scalar) -> "Matrix":
        with np.errstate(divide="ignore", invalid="ignore"):
            return Matrix._wrap(self._data / float(scalar))

    def transpose(self) -> "Matrix":
        return Matrix._wrap(self._data.T.copy())

    @property
    def T(self) -> "Matrix":
        return self.transpose()

    def mult(self, other: "Matrix") -> "Matrix":
        """Matrix product ``self @ other``."""

        if self.cols != other.rows:
            raise DimensionMismatch(
                f"Cannot multiply {self.rows}x{self.cols} by {other.rows}x{other.cols}"
            )
        return Matrix._wrap(self._data @ other._data)

    def dot(self, other: "Matrix") -> float:
        """Inner product of two vectors of equal length (orientation ignored)."""

        if not (self.is_vector() and other.is_vector()) or self.size() != other.size():
            raise DimensionMismatch(
                f"dot requires two vectors of equal length, got "
                f"{self.rows}x{self.cols} and {other.rows}x{other.cols}"
            )
        return float(np.dot(self._data.reshape(-1), other._data.reshape(-1)))

    def map(self, func: Callable[[float], float]) -> "Matrix":
        """Apply a scalar function to every entry."""

        out = np.empty_like(self._data)
        flat_in = self._data.reshape(-1)
        flat_out = out.reshape(-1)
        for idx, value in enumerate(flat_in):
            flat_out[idx] = func(float(value))
        return Matrix._wrap(out)

    apply_entrywise = map

    def fold(self, func: Callable[[float, float], float], initial: float) -> float:
        acc = initial
        for value in self._data.reshape(-1):
            acc = func(acc, float(value))
        return acc

    def sum(self) -> float:
        return float(self._data.sum())

    def max_abs(self) -> float:
        return float(np.max(np.abs(self._data))) if self._data.size else 0.0

    # ------------------------------------------------------------------
    # In-place mutation (the only mutating operations)

    def fill_(self, value: float) -> "Matrix":
        self._data.fill(float(value))
        return self

    def zero_(self) -> "Matrix":
        return self.fill_(0.0)

    def set_(self, row: int, col: int, value: float) -> "Matrix":
        self._data[row, col] = float(value)
        return self

    # ------------------------------------------------------------------
    # Python protocol sugar

    __add__ = plus
    __sub__ = minus
    __matmul__ = mult

    def __mul__(self, other: "Matrix | Scalar") -> "Matrix":
        if isinstance(other, Matrix):
            return self.element_mult(other)
        return self.scale(other)

    __rmul__ = __mul__

    def __truediv__(self, other: Scalar) -> "Matrix":
        return self.divide(other)

    def __neg__(self) -> "Matrix":
        return Matrix._wrap(-self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._data, other._data))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Matrix({self._data.tolist()!r})"

    def __str__(self) -> str:
        return matrix_to_string(self)


def vector_to_string(vec: Matrix) -> str:
    return "<" + ", ".join(repr(v) for v in vec.to_list()) + ">"


def matrix_to_string(matrix: Matrix) -> str:
    if matrix.is_vector():
        body = vector_to_string(matrix)
    else:
        body = np.array2string(matrix.to_array())
    return f"{body} ({matrix.rows}x{matrix.cols})"


class Tensor:
    """Ordered, fixed-length collection of matrices (one per layer)."""

    __slots__ = ("_matrices",)

    def __init__(self, matrices: Iterable[Matrix]) -> None:
        self._matrices: tuple[Matrix, ...] = tuple(matrices)

    def __len__(self) -> int:
        return len(self._matrices)

    def __iter__(self) -> Iterator[Matrix]:
        return iter(self._matrices)

    def __getitem__(self, i: int) -> Matrix:
        return self._matrices[i]

    def size(self) -> int:
        return len(self._matrices)

    def get(self, i: int) -> Matrix:
        return self._matrices[i]

    def get_last(self) -> Matrix:
        return self._matrices[-1]

    def with_slot(self, i: int, matrix: Matrix) -> "Tensor":
        mats = list(self._matrices)
        mats[i] = matrix
        return Tensor(mats)

    def _require_same_length(self, other: "Tensor", op: str) -> None:
        if len(other) != len(self):
            raise DimensionMismatch(
                f"Cannot {op} tensors with {len(self)} and {len(other)} slots"
            )

    def _combine(self, other, op: str, matrix_op: Callable[[Matrix, object], Matrix]) -> "Tensor":
        if isinstance(other, Tensor):
            self._require_same_length(other, op)
            return Tensor(matrix_op(a, b) for a, b in zip(self._matrices, other._matrices))
        return Tensor(matrix_op(a, other) for a in self._matrices)

    def plus(self, other: "Tensor | Matrix | Scalar") -> "Tensor":
        return self._combine(other, "add", Matrix.plus)

    def minus(self, other: "Tensor | Matrix | Scalar") -> "Tensor":
        return self._combine(other, "subtract", Matrix.minus)

    def element_mult(self, other: "Tensor | Matrix") -> "Tensor":
        return self._combine(other, "elementwise-multiply", Matrix.element_mult)

    def scale(self, scalar: Scalar) -> "Tensor":
        return Tensor(m.scale(scalar) for m in self._matrices)

    def divide(self, scalar: Scalar) -> "Tensor":
        return Tensor(m.divide(scalar) for m in self._matrices)

    def apply(self, operation: Callable[[Matrix], Matrix]) -> "Tensor":
        return Tensor(operation(m) for m in self._matrices)

    def apply_entrywise(self, operation: Callable[[float], float]) -> "Tensor":
        return Tensor(m.map(operation) for m in self._matrices)

    def fill(self, value: float) -> "Tensor":
        """Same shapes, every entry set to ``value``."""

        return Tensor(Matrix.full(m.rows, m.cols, value) for m in self._matrices)

    def fold(self, func: Callable[[float, float], float], initial: float) -> float:
        acc = initial
        for matrix in self._matrices:
            acc = matrix.fold(func, acc)
        return acc

    def shapes(self) -> List[tuple[int, int]]:
        return [m.shape for m in self._matrices]

    def __add__(self, other):
        return self.plus(other)

    def __sub__(self, other):
        return self.minus(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tensor):
            return NotImplemented
        return len(self) == len(other) and all(a == b for a, b in zip(self, other))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Tensor({list(self._matrices)!r})"

    def __str__(self) -> str:
        parts = []
        for i, matrix in enumerate(self._matrices):
            body = vector_to_string(matrix) if matrix.is_vector() else str(matrix)
            parts.append(f"[{i}]: {body}")
        return "".join(parts)


__all__ = ["Array", "Matrix", "Tensor", "matrix_to_string", "vector_to_string"]
