"""Exceptions raised by the neuralcore engine."""


class NeuralCoreError(Exception):
    """Base class for every error raised by neuralcore."""


class DimensionMismatch(NeuralCoreError, ValueError):
    """Raised when two operands do not share a shape (or slot count)."""


class ParseError(NeuralCoreError, ValueError):
    """Raised when numeric text supplied by a collaborator cannot be parsed."""


class TopologyError(NeuralCoreError, ValueError):
    """Raised at construction time when layer sizes do not line up."""


class TrainingStateError(NeuralCoreError, RuntimeError):
    """Raised when a learning algorithm is driven out of order."""


__all__ = [
    "NeuralCoreError",
    "DimensionMismatch",
    "ParseError",
    "TopologyError",
    "TrainingStateError",
]
