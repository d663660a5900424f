# cartpy/exceptions.py
"""
Typed failures raised by the tree induction engine.

All of them subclass ``TreeInductionError`` (itself a ``ValueError``) so a
caller can catch any engine failure at once, or a specific condition:

- EmptyDatasetError: a tree build was attempted on a dataset without rows.
- InvalidTargetError: a classification evaluator was handed a continuous label.
- ColumnNotFoundError: a partition was requested on an unknown column name.
- ColumnCountMismatchError: a feature vector of the wrong width reached predict.
- NoFeasibleAlphaError: the cross-validated alpha exceeds every candidate.
"""
from __future__ import annotations

from typing import Sequence


class TreeInductionError(ValueError):
    """Base class for all cartpy engine failures."""


class EmptyDatasetError(TreeInductionError):
    """Raised when a decision node would be built from zero rows."""

    def __init__(self, message: str = "cannot build a decision tree node without data"):
        super().__init__(message)


class InvalidTargetError(TreeInductionError):
    """Raised when classification is requested on a continuous label column.

    Attributes
    ----------
    column_name : str
        Name of the label column.
    """

    def __init__(self, column_name: str):
        super().__init__(
            f"target column {column_name!r} must not be continuous for classification"
        )
        self.column_name = column_name


class ColumnNotFoundError(TreeInductionError):
    """Raised when a dataset is asked to partition on a column it does not have.

    Attributes
    ----------
    column_name : str
        The requested column.
    available_columns : list[str]
        Column names present in the dataset.
    """

    def __init__(self, column_name: str, available_columns: Sequence[str]):
        super().__init__(f"could not find column with name {column_name!r}")
        self.column_name = column_name
        self.available_columns = list(available_columns)


class ColumnCountMismatchError(TreeInductionError):
    """Raised when a feature vector does not match the width the tree was trained on."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"could not predict, expected {expected} columns, had {actual}")
        self.expected = expected
        self.actual = actual


class NoFeasibleAlphaError(TreeInductionError):
    """Raised when the cross-validated average alpha is larger than every candidate.

    Attributes
    ----------
    average_alpha : float
        Mean of the per-fold optimal alphas.
    candidate_alphas : list[float]
        The alphas the caller offered.
    """

    def __init__(self, average_alpha: float, candidate_alphas: Sequence[float]):
        super().__init__(
            f"average alpha during cross validation ({average_alpha:.6g}) was greater "
            "than all eligible alphas"
        )
        self.average_alpha = average_alpha
        self.candidate_alphas = list(candidate_alphas)


__all__ = [
    "TreeInductionError",
    "EmptyDatasetError",
    "InvalidTargetError",
    "ColumnNotFoundError",
    "ColumnCountMismatchError",
    "NoFeasibleAlphaError",
]
