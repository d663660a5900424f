# cartpy/dataset.py
"""
cartpy.dataset
==============

Numeric tabular data consumed by the tree engine.

A :class:`Dataset` is a table of numeric rows whose last column is the label.
Every column carries a continuity flag: continuous columns are split with
``value > threshold``, categorical columns (already mapped to numbers) with
``value == category``.  Datasets never change after construction; partitions,
cross-validation folds and shuffles all produce fresh datasets backed by their
own read-only arrays.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

import numpy as np

from .exceptions import ColumnNotFoundError

DEFAULT_N_FOLDS = 10
TARGET_COLUMN = "target"


# -----------------------------------------------------------------------------
# Row
# -----------------------------------------------------------------------------
class Row(tuple):
    """An immutable row of floats; the last element is the label."""

    def __new__(cls, values: Iterable[float]):
        return super().__new__(cls, (float(v) for v in values))

    @property
    def features(self) -> tuple[float, ...]:
        return tuple(self[:-1])

    @property
    def label(self) -> float:
        return self[-1]


# -----------------------------------------------------------------------------
# Partition
# -----------------------------------------------------------------------------
@dataclass(frozen=True, eq=False)
class Partition:
    """Result of splitting a dataset on one column and one value.

    Attributes
    ----------
    column_index : int
        Position of the split column.
    column_name : str
        Name of the split column.
    value : float
        Threshold (continuous column) or category (categorical column).
    is_continuous : bool
        Whether ``column_name`` is continuous.
    false_data : Dataset
        Rows for which :meth:`evaluate_row` is False.
    true_data : Dataset
        Rows for which :meth:`evaluate_row` is True.
    """

    column_index: int
    column_name: str
    value: float
    is_continuous: bool
    false_data: Dataset
    true_data: Dataset

    def evaluate_row(self, row: Sequence[float]) -> bool:
        """Route a row (or feature vector) to the True or False side."""
        if self.is_continuous:
            return row[self.column_index] > self.value
        return row[self.column_index] == self.value

    @property
    def is_informative(self) -> bool:
        return self.false_data.size() > 0 and self.true_data.size() > 0

    def describe(self) -> str:
        op = ">" if self.is_continuous else "=="
        return f"{self.column_name} {op} {self.value:g}"


# -----------------------------------------------------------------------------
# Dataset
# -----------------------------------------------------------------------------
class Dataset:
    """Column-typed numeric table whose last column is the label.

    Parameters
    ----------
    column_names : sequence of str
        Names of every column, label included.
    column_is_continuous : sequence of bool
        Continuity flag per column, parallel to ``column_names``.
    rows : iterable of sequences of float, optional
        Row data.  Each row must be exactly ``len(column_names)`` wide.

    Raises
    ------
    ValueError
        If names, flags and row widths disagree.
    """

    def __init__(self, column_names: Sequence[str], column_is_continuous: Sequence[bool],
                 rows: Iterable[Sequence[float]] = ()):
        names = tuple(str(c) for c in column_names)
        flags = tuple(bool(c) for c in column_is_continuous)
        if len(names) != len(flags):
            raise ValueError(
                f"column_names ({len(names)}) and column_is_continuous ({len(flags)}) "
                "must have the same length"
            )
        values = np.array([list(r) for r in rows], dtype=float)
        if values.size == 0:
            values = values.reshape(0, len(names))
        if values.ndim != 2 or values.shape[1] != len(names):
            raise ValueError(f"every row must have {len(names)} values")
        self._init(names, flags, values)

    def _init(self, names: tuple[str, ...], flags: tuple[bool, ...], values: np.ndarray) -> None:
        values.setflags(write=False)
        self._column_names = names
        self._column_is_continuous = flags
        self._values = values
        self._column_index = {n: i for i, n in enumerate(names)}

    @classmethod
    def from_arrays(cls, X, y, *, feature_names: Sequence[str] | None = None,
                    categorical_features: Sequence[int | str] | None = None,
                    target_is_continuous: bool = True) -> Dataset:
        """
        Assemble a dataset from a feature matrix and a target vector.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Numeric feature matrix.
        y : array-like of shape (n_samples,)
            Numeric target; it becomes the last column, named ``"target"``.
        feature_names : sequence of str, optional
            Defaults to ``f0, f1, ...``.
        categorical_features : sequence of int or str, optional
            Indices or names of categorical feature columns.  All others are
            continuous.
        target_is_continuous : bool, default=True
            Set to False for classification labels.
        """
        try:
            X = np.asarray(X, dtype=float)
            y = np.asarray(y, dtype=float)
        except (TypeError, ValueError) as e:
            raise ValueError("X and y must be numeric; map categories to numbers first") from e
        if X.ndim != 2:
            raise ValueError("X must be a 2-D array")
        if y.ndim != 1 or len(y) != X.shape[0]:
            raise ValueError("y must be 1-D with one value per row of X")
        n_features = X.shape[1]
        if feature_names is None:
            feature_names = [f"f{i}" for i in range(n_features)]
        elif len(feature_names) != n_features:
            raise ValueError("feature_names length must match X.shape[1]")
        cats = set()
        if categorical_features is not None:
            name_to_idx = {n: i for i, n in enumerate(feature_names)}
            for c in categorical_features:
                if isinstance(c, str):
                    if c not in name_to_idx:
                        raise ColumnNotFoundError(c, list(feature_names))
                    cats.add(name_to_idx[c])
                else:
                    cats.add(int(c))
        names = tuple(str(n) for n in feature_names) + (TARGET_COLUMN,)
        flags = tuple(i not in cats for i in range(n_features)) + (bool(target_is_continuous),)
        ds = cls.__new__(cls)
        ds._init(names, flags, np.column_stack([X, y]))
        return ds

    def _derive(self, values: np.ndarray) -> Dataset:
        ds = Dataset.__new__(Dataset)
        ds._init(self._column_names, self._column_is_continuous, values)
        return ds

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def column_names(self) -> tuple[str, ...]:
        return self._column_names

    @property
    def column_is_continuous(self) -> tuple[bool, ...]:
        return self._column_is_continuous

    @property
    def feature_names(self) -> tuple[str, ...]:
        return self._column_names[:-1]

    @property
    def target_name(self) -> str:
        return self._column_names[-1]

    @property
    def target_is_continuous(self) -> bool:
        return self._column_is_continuous[-1]

    @property
    def values(self) -> np.ndarray:
        """Read-only ``(n_rows, n_columns)`` array."""
        return self._values

    @property
    def labels(self) -> np.ndarray:
        return self._values[:, -1]

    @property
    def rows(self) -> tuple[Row, ...]:
        return tuple(iter(self))

    def size(self) -> int:
        return self._values.shape[0]

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[Row]:
        for r in self._values:
            yield Row(r)

    def __repr__(self) -> str:
        return f"Dataset(columns={list(self._column_names)}, n_rows={self.size()})"

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------
    def gini_impurity(self) -> float:
        """
        Probability that a label drawn at random from the rows differs from
        another random draw: ``1 - sum_k (count_k / N) ** 2``.

        A dataset without rows has no labels to subtract and yields 1.0.
        """
        _, counts = np.unique(self.labels, return_counts=True)
        ratios = counts / max(self.size(), 1)
        return float(1.0 - np.sum(ratios * ratios))

    def column_variances(self) -> dict[str, float]:
        """Sample variance (divisor ``N - 1``) of every column, label included."""
        if self.size() < 2:
            raise ValueError("cannot find variance for a dataset with fewer than 2 rows")
        var = np.var(self._values, axis=0, ddof=1)
        return {name: float(v) for name, v in zip(self._column_names, var)}

    # ------------------------------------------------------------------
    # Derived datasets
    # ------------------------------------------------------------------
    def partition_by_name(self, column: str, on: float) -> Partition:
        """
        Split the rows on ``column``.

        A row goes to the True side when its value is ``> on`` (continuous
        column) or ``== on`` (categorical column), and to the False side
        otherwise.  Row order is preserved on both sides.

        Raises
        ------
        ColumnNotFoundError
            If ``column`` is not one of :attr:`column_names`.
        """
        idx = self._column_index.get(column)
        if idx is None:
            raise ColumnNotFoundError(column, self._column_names)
        on = float(on)
        is_continuous = self._column_is_continuous[idx]
        col = self._values[:, idx]
        mask = (col > on) if is_continuous else (col == on)
        return Partition(
            column_index=idx,
            column_name=column,
            value=on,
            is_continuous=is_continuous,
            false_data=self._derive(self._values[~mask]),
            true_data=self._derive(self._values[mask]),
        )

    def take(self, indices: Sequence[int] | np.ndarray) -> Dataset:
        """New dataset made of the rows at ``indices``, in that order."""
        return self._derive(self._values[np.asarray(indices, dtype=int)])

    def cross_validation_folds(self, n_folds: int = DEFAULT_N_FOLDS) -> list[tuple[Dataset, Dataset]]:
        """
        Contiguous-block ``(train, test)`` pairs.

        With ``n_test = N // n_folds``, fold ``i`` tests rows
        ``[i * n_test, (i + 1) * n_test)`` and trains on every other row in
        their original order.  Rows beyond ``n_folds * n_test`` are never part
        of a test block.
        """
        if n_folds < 1:
            raise ValueError("n_folds must be >= 1")
        n = self.size()
        n_test = n // n_folds
        folds = []
        for i in range(n_folds):
            in_test = np.zeros(n, dtype=bool)
            in_test[i * n_test:(i + 1) * n_test] = True
            folds.append((self._derive(self._values[~in_test]), self._derive(self._values[in_test])))
        return folds

    def shuffle(self, random_state: int | np.random.Generator | None = None) -> Dataset:
        """New dataset with the rows in random order."""
        rng = np.random.default_rng(random_state)
        return self._derive(self._values[rng.permutation(self.size())])
