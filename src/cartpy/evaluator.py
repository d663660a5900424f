# cartpy/evaluator.py
"""
Split-quality evaluation for classification and regression trees.

An :class:`Evaluator` is a small immutable value shared by the tree builder
and the pruner.  Its ``task`` selects the behaviour:

===============  ==============================  ==========================
                 classification                  regression
===============  ==============================  ==========================
split score      Gini information gain (max)     sum of squared residuals (min)
node error       misclassification rate          SSR around the node mean
single error     0/1 mismatch                    squared residual
prediction       most frequent label             mean label
===============  ==============================  ==========================
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

import numpy as np

from .exceptions import InvalidTargetError

if TYPE_CHECKING:
    from .dataset import Dataset, Partition
    from .tree import DecisionNode

TaskType = Literal["classification", "regression"]

CLASSIFICATION: TaskType = "classification"
REGRESSION: TaskType = "regression"
DEFAULT_MIN_SAMPLES_FOR_SPLIT = 2


def _ssr(labels: np.ndarray) -> float:
    if labels.size == 0:
        return 0.0
    residuals = labels - labels.mean()
    return float(np.dot(residuals, residuals))


@dataclass(frozen=True)
class Evaluator:
    """
    Scoring strategy for one kind of tree.

    Parameters
    ----------
    task : {"classification", "regression"}
        Which kind of tree is being grown.
    min_samples_for_split : int, default=2
        Nodes with fewer training rows than this are always leaves.

    Examples
    --------
    >>> Evaluator.classification(min_samples_for_split=5)
    Evaluator(task='classification', min_samples_for_split=5)
    """

    task: TaskType
    min_samples_for_split: int = DEFAULT_MIN_SAMPLES_FOR_SPLIT

    def __post_init__(self):
        if self.task not in (CLASSIFICATION, REGRESSION):
            raise ValueError(f"task must be 'classification' or 'regression', got {self.task!r}")
        if isinstance(self.min_samples_for_split, bool) or int(self.min_samples_for_split) != self.min_samples_for_split:
            raise ValueError("min_samples_for_split must be an integer")
        if self.min_samples_for_split < 1:
            raise ValueError(f"min_samples_for_split must be >= 1, got {self.min_samples_for_split}")
        object.__setattr__(self, "min_samples_for_split", int(self.min_samples_for_split))

    @classmethod
    def classification(cls, min_samples_for_split: int = DEFAULT_MIN_SAMPLES_FOR_SPLIT) -> Evaluator:
        return cls(CLASSIFICATION, min_samples_for_split)

    @classmethod
    def regression(cls, min_samples_for_split: int = DEFAULT_MIN_SAMPLES_FOR_SPLIT) -> Evaluator:
        return cls(REGRESSION, min_samples_for_split)

    @property
    def is_classification(self) -> bool:
        return self.task == CLASSIFICATION

    # ------------------------------------------------------------------
    # Split search
    # ------------------------------------------------------------------
    def evaluate_split(self, dataset: Dataset, partition: Partition) -> float:
        """
        Score a candidate partition of ``dataset``.

        Regression returns the SSR of both sides around their own means
        (lower is better).  Classification returns the information gain
        ``gini(parent) - weighted_mean(gini(false), gini(true))`` (higher is
        better).

        Raises
        ------
        InvalidTargetError
            Classification on a dataset whose label column is continuous.
        """
        if not self.is_classification:
            return _ssr(partition.false_data.labels) + _ssr(partition.true_data.labels)

        if dataset.target_is_continuous:
            raise InvalidTargetError(dataset.target_name)
        n = float(dataset.size())
        n_false = partition.false_data.size()
        n_true = partition.true_data.size()
        avg_impurity = ((n_true / n) * partition.true_data.gini_impurity()
                        + (n_false / n) * partition.false_data.gini_impurity())
        return dataset.gini_impurity() - avg_impurity

    def is_better(self, new_score: float, old_score: float) -> bool:
        """Strictly greater gain (classification) or strictly smaller SSR (regression)."""
        if self.is_classification:
            return new_score > old_score
        return new_score < old_score

    # ------------------------------------------------------------------
    # Node level quantities
    # ------------------------------------------------------------------
    def predict_labels(self, labels: np.ndarray) -> float:
        """
        Output value for a set of training labels.

        Classification picks the most frequent label; among equally frequent
        labels the one whose count reached the maximum first, scanning rows
        in order, wins.
        """
        if self.is_classification:
            counts: dict[float, int] = {}
            best_label, best_count = 0.0, 0
            for lab in labels.tolist():
                counts[lab] = counts.get(lab, 0) + 1
                if counts[lab] > best_count:
                    best_label, best_count = lab, counts[lab]
            return float(best_label)
        return float(np.mean(labels))

    def predict(self, node: DecisionNode) -> float:
        return self.predict_labels(node.train_data.labels)

    def single_error(self, actual: float, predicted: float) -> float:
        if self.is_classification:
            return 0.0 if actual == predicted else 1.0
        return (actual - predicted) * (actual - predicted)

    def error_at_node(self, node: DecisionNode) -> float:
        """
        Error of ``node`` treated as a leaf, over the rows that reached it.

        Classification: share of misclassified rows.  Regression: sum of
        squared residuals around the node's prediction.
        """
        labels = node.train_data.labels
        predicted = self.predict(node)
        if self.is_classification:
            return float(np.count_nonzero(labels != predicted)) / labels.size
        residuals = labels - predicted
        return float(np.dot(residuals, residuals))
