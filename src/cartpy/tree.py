# cartpy/tree.py
"""
cartpy.tree
===========

Binary decision nodes and greedy CART induction.

:func:`build_overfit_tree` grows a tree by exhaustive search: at every node
each (feature column, row value) pair is tried as a split and the best score
according to the :class:`~cartpy.evaluator.Evaluator` wins.  The only brakes
are the evaluator's ``min_samples_for_split`` floor, the requirement that
the winning split sends rows to both sides and an optional ``max_depth``.
The resulting tree deliberately overfits and is meant to be cut back with
:func:`cartpy.pruning.get_subtrees_and_alphas`.

Nodes are immutable.  ``left`` always holds the subtree grown from the
partition's False side and ``right`` the subtree grown from its True side.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Sequence

from loguru import logger

from .dataset import Dataset, Partition
from .evaluator import Evaluator
from .exceptions import ColumnCountMismatchError, EmptyDatasetError


# -----------------------------------------------------------------------------
# Node
# -----------------------------------------------------------------------------
@dataclass(frozen=True, eq=False)
class DecisionNode:
    """
    One node of a binary decision tree.

    Parameters
    ----------
    evaluator : Evaluator
        Strategy that defines the node's prediction and error.
    train_data : Dataset
        Training rows that reached this node.
    partition : Partition or None
        Installed split; ``None`` for leaves.
    left, right : DecisionNode or None
        Children for the False / True side of ``partition``.

    Attributes
    ----------
    prediction : float
        ``evaluator.predict`` over ``train_data``, computed once.
    error : float
        ``evaluator.error_at_node`` for this node seen as a leaf, computed once.
    """

    evaluator: Evaluator
    train_data: Dataset
    partition: Partition | None = None
    left: DecisionNode | None = None
    right: DecisionNode | None = None
    prediction: float = field(init=False)
    error: float = field(init=False)

    def __post_init__(self):
        if self.train_data.size() == 0:
            raise EmptyDatasetError()
        has_split = self.partition is not None
        if has_split != (self.left is not None) or has_split != (self.right is not None):
            raise ValueError("a node needs a partition and both children, or none of them")
        object.__setattr__(self, "prediction", self.evaluator.predict(self))
        object.__setattr__(self, "error", self.evaluator.error_at_node(self))

    def __repr__(self) -> str:
        split = self.partition.describe() if self.partition is not None else "leaf"
        return (f"DecisionNode({split}, n_rows={self.train_data.size()}, "
                f"prediction={self.prediction:g}, n_leaves={self.n_leaves})")

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------
    @property
    def is_leaf(self) -> bool:
        return self.partition is None

    @property
    def n_features(self) -> int:
        return len(self.train_data.column_names) - 1

    @property
    def n_leaves(self) -> int:
        if self.is_leaf:
            return 1
        return self.left.n_leaves + self.right.n_leaves

    @property
    def n_nodes(self) -> int:
        return sum(1 for _ in self.iter_nodes())

    def depth(self) -> int:
        if self.is_leaf:
            return 0
        return 1 + max(self.left.depth(), self.right.depth())

    def iter_nodes(self) -> Iterator[DecisionNode]:
        """Pre-order walk: the node, then its False subtree, then its True subtree."""
        yield self
        if not self.is_leaf:
            yield from self.left.iter_nodes()
            yield from self.right.iter_nodes()

    def internal_nodes(self) -> list[DecisionNode]:
        return [n for n in self.iter_nodes() if not n.is_leaf]

    def leaves(self) -> list[DecisionNode]:
        return [n for n in self.iter_nodes() if n.is_leaf]

    def as_leaf(self) -> DecisionNode:
        """A leaf over the same training rows; ``self`` is left untouched."""
        if self.is_leaf:
            return self
        return DecisionNode(self.evaluator, self.train_data)

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------
    def predict(self, feature_vector: Sequence[float]) -> float:
        """
        Predict the output for one feature vector.

        Raises
        ------
        ColumnCountMismatchError
            If ``feature_vector`` does not have :attr:`n_features` values.
        """
        if len(feature_vector) != self.n_features:
            raise ColumnCountMismatchError(self.n_features, len(feature_vector))
        return self.find_leaf(feature_vector).prediction

    def find_leaf(self, feature_vector: Sequence[float]) -> DecisionNode:
        node = self
        while not node.is_leaf:
            node = node.right if node.partition.evaluate_row(feature_vector) else node.left
        return node


# -----------------------------------------------------------------------------
# Induction
# -----------------------------------------------------------------------------
def build_overfit_tree(dataset: Dataset, evaluator: Evaluator, *,
                       max_depth: int | None = None) -> DecisionNode:
    """
    Grow a full CART tree on ``dataset``.

    Parameters
    ----------
    dataset : Dataset
        Training rows.  Must not be empty.
    evaluator : Evaluator
        Classification or regression scoring.
    max_depth : int or None, default=None
        Optional cap on depth; ``None`` grows until the other stopping rules
        apply.

    Returns
    -------
    DecisionNode
        Root of the grown tree.

    Raises
    ------
    EmptyDatasetError
        If ``dataset`` has no rows.
    InvalidTargetError
        Classification on a continuous label column.
    """
    if max_depth is not None and max_depth < 0:
        raise ValueError(f"max_depth must be >= 0 or None, got {max_depth}")
    return _build(dataset, evaluator, max_depth, 0)


def _build(dataset: Dataset, evaluator: Evaluator, max_depth: int | None, depth: int) -> DecisionNode:
    if dataset.size() == 0:
        raise EmptyDatasetError()
    if dataset.size() < evaluator.min_samples_for_split:
        return DecisionNode(evaluator, dataset)
    if max_depth is not None and depth >= max_depth:
        return DecisionNode(evaluator, dataset)

    best, score = find_best_partition(dataset, evaluator)
    if best is None or not best.is_informative:
        return DecisionNode(evaluator, dataset)

    logger.debug("Installing split", split=best.describe(), score=score,
                 rows=dataset.size(), depth=depth)
    left = _build(best.false_data, evaluator, max_depth, depth + 1)
    right = _build(best.true_data, evaluator, max_depth, depth + 1)
    return DecisionNode(evaluator, dataset, best, left, right)


def find_best_partition(dataset: Dataset, evaluator: Evaluator) -> tuple[Partition | None, float | None]:
    """
    Exhaustive search over every (feature column, row value) pair.

    Columns are visited left to right and, within a column, rows top to
    bottom; the first partition reaching the best score is kept.  Repeated
    values in a column yield the same partition and score, so only the first
    occurrence of each value is tried.
    """
    best_partition, best_score = None, None
    features = dataset.values[:, :-1]
    for c, name in enumerate(dataset.feature_names):
        for value in dict.fromkeys(features[:, c].tolist()):
            partition = dataset.partition_by_name(name, value)
            score = evaluator.evaluate_split(dataset, partition)
            if best_score is None or evaluator.is_better(score, best_score):
                best_partition, best_score = partition, score
    return best_partition, best_score


# -----------------------------------------------------------------------------
# Text export
# -----------------------------------------------------------------------------
def _column_label(partition: Partition, feature_names: Sequence[str] | None) -> str:
    if feature_names is not None and 0 <= partition.column_index < len(feature_names):
        return str(feature_names[partition.column_index])
    return partition.column_name


def split_conditions(partition: Partition, feature_names: Sequence[str] | None) -> tuple[str, str]:
    """(False side, True side) condition strings."""
    name = _column_label(partition, feature_names)
    if partition.is_continuous:
        return f"{name} <= {partition.value:.4f}", f"{name} > {partition.value:.4f}"
    return f"{name} != {partition.value:g}", f"{name} == {partition.value:g}"


def format_prediction(node: DecisionNode, class_names: Sequence[str] | None) -> str:
    if node.evaluator.is_classification:
        if class_names is not None:
            return str(class_names[int(node.prediction)])
        return f"{node.prediction:g}"
    return f"{node.prediction:.4f}"


def render_tree(node: DecisionNode, feature_names: Sequence[str] | None = None,
                class_names: Sequence[str] | None = None, indent: str = "") -> list[str]:
    """Indented text lines describing ``node`` and everything below it."""
    stats = (f"n={node.train_data.size()} gini={node.train_data.gini_impurity():.4f} "
             f"predict={format_prediction(node, class_names)}")
    if node.is_leaf:
        return [f"{indent}Leaf | {stats}"]
    false_cond, true_cond = split_conditions(node.partition, feature_names)
    lines = [f"{indent}Split | {stats}", f"{indent}if {false_cond}:"]
    lines += render_tree(node.left, feature_names, class_names, indent + "  ")
    lines.append(f"{indent}if {true_cond}:")
    lines += render_tree(node.right, feature_names, class_names, indent + "  ")
    return lines


def log_tree(node: DecisionNode, feature_names: Sequence[str] | None = None,
             class_names: Sequence[str] | None = None) -> None:
    for line in render_tree(node, feature_names, class_names):
        logger.info(line)


def export_rules(node: DecisionNode, feature_names: Sequence[str] | None = None,
                 class_names: Sequence[str] | None = None) -> list[str]:
    """One ``<antecedent> => <prediction>`` string per leaf, left to right."""
    rules: list[str] = []
    _collect_rules(node, [], rules, feature_names, class_names)
    return rules


def _collect_rules(node, parts, rules, fn, cn):
    if node.is_leaf:
        body = " AND ".join(parts) if parts else "<root>"
        rules.append(f"{body} => {format_prediction(node, cn)}")
        return
    false_cond, true_cond = split_conditions(node.partition, fn)
    _collect_rules(node.left, parts + [false_cond], rules, fn, cn)
    _collect_rules(node.right, parts + [true_cond], rules, fn, cn)


def trace_rule(node: DecisionNode, feature_vector: Sequence[float],
               feature_names: Sequence[str] | None = None) -> str:
    """Conjunction of the conditions ``feature_vector`` satisfies on its way to a leaf."""
    if len(feature_vector) != node.n_features:
        raise ColumnCountMismatchError(node.n_features, len(feature_vector))
    parts = []
    while not node.is_leaf:
        false_cond, true_cond = split_conditions(node.partition, feature_names)
        if node.partition.evaluate_row(feature_vector):
            parts.append(true_cond)
            node = node.right
        else:
            parts.append(false_cond)
            node = node.left
    return " AND ".join(parts) if parts else "<root>"
