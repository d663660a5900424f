# cartpy/model_selection.py
"""
Cross-validated choice of the pruning level.
"""
from __future__ import annotations

import math
from typing import Sequence

from loguru import logger

from .dataset import DEFAULT_N_FOLDS, Dataset
from .evaluator import Evaluator
from .exceptions import NoFeasibleAlphaError
from .pruning import get_subtrees_and_alphas
from .tree import DecisionNode, build_overfit_tree

_ALPHA_REL_TOL = 1e-9
_ALPHA_ABS_TOL = 1e-12


def holdout_error(tree: DecisionNode, test_data: Dataset, evaluator: Evaluator) -> float:
    """Sum of ``evaluator.single_error`` over the rows of ``test_data``."""
    return sum(evaluator.single_error(row.label, tree.predict(row.features)) for row in test_data)


def best_fold_alpha(train: Dataset, test: Dataset, evaluator: Evaluator, *,
                    max_depth: int | None = None) -> float:
    """
    Grow and prune a tree on ``train`` and return the alpha of the subtree
    with the lowest error on ``test`` (the smallest such alpha on ties).
    """
    tree = build_overfit_tree(train, evaluator, max_depth=max_depth)
    subtrees, alphas = get_subtrees_and_alphas(tree)
    lowest_error, lowest_alpha = None, None
    for subtree, alpha in zip(subtrees, alphas):
        err = holdout_error(subtree, test, evaluator)
        if lowest_error is None or err < lowest_error:
            lowest_error, lowest_alpha = err, alpha
    return lowest_alpha


def select_alpha_index(alphas: Sequence[float], dataset: Dataset, evaluator: Evaluator, *,
                       n_folds: int = DEFAULT_N_FOLDS, max_depth: int | None = None) -> int:
    """
    Index of the pruning level chosen by k-fold cross-validation.

    The dataset is cut into ``n_folds`` contiguous train/test pairs (see
    :meth:`Dataset.cross_validation_folds`).  Each fold contributes the alpha
    of its best-performing pruned subtree; the average of these is mapped to
    the first entry of ``alphas`` that is at least as large.

    Parameters
    ----------
    alphas : sequence of float
        Candidate alphas sorted ascending, usually the second return value of
        :func:`~cartpy.pruning.get_subtrees_and_alphas` on the full dataset.
    dataset : Dataset
        The full training data.
    evaluator : Evaluator
        Must be the evaluator used to produce ``alphas``.
    n_folds : int, default=10
        Number of folds.
    max_depth : int or None, default=None
        Depth cap for the per-fold trees.

    Returns
    -------
    int
        Index into ``alphas``; apply it to the subtree list built alongside.

    Raises
    ------
    NoFeasibleAlphaError
        If the average alpha is larger than every candidate.
    """
    fold_alphas = []
    for i, (train, test) in enumerate(dataset.cross_validation_folds(n_folds)):
        alpha = best_fold_alpha(train, test, evaluator, max_depth=max_depth)
        logger.debug("Fold evaluated", fold=i, train_rows=train.size(), test_rows=test.size(),
                     alpha=alpha)
        fold_alphas.append(alpha)
    average_alpha = math.fsum(fold_alphas) / n_folds

    for idx, alpha in enumerate(alphas):
        if average_alpha <= alpha or math.isclose(average_alpha, alpha, rel_tol=_ALPHA_REL_TOL,
                                                  abs_tol=_ALPHA_ABS_TOL):
            logger.info("Cross-validation selected alpha", average_alpha=average_alpha,
                        index=idx, alpha=alpha)
            return idx
    raise NoFeasibleAlphaError(average_alpha, alphas)
