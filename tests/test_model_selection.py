import numpy as np
import pytest

from cartpy import (
    Dataset,
    Evaluator,
    NoFeasibleAlphaError,
    build_overfit_tree,
    get_subtrees_and_alphas,
    select_alpha_index,
)
from cartpy.model_selection import best_fold_alpha, holdout_error


def _tiny_dataset():
    return Dataset(["x", "label"], [True, False], [(1, 0), (2, 0), (3, 1), (4, 1)])


def _step_dataset(n=20):
    return Dataset(["x", "label"], [True, False], [(i, int(i > n // 2)) for i in range(1, n + 1)])


def test_holdout_error_counts_mistakes():
    ds = _tiny_dataset()
    ev = Evaluator.classification(3)
    tree = build_overfit_tree(ds, ev)
    assert holdout_error(tree, ds, ev) == 0.0
    assert holdout_error(tree.as_leaf(), ds, ev) == 2.0
    empty = Dataset(["x", "label"], [True, False])
    assert holdout_error(tree, empty, ev) == 0.0


def test_best_fold_alpha_prefers_smallest_alpha_on_ties():
    ds = _tiny_dataset()
    assert best_fold_alpha(ds, ds, Evaluator.classification(3)) == 0.0


def test_small_dataset_selects_first_alpha():
    ds = _tiny_dataset()
    ev = Evaluator.classification(3)
    _, alphas = get_subtrees_and_alphas(build_overfit_tree(ds, ev))
    assert select_alpha_index(alphas, ds, ev) == 0


def test_separable_data_keeps_full_tree():
    ds = _step_dataset()
    ev = Evaluator.classification(2)
    subtrees, alphas = get_subtrees_and_alphas(build_overfit_tree(ds, ev))
    idx = select_alpha_index(alphas, ds, ev)
    assert idx == 0
    assert subtrees[idx].predict((3.0,)) == 0.0
    assert subtrees[idx].predict((18.0,)) == 1.0


def test_no_feasible_alpha():
    ds = _tiny_dataset()
    ev = Evaluator.classification(3)
    with pytest.raises(NoFeasibleAlphaError) as info:
        select_alpha_index([-1.0], ds, ev)
    assert info.value.average_alpha == 0.0
    assert info.value.candidate_alphas == [-1.0]
    with pytest.raises(NoFeasibleAlphaError):
        select_alpha_index([], ds, ev)


@pytest.mark.parametrize("task", ["classification", "regression"])
def test_selected_index_is_in_range(task):
    rng = np.random.default_rng(1)
    x = rng.uniform(0, 10, size=40).round(1)
    if task == "classification":
        y = (x + rng.normal(0, 2, size=40) > 5).astype(float)
    else:
        y = 2.0 * x + rng.normal(0, 3, size=40)
    ds = Dataset(["x", "y"], [True, task == "regression"], np.column_stack([x, y]))
    ev = Evaluator(task, 2)
    subtrees, alphas = get_subtrees_and_alphas(build_overfit_tree(ds, ev))
    idx = select_alpha_index(alphas, ds, ev, n_folds=5)
    assert 0 <= idx < len(subtrees)


@pytest.mark.parametrize("n_folds", [3, 7, 10])
def test_identical_fold_alphas_map_back_to_that_alpha(monkeypatch, n_folds):
    monkeypatch.setattr("cartpy.model_selection.best_fold_alpha", lambda *args, **kwargs: 0.1)
    ds = _step_dataset()
    ev = Evaluator.classification(2)
    assert select_alpha_index([0.0, 0.1, 0.2], ds, ev, n_folds=n_folds) == 1
    # a candidate genuinely below the average is skipped
    assert select_alpha_index([0.0, 0.1 * (1 - 1e-6), 0.2], ds, ev, n_folds=n_folds) == 2
