import numpy as np
import pytest

from cartpy import (
    ColumnCountMismatchError,
    Dataset,
    DecisionNode,
    EmptyDatasetError,
    Evaluator,
    build_overfit_tree,
)
from cartpy.tree import export_rules, find_best_partition, render_tree, trace_rule


def _tiny_dataset():
    return Dataset(["x", "label"], [True, False], [(1, 0), (2, 0), (3, 1), (4, 1)])


def _random_dataset(seed, n=40, task="classification"):
    rng = np.random.default_rng(seed)
    X = rng.integers(0, 6, size=(n, 2)).astype(float)
    cat = rng.integers(0, 3, size=n).astype(float)
    if task == "classification":
        y = ((X[:, 0] + cat) > 4).astype(float)
        y[rng.random(n) < 0.15] = 2.0
    else:
        y = X[:, 0] * 1.5 - X[:, 1] + rng.normal(0, 0.5, size=n)
    rows = np.column_stack([X, cat, y])
    return Dataset(["a", "b", "c", "y"], [True, True, False, task == "regression"], rows)


def test_perfect_split_scenario():
    ds = _tiny_dataset()
    ev = Evaluator.classification(1)
    best, score = find_best_partition(ds, ev)
    assert best.column_name == "x"
    assert best.value == 2.0
    assert score == pytest.approx(ds.gini_impurity())

    root = build_overfit_tree(ds, ev)
    assert root.partition.value == 2.0
    assert root.left.train_data.gini_impurity() == 0.0
    assert root.right.train_data.gini_impurity() == 0.0
    assert root.predict((1.5,)) == 0.0
    assert root.predict((3.5,)) == 1.0


def test_min_samples_floor_stops_growth():
    root = build_overfit_tree(_tiny_dataset(), Evaluator.classification(3))
    assert root.n_leaves == 2
    assert root.left.is_leaf and root.right.is_leaf
    assert root.left.prediction == 0.0
    assert root.right.prediction == 1.0

    leaf = build_overfit_tree(_tiny_dataset(), Evaluator.classification(5))
    assert leaf.is_leaf
    assert leaf.n_leaves == 1


def test_empty_dataset_raises():
    with pytest.raises(EmptyDatasetError):
        build_overfit_tree(Dataset(["x", "y"], [True, False]), Evaluator.classification())


def test_predict_checks_width():
    root = build_overfit_tree(_tiny_dataset(), Evaluator.classification(3))
    with pytest.raises(ColumnCountMismatchError) as info:
        root.predict((1.0, 2.0))
    assert info.value.expected == 1
    assert info.value.actual == 2


def test_first_column_wins_ties():
    ds = Dataset(["p", "q", "y"], [True, True, False], [(1, 1, 0), (2, 2, 0), (3, 3, 1), (4, 4, 1)])
    root = build_overfit_tree(ds, Evaluator.classification(3))
    assert root.partition.column_name == "p"


def test_categorical_split():
    ds = Dataset(["color", "y"], [False, False], [(1, 0), (2, 1), (1, 0), (3, 1), (1, 0)])
    root = build_overfit_tree(ds, Evaluator.classification(3))
    assert not root.partition.is_continuous
    assert root.partition.value == 1.0
    assert root.predict((1.0,)) == 0.0
    assert root.predict((3.0,)) == 1.0


def test_constant_regression_target_may_stop_at_root():
    # the first candidate (x > 3) sends every row to one side
    ds = Dataset(["x", "y"], [True, True], [(3, 5.0), (1, 5.0), (2, 5.0)])
    root = build_overfit_tree(ds, Evaluator.regression(1))
    assert root.is_leaf
    assert root.prediction == 5.0
    assert root.error == 0.0


@pytest.mark.parametrize("task", ["classification", "regression"])
@pytest.mark.parametrize("min_samples", [1, 2, 5])
def test_leaves_are_floor_or_uninformative(task, min_samples):
    ds = _random_dataset(7, task=task)
    ev = Evaluator(task, min_samples)
    root = build_overfit_tree(ds, ev)
    for leaf in root.leaves():
        if leaf.train_data.size() >= min_samples:
            best, _ = find_best_partition(leaf.train_data, ev)
            assert best is None or not best.is_informative


@pytest.mark.parametrize("task", ["classification", "regression"])
def test_training_rows_reach_their_leaf(task):
    ds = _random_dataset(3, task=task)
    ev = Evaluator(task, 2)
    root = build_overfit_tree(ds, ev)
    for leaf in root.leaves():
        for row in leaf.train_data:
            assert root.find_leaf(row.features) is leaf
            assert root.predict(row.features) == ev.predict(leaf)


def test_partition_sizes_add_up():
    root = build_overfit_tree(_random_dataset(11), Evaluator.classification(2))
    for node in root.internal_nodes():
        assert node.left.train_data.size() + node.right.train_data.size() == node.train_data.size()
        assert node.partition.is_informative
    assert sum(leaf.train_data.size() for leaf in root.leaves()) == root.train_data.size()


def test_max_depth_caps_tree():
    ds = _random_dataset(5)
    root = build_overfit_tree(ds, Evaluator.classification(1), max_depth=2)
    assert root.depth() <= 2
    assert build_overfit_tree(ds, Evaluator.classification(1), max_depth=0).is_leaf
    with pytest.raises(ValueError):
        build_overfit_tree(ds, Evaluator.classification(1), max_depth=-1)


def test_node_requires_consistent_children():
    ds = _tiny_dataset()
    ev = Evaluator.classification()
    leaf = DecisionNode(ev, ds)
    with pytest.raises(ValueError):
        DecisionNode(ev, ds, None, leaf, leaf)


def test_text_exports():
    root = build_overfit_tree(_tiny_dataset(), Evaluator.classification(3))
    assert export_rules(root) == ["x <= 2.0000 => 0", "x > 2.0000 => 1"]
    assert export_rules(root, class_names=["no", "yes"]) == ["x <= 2.0000 => no", "x > 2.0000 => yes"]
    assert trace_rule(root, (3.0,), feature_names=["size"]) == "size > 2.0000"
    lines = render_tree(root)
    assert lines[0].startswith("Split | n=4 gini=0.5000")
    assert "Leaf | n=2 gini=0.0000 predict=0" in lines[2]
    assert trace_rule(DecisionNode(Evaluator.classification(), _tiny_dataset()), (1.0,)) == "<root>"
