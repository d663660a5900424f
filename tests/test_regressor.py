import numpy as np
import pytest

from cartpy import CARTRegressor


def _tiny_reg_dataset():
    """Return a small regression dataset with a numeric and a categorical feature."""
    X = np.array([[1.0, 0], [2.0, 0], [3.0, 1], [4.0, 1]])
    y = np.array([1.0, 1.5, 2.0, 2.5])
    return X, y


def _step_dataset():
    X = np.arange(1, 21, dtype=float).reshape(-1, 1)
    y = np.where(X[:, 0] > 10, 3.0, 1.0)
    return X, y


def test_regressor_predictions_shape():
    X, y = _tiny_reg_dataset()
    regr = CARTRegressor(feature_names=["num", "cat"], categorical_features=["cat"])
    regr.fit(X, y)
    pred = regr.predict(X)
    assert pred.shape == y.shape


def test_regressor_recovers_step_function():
    X, y = _step_dataset()
    regr = CARTRegressor(pruning=False).fit(X, y)
    assert np.allclose(regr.predict(X), y)
    assert regr.score(X, y) == pytest.approx(1.0)
    assert regr.predict([[0.0], [25.0]]).tolist() == [1.0, 3.0]


def test_regressor_constant_target():
    X = np.arange(8, dtype=float).reshape(-1, 2)
    y = np.full(4, 5.0)
    regr = CARTRegressor(min_samples_split=1).fit(X, y)
    assert len(regr.subtrees_) == 2
    assert regr.subtrees_[-1].is_leaf
    assert regr.predict(X).tolist() == [5.0] * 4
    assert all(a == 0.0 for a in regr.ccp_alphas_)


def test_regressor_rule_and_export():
    X, y = _tiny_reg_dataset()
    regr = CARTRegressor(min_samples_split=3, feature_names=["num", "cat"]).fit(X, y)
    rules = regr.predict_rule(X)
    assert len(rules) == len(X)
    exported = regr.export_rules()
    # regression leaves print their mean with four decimals
    assert exported == ["num <= 2.0000 => 1.2500", "num > 2.0000 => 2.2500"]


def test_regressor_graphviz_export(tmp_path):
    pytest.importorskip("graphviz")
    X, y = _step_dataset()
    reg = CARTRegressor(min_samples_split=2).fit(X, y)
    path = reg.export_graphviz(str(tmp_path / "reg_tree"), format="dot")
    assert path.endswith(".dot")
    assert (tmp_path / "reg_tree.dot").exists()


def test_regressor_not_fitted():
    regr = CARTRegressor()
    with pytest.raises(ValueError):
        regr.predict([[1.0, 0.0]])
    with pytest.raises(ValueError):
        regr.get_depth()


def test_regressor_rejects_text_target():
    X, _ = _tiny_reg_dataset()
    with pytest.raises(ValueError):
        CARTRegressor().fit(X, np.array(["a", "b", "c", "d"]))
