# cartpy/estimator.py
"""
cartpy.estimator
================

scikit-learn style front ends for the CART engine.

``fit`` grows a deliberately overfit tree on all of the training data,
enumerates its cost-complexity pruning sequence and, unless ``pruning=False``,
keeps the subtree whose alpha is selected by k-fold cross-validation.

Both estimators expose the usual ``fit`` / ``predict`` / ``score`` API plus
rule tracing, rule export, pretty printing and Graphviz export of the kept
tree.
"""
from __future__ import annotations

import numpy as np
from loguru import logger
from sklearn.base import BaseEstimator, ClassifierMixin, RegressorMixin

from .dataset import DEFAULT_N_FOLDS, Dataset
from .evaluator import DEFAULT_MIN_SAMPLES_FOR_SPLIT, Evaluator
from .exceptions import ColumnCountMismatchError, NoFeasibleAlphaError
from .model_selection import select_alpha_index
from .pruning import get_subtrees_and_alphas
from .tree import (
    DecisionNode,
    build_overfit_tree,
    export_rules,
    format_prediction,
    render_tree,
    split_conditions,
    trace_rule,
)


def _as_feature_matrix(X) -> np.ndarray:
    try:
        X = np.asarray(X, dtype=float)
    except (TypeError, ValueError) as e:
        raise ValueError("X must be numeric; map categories to numbers before fitting") from e
    if X.ndim != 2:
        raise ValueError("X must be a 2-D array of shape (n_samples, n_features)")
    return X


class _BaseCART(BaseEstimator):
    """Shared fitting, pruning and export logic.

    Parameters
    ----------
    min_samples_split : int, default=2
        Nodes with fewer training rows are never split.
    max_depth : int or None, default=None
        Optional depth cap for the grown tree.
    pruning : bool, default=True
        Select a pruned subtree by cross-validation.  If ``False`` the fully
        grown tree is kept.
    n_folds : int, default=10
        Folds used to select the pruning level.
    feature_names : list[str] or None, default=None
        Names used in rules and exports.  Defaults to ``f0, f1, ...``.
    categorical_features : list[int | str] or None, default=None
        Indices or names of categorical (already numeric) features.  They are
        split with ``==`` instead of ``>``.
    """

    _task: str = ""

    def __init__(
        self,
        *,
        min_samples_split: int = DEFAULT_MIN_SAMPLES_FOR_SPLIT,
        max_depth: int | None = None,
        pruning: bool = True,
        n_folds: int = DEFAULT_N_FOLDS,
        feature_names: list[str] | None = None,
        categorical_features: list[int | str] | None = None,
    ):
        self.min_samples_split = min_samples_split
        self.max_depth = max_depth
        self.pruning = pruning
        self.n_folds = n_folds
        self.feature_names = feature_names
        self.categorical_features = categorical_features

        self.tree_: DecisionNode | None = None

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------
    def _encode_target(self, y: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def fit(self, X, y):
        X = _as_feature_matrix(X)
        y = np.asarray(y)
        if y.ndim != 1 or len(y) != X.shape[0]:
            raise ValueError("y must be 1-D with one value per row of X")
        self.n_features_ = X.shape[1]
        if self.feature_names is not None:
            if len(self.feature_names) != self.n_features_:
                raise ValueError("feature_names length must match X.shape[1]")
            self.feature_names_ = list(self.feature_names)
        else:
            self.feature_names_ = [f"f{i}" for i in range(self.n_features_)]

        dataset = Dataset.from_arrays(
            X, self._encode_target(y),
            feature_names=self.feature_names_,
            categorical_features=self.categorical_features,
            target_is_continuous=self._task == "regression",
        )
        evaluator = Evaluator(self._task, self.min_samples_split)

        self.full_tree_ = build_overfit_tree(dataset, evaluator, max_depth=self.max_depth)
        if self.pruning:
            self.subtrees_, self.ccp_alphas_ = get_subtrees_and_alphas(self.full_tree_)
            try:
                self.alpha_index_ = select_alpha_index(
                    self.ccp_alphas_, dataset, evaluator,
                    n_folds=self.n_folds, max_depth=self.max_depth,
                )
            except NoFeasibleAlphaError as e:
                logger.warning("No candidate alpha covers the cross-validated average; "
                               "keeping the root-only subtree", average_alpha=e.average_alpha)
                self.alpha_index_ = len(self.subtrees_) - 1
        else:
            self.subtrees_, self.ccp_alphas_ = [self.full_tree_], [0.0]
            self.alpha_index_ = 0
        self.tree_ = self.subtrees_[self.alpha_index_]
        logger.info("Fitted tree", task=self._task, full_leaves=self.full_tree_.n_leaves,
                    kept_leaves=self.tree_.n_leaves, alpha=self.ccp_alphas_[self.alpha_index_])
        return self

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------
    def _check_fitted(self):
        if getattr(self, "tree_", None) is None:
            raise ValueError("Estimator not fitted. Call fit(...) first.")

    def _raw_predict(self, X) -> np.ndarray:
        self._check_fitted()
        X = _as_feature_matrix(X)
        return np.array([self.tree_.predict(x) for x in X], dtype=float)

    def get_depth(self) -> int:
        self._check_fitted()
        return self.tree_.depth()

    def get_n_leaves(self) -> int:
        self._check_fitted()
        return self.tree_.n_leaves

    # ------------------------------------------------------------------
    # Rule tracing / Graphviz / printing helpers
    # ------------------------------------------------------------------
    def _maybe_feature_names(self, feature_names=None):
        return feature_names if feature_names is not None else getattr(self, "feature_names_", None)

    def _default_class_names(self):
        return None

    def predict_rule(self, X, feature_names=None) -> list[str]:
        """
        Return the decision rule (antecedent) followed by each input instance.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Input samples.
        feature_names : list[str], optional
            Alternative names for the features.

        Returns
        -------
        list[str]
            One antecedent string per sample.
        """
        self._check_fitted()
        X = _as_feature_matrix(X)
        fn = self._maybe_feature_names(feature_names)
        return [trace_rule(self.tree_, x, fn) for x in X]

    def export_rules(self, *, feature_names=None, class_names=None) -> list[str]:
        """
        Export every root-to-leaf path as ``<antecedent> => <prediction>``.

        Parameters
        ----------
        feature_names : list[str], optional
            Names for the input features.
        class_names : list[str], optional
            Names for the classes, ordered like ``classes_`` (classifier only).
        """
        self._check_fitted()
        cn = class_names if class_names is not None else self._default_class_names()
        return export_rules(self.tree_, self._maybe_feature_names(feature_names), cn)

    def print_tree(self, feature_names=None, class_names=None) -> None:
        """Pretty-print the kept tree to ``stdout``."""
        self._check_fitted()
        cn = class_names if class_names is not None else self._default_class_names()
        for line in render_tree(self.tree_, self._maybe_feature_names(feature_names), cn):
            print(line)

    def export_graphviz(self, filename: str | None = None, *, feature_names=None,
                        class_names=None, format: str = "png") -> str:
        """
        Export the kept tree in Graphviz format.

        Parameters
        ----------
        filename : str or None, default=None
            Basename of the output file.  If None, the DOT source is returned
            and nothing is written.
        feature_names, class_names : list[str], optional
            Display names.
        format : str, default="png"
            Graphviz output format.  ``"dot"`` writes the DOT source directly
            without calling the external ``dot`` binary.

        Returns
        -------
        str
            Path to the written file, or the DOT source if ``filename`` is None.
        """
        self._check_fitted()
        try:
            import graphviz
        except ImportError as e:
            raise RuntimeError("Graphviz is required for export_graphviz but not installed.") from e
        fn = self._maybe_feature_names(feature_names)
        cn = class_names if class_names is not None else self._default_class_names()
        dot = graphviz.Digraph(format=format)
        self._add_graph_nodes(dot, self.tree_, "0", fn, cn)

        if filename is None:
            return dot.source
        if format.lower() == "dot":
            path = f"{filename}.dot"
            dot.save(path)
            return path
        try:
            dot.render(filename, cleanup=True)
        except graphviz.ExecutableNotFound:
            fallback_path = f"{filename}.dot"
            dot.save(fallback_path)
            logger.warning("Graphviz 'dot' executable not found; wrote DOT source instead",
                           path=fallback_path)
            return fallback_path
        return f"{filename}.{format}"

    def _add_graph_nodes(self, dot, node: DecisionNode, name: str, fn, cn):
        if node.is_leaf:
            dot.node(name, f"predict={format_prediction(node, cn)}\nn={node.train_data.size()}",
                     shape="box", style="filled", color="lightgrey")
            return
        _, true_cond = split_conditions(node.partition, fn)
        dot.node(name, true_cond, shape="ellipse", style="filled", color="lightblue")
        l_id, r_id = name + "L", name + "R"
        self._add_graph_nodes(dot, node.left, l_id, fn, cn)
        self._add_graph_nodes(dot, node.right, r_id, fn, cn)
        dot.edge(name, l_id, label="False")
        dot.edge(name, r_id, label="True")


class CARTClassifier(ClassifierMixin, _BaseCART):
    """
    CART classification tree with cost-complexity pruning.

    Splits maximise Gini information gain.  Labels may be of any type; they
    are encoded as their index in ``classes_`` internally.

    Attributes
    ----------
    classes_ : ndarray
        Sorted unique labels seen in ``fit``.
    tree_ : DecisionNode
        The kept (possibly pruned) tree.
    full_tree_ : DecisionNode
        The fully grown tree.
    subtrees_, ccp_alphas_ : list
        Pruning sequence of ``full_tree_``.
    alpha_index_ : int
        Position of ``tree_`` in ``subtrees_``.

    Examples
    --------
    >>> import numpy as np
    >>> X = np.array([[1.0], [2.0], [3.0], [4.0]])
    >>> clf = CARTClassifier(min_samples_split=3).fit(X, ["no", "no", "yes", "yes"])
    >>> clf.predict([[1.5], [3.5]]).tolist()
    ['no', 'yes']
    """

    _task = "classification"

    def _encode_target(self, y: np.ndarray) -> np.ndarray:
        self.classes_, encoded = np.unique(y, return_inverse=True)
        return encoded.astype(float)

    def _default_class_names(self):
        return [str(c) for c in self.classes_]

    def predict(self, X):
        """
        Predict class labels.

        Raises
        ------
        ValueError
            If the estimator has not been fitted.
        ColumnCountMismatchError
            If ``X`` has the wrong number of columns.
        """
        raw = self._raw_predict(X)
        return self.classes_[raw.astype(int)]

    def predict_proba(self, X) -> np.ndarray:
        """Class distribution of the training rows in the leaf each sample reaches."""
        self._check_fitted()
        X = _as_feature_matrix(X)
        k = len(self.classes_)
        out = np.empty((X.shape[0], k), dtype=float)
        for i, x in enumerate(X):
            if len(x) != self.tree_.n_features:
                raise ColumnCountMismatchError(self.tree_.n_features, len(x))
            labels = self.tree_.find_leaf(x).train_data.labels.astype(int)
            out[i] = np.bincount(labels, minlength=k) / labels.size
        return out


class CARTRegressor(RegressorMixin, _BaseCART):
    """
    CART regression tree with cost-complexity pruning.

    Splits minimise the sum of squared residuals; leaves predict the mean
    target of their training rows.  See :class:`CARTClassifier` for the
    fitted attributes.
    """

    _task = "regression"

    def _encode_target(self, y: np.ndarray) -> np.ndarray:
        try:
            return y.astype(float)
        except (TypeError, ValueError) as e:
            raise ValueError("y must be numeric for regression") from e

    def predict(self, X):
        return self._raw_predict(X)
