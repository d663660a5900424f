# cartpy/__init__.py
"""
cartpy: CART decision trees with cost-complexity pruning in pure Python.

Engine:
    - Dataset, Row, Partition
    - Evaluator
    - DecisionNode, build_overfit_tree
    - get_subtrees_and_alphas
    - select_alpha_index

Estimators (scikit-learn style):
    - CARTClassifier
    - CARTRegressor
"""
from loguru import logger

from .dataset import Dataset, Partition, Row
from .estimator import CARTClassifier, CARTRegressor
from .evaluator import Evaluator
from .exceptions import (
    ColumnCountMismatchError,
    ColumnNotFoundError,
    EmptyDatasetError,
    InvalidTargetError,
    NoFeasibleAlphaError,
    TreeInductionError,
)
from .logging import PACKAGE_NAME, enable_logging
from .model_selection import select_alpha_index
from .pruning import get_subtrees_and_alphas
from .tree import DecisionNode, build_overfit_tree

logger.disable(PACKAGE_NAME)

__all__ = [
    "CARTClassifier",
    "CARTRegressor",
    "Dataset",
    "Partition",
    "Row",
    "Evaluator",
    "DecisionNode",
    "build_overfit_tree",
    "get_subtrees_and_alphas",
    "select_alpha_index",
    "enable_logging",
    "TreeInductionError",
    "EmptyDatasetError",
    "InvalidTargetError",
    "ColumnNotFoundError",
    "ColumnCountMismatchError",
    "NoFeasibleAlphaError",
]
__version__ = "0.1.0"
