# cartpy/pruning.py
"""
Cost-complexity (weakest-link) pruning.

For a grown tree ``T`` and a per-leaf penalty ``alpha`` the pruned tree
minimises ``R(T) + alpha * |leaves(T)|``.  Starting from the full tree, the
internal node whose collapse costs the least error per removed leaf (the
*weakest link*) is turned into a leaf, again and again until only the root
remains.  Each step records the ``alpha`` at which the smaller tree becomes
preferable, giving a nested sequence of subtrees with non-decreasing alphas.

Trees are never modified: every step returns a new root that shares all
untouched subtrees with the previous one.
"""
from __future__ import annotations

from dataclasses import replace

from loguru import logger

from .tree import DecisionNode


def weakest_link_score(node: DecisionNode, root_size: int) -> float:
    """
    ``g(t) = (R(t) - R(T_t)) / (|leaves(T_t)| - 1)`` for an internal node.

    ``R(t)`` is the node's own error as a leaf and ``R(T_t)`` the summed error
    of the leaves beneath it, each weighted by its share of the root's rows.
    """
    leaves = node.leaves()
    node_risk = node.error * node.train_data.size() / root_size
    branch_risk = sum(leaf.error * leaf.train_data.size() / root_size for leaf in leaves)
    return (node_risk - branch_risk) / (len(leaves) - 1)


def find_weakest_link(root: DecisionNode) -> tuple[DecisionNode, float]:
    """
    The internal node with the smallest ``g(t)`` and that score.

    Nodes are scanned in pre-order (node, False subtree, True subtree); the
    first node reaching the minimum wins.
    """
    root_size = root.train_data.size()
    weakest, best = None, None
    for node in root.internal_nodes():
        g = weakest_link_score(node, root_size)
        if best is None or g < best:
            weakest, best = node, g
    if weakest is None:
        raise ValueError("a leaf has no internal node to prune")
    return weakest, best


def collapse_node(root: DecisionNode, target: DecisionNode) -> DecisionNode:
    """
    Copy of ``root`` in which ``target`` is a leaf.

    Only the nodes on the path from ``root`` to ``target`` are rebuilt.
    """
    if root is target:
        return root.as_leaf()
    if root.is_leaf:
        return root
    left = collapse_node(root.left, target)
    right = collapse_node(root.right, target)
    if left is root.left and right is root.right:
        return root
    return replace(root, left=left, right=right)


def get_subtrees_and_alphas(root: DecisionNode) -> tuple[list[DecisionNode], list[float]]:
    """
    Nested subtrees of ``root`` and the alpha at which each becomes optimal.

    Parameters
    ----------
    root : DecisionNode
        A grown tree, typically from :func:`~cartpy.tree.build_overfit_tree`.

    Returns
    -------
    subtrees : list[DecisionNode]
        ``subtrees[0]`` is ``root`` itself and ``subtrees[-1]`` a single leaf;
        every tree has fewer leaves than the one before it.
    alphas : list[float]
        ``alphas[0] == 0.0``; non-decreasing.
    """
    subtrees = [root]
    alphas = [0.0]
    while not subtrees[-1].is_leaf:
        current = subtrees[-1]
        weakest, g = find_weakest_link(current)
        # rounding in the weighted sums can dip a hair below the previous alpha
        alpha = max(g, alphas[-1])
        subtrees.append(collapse_node(current, weakest))
        alphas.append(alpha)
        logger.debug("Pruned weakest link", alpha=alpha, rows=weakest.train_data.size(),
                     leaves=subtrees[-1].n_leaves)
    logger.info("Pruning sequence ready", n_subtrees=len(subtrees), max_alpha=alphas[-1])
    return subtrees, alphas
