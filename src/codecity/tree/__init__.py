"""Visualization tree construction, caching and lookup."""

from codecity.tree.cache import TreeCache
from codecity.tree.ids import GeneratedIdSequence
from codecity.tree.models import (
    LayoutViewType,
    SnapshotRecord,
    TreeNode,
    TreeNodeType,
    VisualizationRequest,
)
from codecity.tree.optimize import TreeOptimizer
from codecity.tree.serialize import node_to_dict, tree_to_dict
from codecity.tree.service import MetricSource, TreeService
from codecity.tree.walker import PathWalker, build_tree

__all__ = [
    "GeneratedIdSequence",
    "LayoutViewType",
    "MetricSource",
    "PathWalker",
    "SnapshotRecord",
    "TreeCache",
    "TreeNode",
    "TreeNodeType",
    "TreeOptimizer",
    "TreeService",
    "VisualizationRequest",
    "build_tree",
    "node_to_dict",
    "tree_to_dict",
]
