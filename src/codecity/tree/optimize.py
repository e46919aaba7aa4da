"""TreeOptimizer - removes structurally redundant directory nodes.

Rules, applied depth-first (post-order) below the root:

- A DIRECTORY with no children is pruned.
- A DIRECTORY with exactly one child is collapsed: the child moves up to
  the directory's parent under the joined label ``"<dir><delim><child>"``.
- FILE, DEPENDENCY_GENERATED and DIRECTORY nodes with two or more children
  are kept as they are.

Depths are left untouched after a collapse, so a spliced node keeps the
depth of its original position.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from codecity.tree.models import TreeNode, TreeNodeType

logger = structlog.get_logger()


@dataclass
class OptimizeStats:
    collapsed: int = 0
    pruned: int = 0


class TreeOptimizer:
    """Collapses single-child directories and prunes empty ones in place."""

    def __init__(self, delimiter: str = "/") -> None:
        self._delimiter = delimiter

    def remove_unnecessary_nodes(self, root: TreeNode) -> OptimizeStats:
        """Optimize the tree below ``root``. The root itself is never collapsed."""
        stats = OptimizeStats()
        self._optimize_children(root, stats)
        if stats.collapsed or stats.pruned:
            logger.debug(
                "tree_optimizer.done",
                root_id=root.id,
                collapsed=stats.collapsed,
                pruned=stats.pruned,
            )
        return stats

    def _optimize_children(self, node: TreeNode, stats: OptimizeStats) -> None:
        optimized: dict[str, TreeNode] = {}
        for _label, child in node.child_items():
            self._optimize_children(child, stats)
            replacement = self._reduce(child, stats)
            if replacement is not None:
                optimized[replacement.label] = replacement
        node.replace_children(optimized)

    def _reduce(self, node: TreeNode, stats: OptimizeStats) -> TreeNode | None:
        """Return what should stand in the parent's map in place of node."""
        if node.type is not TreeNodeType.DIRECTORY:
            return node

        children = node.child_nodes()
        if not children:
            stats.pruned += 1
            return None
        if len(children) > 1:
            return node

        only_child = children[0]
        only_child.label = f"{node.label}{self._delimiter}{only_child.label}"
        only_child.parent = node.parent
        node.replace_children({})
        stats.collapsed += 1
        return only_child
