"""JSON-ready views of tree nodes."""

from __future__ import annotations

from typing import Any

from codecity.tree.models import TreeNode


def node_to_dict(node: TreeNode) -> dict[str, Any]:
    """Serialize a single node without its children."""
    return {
        "id": node.id,
        "parent_id": node.parent.id if node.parent is not None else None,
        "depth": node.depth,
        "type": node.type.value,
        "label": node.label,
        "footprint_value": node.footprint_value,
        "height_value": node.height_value,
        "child_count": len(node.children),
    }


def tree_to_dict(node: TreeNode, max_depth: int | None = None) -> dict[str, Any]:
    """Serialize node and its subtree.

    Children are ordered by label so equal trees serialize identically.
    ``max_depth`` limits how many levels below node are included; nodes at
    the limit still report ``child_count``.
    """
    result = node_to_dict(node)
    if max_depth is not None and max_depth <= 0:
        return result
    next_depth = None if max_depth is None else max_depth - 1
    result["children"] = [
        tree_to_dict(child, next_depth)
        for _label, child in sorted(node.child_items(), key=lambda item: item[0])
    ]
    return result
