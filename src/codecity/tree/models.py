"""Tree data model.

TreeNode is the node entity of a visualization hierarchy. The child map of
every node is guarded by its own lock; readers iterate over snapshots
returned by ``child_nodes()`` so concurrent interface-leaf injection never
invalidates a traversal.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from codecity.core.errors import TreeError


class TreeNodeType(str, Enum):
    """Kind of tree node."""

    DIRECTORY = "directory"
    FILE = "file"
    DEPENDENCY_GENERATED = "dependency_generated"


class LayoutViewType(str, Enum):
    """Visualization view a tree is built for."""

    CITY = "city"
    DEPENDENCY = "dependency"


@dataclass(eq=False)
class TreeNode:
    """A node in a visualization tree.

    ``label`` is also the node's key in its parent's child map. Nodes compare
    by identity; use ``codecity.tree.serialize.tree_to_dict`` for structural
    comparison.
    """

    id: int
    parent: TreeNode | None = field(repr=False)
    depth: int
    type: TreeNodeType
    label: str
    footprint_value: float = 0.0
    height_value: float = 0.0
    children: dict[str, TreeNode] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def child(self, label: str) -> TreeNode | None:
        with self._lock:
            return self.children.get(label)

    def child_nodes(self) -> list[TreeNode]:
        """Snapshot of the current children."""
        with self._lock:
            return list(self.children.values())

    def child_items(self) -> list[tuple[str, TreeNode]]:
        """Snapshot of the current (label, child) pairs."""
        with self._lock:
            return list(self.children.items())

    def get_or_add_child(self, node: TreeNode) -> tuple[TreeNode, bool]:
        """Attach node under its label unless that label is taken.

        Returns:
            (node in the map, whether it was newly added)
        """
        if node.parent is not self:
            raise ValueError(f"node '{node.label}' does not point at this parent")
        with self._lock:
            existing = self.children.get(node.label)
            if existing is not None:
                return existing, False
            self.children[node.label] = node
            return node, True

    def replace_children(self, children: dict[str, TreeNode]) -> None:
        with self._lock:
            self.children = children

    def walk(self) -> Iterator[TreeNode]:
        """Depth-first pre-order iteration over this subtree."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.child_nodes()))

    def path_labels(self) -> list[str]:
        """Labels from the first level below the root down to this node."""
        labels: list[str] = []
        node: TreeNode | None = self
        while node is not None and node.parent is not None:
            labels.append(node.label)
            node = node.parent
        return labels[::-1]


@dataclass(frozen=True, slots=True)
class SnapshotRecord:
    """One file-scoped element returned by the metric source.

    Metric values are already normalized: missing measures are 0.0.
    """

    id: int
    path: str
    footprint_value: float = 0.0
    height_value: float = 0.0


@dataclass(frozen=True, slots=True)
class VisualizationRequest:
    """Composite request identifying one visualization tree."""

    root_snapshot_id: int
    view_type: LayoutViewType
    footprint_metric_id: int
    height_metric_id: int

    def __post_init__(self) -> None:
        for name in ("root_snapshot_id", "footprint_metric_id", "height_metric_id"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TreeError.invalid_request(name, value, "must be an integer")
            if value < 0:
                raise TreeError.invalid_request(name, value, "must not be negative")
        if not isinstance(self.view_type, LayoutViewType):
            raise TreeError.invalid_request("view_type", self.view_type, "unknown view type")

    @property
    def key(self) -> str:
        """Fingerprint string used as the tree cache key."""
        return (
            f"{self.root_snapshot_id}_{self.view_type.name}_"
            f"{self.footprint_metric_id}_{self.height_metric_id}"
        )

    @classmethod
    def from_values(
        cls,
        root_snapshot_id: object,
        view_type: object,
        footprint_metric_id: object,
        height_metric_id: object,
    ) -> VisualizationRequest:
        """Build a request from loosely typed input (JSON bodies, CLI args)."""
        try:
            view = view_type if isinstance(view_type, LayoutViewType) else LayoutViewType(
                str(view_type).lower()
            )
        except ValueError as e:
            raise TreeError.invalid_request("view_type", view_type, "unknown view type") from e
        return cls(
            root_snapshot_id=_as_int("root_snapshot_id", root_snapshot_id),
            view_type=view,
            footprint_metric_id=_as_int("footprint_metric_id", footprint_metric_id),
            height_metric_id=_as_int("height_metric_id", height_metric_id),
        )


def _as_int(name: str, value: object) -> int:
    if isinstance(value, bool):
        raise TreeError.invalid_request(name, value, "must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    raise TreeError.invalid_request(name, value, "must be an integer")
