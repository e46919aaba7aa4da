"""TreeService - façade over tree building, caching and node lookup.

Callers hand in a VisualizationRequest and get back an opaque key. All
further queries and interface-leaf injections address the shared, cached
tree through that key.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

import structlog

from codecity.core.errors import TreeError
from codecity.tree.ids import GeneratedIdSequence
from codecity.tree.models import SnapshotRecord, TreeNode, TreeNodeType, VisualizationRequest
from codecity.tree.optimize import TreeOptimizer
from codecity.tree.walker import PathWalker

if TYPE_CHECKING:
    from codecity.config.models import TreeConfig
    from codecity.tree.cache import TreeCache

logger = structlog.get_logger()


class MetricSource(Protocol):
    """Metric-retrieval collaborator.

    Returns one record per file-scoped element below the request's root,
    with missing metric values already normalized to 0.0.
    """

    def get_flat_children_with_metrics(
        self, request: VisualizationRequest
    ) -> Sequence[SnapshotRecord]: ...


class TreeService:
    """Builds, caches and queries visualization trees."""

    def __init__(
        self,
        source: MetricSource,
        cache: TreeCache,
        id_sequence: GeneratedIdSequence | None = None,
        delimiter: str = "/",
        optimize: bool = True,
    ) -> None:
        self._source = source
        self._cache = cache
        self._ids = id_sequence or GeneratedIdSequence()
        self._delimiter = delimiter
        self._optimizer = TreeOptimizer(delimiter) if optimize else None

    @classmethod
    def from_config(cls, source: MetricSource, cache: TreeCache, config: TreeConfig) -> TreeService:
        return cls(
            source,
            cache,
            id_sequence=GeneratedIdSequence(
                high_water=config.generated_id_high_water,
                reserved=config.generated_id_reserved,
            ),
            delimiter=config.path_delimiter,
            optimize=config.optimize,
        )

    @property
    def cache(self) -> TreeCache:
        return self._cache

    @property
    def id_sequence(self) -> GeneratedIdSequence:
        return self._ids

    # -----------------------------------------------------------------
    # Tree lifecycle
    # -----------------------------------------------------------------

    def get_or_create_tree_structure(self, request: VisualizationRequest) -> str:
        """Ensure the tree for request exists and return its key."""
        key = request.key
        self._cache.get_or_build(key, lambda: self._create_tree_structure(request))
        return key

    def get_tree_structure(self, key: str) -> TreeNode:
        root = self._cache.get(key)
        if root is None:
            raise TreeError.tree_not_found(key)
        return root

    def evict_tree(self, key: str) -> bool:
        return self._cache.remove(key)

    def tree_keys(self) -> list[str]:
        return self._cache.keys()

    def _create_tree_structure(self, request: VisualizationRequest) -> TreeNode:
        key = request.key
        try:
            records = list(self._source.get_flat_children_with_metrics(request))
        except Exception as e:
            raise TreeError.build_failure(str(e), key=key) from e

        walker = PathWalker(
            request.root_snapshot_id,
            delimiter=self._delimiter,
            generated_id_floor=self._ids.floor,
        )
        for record in records:
            if not isinstance(record, SnapshotRecord):
                raise TreeError.build_failure(
                    "metric source returned a malformed record",
                    key=key,
                    record=repr(record),
                )
            walker.add_path(record)

        root = walker.tree
        if self._optimizer is not None:
            self._optimizer.remove_unnecessary_nodes(root)

        logger.info(
            "tree_service.tree_created",
            key=key,
            root_snapshot_id=request.root_snapshot_id,
            records=walker.stats.records,
            files=walker.stats.files_created,
            duplicates=walker.stats.duplicates,
            skipped=walker.stats.skipped,
        )
        return root

    # -----------------------------------------------------------------
    # Lookups
    # -----------------------------------------------------------------

    def find_node(self, key: str, node_id: int) -> TreeNode:
        """Find a node by id, resolving same-id chains to their deepest node."""
        root = self.get_tree_structure(key)
        node = self._search_by_id(root, node_id)
        if node is None:
            raise TreeError.node_not_found(key, node_id)
        return node

    def find_interface_leaf_node(self, key: str, label: str) -> TreeNode:
        root = self.get_tree_structure(key)
        node = self._search_by_label(root, label)
        if node is None:
            raise TreeError.interface_leaf_not_found(key, label)
        return node

    def get_children_node_ids(self, key: str, node_id: int) -> list[TreeNode]:
        """Children of the node that have children of their own."""
        node = self.find_node(key, node_id)
        return [child for child in node.child_nodes() if not child.is_leaf]

    def get_children_leaf_ids(self, key: str, node_id: int) -> list[TreeNode]:
        """Children of the node that have no children."""
        node = self.find_node(key, node_id)
        return [child for child in node.child_nodes() if child.is_leaf]

    def _search_by_id(self, node: TreeNode, node_id: int) -> TreeNode | None:
        if node.id == node_id:
            for child in node.child_nodes():
                if child.id == node_id:
                    return self._search_by_id(child, node_id)
            return node

        for child in node.child_nodes():
            found = self._search_by_id(child, node_id)
            if found is not None:
                return found
        return None

    def _search_by_label(self, node: TreeNode, label: str) -> TreeNode | None:
        direct = node.child(label)
        if direct is not None:
            return direct

        for child in node.child_nodes():
            found = self._search_by_label(child, label)
            if found is not None:
                return found
        return None

    # -----------------------------------------------------------------
    # Mutation
    # -----------------------------------------------------------------

    def add_interface_leaf_node(self, key: str, label: str, parent_id: int) -> TreeNode:
        """Attach a synthetic DEPENDENCY_GENERATED leaf under parent_id.

        If parent already has a DEPENDENCY_GENERATED child with this label,
        that child is returned and no id is consumed. A label taken by a
        real FILE or DIRECTORY child is rejected.
        """
        if not label:
            raise TreeError.invalid_request("label", label, "must not be empty")

        parent = self.find_node(key, parent_id)
        existing = parent.child(label)
        if existing is not None:
            return _check_interface_leaf(existing, label)

        node = TreeNode(
            id=self._ids.next_id(),
            parent=parent,
            depth=parent.depth + 1,
            type=TreeNodeType.DEPENDENCY_GENERATED,
            label=label,
        )
        attached, created = parent.get_or_add_child(node)
        if not created:
            return _check_interface_leaf(attached, label)

        logger.debug(
            "tree_service.interface_leaf_added",
            key=key,
            node_id=node.id,
            parent_id=parent.id,
            label=label,
        )
        return attached


def _check_interface_leaf(node: TreeNode, label: str) -> TreeNode:
    if node.type is not TreeNodeType.DEPENDENCY_GENERATED:
        raise TreeError.invalid_request("label", label, "collides with an existing node")
    return node
