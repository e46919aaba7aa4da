"""PathWalker - builds a TreeNode hierarchy from flat path-tagged records.

Each record path is split into segments. Walking from the root, every
intermediate segment reuses or creates a DIRECTORY node and the final
segment reuses or creates a FILE node carrying the record's id and metrics.

A newly created intermediate directory takes the id of the record whose
path created it, so the chain ``mod -> a -> File.java`` for record 1 is a
same-id chain. Lookups by id resolve such chains to their deepest node.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from codecity.core.errors import TreeError
from codecity.tree.models import SnapshotRecord, TreeNode, TreeNodeType

logger = structlog.get_logger()


@dataclass
class WalkStats:
    """Counters collected while walking."""

    records: int = 0
    files_created: int = 0
    directories_created: int = 0
    duplicates: int = 0
    skipped: int = 0


class PathWalker:
    """Incrementally builds a tree rooted at ``root_id``."""

    ROOT_LABEL = "root"

    def __init__(
        self,
        root_id: int,
        delimiter: str = "/",
        generated_id_floor: int | None = None,
    ) -> None:
        if not delimiter:
            raise ValueError("delimiter must not be empty")
        self._delimiter = delimiter
        self._generated_id_floor = generated_id_floor
        self._root = TreeNode(
            id=root_id,
            parent=None,
            depth=0,
            type=TreeNodeType.DIRECTORY,
            label=self.ROOT_LABEL,
        )
        self.stats = WalkStats()

    @property
    def tree(self) -> TreeNode:
        return self._root

    def split_path(self, path: str) -> list[str]:
        """Split a path into non-empty segments."""
        return [segment for segment in path.split(self._delimiter) if segment]

    def add_path(self, record: SnapshotRecord) -> TreeNode | None:
        """Add one record. Returns its FILE node, or None if the path was empty."""
        self.stats.records += 1
        if self._generated_id_floor is not None and record.id >= self._generated_id_floor:
            raise TreeError.build_failure(
                "record id collides with the generated id range",
                record_id=record.id,
                path=record.path,
                floor=self._generated_id_floor,
            )

        segments = self.split_path(record.path)
        if not segments:
            self.stats.skipped += 1
            logger.warning("walker.empty_path", record_id=record.id, path=record.path)
            return None

        node = self._root
        for segment in segments[:-1]:
            node = self._get_or_create_directory(node, segment, record.id)

        return self._get_or_create_file(node, segments[-1], record)

    def add_paths(self, records: Iterable[SnapshotRecord]) -> TreeNode:
        for record in records:
            self.add_path(record)
        return self._root

    def _get_or_create_directory(self, parent: TreeNode, label: str, record_id: int) -> TreeNode:
        candidate = TreeNode(
            id=record_id,
            parent=parent,
            depth=parent.depth + 1,
            type=TreeNodeType.DIRECTORY,
            label=label,
        )
        node, created = parent.get_or_add_child(candidate)
        if created:
            self.stats.directories_created += 1
        elif node.type is TreeNodeType.FILE:
            # A file record at this path arrived before records below it.
            logger.debug("walker.file_promoted", node_id=node.id, label=label)
            node.type = TreeNodeType.DIRECTORY
            node.footprint_value = 0.0
            node.height_value = 0.0
        return node

    def _get_or_create_file(self, parent: TreeNode, label: str, record: SnapshotRecord) -> TreeNode:
        candidate = TreeNode(
            id=record.id,
            parent=parent,
            depth=parent.depth + 1,
            type=TreeNodeType.FILE,
            label=label,
            footprint_value=record.footprint_value,
            height_value=record.height_value,
        )
        node, created = parent.get_or_add_child(candidate)
        if created:
            self.stats.files_created += 1
        elif node.is_leaf:
            self.stats.duplicates += 1
            logger.debug(
                "walker.duplicate_path",
                record_id=record.id,
                existing_id=node.id,
                path=record.path,
            )
        return node


def build_tree(
    root_id: int,
    records: Iterable[SnapshotRecord],
    delimiter: str = "/",
    generated_id_floor: int | None = None,
) -> TreeNode:
    """Build an (unoptimized) tree from records in one call."""
    walker = PathWalker(root_id, delimiter=delimiter, generated_id_floor=generated_id_floor)
    return walker.add_paths(records)
