"""Tests for tree/models.py module.

Covers:
- TreeNode child map operations
- VisualizationRequest validation and fingerprint
"""

from __future__ import annotations

import threading

import pytest

from codecity.core.errors import ErrorCode, TreeError
from codecity.tree.models import (
    LayoutViewType,
    SnapshotRecord,
    TreeNode,
    TreeNodeType,
    VisualizationRequest,
)


def _root() -> TreeNode:
    return TreeNode(id=100, parent=None, depth=0, type=TreeNodeType.DIRECTORY, label="root")


def _child(parent: TreeNode, node_id: int, label: str) -> TreeNode:
    return TreeNode(
        id=node_id,
        parent=parent,
        depth=parent.depth + 1,
        type=TreeNodeType.FILE,
        label=label,
    )


class TestTreeNode:
    """Tests for TreeNode."""

    def test_new_node_is_leaf(self) -> None:
        assert _root().is_leaf

    def test_given_child_when_added_then_reachable_by_label(self) -> None:
        # Given
        root = _root()
        child = _child(root, 1, "A.java")

        # When
        attached, created = root.get_or_add_child(child)

        # Then
        assert created is True
        assert attached is child
        assert root.child("A.java") is child
        assert not root.is_leaf

    def test_given_existing_label_when_added_then_existing_kept(self) -> None:
        # Given
        root = _root()
        first = _child(root, 1, "A.java")
        root.get_or_add_child(first)

        # When
        attached, created = root.get_or_add_child(_child(root, 2, "A.java"))

        # Then
        assert created is False
        assert attached is first
        assert len(root.children) == 1

    def test_rejects_node_with_other_parent(self) -> None:
        root = _root()
        stranger = _child(_root(), 1, "A.java")

        with pytest.raises(ValueError, match="does not point at this parent"):
            root.get_or_add_child(stranger)

    def test_child_nodes_is_a_snapshot(self) -> None:
        """Mutating the tree after taking a snapshot does not change it."""
        root = _root()
        root.get_or_add_child(_child(root, 1, "A.java"))

        snapshot = root.child_nodes()
        root.get_or_add_child(_child(root, 2, "B.java"))

        assert [n.label for n in snapshot] == ["A.java"]
        assert len(root.child_nodes()) == 2

    def test_walk_is_pre_order(self) -> None:
        root = _root()
        a = _child(root, 1, "a")
        a.type = TreeNodeType.DIRECTORY
        root.get_or_add_child(a)
        a.get_or_add_child(_child(a, 2, "x"))
        root.get_or_add_child(_child(root, 3, "b"))

        assert [n.label for n in root.walk()] == ["root", "a", "x", "b"]

    def test_path_labels_exclude_root(self) -> None:
        root = _root()
        a = _child(root, 1, "a")
        root.get_or_add_child(a)
        x = _child(a, 2, "x")
        a.get_or_add_child(x)

        assert x.path_labels() == ["a", "x"]
        assert root.path_labels() == []

    def test_concurrent_adds_keep_one_node_per_label(self) -> None:
        """Racing inserts of the same labels never produce duplicates."""
        root = _root()
        barrier = threading.Barrier(8)

        def worker(offset: int) -> None:
            barrier.wait()
            for i in range(50):
                root.get_or_add_child(_child(root, offset * 1000 + i, f"leaf-{i}"))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(root.children) == 50

    def test_nodes_compare_by_identity(self) -> None:
        root = _root()
        assert _child(root, 1, "a") != _child(root, 1, "a")


class TestSnapshotRecord:
    def test_metrics_default_to_zero(self) -> None:
        record = SnapshotRecord(id=1, path="a/b")
        assert record.footprint_value == 0.0
        assert record.height_value == 0.0


class TestVisualizationRequest:
    """Tests for VisualizationRequest."""

    def test_key_is_fingerprint_of_all_fields(self) -> None:
        request = VisualizationRequest(100, LayoutViewType.CITY, 1, 2)
        assert request.key == "100_CITY_1_2"

    def test_equal_requests_have_equal_keys(self) -> None:
        a = VisualizationRequest(100, LayoutViewType.DEPENDENCY, 1, 2)
        b = VisualizationRequest.from_values("100", "dependency", 1, "2")
        assert a == b
        assert a.key == b.key

    @pytest.mark.parametrize(
        "other",
        [
            VisualizationRequest(101, LayoutViewType.CITY, 1, 2),
            VisualizationRequest(100, LayoutViewType.DEPENDENCY, 1, 2),
            VisualizationRequest(100, LayoutViewType.CITY, 2, 1),
        ],
    )
    def test_any_field_change_changes_key(self, other: VisualizationRequest) -> None:
        assert VisualizationRequest(100, LayoutViewType.CITY, 1, 2).key != other.key

    def test_from_values_accepts_upper_case_view(self) -> None:
        request = VisualizationRequest.from_values(1, "CITY", 2, 3)
        assert request.view_type is LayoutViewType.CITY

    @pytest.mark.parametrize(
        ("values", "field"),
        [
            ((None, "city", 1, 2), "root_snapshot_id"),
            ((1, "city", "x", 2), "footprint_metric_id"),
            ((1, "city", 1, True), "height_metric_id"),
            ((1, "unknown", 1, 2), "view_type"),
            ((1, None, 1, 2), "view_type"),
        ],
    )
    def test_from_values_rejects_bad_input(self, values: tuple[object, ...], field: str) -> None:
        with pytest.raises(TreeError) as exc_info:
            VisualizationRequest.from_values(*values)

        assert exc_info.value.code == ErrorCode.INVALID_REQUEST
        assert exc_info.value.details["field"] == field

    def test_rejects_negative_ids(self) -> None:
        with pytest.raises(TreeError) as exc_info:
            VisualizationRequest(-1, LayoutViewType.CITY, 1, 2)

        assert exc_info.value.details["reason"] == "must not be negative"

    def test_is_hashable(self) -> None:
        request = VisualizationRequest(1, LayoutViewType.CITY, 2, 3)
        assert {request: "x"}[VisualizationRequest(1, LayoutViewType.CITY, 2, 3)] == "x"
