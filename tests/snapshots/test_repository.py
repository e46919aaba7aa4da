"""Tests for snapshots/repository.py module.

Runs against a temporary SQLite database seeded with the 'shop' document
(see tests/conftest.py).
"""

from __future__ import annotations

from typing import Any
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from codecity.core.errors import ErrorCode, SnapshotError
from codecity.snapshots.db import Database
from codecity.snapshots.document import parse_document
from codecity.snapshots.models import Metric, Project, Snapshot
from codecity.snapshots.repository import MetricInfo, MinMaxValue, SnapshotRepository
from codecity.tree.cache import TreeCache
from codecity.tree.models import SnapshotRecord, VisualizationRequest
from codecity.tree.service import TreeService


class TestGetFlatChildrenWithMetrics:
    """Tests for the metric-retrieval query."""

    def test_returns_file_records_ordered_by_path(
        self, repository: SnapshotRepository, shop_root_id: int
    ) -> None:
        # Given
        ncloc = repository.get_metric_id_by_name("ncloc")
        complexity = repository.get_metric_id_by_name("complexity")
        request = VisualizationRequest.from_values(shop_root_id, "city", ncloc, complexity)

        # When
        records = repository.get_flat_children_with_metrics(request)

        # Then
        assert records == [
            SnapshotRecord(
                id=2, path="shop-core/src/Cart.java", footprint_value=120.0, height_value=14.0
            ),
            SnapshotRecord(
                id=3, path="shop-core/src/Order.java", footprint_value=80.0, height_value=6.0
            ),
            SnapshotRecord(
                id=5, path="shop-web/README", footprint_value=0.0, height_value=0.0
            ),
            SnapshotRecord(
                id=4, path="shop-web/src/Index.java", footprint_value=40.0, height_value=0.0
            ),
        ]

    def test_null_measure_becomes_zero(
        self, repository: SnapshotRepository, shop_root_id: int
    ) -> None:
        coverage = repository.get_metric_id_by_name("coverage")
        request = VisualizationRequest.from_values(shop_root_id, "city", coverage, coverage)

        records = repository.get_flat_children_with_metrics(request)

        readme = next(r for r in records if r.path == "shop-web/README")
        assert readme.footprint_value == 0.0
        assert readme.height_value == 0.0

    def test_same_metric_for_both_dimensions(
        self, repository: SnapshotRepository, shop_root_id: int
    ) -> None:
        ncloc = repository.get_metric_id_by_name("ncloc")
        request = VisualizationRequest.from_values(shop_root_id, "city", ncloc, ncloc)

        records = repository.get_flat_children_with_metrics(request)

        assert len(records) == 4
        assert all(r.footprint_value == r.height_value for r in records)

    def test_unknown_root_returns_nothing(
        self, repository: SnapshotRepository, shop_root_id: int
    ) -> None:
        request = VisualizationRequest.from_values(shop_root_id + 100, "city", 1, 2)
        assert repository.get_flat_children_with_metrics(request) == []

    def test_other_runs_are_not_mixed_in(
        self, repository: SnapshotRepository, shop_root_id: int, shop_document: dict[str, Any]
    ) -> None:
        shop_document["files"] = [{"path": "other/Thing.java", "measures": {"ncloc": 1}}]
        other_root = repository.import_snapshot(parse_document(shop_document))

        first = repository.get_flat_children_with_metrics(
            VisualizationRequest.from_values(shop_root_id, "city", 1, 2)
        )
        second = repository.get_flat_children_with_metrics(
            VisualizationRequest.from_values(other_root, "city", 1, 2)
        )

        assert len(first) == 4
        assert [r.path for r in second] == ["other/Thing.java"]

    def test_database_error_raises_query_failed(
        self, repository: SnapshotRepository, shop_root_id: int
    ) -> None:
        request = VisualizationRequest.from_values(shop_root_id, "city", 1, 2)

        with (
            patch(
                "sqlmodel.Session.exec",
                side_effect=OperationalError("SELECT", {}, Exception("database is locked")),
            ),
            pytest.raises(SnapshotError) as exc_info,
        ):
            repository.get_flat_children_with_metrics(request)

        assert exc_info.value.code == ErrorCode.SNAPSHOT_QUERY_FAILED
        assert exc_info.value.retryable is True
        assert exc_info.value.details["operation"] == "get_flat_children_with_metrics"


class TestMetricLookups:
    """Tests for metric name/id and value range queries."""

    def test_metric_id_by_name(self, repository: SnapshotRepository, shop_root_id: int) -> None:
        assert repository.get_metric_id_by_name("ncloc") == 1
        assert repository.get_metric_id_by_name("coverage") == 3

    def test_unknown_metric_raises(self, repository: SnapshotRepository, shop_root_id: int) -> None:
        with pytest.raises(SnapshotError) as exc_info:
            repository.get_metric_id_by_name("bogus")

        assert exc_info.value.code == ErrorCode.METRIC_NOT_FOUND

    def test_distinct_metrics_skip_all_null_metrics(
        self, repository: SnapshotRepository, shop_root_id: int
    ) -> None:
        metrics = repository.get_distinct_metrics_by_snapshot_id(shop_root_id)

        assert metrics == [
            MetricInfo(id=2, name="complexity"),
            MetricInfo(id=1, name="ncloc", description="Lines of code"),
        ]

    def test_min_max_over_files(self, repository: SnapshotRepository, shop_root_id: int) -> None:
        assert repository.get_min_max_metric_values(shop_root_id, 1) == MinMaxValue(40.0, 120.0)
        assert repository.get_min_max_metric_values(shop_root_id, 2) == MinMaxValue(6.0, 14.0)

    def test_min_max_without_values_is_zero(
        self, repository: SnapshotRepository, shop_root_id: int
    ) -> None:
        assert repository.get_min_max_metric_values(shop_root_id, 3) == MinMaxValue(0.0, 0.0)


class TestImportSnapshot:
    """Tests for import_snapshot."""

    def test_first_import_creates_root_snapshot(
        self, repository: SnapshotRepository, shop_root_id: int
    ) -> None:
        assert shop_root_id == 1

    def test_reimport_reuses_metrics(
        self, repository: SnapshotRepository, shop_root_id: int, shop_document: dict[str, Any]
    ) -> None:
        second_root = repository.import_snapshot(parse_document(shop_document))

        assert second_root != shop_root_id
        assert repository.get_metric_id_by_name("ncloc") == 1
        names = [m.name for m in repository.get_distinct_metrics_by_snapshot_id(second_root)]
        assert names == ["complexity", "ncloc"]

    def test_empty_document(self, repository: SnapshotRepository) -> None:
        root_id = repository.import_snapshot(parse_document({"project": "empty"}))

        assert repository.get_distinct_metrics_by_snapshot_id(root_id) == []

    def test_failed_measure_insert_leaves_store_unchanged(
        self,
        database: Database,
        repository: SnapshotRepository,
        shop_document: dict[str, Any],
    ) -> None:
        # Given
        document = parse_document(shop_document)

        # When
        with (
            patch(
                "codecity.snapshots.db.BulkWriter.insert_many",
                side_effect=OperationalError("INSERT", {}, Exception("disk I/O error")),
            ),
            pytest.raises(SnapshotError) as exc_info,
        ):
            repository.import_snapshot(document)

        # Then
        assert exc_info.value.code == ErrorCode.SNAPSHOT_QUERY_FAILED
        with database.session() as session:
            assert session.exec(select(Snapshot)).all() == []
            assert session.exec(select(Project)).all() == []
            assert session.exec(select(Metric)).all() == []

    def test_import_after_failed_import_starts_clean(
        self,
        repository: SnapshotRepository,
        shop_document: dict[str, Any],
    ) -> None:
        with (
            patch(
                "codecity.snapshots.db.BulkWriter.insert_many",
                side_effect=OperationalError("INSERT", {}, Exception("disk I/O error")),
            ),
            pytest.raises(SnapshotError),
        ):
            repository.import_snapshot(parse_document(shop_document))

        root_id = repository.import_snapshot(parse_document(shop_document))

        assert root_id == 1
        assert repository.get_min_max_metric_values(root_id, 1) == MinMaxValue(40.0, 120.0)


class TestRepositoryAsMetricSource:
    """The repository plugs straight into TreeService."""

    def test_builds_optimized_shop_tree(
        self, repository: SnapshotRepository, shop_root_id: int
    ) -> None:
        # Given
        service = TreeService(repository, TreeCache())
        request = VisualizationRequest.from_values(shop_root_id, "city", 1, 2)

        # When
        key = service.get_or_create_tree_structure(request)
        root = service.get_tree_structure(key)

        # Then
        assert root.id == shop_root_id
        assert sorted(root.children) == ["shop-core/src", "shop-web"]
        core = root.child("shop-core/src")
        web = root.child("shop-web")
        assert core is not None and web is not None
        assert sorted(core.children) == ["Cart.java", "Order.java"]
        assert sorted(web.children) == ["README", "src/Index.java"]
        assert service.find_node(key, 4).label == "src/Index.java"
