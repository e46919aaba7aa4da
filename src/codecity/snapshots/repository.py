"""SnapshotRepository - metric retrieval over the snapshot store.

Implements the ``MetricSource`` protocol used by ``TreeService``: one flat
record per file-scoped element below a root snapshot, with both requested
metric values joined in and NULL measures normalized to 0.0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import and_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import aliased
from sqlmodel import col, select

from codecity.config.constants import FILE_SCOPE, PROJECT_SCOPE
from codecity.core.errors import SnapshotError
from codecity.snapshots.db import BulkWriter
from codecity.snapshots.models import Measure, Metric, Project, Snapshot
from codecity.tree.models import SnapshotRecord

if TYPE_CHECKING:
    from codecity.snapshots.db import Database
    from codecity.snapshots.document import SnapshotDocument
    from codecity.tree.models import VisualizationRequest

log = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class MetricInfo:
    """A metric with a non-null value on some snapshot."""

    id: int
    name: str
    description: str | None = None


@dataclass(frozen=True, slots=True)
class MinMaxValue:
    """Value range of one metric over the files of a root snapshot."""

    min_value: float
    max_value: float


class SnapshotRepository:
    """Read (and import) access to snapshots, metrics and measures."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def get_flat_children_with_metrics(
        self, request: VisualizationRequest
    ) -> list[SnapshotRecord]:
        """All file snapshots below the request's root, ordered by path."""
        footprint = aliased(Measure)
        height = aliased(Measure)
        stmt = (
            select(Snapshot.id, Project.path, footprint.value, height.value)
            .join(Project, col(Snapshot.project_id) == col(Project.id))
            .outerjoin(
                footprint,
                and_(
                    footprint.snapshot_id == Snapshot.id,
                    footprint.metric_id == request.footprint_metric_id,
                ),
            )
            .outerjoin(
                height,
                and_(
                    height.snapshot_id == Snapshot.id,
                    height.metric_id == request.height_metric_id,
                ),
            )
            .where(col(Snapshot.root_snapshot_id) == request.root_snapshot_id)
            .where(col(Snapshot.scope) == FILE_SCOPE)
            .order_by(col(Project.path))
        )
        try:
            with self._db.session() as session:
                rows = session.exec(stmt).all()
        except SQLAlchemyError as e:
            raise SnapshotError.query_failed("get_flat_children_with_metrics", str(e)) from e

        records = [
            SnapshotRecord(
                id=snapshot_id,
                path=path,
                footprint_value=float(footprint_value or 0.0),
                height_value=float(height_value or 0.0),
            )
            for snapshot_id, path, footprint_value, height_value in rows
        ]
        log.debug(
            "snapshots.flat_children_loaded",
            root_snapshot_id=request.root_snapshot_id,
            count=len(records),
        )
        return records

    def get_metric_id_by_name(self, name: str) -> int:
        stmt = select(Metric.id).where(col(Metric.name) == name)
        try:
            with self._db.session() as session:
                metric_id = session.exec(stmt).first()
        except SQLAlchemyError as e:
            raise SnapshotError.query_failed("get_metric_id_by_name", str(e)) from e
        if metric_id is None:
            raise SnapshotError.metric_not_found(name)
        return metric_id

    def get_distinct_metrics_by_snapshot_id(self, snapshot_id: int) -> list[MetricInfo]:
        """Metrics with at least one non-null value in the run rooted at snapshot_id.

        Measures on the root snapshot itself count too.
        """
        stmt = (
            select(Metric.id, Metric.name, Metric.description)
            .join(Measure, col(Measure.metric_id) == col(Metric.id))
            .join(Snapshot, col(Snapshot.id) == col(Measure.snapshot_id))
            .where(
                (col(Snapshot.root_snapshot_id) == snapshot_id)
                | (col(Snapshot.id) == snapshot_id)
            )
            .where(col(Measure.value).is_not(None))
            .distinct()
            .order_by(col(Metric.name))
        )
        try:
            with self._db.session() as session:
                rows = session.exec(stmt).all()
        except SQLAlchemyError as e:
            raise SnapshotError.query_failed("get_distinct_metrics_by_snapshot_id", str(e)) from e
        return [MetricInfo(id=mid, name=name, description=desc) for mid, name, desc in rows]

    def get_min_max_metric_values(self, root_snapshot_id: int, metric_id: int) -> MinMaxValue:
        """Min/max of a metric over the file snapshots of a run (0.0/0.0 if none)."""
        stmt = (
            select(func.min(Measure.value), func.max(Measure.value))
            .join(Snapshot, col(Snapshot.id) == col(Measure.snapshot_id))
            .where(col(Snapshot.root_snapshot_id) == root_snapshot_id)
            .where(col(Snapshot.scope) == FILE_SCOPE)
            .where(col(Measure.metric_id) == metric_id)
        )
        try:
            with self._db.session() as session:
                row = session.exec(stmt).one()
        except SQLAlchemyError as e:
            raise SnapshotError.query_failed("get_min_max_metric_values", str(e)) from e
        min_value, max_value = row
        return MinMaxValue(
            min_value=float(min_value or 0.0),
            max_value=float(max_value or 0.0),
        )

    def import_snapshot(self, document: SnapshotDocument) -> int:
        """Store one analysis run. Returns the new root snapshot id.

        Metrics, projects, snapshots and measures commit together; any
        failure leaves the store as it was.
        """
        try:
            with self._db.session() as session:
                metric_ids: dict[str, int] = {}
                for definition in document.metrics:
                    metric = session.exec(
                        select(Metric).where(col(Metric.name) == definition.name)
                    ).first()
                    if metric is None:
                        metric = Metric(name=definition.name, description=definition.description)
                        session.add(metric)
                        session.flush()
                    assert metric.id is not None
                    metric_ids[definition.name] = metric.id

                root_project = Project(path=document.project, name=document.project)
                session.add(root_project)
                session.flush()
                assert root_project.id is not None
                root = Snapshot(project_id=root_project.id, scope=PROJECT_SCOPE)
                session.add(root)
                session.flush()
                assert root.id is not None
                root_id = root.id

                measure_rows: list[dict[str, object]] = []
                for entry in document.files:
                    project = Project(path=entry.path, name=entry.path.rsplit("/", 1)[-1])
                    session.add(project)
                    session.flush()
                    assert project.id is not None
                    snapshot = Snapshot(
                        project_id=project.id, root_snapshot_id=root_id, scope=FILE_SCOPE
                    )
                    session.add(snapshot)
                    session.flush()
                    measure_rows.extend(
                        {"snapshot_id": snapshot.id, "metric_id": metric_ids[name], "value": value}
                        for name, value in entry.measures.items()
                    )

                # Same connection and transaction as the rows above
                BulkWriter(session.connection()).insert_many(Measure, measure_rows)
                session.commit()
        except SQLAlchemyError as e:
            raise SnapshotError.query_failed("import_snapshot", str(e)) from e

        log.info(
            "snapshots.imported",
            root_snapshot_id=root_id,
            project=document.project,
            files=len(document.files),
            measures=len(measure_rows),
        )
        return root_id
