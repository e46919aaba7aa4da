"""Snapshot store: SQL tables, database access and metric retrieval."""

from codecity.snapshots.db import BulkWriter, Database
from codecity.snapshots.document import SnapshotDocument, load_document, parse_document
from codecity.snapshots.models import Measure, Metric, Project, Snapshot
from codecity.snapshots.repository import MetricInfo, MinMaxValue, SnapshotRepository

__all__ = [
    "BulkWriter",
    "Database",
    "Measure",
    "Metric",
    "MetricInfo",
    "MinMaxValue",
    "Project",
    "Snapshot",
    "SnapshotDocument",
    "SnapshotRepository",
    "load_document",
    "parse_document",
]
