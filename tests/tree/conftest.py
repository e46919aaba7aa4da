"""Fixtures for tree tests: an in-memory metric source."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Sequence

import pytest

from codecity.tree.cache import TreeCache
from codecity.tree.ids import GeneratedIdSequence
from codecity.tree.models import SnapshotRecord, VisualizationRequest
from codecity.tree.service import TreeService


class InMemorySource:
    """MetricSource returning fixed records and counting calls."""

    def __init__(
        self,
        records: Sequence[SnapshotRecord],
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self.records = list(records)
        self.delay = delay
        self.error = error
        self.calls = 0
        self._lock = threading.Lock()

    def get_flat_children_with_metrics(
        self, request: VisualizationRequest
    ) -> Sequence[SnapshotRecord]:
        with self._lock:
            self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.records)


SourceFactory = Callable[..., InMemorySource]
ServiceFactory = Callable[..., TreeService]


@pytest.fixture
def scenario_records() -> list[SnapshotRecord]:
    """Two same-named files in sibling directories of one module."""
    return [
        SnapshotRecord(id=1, path="mod/a/File.java", footprint_value=10.0, height_value=3.0),
        SnapshotRecord(id=2, path="mod/b/File.java", footprint_value=20.0, height_value=5.0),
    ]


@pytest.fixture
def scenario_request() -> VisualizationRequest:
    return VisualizationRequest.from_values(100, "city", 1, 2)


@pytest.fixture
def make_source() -> SourceFactory:
    def factory(
        records: Sequence[SnapshotRecord] = (),
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> InMemorySource:
        return InMemorySource(records, delay=delay, error=error)

    return factory


@pytest.fixture
def make_service() -> ServiceFactory:
    def factory(
        source: InMemorySource,
        optimize: bool = True,
        high_water: int = 1_000_000,
        reserved: int = 1_000,
    ) -> TreeService:
        return TreeService(
            source,
            TreeCache(),
            id_sequence=GeneratedIdSequence(high_water=high_water, reserved=reserved),
            optimize=optimize,
        )

    return factory
