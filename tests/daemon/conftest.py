"""Fixtures for daemon tests: a seeded application context and client."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from starlette.testclient import TestClient

from codecity.config.models import CodeCityConfig, DatabaseConfig
from codecity.context import AppContext
from codecity.daemon.app import create_app
from codecity.snapshots.document import parse_document


@pytest.fixture
def app_context(tmp_path: Path, shop_document: dict[str, Any]) -> Iterator[AppContext]:
    """Context over a temporary database holding the shop snapshot (root id 1)."""
    config = CodeCityConfig(database=DatabaseConfig(path=str(tmp_path / "snapshots.db")))
    context = AppContext.create(config)
    context.repository.import_snapshot(parse_document(shop_document))
    yield context
    context.close()


@pytest.fixture
def client(app_context: AppContext) -> Iterator[TestClient]:
    with TestClient(create_app(app_context)) as test_client:
        yield test_client


@pytest.fixture
def tree_key(client: TestClient) -> str:
    """Key of the shop tree sized by ncloc (1) and complexity (2)."""
    response = client.post(
        "/trees",
        json={
            "root_snapshot_id": 1,
            "view_type": "city",
            "footprint_metric_id": 1,
            "height_metric_id": 2,
        },
    )
    assert response.status_code == 200
    return str(response.json()["key"])
