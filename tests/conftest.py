"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
and provides a seeded snapshot database shared by the SQL-backed tests.
"""

import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local codecity package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of codecity modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("codecity"):
        del sys.modules[module_name]

from codecity.snapshots.db import Database  # noqa: E402
from codecity.snapshots.document import parse_document  # noqa: E402
from codecity.snapshots.repository import SnapshotRepository  # noqa: E402

# Imported into an empty database this yields:
#   metrics   ncloc=1, complexity=2, coverage=3
#   snapshots root=1, Cart.java=2, Order.java=3, Index.java=4, README=5
SHOP_DOCUMENT: dict[str, Any] = {
    "project": "shop",
    "metrics": [
        {"name": "ncloc", "description": "Lines of code"},
        "complexity",
        "coverage",
    ],
    "files": [
        {"path": "shop-core/src/Cart.java", "measures": {"ncloc": 120, "complexity": 14}},
        {"path": "shop-core/src/Order.java", "measures": {"ncloc": 80, "complexity": 6}},
        {"path": "shop-web/src/Index.java", "measures": {"ncloc": 40}},
        {"path": "shop-web/README", "measures": {"coverage": None}},
    ],
}


@pytest.fixture
def shop_document() -> dict[str, Any]:
    """Raw snapshot document for the 'shop' project."""
    return {
        **SHOP_DOCUMENT,
        "metrics": list(SHOP_DOCUMENT["metrics"]),
        "files": [dict(entry) for entry in SHOP_DOCUMENT["files"]],
    }


@pytest.fixture
def database(tmp_path: Path) -> Iterator[Database]:
    """Empty snapshot database in a temporary directory."""
    db = Database(tmp_path / "snapshots.db")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def repository(database: Database) -> SnapshotRepository:
    return SnapshotRepository(database)


@pytest.fixture
def shop_root_id(repository: SnapshotRepository, shop_document: dict[str, Any]) -> int:
    """Import the shop document and return its root snapshot id."""
    return repository.import_snapshot(parse_document(shop_document))
