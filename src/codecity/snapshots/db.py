"""SQLite engine for the snapshot store.

Reads and the low-volume rows of an import (metrics, projects, snapshots)
go through ORM sessions. Measures are the bulk of every import, so they
are written with Core inserts via ``BulkWriter``.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

# Table classes must be registered on SQLModel.metadata before create_all
from codecity.snapshots import models as _models  # noqa: F401

if TYPE_CHECKING:
    from sqlalchemy import Connection, Engine


class Database:
    """Engine owner for one snapshot database file.

    Every new DBAPI connection is switched to WAL journaling with the
    configured busy timeout, so the daemon's threadpool readers never block
    behind an import running from the CLI::

        db = Database(Path("snapshots.db"))
        db.create_all()

        with db.session() as session:
            metric = session.get(Metric, 1)
    """

    def __init__(self, db_path: Path, busy_timeout_ms: int = 30000, echo: bool = False) -> None:
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._busy_timeout_ms = int(busy_timeout_ms)
        self.engine: Engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
            echo=echo,
        )
        event.listen(self.engine, "connect", self._on_connect)

    def _on_connect(self, dbapi_conn: Any, _record: Any) -> None:
        cursor = dbapi_conn.cursor()
        try:
            for pragma in (
                "journal_mode=WAL",
                f"busy_timeout={self._busy_timeout_ms}",
                "synchronous=NORMAL",
                "foreign_keys=ON",
            ):
                cursor.execute(f"PRAGMA {pragma}")
        finally:
            cursor.close()

    def create_all(self) -> None:
        SQLModel.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        with Session(self.engine) as session:
            yield session

    @contextmanager
    def bulk_writer(self) -> Generator[BulkWriter, None, None]:
        """One transaction of Core inserts: committed on exit, rolled back on error."""
        with self.engine.begin() as conn:
            yield BulkWriter(conn)

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()


class BulkWriter:
    """Core ``INSERT ... VALUES`` batches against a model's table."""

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def insert_many(self, model_class: type[SQLModel], records: list[dict[str, Any]]) -> int:
        """Insert ``records`` (dicts keyed by column name); returns the row count."""
        if not records:
            return 0
        table = model_class.__table__  # type: ignore[attr-defined]
        self.conn.execute(table.insert(), records)
        return len(records)
