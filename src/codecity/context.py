"""Application context.

Single object handed to HTTP handlers and CLI commands with the wired
database, repository, tree cache and tree service.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from codecity.config.models import CodeCityConfig
    from codecity.snapshots.db import Database
    from codecity.snapshots.repository import SnapshotRepository
    from codecity.tree.cache import TreeCache
    from codecity.tree.service import TreeService


@dataclass
class AppContext:
    """Owns the process-lifetime collaborators.

    The TreeCache lives here and nowhere else; every consumer reaches it
    through ``tree_service``.
    """

    config: CodeCityConfig
    database: Database
    repository: SnapshotRepository
    cache: TreeCache
    tree_service: TreeService
    started_at: float = field(default_factory=time.time)

    @classmethod
    def create(cls, config: CodeCityConfig, base_dir: Path | None = None) -> AppContext:
        """Factory to create context with all collaborators wired together.

        Args:
            config: Resolved configuration
            base_dir: Directory a relative database path is resolved against
                      (default: cwd)
        """
        from codecity.config.loader import resolve_database_path
        from codecity.snapshots.db import Database
        from codecity.snapshots.repository import SnapshotRepository
        from codecity.tree.cache import TreeCache
        from codecity.tree.service import TreeService

        database = Database(
            resolve_database_path(config, base_dir),
            busy_timeout_ms=config.database.busy_timeout_ms,
            echo=config.database.echo,
        )
        database.create_all()

        repository = SnapshotRepository(database)
        cache = TreeCache()
        tree_service = TreeService.from_config(repository, cache, config.tree)

        return cls(
            config=config,
            database=database,
            repository=repository,
            cache=cache,
            tree_service=tree_service,
        )

    @property
    def uptime_seconds(self) -> float:
        return time.time() - self.started_at

    def close(self) -> None:
        """Release database connections."""
        self.database.dispose()
