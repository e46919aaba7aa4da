"""SQLModel definitions for the snapshot store.

Mirrors the subset of an analysis database needed to build visualization
trees: analysed elements (projects), their snapshots, metric definitions
and per-snapshot measures.

- A root snapshot (scope PRJ) anchors one analysis run.
- Every analysed element of that run has a snapshot whose
  ``root_snapshot_id`` points at the root; files use scope FIL.
- Measures attach a metric value to a snapshot; ``value`` may be NULL.
"""

from sqlmodel import Field, SQLModel


class Project(SQLModel, table=True):
    """An analysed element (project, module, directory or file)."""

    __tablename__ = "projects"

    id: int | None = Field(default=None, primary_key=True)
    path: str = Field(index=True)
    name: str | None = None


class Snapshot(SQLModel, table=True):
    """State of one element in one analysis run."""

    __tablename__ = "snapshots"

    id: int | None = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    root_snapshot_id: int | None = Field(default=None, foreign_key="snapshots.id", index=True)
    scope: str = Field(max_length=3)


class Metric(SQLModel, table=True):
    """Metric definition (e.g. ncloc, complexity)."""

    __tablename__ = "metrics"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True)
    description: str | None = None


class Measure(SQLModel, table=True):
    """Value of a metric for one snapshot."""

    __tablename__ = "project_measures"

    id: int | None = Field(default=None, primary_key=True)
    snapshot_id: int = Field(foreign_key="snapshots.id", index=True)
    metric_id: int = Field(foreign_key="metrics.id", index=True)
    value: float | None = None
