"""Snapshot import documents.

A document describes one analysis run in YAML or JSON::

    project: shop
    metrics:
      - name: ncloc
        description: Lines of code
      - complexity
    files:
      - path: shop-core/src/Cart.java
        measures: {ncloc: 120, complexity: 14}
      - path: shop-web/src/Index.java
        measures: {ncloc: 40}

Measures missing for a file are stored as NULL and read back as 0.0.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from codecity.core.errors import SnapshotError


class MetricDefinition(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None


class FileEntry(BaseModel):
    path: str = Field(min_length=1)
    measures: dict[str, float | None] = Field(default_factory=dict)


class SnapshotDocument(BaseModel):
    """Validated import document."""

    project: str = Field(min_length=1, description="Root project path/name.")
    metrics: list[MetricDefinition] = Field(default_factory=list)
    files: list[FileEntry] = Field(default_factory=list)

    @field_validator("metrics", mode="before")
    @classmethod
    def expand_metric_names(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [{"name": item} if isinstance(item, str) else item for item in v]
        return v

    @model_validator(mode="after")
    def check_measures_reference_metrics(self) -> "SnapshotDocument":
        known = {metric.name for metric in self.metrics}
        for entry in self.files:
            unknown = set(entry.measures) - known
            if unknown:
                raise ValueError(
                    f"file '{entry.path}' has measures for undeclared metrics: "
                    f"{', '.join(sorted(unknown))}"
                )
        return self


def parse_document(data: Any) -> SnapshotDocument:
    """Validate a loaded document."""
    if not isinstance(data, dict):
        raise SnapshotError.invalid_document("top-level value must be a mapping")
    try:
        return SnapshotDocument.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        location = ".".join(str(loc) for loc in err["loc"]) or "document"
        raise SnapshotError.invalid_document(f"{location}: {err['msg']}") from e


def load_document(path: Path) -> SnapshotDocument:
    """Load and validate a YAML (or JSON) snapshot document."""
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise SnapshotError.invalid_document(f"cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise SnapshotError.invalid_document(f"cannot parse {path}: {e}") from e
    return parse_document(data)
