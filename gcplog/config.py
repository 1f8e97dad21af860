"""Logging configuration loaded from arguments or environment variables.

Uses frozen dataclasses for immutable settings.  The project id is optional:
when it is not set, :func:`gcplog.init` asks the metadata server for it.
"""

import os
from dataclasses import dataclass, replace

from gcplog.models.schemas import Severity

DEFAULT_METADATA_HOST = "169.254.169.254"


def _parse_severity(value) -> Severity | None:
    """Coerce a level name or Severity, returning None for unknown names."""
    if value is None or isinstance(value, Severity):
        return value
    try:
        return Severity.parse(str(value))
    except ValueError:
        return None


@dataclass(frozen=True)
class Config:
    """Immutable input to :func:`gcplog.init`."""

    # Used to build ``projects/<id>/traces/<trace>``. Fetched from the
    # metadata server when None.
    project_id: str | None = None
    # Minimum severity to emit; INFO when None.
    level_filter: Severity | None = None

    def __post_init__(self) -> None:
        if self.project_id is not None:
            project_id = str(self.project_id).strip()
            object.__setattr__(self, "project_id", project_id or None)
        object.__setattr__(self, "level_filter", _parse_severity(self.level_filter))

    @classmethod
    def with_project_id(cls, project_id: str) -> "Config":
        return cls(project_id=project_id)

    def with_level(self, level: Severity | str) -> "Config":
        return replace(self, level_filter=level)

    @property
    def min_severity(self) -> Severity:
        return self.level_filter or Severity.INFO

    @classmethod
    def load(cls) -> "Config":
        """Create a Config from ``GCP_PROJECT_ID`` and ``LOG_LEVEL``."""
        return cls(
            project_id=os.environ.get("GCP_PROJECT_ID") or None,
            level_filter=os.environ.get("LOG_LEVEL") or None,
        )


@dataclass(frozen=True)
class MetadataSettings:
    """Where and how to reach the GCE metadata server."""

    host: str = DEFAULT_METADATA_HOST
    path: str = "/computeMetadata/v1/project/project-id"
    timeout_seconds: float = 2.0

    @property
    def url(self) -> str:
        return f"http://{self.host}{self.path}"

    @classmethod
    def load(cls) -> "MetadataSettings":
        return cls(host=os.environ.get("GCE_METADATA_HOST") or DEFAULT_METADATA_HOST)
