"""Process-wide installation of the Cloud Logging JSON pipeline.

``init`` resolves the project id, builds a :class:`~gcplog.registry.Registry`
with the trace tracker and the JSON layer, and attaches it to the root
logger.  Everything below ``init`` works on explicitly constructed registries,
so tests can build isolated pipelines with :func:`build_registry`.
"""

import logging
import threading
from typing import TextIO

from gcplog.config import Config
from gcplog.formatter import GcpLayer
from gcplog.models.schemas import Severity
from gcplog.registry import Registry
from gcplog.services.metadata_service import MetadataService, ProjectIdResolver
from gcplog.tracker import TraceIdTracker

logger = logging.getLogger(__name__)

UNKNOWN_PROJECT_ID = "unknown"

_lock = threading.Lock()
_installed: Registry | None = None


class AlreadyInitializedError(RuntimeError):
    """Raised when ``init`` is called more than once in a process."""


def resolve_project_id(config: Config, resolver: ProjectIdResolver | None = None) -> str:
    """Explicit project id, else the resolver's answer, else ``"unknown"``."""
    if config.project_id:
        return config.project_id
    resolver = resolver or MetadataService()
    try:
        project_id = resolver.resolve()
    except Exception as e:
        logger.warning("Project id lookup failed: %s", e)
        project_id = None
    return project_id or UNKNOWN_PROJECT_ID


def build_registry(
    project_id: str,
    min_severity: Severity = Severity.INFO,
    stream: TextIO | None = None,
) -> Registry:
    return (
        Registry()
        .with_layer(TraceIdTracker())
        .with_layer(GcpLayer(project_id, stream=stream).with_filter(min_severity))
    )


def init(
    config: Config | None = None,
    resolver: ProjectIdResolver | None = None,
    stream: TextIO | None = None,
) -> Registry:
    """Install the JSON pipeline on the root logger and return its registry.

    Use the returned registry to open trace-carrying spans::

        registry = gcplog.init(Config.with_project_id("my-project"))
        with registry.span("trace_id", trace_id="abc123"):
            logging.getLogger(__name__).info("Processing request")
    """
    global _installed
    config = config or Config()
    with _lock:
        if _installed is not None:
            raise AlreadyInitializedError("gcplog.init() has already been called")

        project_id = resolve_project_id(config, resolver)
        registry = build_registry(project_id, config.min_severity, stream)

        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(registry.handler())
        root.setLevel(config.min_severity.levelno)
        _installed = registry

    logger.debug("Cloud Logging pipeline installed for project %s", project_id)
    return registry
