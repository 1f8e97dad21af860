"""Cloud Logging structured JSON output with trace correlation."""

from gcplog.config import Config
from gcplog.logging_config import AlreadyInitializedError, build_registry, init
from gcplog.models.schemas import LogEntry, Severity, SourceLocation
from gcplog.registry import Layer, Registry, Span

__all__ = [
    "AlreadyInitializedError",
    "Config",
    "Layer",
    "LogEntry",
    "Registry",
    "Severity",
    "SourceLocation",
    "Span",
    "build_registry",
    "init",
]
