"""Renders log records as Cloud Logging structured JSON lines.

Cloud Run and GKE pick up single-line JSON written to stdout/stderr as
structured log entries, mapping ``severity``, ``time``, the trace and the
source location onto the entry itself.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import TextIO

from gcplog.models.schemas import LogEntry, Severity, SourceLocation
from gcplog.registry import Layer, Registry
from gcplog.tracker import TraceIdTracker

# logging.Logger.findCaller's placeholder when the caller is unknown.
_UNKNOWN_FILE = "(unknown file)"

_exc_formatter = logging.Formatter()


def format_time(created: float) -> str:
    """RFC 3339 in UTC with millisecond precision and a trailing ``Z``."""
    stamp = datetime.fromtimestamp(created, tz=timezone.utc)
    return stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class GcpLayer(Layer):
    """Writes one JSON line per event, correlated with the enclosing trace."""

    def __init__(self, project_id: str, stream: TextIO | None = None) -> None:
        self.project_id = project_id
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        # Resolved per write so a swapped sys.stderr is honoured.
        return self._stream if self._stream is not None else sys.stderr

    def resolve_trace(self, ctx: Registry) -> str | None:
        """Walk the enclosing spans root first; the innermost trace id wins."""
        trace_id = None
        for span in ctx.event_scope():
            found = TraceIdTracker.lookup(span)
            if found is not None:
                trace_id = found
        if trace_id is None:
            return None
        return f"projects/{self.project_id}/traces/{trace_id}"

    def build_entry(self, record: logging.LogRecord, trace: str | None) -> LogEntry:
        message = "" if record.msg is None else record.getMessage()
        if record.exc_info and record.exc_info[0] is not None:
            # Error Reporting picks the stack trace up from the message text.
            trace_text = _exc_formatter.formatException(record.exc_info)
            message = f"{message}\n{trace_text}" if message else trace_text

        source_location = None
        if record.pathname and record.pathname != _UNKNOWN_FILE:
            source_location = SourceLocation(
                file=record.pathname,
                line=str(record.lineno or 0),
                function=record.name,
            )

        return LogEntry(
            severity=Severity.from_levelno(record.levelno),
            message=message,
            time=format_time(record.created),
            trace=trace,
            source_location=source_location,
        )

    def on_event(self, record: logging.LogRecord, ctx: Registry) -> None:
        entry = self.build_entry(record, self.resolve_trace(ctx))
        stream = self.stream
        stream.write(entry.to_json() + "\n")
        stream.flush()
