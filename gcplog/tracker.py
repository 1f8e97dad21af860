"""Records the ``trace_id`` attribute of each span when it is created."""

from __future__ import annotations

from dataclasses import dataclass

from gcplog.registry import Layer, Registry, Span

TRACE_ID_FIELD = "trace_id"


@dataclass(frozen=True)
class TraceId:
    value: str


class TraceIdTracker(Layer):
    """Stores a span's ``trace_id`` field in that span's extensions.

    The value is captured once, at creation, and lives exactly as long as the
    span does.  Values that are not strings are stored as ``str(value)``.
    """

    def on_new_span(self, span: Span, ctx: Registry) -> None:
        value = span.fields.get(TRACE_ID_FIELD)
        if value is None:
            return
        span.extensions.setdefault(TraceId, TraceId(str(value)))

    @staticmethod
    def lookup(span: Span) -> str | None:
        trace_id = span.extensions.get(TraceId)
        return trace_id.value if trace_id is not None else None
