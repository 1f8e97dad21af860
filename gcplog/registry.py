"""Span registry and layered event pipeline.

A :class:`Registry` owns the spans created through it and dispatches span
lifecycle notifications and log events to its layers.  The spans entered in
the calling context are tracked in a :class:`contextvars.ContextVar`, so every
thread and every asyncio task sees its own chain of active spans.

Log events come from the standard :mod:`logging` module: attach
:meth:`Registry.handler` to a logger and every record it accepts is handed
to the layers together with the registry, which answers "which spans enclose
this event?".
"""

from __future__ import annotations

import itertools
import logging
import threading
from contextvars import ContextVar
from typing import Any, Iterator

from gcplog.models.schemas import Severity

_span_ids = itertools.count(1)


class Span:
    """A named, nestable execution scope carrying attributes.

    Entering a span (``with span:``) makes it the current span for the
    calling context.  The same span may be entered from several threads or
    tasks at once; it closes when the last of them exits.  ``extensions`` is
    per-span storage for layers, keyed by type.  It lives as long as the span
    object, so tasks spawned inside the span keep seeing it after the
    spawning ``with`` block has exited.
    """

    def __init__(
        self, registry: Registry, name: str, fields: dict[str, Any], parent: Span | None
    ) -> None:
        self.id = next(_span_ids)
        self.name = name
        self.fields = fields
        self.parent = parent
        self.extensions: dict[type, Any] = {}
        self.closed = False
        self._registry = registry
        self._lock = threading.Lock()
        self._entered = 0

    def __repr__(self) -> str:
        return f"Span(id={self.id}, name={self.name!r})"

    def enter(self) -> None:
        registry = self._registry
        registry._stack.set(registry._stack.get() + (self,))
        with self._lock:
            self._entered += 1

    def exit(self) -> None:
        """Leave the span in the calling context only.

        A context that never entered the span is left untouched.
        """
        registry = self._registry
        stack = registry._stack.get()
        for i in range(len(stack) - 1, -1, -1):
            if stack[i] is self:
                registry._stack.set(stack[:i] + stack[i + 1 :])
                break
        else:
            return

        with self._lock:
            self._entered -= 1
            last = self._entered == 0
        if last:
            self.close()

    def close(self) -> None:
        with self._lock:
            if self.closed:
                return
            self.closed = True
        self._registry._on_close(self)

    def __enter__(self) -> Span:
        self.enter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.exit()

    def scope(self) -> Iterator[Span]:
        """Yield this span and its ancestors, innermost first."""
        span: Span | None = self
        while span is not None:
            yield span
            span = span.parent

    def from_root(self) -> list[Span]:
        """Return the chain from the outermost ancestor down to this span."""
        chain = list(self.scope())
        chain.reverse()
        return chain


class Layer:
    """Base class for pipeline stages.  All hooks are no-ops by default."""

    def enabled(self, record: logging.LogRecord) -> bool:
        return True

    def on_new_span(self, span: Span, ctx: Registry) -> None:
        pass

    def on_close(self, span: Span, ctx: Registry) -> None:
        pass

    def on_event(self, record: logging.LogRecord, ctx: Registry) -> None:
        pass

    def with_filter(self, min_severity: Severity) -> Layer:
        return Filtered(self, min_severity)


class Filtered(Layer):
    """Wraps a layer so that events below ``min_severity`` never reach it."""

    def __init__(self, inner: Layer, min_severity: Severity) -> None:
        self.inner = inner
        self.min_severity = min_severity

    def enabled(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.min_severity.levelno and self.inner.enabled(record)

    def on_new_span(self, span: Span, ctx: Registry) -> None:
        self.inner.on_new_span(span, ctx)

    def on_close(self, span: Span, ctx: Registry) -> None:
        self.inner.on_close(span, ctx)

    def on_event(self, record: logging.LogRecord, ctx: Registry) -> None:
        self.inner.on_event(record, ctx)


class Registry:
    """Explicitly constructed span registry plus its layer stack."""

    def __init__(self, layers: list[Layer] | None = None) -> None:
        # Spans entered in the calling context, innermost last.
        self._stack: ContextVar[tuple[Span, ...]] = ContextVar(
            f"gcplog_span_stack_{id(self)}", default=()
        )
        self.layers: list[Layer] = list(layers or [])

    def with_layer(self, layer: Layer) -> Registry:
        self.layers.append(layer)
        return self

    def span(self, name: str, **fields: Any) -> Span:
        """Create a child of the current span.  It is not entered yet."""
        span = Span(self, name, fields, self.current_span())
        for layer in self.layers:
            layer.on_new_span(span, self)
        return span

    def current_span(self) -> Span | None:
        stack = self._stack.get()
        return stack[-1] if stack else None

    def event_scope(self) -> list[Span]:
        """Return the spans enclosing an event raised now, root first."""
        current = self.current_span()
        if current is None:
            return []
        return current.from_root()

    def handler(self) -> RegistryHandler:
        return RegistryHandler(self)

    def _on_close(self, span: Span) -> None:
        for layer in self.layers:
            layer.on_close(span, self)


class RegistryHandler(logging.Handler):
    """Bridges stdlib logging records into a registry's layers.

    A layer that raises is reported through :meth:`logging.Handler.handleError`
    and does not stop the remaining layers or the caller.
    """

    def __init__(self, registry: Registry, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.registry = registry

    def emit(self, record: logging.LogRecord) -> None:
        for layer in self.registry.layers:
            try:
                if layer.enabled(record):
                    layer.on_event(record, self.registry)
            except Exception:
                self.handleError(record)
