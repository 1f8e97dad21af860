"""ASGI middleware that scopes each request to its incoming trace.

Cloud Run and the Google load balancers forward the caller's trace in
``x-cloud-trace-context`` (``TRACE_ID/SPAN_ID;o=1``) and, for W3C clients,
``traceparent`` (``00-TRACE_ID-SPAN_ID-FLAGS``).  Every log line written while
the request is handled is correlated with that trace.
"""

import logging
import time

from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from gcplog.registry import Registry
from gcplog.tracker import TRACE_ID_FIELD

logger = logging.getLogger(__name__)


def extract_trace_id(headers: Headers) -> str | None:
    """Return the trace id carried by the request headers, if any."""
    cloud_trace = headers.get("x-cloud-trace-context", "")
    if cloud_trace:
        trace_id = cloud_trace.split("/")[0].split(";")[0].strip()
        if trace_id:
            return trace_id

    traceparent = headers.get("traceparent", "")
    parts = traceparent.strip().split("-")
    if len(parts) == 4 and len(parts[1]) == 32:
        return parts[1]
    return None


class TraceContextMiddleware(BaseHTTPMiddleware):
    """Runs each request inside a span carrying the request's trace id."""

    def __init__(self, app, registry: Registry) -> None:
        super().__init__(app)
        self.registry = registry

    async def dispatch(self, request: Request, call_next) -> Response:
        trace_id = extract_trace_id(request.headers)
        if trace_id:
            span = self.registry.span(TRACE_ID_FIELD, **{TRACE_ID_FIELD: trace_id})
        else:
            span = self.registry.span("no trace_id")

        with span:
            start = time.monotonic()
            response = await call_next(request)
            duration_ms = round((time.monotonic() - start) * 1000, 1)
            logger.info(
                "%s %s -> %d (%.1fms)",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
            )
        return response
