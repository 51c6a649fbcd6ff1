"""Per-request log context for search requests.

A search runs inside ``request_scope``. Every log line written while the
scope is active carries the request's trace and span ids plus the keywords
and page being served, so a highlight fallback logged deep inside the
assembler can be tied back to the request that caused it.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any
from uuid import uuid4


if TYPE_CHECKING:
    from opentelemetry.trace import Span


@dataclass(frozen=True)
class RequestContext:
    """Correlation ids and bound fields for one search request."""

    trace_id: str
    span_id: str
    fields: Mapping[str, Any] = field(default_factory=dict)

    def log_fields(self) -> dict[str, Any]:
        return {"trace_id": self.trace_id, "span_id": self.span_id, **self.fields}


request_context: ContextVar[RequestContext | None] = ContextVar("search_request_context", default=None)


def new_request_context(**fields: Any) -> RequestContext:
    return RequestContext(trace_id=uuid4().hex, span_id=uuid4().hex[:16], fields=fields)


def current_request() -> RequestContext | None:
    return request_context.get()


@contextmanager
def request_scope(**fields: Any) -> Iterator[RequestContext]:
    """Bind a fresh request context for the duration of the block."""
    ctx = new_request_context(**fields)
    token = request_context.set(ctx)
    try:
        yield ctx
    finally:
        request_context.reset(token)


def bind_span(span: Span) -> None:
    """Adopt the ids of a recording OpenTelemetry span inside the current request."""
    ctx = request_context.get()
    span_ctx = span.get_span_context()
    if ctx is None or not span_ctx.is_valid:
        return
    request_context.set(
        replace(ctx, trace_id=format(span_ctx.trace_id, "032x"), span_id=format(span_ctx.span_id, "016x"))
    )
