"""Observability module for OpenTelemetry-aligned tracing, metrics, and logging."""

from search_results.observability.context import RequestContext, current_request, request_scope
from search_results.observability.logging import JsonFormatter, configure_logging
from search_results.observability.metrics import (
    HIGHLIGHT_FALLBACKS,
    SEARCH_LATENCY,
    SEARCH_REQUESTS,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from search_results.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "HIGHLIGHT_FALLBACKS",
    "SEARCH_LATENCY",
    "SEARCH_REQUESTS",
    "JsonFormatter",
    "RequestContext",
    "configure_logging",
    "create_span",
    "current_request",
    "get_metrics",
    "get_metrics_content_type",
    "get_tracer",
    "init_tracing",
    "request_scope",
    "track_latency",
]
