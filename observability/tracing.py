"""
YAO - Distributed Tracing with OpenTelemetry

Spans around casting, reconstruction and every book-store round trip, so a
slow or degraded reading can be traced back to the source that fell through.

Usage:
    from observability.tracing import setup_tracing, span_decorator

    setup_tracing(ObservabilityConfig(console_export=True))

    @span_decorator("books.list")
    async def list_books(user_id): ...
"""
from __future__ import annotations

import inspect
import functools
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional, ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor
from opentelemetry.trace import Span, SpanKind, Status, StatusCode

from config import ObservabilityConfig

P = ParamSpec("P")
T = TypeVar("T")

_tracer_provider: Optional[trace.TracerProvider] = None


def setup_tracing(config: Optional[ObservabilityConfig] = None) -> trace.TracerProvider:
    """Install the global tracer provider. Idempotent."""
    global _tracer_provider

    if _tracer_provider is not None:
        return _tracer_provider

    config = config or ObservabilityConfig()

    if not config.tracing_enabled:
        _tracer_provider = trace.NoOpTracerProvider()
        trace.set_tracer_provider(_tracer_provider)
        return _tracer_provider

    resource = Resource.create({
        SERVICE_NAME: config.service_name,
        SERVICE_VERSION: config.service_version,
    })
    provider = TracerProvider(resource=resource)

    if config.console_export:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _tracer_provider = provider
    return provider


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer from the global provider (a no-op tracer until setup_tracing runs)."""
    return trace.get_tracer(name)


def shutdown_tracing() -> None:
    """Flush pending spans and forget the provider."""
    global _tracer_provider
    if _tracer_provider is not None and hasattr(_tracer_provider, "shutdown"):
        _tracer_provider.shutdown()
    _tracer_provider = None


@contextmanager
def create_span(
    name: str,
    attributes: Optional[Dict[str, Any]] = None,
    tracer_name: str = "yao",
) -> Iterator[Span]:
    """
    Context manager for creating spans with automatic error recording.

    Example:
        >>> with create_span("books.fetch", attributes={"book.id": "classic"}) as span:
        ...     span.set_attribute("book.source", "fallback")
    """
    tracer = get_tracer(tracer_name)
    with tracer.start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise


def span_decorator(
    name: Optional[str] = None,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: Optional[Dict[str, Any]] = None,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Wrap a sync or async callable in a span named after it."""

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        span_name = name or func.__qualname__

        @functools.wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            tracer = get_tracer(func.__module__)
            with tracer.start_as_current_span(span_name, kind=kind) as span:
                for key, value in (attributes or {}).items():
                    span.set_attribute(key, value)
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise

        @functools.wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            tracer = get_tracer(func.__module__)
            with tracer.start_as_current_span(span_name, kind=kind) as span:
                for key, value in (attributes or {}).items():
                    span.set_attribute(key, value)
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
