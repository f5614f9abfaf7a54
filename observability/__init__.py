"""
YAO - Observability Package

Structured logging and OpenTelemetry tracing for the casting engine.

Components:
- logging: structlog integration with trace context propagation
- tracing: OpenTelemetry tracer setup, spans and span decorators

Usage:
    from observability import setup_observability, get_logger

    setup_observability()
    logger = get_logger(__name__)
"""
from typing import Optional

from config import LoggingConfig, ObservabilityConfig
from observability.logging import (
    LogContext,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from observability.tracing import (
    create_span,
    get_tracer,
    setup_tracing,
    shutdown_tracing,
    span_decorator,
)


def setup_observability(
    logging_config: Optional[LoggingConfig] = None,
    observability_config: Optional[ObservabilityConfig] = None,
) -> None:
    """Initialize logging and tracing at application startup."""
    setup_logging(logging_config)
    setup_tracing(observability_config)


def shutdown_observability() -> None:
    """Flush logs and spans at application shutdown."""
    shutdown_tracing()
    shutdown_logging()


__all__ = [
    "setup_observability",
    "shutdown_observability",
    # Logging
    "setup_logging",
    "get_logger",
    "shutdown_logging",
    "LogContext",
    # Tracing
    "setup_tracing",
    "get_tracer",
    "create_span",
    "span_decorator",
    "shutdown_tracing",
]
