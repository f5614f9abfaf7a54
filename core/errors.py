"""
YAO - Unified Error Handling

Error taxonomy for the casting and interpretation engine.

Three families matter to callers:
- Structural impossibility (a toss sum outside {6,7,8,9}, a pattern outside
  the King Wen table): programmer error, always raised.
- Content unavailable (a book store or API cannot supply text): raised by
  collaborators, always recovered inside the resolver.
- Content resolution failure: the resolver itself broke while assembling a
  reading; the cast fails as a whole.

Every error marks the current OpenTelemetry span as failed and remembers
the trace it was raised under.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode


class ErrorSeverity(Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Where in a cast or lookup the error happened."""

    operation: str
    component: str
    book_id: Optional[str] = None
    hexagram_number: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _current_trace_ids() -> Tuple[Optional[str], Optional[str]]:
    span = trace.get_current_span()
    if not span.is_recording():
        return None, None
    ctx = span.get_span_context()
    if not ctx.is_valid:
        return None, None
    return format(ctx.trace_id, "032x"), format(ctx.span_id, "016x")


class YaoError(Exception):
    """
    Base exception for all YAO-specific errors.

    Carries an optional ErrorContext, a severity, the underlying cause and
    whether the caller can carry on (a recoverable error degrades content,
    it never aborts a cast).
    """

    default_severity: ErrorSeverity = ErrorSeverity.ERROR
    error_code: str = "YAO_ERROR"

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        severity: Optional[ErrorSeverity] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = False,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context
        self.severity = severity or self.default_severity
        self.cause = cause
        self.recoverable = recoverable
        self.suggestions = list(suggestions or [])
        self.timestamp = datetime.now(timezone.utc)
        self.trace_id, self.span_id = _current_trace_ids()

        if self.trace_id:
            self._mark_span(trace.get_current_span())

    def span_attributes(self) -> Dict[str, Any]:
        attributes: Dict[str, Any] = {
            "error.code": self.error_code,
            "error.severity": self.severity.value,
            "error.recoverable": self.recoverable,
        }
        if self.context:
            attributes["error.component"] = self.context.component
            attributes["error.operation"] = self.context.operation
        return attributes

    def _mark_span(self, span: trace.Span) -> None:
        span.set_status(Status(StatusCode.ERROR, self.message))
        span.record_exception(self)
        span.set_attributes(self.span_attributes())

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form, for logs and error payloads."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "suggestions": self.suggestions,
            "timestamp": self.timestamp.isoformat(),
            "trace_id": self.trace_id,
            "context": self.context.to_dict() if self.context else None,
            "cause": repr(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        text = f"[{self.error_code}] {self.message}"
        if self.context:
            text += f" in {self.context.component}.{self.context.operation}"
        if self.cause:
            text += f" (caused by {type(self.cause).__name__}: {self.cause})"
        return text


class StructuralError(YaoError, ValueError):
    """A broken structural invariant: impossible sum, pattern or identity."""

    error_code = "STRUCTURAL_ERROR"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(
        self,
        message: str,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.value = value


class ValidationError(YaoError, ValueError):
    """Invalid caller input or malformed stored data."""

    error_code = "VALIDATION_ERROR"
    default_severity = ErrorSeverity.WARNING

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        actual_value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field_name = field_name
        self.actual_value = actual_value


class ConfigError(YaoError):
    """Configuration-related errors."""

    error_code = "CONFIG_ERROR"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.config_key = config_key
        self.actual_value = actual_value


class ContentUnavailableError(YaoError):
    """A content source could not supply a book or its hexagrams."""

    error_code = "CONTENT_UNAVAILABLE"
    default_severity = ErrorSeverity.WARNING

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        book_id: Optional[str] = None,
        **kwargs: Any,
    ):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)
        self.source = source
        self.book_id = book_id


class BookNotFoundError(ContentUnavailableError):
    """The requested book does not exist in the queried store."""

    error_code = "BOOK_NOT_FOUND"


class ContentResolutionError(YaoError):
    """Content resolution broke while assembling a reading."""

    error_code = "CONTENT_RESOLUTION_ERROR"
    default_severity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        hexagram_number: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.hexagram_number = hexagram_number
