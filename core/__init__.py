"""
YAO - Core Module

Foundational pieces shared by every other package:
- Unified error hierarchy (errors)
- TTL caching with an injectable clock (cache)

Service wiring lives in core.factories and is imported from there
directly, since it depends on the integration and storage packages.

Usage:
    from core import ContentUnavailableError, TTLCache, ManualClock
"""

from core.errors import (
    BookNotFoundError,
    ConfigError,
    ContentResolutionError,
    ContentUnavailableError,
    ErrorContext,
    ErrorSeverity,
    StructuralError,
    ValidationError,
    YaoError,
)
from core.cache import (
    CacheStats,
    Clock,
    ManualClock,
    SystemClock,
    TTLCache,
)

__all__ = [
    # Errors
    "YaoError",
    "StructuralError",
    "ValidationError",
    "ConfigError",
    "ContentUnavailableError",
    "BookNotFoundError",
    "ContentResolutionError",
    "ErrorContext",
    "ErrorSeverity",
    # Cache
    "TTLCache",
    "CacheStats",
    "Clock",
    "SystemClock",
    "ManualClock",
]
