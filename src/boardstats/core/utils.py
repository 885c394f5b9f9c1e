"""
Utility functions shared by the analytics engine and its collaborators.

This module provides:
- Performance timing helpers
- Guarded arithmetic for ratios
- Elapsed-time helpers for freshness checks
- Content hashing
- Display formatting
"""

import hashlib
import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from functools import wraps
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

# Type variable for generic decorators
F = TypeVar("F", bound=Callable[..., Any])

SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400


def timed(func: F) -> F:
    """
    Decorator to measure and log function execution time.

    Usage:
        @timed
        def my_function():
            ...
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = time.perf_counter() - start_time
        logger.debug(f"{func.__name__} completed in {format_duration(elapsed)}")
        return result

    return wrapper  # type: ignore


class PerformanceMonitor:
    """
    Context manager for monitoring performance of code blocks.

    Usage:
        with PerformanceMonitor("query analytics"):
            snapshot.query(query)
    """

    def __init__(self, operation_name: str, log_level: int = logging.DEBUG):
        self.operation_name = operation_name
        self.log_level = log_level
        self.start_time: float | None = None
        self.elapsed: float = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.perf_counter() - (self.start_time or 0)
        if exc_type is not None:
            logger.error(f"{self.operation_name} failed after {self.elapsed:.3f}s: {exc_val}")
        else:
            logger.log(
                self.log_level, f"{self.operation_name} completed in {format_duration(self.elapsed)}"
            )
        return False


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """
    Safely divide two numbers, returning default if denominator is 0.

    Args:
        numerator: Top of fraction
        denominator: Bottom of fraction
        default: Value to return if denominator is 0

    Returns:
        Result of division or default
    """
    if denominator == 0:
        return default
    return numerator / denominator


def percentage(part: float, whole: float) -> float:
    """Return part/whole as a 0-100 percentage, 0.0 when whole is 0."""
    return safe_divide(part, whole) * 100.0


def utc_now() -> datetime:
    return datetime.now(UTC)


def whole_hours_between(earlier: datetime, later: datetime) -> int:
    """Whole hours elapsed from earlier to later, truncated toward zero."""
    return int((later - earlier).total_seconds() / SECONDS_PER_HOUR)


def whole_days_between(earlier: datetime, later: datetime) -> int:
    """Whole days elapsed from earlier to later, truncated toward zero."""
    return int((later - earlier).total_seconds() / SECONDS_PER_DAY)


def compute_content_hash(content: str) -> str:
    """Compute SHA256 hash of string content."""
    return hashlib.sha256(content.encode()).hexdigest()


def format_duration(seconds: float) -> str:
    """
    Format a duration in seconds to a human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string like "2m 30s", "1.5s" or "12ms"
    """
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"


def format_percentage(value: float, decimals: int = 1) -> str:
    """Format a 0-100 percentage value as a string."""
    return f"{value:.{decimals}f}%"


def format_streak(streak: int) -> str:
    """Format a signed streak as "W3", "L2" or "-"."""
    if streak > 0:
        return f"W{streak}"
    if streak < 0:
        return f"L{-streak}"
    return "-"
