"""Helper utilities for Crossvote."""

from datetime import datetime, timezone
from typing import Optional


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    """Clamp a value into [lower, upper].

    Args:
        value: Value to clamp
        lower: Lower bound (default: 0.0)
        upper: Upper bound (default: 1.0)

    Returns:
        Clamped value

    Examples:
        >>> clamp(1.4)
        1.0
        >>> clamp(-0.2)
        0.0
    """
    return max(lower, min(upper, value))


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_percentage(value: Optional[float]) -> str:
    """Format percentage for display.

    Args:
        value: Percentage value (0-1)

    Returns:
        Formatted percentage string
    """
    if value is None:
        return "N/A"
    return f"{value * 100:.1f}%"


def format_timestamp(value: Optional[datetime]) -> str:
    """Format a timestamp for display, "N/A" when missing."""
    if value is None:
        return "N/A"
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()
