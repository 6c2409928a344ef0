"""Formatting utilities for audit reports."""

from datetime import date, datetime
from typing import Optional


def format_file_size(size_bytes: float) -> str:
    """Format a byte count in human readable binary units.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Human readable size string, e.g. ``"1.5 MiB"``.
    """
    if size_bytes < 1024:
        return f"{int(size_bytes)} B"
    for unit in ['KiB', 'MiB', 'GiB', 'TiB']:
        size_bytes /= 1024
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
    return f"{size_bytes / 1024:.1f} PiB"


def format_date(dt: datetime, short: bool = False) -> str:
    """Format datetime for display.

    Args:
        dt: Datetime to format.
        short: If True, use minute precision.

    Returns:
        Formatted date string.
    """
    if short:
        return dt.strftime('%Y-%m-%d %H:%M')
    else:
        return dt.strftime('%Y-%m-%d %H:%M:%S')


def format_month(year: int, month: int) -> str:
    return f"{year}-{month:02d}"


def format_score(score: Optional[float]) -> str:
    if score is None:
        return "-"
    return f"{score:.1f}%"


def get_score_indicator(score: Optional[float]) -> str:
    """Get a short health indicator for a monthly score.

    Args:
        score: Health score between 0 and 100, or None if unknown.

    Returns:
        Indicator string.
    """
    if score is None:
        return "- N/A"
    if score >= 90.0:
        return "+ GOOD"
    elif score >= 70.0:
        return "* FAIR"
    else:
        return "! POOR"


def format_day(day: date) -> str:
    """Format a date with its weekday name, e.g. ``2024-07-30 (Tuesday)``."""
    return f"{day.isoformat()} ({day.strftime('%A')})"


def relative_display_path(full_path: str, anchor: str) -> str:
    """Trim a path so it starts at the first occurrence of ``anchor``.

    Args:
        full_path: Full path.
        anchor: Path segment to start from, e.g. ``"Line "``.

    Returns:
        The trimmed path, or the full path when the anchor is absent.
    """
    idx = full_path.find(anchor) if anchor else -1
    if idx >= 0:
        return full_path[idx:]
    return full_path


def truncate_string(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate string to maximum length.

    Args:
        text: Text to truncate.
        max_length: Maximum length.
        suffix: Suffix to add when truncating.

    Returns:
        Truncated string.
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
