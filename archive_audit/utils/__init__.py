"""Utility modules for archive auditing."""

from .formatters import format_file_size, format_date, format_month, format_score

__all__ = ["format_file_size", "format_date", "format_month", "format_score"]
