"""Core audit functionality."""

from .auditor import LineAuditor
from .scanner import DirectoryScanner
from .validity import check_archive
from .models import FileRecord, GapReport, IntegrityStats, MonthlyMetrics

__all__ = ["LineAuditor", "DirectoryScanner", "check_archive",
           "FileRecord", "GapReport", "IntegrityStats", "MonthlyMetrics"]
