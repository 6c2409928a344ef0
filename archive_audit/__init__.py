"""
Archive Audit - health auditing for dated archive transfers.

This package scans dated archive folders, checks archive integrity, detects
missing business days and size anomalies, and ranks monthly transfer health.
"""

__version__ = "1.0.0"

from .core.auditor import LineAuditor
from .core.scanner import DirectoryScanner
from .reporters.email_reporter import EmailReporter

__all__ = ["LineAuditor", "DirectoryScanner", "EmailReporter"]
