"""Report rendering and delivery."""

from .email_reporter import EmailReporter
from .text_reporter import TextReporter

__all__ = ["EmailReporter", "TextReporter"]
