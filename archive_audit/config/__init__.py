"""Configuration management for archive audit."""

from .config_manager import ConfigManager, parse_transfer_script
from .config_validator import ConfigValidator

__all__ = ["ConfigManager", "ConfigValidator", "parse_transfer_script"]
