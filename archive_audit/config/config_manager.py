"""Configuration management for the archive audit system."""

import os
import logging
import yaml
from datetime import date, datetime
from typing import Dict, List, Any, Optional, Tuple
from .config_validator import ConfigValidator


class ConfigManager:
    """Manages configuration loading and validation for archive auditing."""

    DEFAULT_CONFIG_LOCATIONS = [
        "config.yaml",
        "config.yml",
        os.path.expanduser("~/.archive-audit/config.yaml"),
        os.path.expanduser("~/.archive-audit/config.yml"),
        "/etc/archive-audit/config.yaml",
        "/etc/archive-audit/config.yml"
    ]

    DEFAULTS = {
        'monitoring': {
            'tiny_threshold_bytes': 1000,
            'speed_sample_seconds': 10,
            'recent_minutes': 5,
            'alert_threshold_minutes': 20,
            'max_bad_files_per_archive': 10,
            'bad_files_display_threshold': 0,
            'archive_extension': '.zip',
            'lock_file': '/tmp/archive_audit_dashboard.lock'
        },
        'anomalies': {
            'low_threshold': 0.8,
            'high_threshold': 1.2
        },
        'scoring': {
            'missing_day': 10,
            'invalid_file': 3,
            'anomaly': 2,
            'empty_file': 1
        },
        'logging': {
            'level': 'WARNING',
            'file': None
        },
        'project': {}
    }

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to config file. If not provided,
                        will search in default locations.
        """
        self.config_path = config_path
        self.config_data: Dict[str, Any] = {}
        self.validator = ConfigValidator()
        self.logger = logging.getLogger(__name__)

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from file.

        Returns:
            Dictionary containing configuration data.

        Raises:
            FileNotFoundError: If config file cannot be found.
            ValueError: If config file is invalid.
        """
        config_file = self._find_config_file()

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file {config_file}: {e}")
        except OSError as e:
            raise ValueError(f"Error reading config file {config_file}: {e}")

        self.load_dict(data)
        self.logger.debug(f"Loaded configuration from {config_file}")
        return self.config_data

    def load_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Validate an already parsed configuration and apply defaults.

        Args:
            data: Configuration dictionary.

        Returns:
            The configuration with defaults filled in.
        """
        self.validator.validate(data)
        self.config_data = data
        self._set_defaults()
        return self.config_data

    def _find_config_file(self) -> str:
        """Find configuration file in default locations.

        Returns:
            Path to configuration file.

        Raises:
            FileNotFoundError: If no config file is found.
        """
        if self.config_path:
            if os.path.exists(self.config_path):
                return self.config_path
            else:
                raise FileNotFoundError(f"Config file not found: {self.config_path}")

        for location in self.DEFAULT_CONFIG_LOCATIONS:
            if os.path.exists(location):
                return location

        raise FileNotFoundError(
            f"Configuration file not found in any of these locations:\n" +
            "\n".join(f"  - {loc}" for loc in self.DEFAULT_CONFIG_LOCATIONS) +
            "\n\nPlease copy config.example.yaml to config.yaml and customize it."
        )

    def _set_defaults(self):
        """Set default values for optional configuration parameters."""
        self.config_data.setdefault('lines', ['A', 'B'])

        for section, section_defaults in self.DEFAULTS.items():
            if not self.config_data.get(section):
                self.config_data[section] = {}
            for key, value in section_defaults.items():
                if key not in self.config_data[section]:
                    self.config_data[section][key] = value

    def get_base_dir(self) -> str:
        return self.config_data['base_dir']

    def get_lines(self) -> List[str]:
        return [str(line).upper() for line in self.config_data.get('lines', [])]

    def get_line_dir(self, line_id: str) -> str:
        """Directory holding the dated folders of a line."""
        return os.path.join(self.get_base_dir(), f"Line {line_id}")

    def get_monitoring_config(self) -> Dict[str, Any]:
        return self.config_data.get('monitoring', {})

    def get_anomaly_config(self) -> Dict[str, Any]:
        return self.config_data.get('anomalies', {})

    def get_scoring_config(self) -> Dict[str, Any]:
        return self.config_data.get('scoring', {})

    def get_email_config(self) -> Dict[str, Any]:
        """Get email configuration.

        Returns:
            Email configuration dictionary.
        """
        return self.config_data.get('email', {})

    def get_logging_config(self) -> Dict[str, Any]:
        return self.config_data.get('logging', {})

    def get_project_range(self) -> Optional[Tuple[date, date]]:
        """Get the business-day date range of the transfer project.

        Explicit ``project.start_date``/``end_date`` win; otherwise the dates
        are read from the transfer script.

        Returns:
            ``(start_date, end_date)``, or None if it cannot be determined.
        """
        project = self.config_data.get('project', {})
        start = project.get('start_date')
        end = project.get('end_date')
        if start and end:
            return _to_date(start), _to_date(end)

        script = project.get('transfer_script') or os.path.join(self.get_base_dir(), 'Transfer.ps1')
        return parse_transfer_script(script)


def _to_date(value: Any) -> date:
    # PyYAML already turns unquoted ISO dates into date objects
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value), '%Y-%m-%d').date()


def extract_quoted_date(line: str) -> Optional[date]:
    """Parse the first double-quoted ``YYYY-MM-DD`` value of a script line.

    Handles both ``$startDate = "2024-07-29"`` and ``Get-Date "2024-07-29"``.
    """
    parts = line.split('"')
    if len(parts) < 3:
        return None
    try:
        return datetime.strptime(parts[1], '%Y-%m-%d').date()
    except ValueError:
        return None


def parse_transfer_script(path: str) -> Optional[Tuple[date, date]]:
    """Read ``$startDate``/``$endDate`` from a PowerShell transfer script.

    Args:
        path: Script path.

    Returns:
        ``(start_date, end_date)``, or None when missing or unreadable.
    """
    try:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            lines = f.readlines()
    except OSError:
        return None

    start = end = None
    for line in lines:
        if start is None and '$startDate' in line:
            start = extract_quoted_date(line)
        elif end is None and '$endDate' in line:
            end = extract_quoted_date(line)

    if start and end:
        return start, end
    return None
