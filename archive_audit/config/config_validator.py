"""Configuration validation for archive audit."""

from datetime import date, datetime
from typing import Dict, List, Any


class ConfigValidator:
    """Validates archive audit configuration."""

    REQUIRED_SECTIONS = ['base_dir']
    REQUIRED_EMAIL_FIELDS = ['smtp_server', 'from_address', 'to_addresses']
    NUMERIC_SECTIONS = ['monitoring', 'anomalies', 'scoring']

    def validate(self, config: Dict[str, Any]) -> None:
        """Validate configuration data.

        Args:
            config: Configuration dictionary to validate.

        Raises:
            ValueError: If configuration is invalid.
        """
        if not isinstance(config, dict):
            raise ValueError("Configuration must be a mapping")

        self._validate_structure(config)
        self._validate_lines(config.get('lines', ['A', 'B']))
        self._validate_project(config.get('project') or {})

        for section in self.NUMERIC_SECTIONS:
            self._validate_numbers(section, config.get(section) or {})

        anomalies = config.get('anomalies') or {}
        low = anomalies.get('low_threshold', 0.8)
        high = anomalies.get('high_threshold', 1.2)
        if low > high:
            raise ValueError(f"anomalies.low_threshold ({low}) must not exceed high_threshold ({high})")

        if config.get('email'):
            self._validate_email_config(config['email'])

    def _validate_structure(self, config: Dict[str, Any]) -> None:
        missing_sections = [s for s in self.REQUIRED_SECTIONS if s not in config]
        if missing_sections:
            raise ValueError(f"Missing required configuration sections: {missing_sections}")

        if not config['base_dir']:
            raise ValueError("base_dir cannot be empty")

    def _validate_lines(self, lines: List[Any]) -> None:
        """Validate line identifiers.

        Args:
            lines: Configured line identifiers.

        Raises:
            ValueError: If a line identifier is not a single letter.
        """
        if not isinstance(lines, list) or not lines:
            raise ValueError("lines must be a non-empty list")

        for line in lines:
            if not isinstance(line, str) or len(line) != 1 or not line.isalpha():
                raise ValueError(f"Invalid line identifier: {line!r} (expected a single letter)")

    def _validate_project(self, project: Dict[str, Any]) -> None:
        parsed = {}
        for key in ('start_date', 'end_date'):
            value = project.get(key)
            if value is None:
                continue
            if isinstance(value, datetime):
                parsed[key] = value.date()
                continue
            if isinstance(value, date):
                parsed[key] = value
                continue
            try:
                parsed[key] = datetime.strptime(str(value), '%Y-%m-%d').date()
            except ValueError:
                raise ValueError(f"project.{key} must be a YYYY-MM-DD date, got {value!r}")

        if len(parsed) == 2 and parsed['start_date'] > parsed['end_date']:
            raise ValueError("project.start_date must not be after project.end_date")

    def _validate_numbers(self, section: str, values: Dict[str, Any]) -> None:
        for key, value in values.items():
            if key in ('archive_extension', 'lock_file'):
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{section}.{key} must be a number, got {value!r}")
            if value < 0:
                raise ValueError(f"{section}.{key} must not be negative")

    def _validate_email_config(self, email_config: Dict[str, Any]) -> None:
        """Validate email configuration.

        Args:
            email_config: Email configuration dictionary.

        Raises:
            ValueError: If email configuration is invalid.
        """
        missing_fields = [field for field in self.REQUIRED_EMAIL_FIELDS if field not in email_config]
        if missing_fields:
            raise ValueError(f"Email configuration missing required fields: {missing_fields}")

        if 'smtp_port' in email_config:
            try:
                port = int(email_config['smtp_port'])
                if not (1 <= port <= 65535):
                    raise ValueError()
            except (ValueError, TypeError):
                raise ValueError(f"Email configuration has invalid SMTP port: {email_config['smtp_port']}")

        to_addresses = email_config.get('to_addresses', [])
        if not isinstance(to_addresses, list) or not to_addresses:
            raise ValueError("Email to_addresses must be a non-empty list")
