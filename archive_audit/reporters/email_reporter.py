"""Email reporter for transfer alerts and audit summaries."""

import logging
import re
import smtplib
from datetime import datetime
from email.mime.text import MIMEText
from typing import List, Optional

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


class EmailReporter:
    """Sends transfer alerts and audit reports via SMTP."""

    def __init__(self, smtp_server: str = None, smtp_port: int = 587, smtp_user: str = None,
                 smtp_pass: str = None, from_address: str = None,
                 to_addresses: List[str] = None, use_tls: bool = True,
                 subject_prefix: str = "[Beam Alert]"):
        """Initialize email reporter.

        Args:
            smtp_server: SMTP server hostname.
            smtp_port: SMTP server port.
            smtp_user: SMTP username.
            smtp_pass: SMTP password.
            from_address: From email address.
            to_addresses: List of recipient email addresses.
            use_tls: Whether to use TLS encryption.
            subject_prefix: Prefix added to alert subjects.
        """
        self.smtp_server = smtp_server
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.from_address = from_address
        self.to_addresses = to_addresses or []
        self.use_tls = use_tls
        self.subject_prefix = subject_prefix
        self.logger = logging.getLogger(__name__)

    def send_report(self, subject: str, text_content: str) -> bool:
        """Send a plain text message.

        Args:
            subject: Email subject line.
            text_content: Plain text email content.

        Returns:
            True if email sent successfully.
        """
        if not self.to_addresses:
            self.logger.error("No recipient addresses configured")
            return False

        if not text_content:
            self.logger.error("No content provided for email")
            return False

        try:
            msg = self._create_message(subject, text_content)
            self._send_message(msg)
            self.logger.info(f"Email sent successfully to {len(self.to_addresses)} recipients")
            return True

        except (smtplib.SMTPException, OSError) as e:
            self.logger.error(f"Failed to send email: {e}")
            return False

    def send_transfer_alert(self, line_id: str, current_state: str, speed_bps: int,
                            minutes_in_state: int) -> bool:
        """Send an alert that a line's transfer stopped or resumed.

        Args:
            line_id: Line identifier.
            current_state: ``ACTIVE`` or ``IDLE``.
            speed_bps: Current transfer speed in bytes per second.
            minutes_in_state: How long the state has persisted.

        Returns:
            True if the alert was sent.
        """
        resumed = current_state == "ACTIVE"
        subject = (f"{self.subject_prefix} Transfer {'RESUMED' if resumed else 'STOPPED'} "
                   f"on Line {line_id}")
        body = (
            f"The transfer on Line {line_id} has {'resumed' if resumed else 'stopped'}.\n\n"
            f"Current Speed: {speed_bps / 1024 / 1024:.1f} MiB/s\n"
            f"State persisted for: {minutes_in_state} minutes\n"
            f"Time: {self._get_timestamp()}"
        )
        return self.send_report(subject, body)

    def _create_message(self, subject: str, text_content: str) -> MIMEText:
        msg = MIMEText(text_content, 'plain', 'utf-8')
        msg['Subject'] = subject
        msg['From'] = self.from_address
        msg['To'] = ', '.join(self.to_addresses)
        return msg

    def _send_message(self, msg: MIMEText) -> None:
        """Send email message via SMTP.

        Args:
            msg: Email message to send.
        """
        self.logger.debug(f"Connecting to SMTP server {self.smtp_server}:{self.smtp_port}")

        with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=30) as server:
            if self.use_tls:
                server.starttls()
                self.logger.debug("Started TLS encryption")

            if self.smtp_user and self.smtp_pass:
                server.login(self.smtp_user, self.smtp_pass)
                self.logger.debug(f"Authenticated as {self.smtp_user}")

            server.send_message(msg)

    def send_test_email(self) -> bool:
        """Send a test email to verify configuration.

        Returns:
            True if test email sent successfully.
        """
        test_content = f"""
This is a test email from the archive audit system.

Configuration:
- SMTP Server: {self.smtp_server}:{self.smtp_port}
- From: {self.from_address}
- Recipients: {', '.join(self.to_addresses)}
- TLS Enabled: {self.use_tls}

If you received this, email alerts are working correctly!

Sent at: {self._get_timestamp()}
        """.strip()

        return self.send_report(f"{self.subject_prefix} Test Email", test_content)

    def _get_timestamp(self) -> str:
        return datetime.now().strftime('%Y-%m-%d %H:%M:%S')

    def validate_configuration(self) -> List[str]:
        """Validate email configuration.

        Returns:
            List of validation errors (empty if valid).
        """
        errors = []

        if not self.smtp_server:
            errors.append("SMTP server not configured")

        if not self.from_address:
            errors.append("From address not configured")

        if not self.to_addresses:
            errors.append("No recipient addresses configured")

        if self.from_address and not EMAIL_PATTERN.match(self.from_address):
            errors.append(f"Invalid from address: {self.from_address}")

        for addr in self.to_addresses:
            if not EMAIL_PATTERN.match(addr):
                errors.append(f"Invalid recipient address: {addr}")

        return errors

    @classmethod
    def from_config(cls, email_config: dict) -> Optional['EmailReporter']:
        """Build a reporter from the ``email`` config section, if present."""
        if not email_config:
            return None
        return cls(
            smtp_server=email_config.get('smtp_server'),
            smtp_port=email_config.get('smtp_port', 587),
            smtp_user=email_config.get('smtp_user'),
            smtp_pass=email_config.get('smtp_pass'),
            from_address=email_config.get('from_address'),
            to_addresses=email_config.get('to_addresses', []),
            use_tls=email_config.get('use_tls', True),
            subject_prefix=email_config.get('subject_prefix', '[Beam Alert]')
        )
