"""Command-line interface for archive audit."""

import json
import logging
import os
import sys
from dataclasses import asdict
from datetime import date, datetime
from typing import Any, Dict, Optional

import click

from .config.config_manager import ConfigManager
from .core.auditor import LineAuditor
from .core.models import LineAuditReport


def setup_logging(level: str, log_file: Optional[str] = None):
    """Set up logging configuration."""
    # Convert string level to logging constant
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    # Create formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Set up root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Add console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Add file handler if specified
    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            click.echo(f"Warning: Could not set up file logging: {e}", err=True)


def _json_default(value: Any):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def report_to_dict(report: LineAuditReport) -> Dict[str, Any]:
    """Convert a line report to a JSON-serializable dictionary."""
    data = asdict(report)
    if report.estimates_report is not None:
        data['estimates_report']['progress_percent'] = report.estimates_report.progress_percent
    return data


def _load_auditor(ctx) -> LineAuditor:
    auditor = LineAuditor(ctx.obj.get('config_path'))

    # Command-line options take precedence over the logging section
    if not ctx.obj.get('log_level_given'):
        logging_config = auditor.config_manager.get_logging_config()
        setup_logging(logging_config.get('level') or 'WARNING',
                      ctx.obj.get('log_file') or logging_config.get('file'))
    return auditor


def acquire_lock(lock_file: str) -> None:
    """Create the lock file exclusively and write our PID into it.

    Raises:
        RuntimeError: If the lock file already exists or cannot be created.
    """
    try:
        fd = os.open(lock_file, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    except FileExistsError:
        raise RuntimeError(f"Lock file {lock_file} already exists (another instance running)")
    except OSError as e:
        raise RuntimeError(f"Failed to create lock file {lock_file}: {e}")

    with os.fdopen(fd, 'w') as f:
        f.write(str(os.getpid()))


def release_lock(lock_file: str) -> None:
    try:
        os.remove(lock_file)
    except FileNotFoundError:
        pass


@click.group()
@click.option('--config', '-c', 'config_path',
              help='Path to configuration file')
@click.option('--log-level', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Logging level (default: from configuration, else WARNING)')
@click.option('--log-file',
              help='Log file path')
@click.pass_context
def cli(ctx, config_path: Optional[str], log_level: Optional[str], log_file: Optional[str]):
    """Archive Audit - Audit dated archive transfers for each line."""
    ctx.ensure_object(dict)
    setup_logging(log_level or 'WARNING', log_file)
    ctx.obj['config_path'] = config_path
    ctx.obj['log_level_given'] = log_level is not None
    ctx.obj['log_file'] = log_file


@cli.command()
@click.argument('line')
@click.option('--output', '-o', type=click.Choice(['text', 'json']), default='text',
              help='Output format')
@click.option('--speed/--no-speed', default=True,
              help='Sample transfer speed before auditing')
@click.pass_context
def audit(ctx, line: str, output: str, speed: bool):
    """Audit a single LINE (for example A or B)."""
    try:
        auditor = _load_auditor(ctx)

        line_id = line.upper()
        if line_id not in auditor.config_manager.get_lines():
            click.echo(f"Unknown line: {line} (configured: "
                       f"{', '.join(auditor.config_manager.get_lines())})", err=True)
            sys.exit(1)

        if speed and output == 'text':
            click.echo("Sampling transfer speed...")

        report = auditor.audit_line(line_id, sample_speed=speed)

        if output == 'json':
            click.echo(json.dumps(report_to_dict(report), indent=2, default=_json_default))
        else:
            click.echo(auditor.reporter.render_line_report(report))

    except Exception as e:
        click.echo(f"Error during audit: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('output_file', type=click.Path(dir_okay=False))
@click.option('--format', '-f', 'output_format', type=click.Choice(['text', 'json']),
              default='text', help='Dashboard format')
@click.pass_context
def dashboard(ctx, output_file: str, output_format: str):
    """Audit all lines in parallel and write the result to OUTPUT_FILE."""
    try:
        auditor = _load_auditor(ctx)
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    # Only one dashboard run at a time
    lock_file = auditor.monitoring.get('lock_file')
    try:
        acquire_lock(lock_file)
    except RuntimeError as e:
        click.echo(f"Another instance is already running: {e}", err=True)
        sys.exit(1)

    try:
        click.echo("Generating dashboard for all lines...")
        reports = auditor.audit_all_lines()
        combined = auditor.combine(reports)

        # Render in the requested format
        if output_format == 'json':
            content = json.dumps({
                'generated_at': datetime.now(),
                'lines': {line_id: report_to_dict(r) for line_id, r in reports.items()},
                'combined_rankings': asdict(combined) if combined else None
            }, indent=2, default=_json_default)
        else:
            content = auditor.generate_report(reports, combined)

        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(content)

        click.echo(f"Dashboard written to: {output_file}")

    except Exception as e:
        click.echo(f"Error generating dashboard: {e}", err=True)
        sys.exit(1)
    finally:
        release_lock(lock_file)


@cli.command()
@click.pass_context
def rankings(ctx):
    """Show monthly health rankings for all lines."""
    try:
        auditor = _load_auditor(ctx)
        reports = auditor.audit_all_lines(sample_speed=False, track_state=False)
        combined = auditor.combine(reports)

        if combined is not None:
            click.echo(auditor.reporter.render_combined_rankings(combined))
            return

        for line_id, report in reports.items():
            click.echo(f"\nLine {line_id}")
            click.echo("\n".join(auditor.reporter.render_monthly_rankings(report.rankings)))

    except Exception as e:
        click.echo(f"Error computing rankings: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def test_email(ctx):
    """Send a test email to verify email configuration."""
    try:
        auditor = _load_auditor(ctx)

        if not auditor.email_reporter:
            click.echo("Email not configured - cannot send test email", err=True)
            sys.exit(1)

        errors = auditor.email_reporter.validate_configuration()
        if errors:
            click.echo("Email configuration errors:")
            for error in errors:
                click.echo(f"   - {error}")
            sys.exit(1)

        click.echo("Sending test email...")
        if auditor.email_reporter.send_test_email():
            click.echo("Test email sent successfully!")
            click.echo(f"   Recipients: {', '.join(auditor.email_reporter.to_addresses)}")
        else:
            click.echo("Failed to send test email", err=True)
            sys.exit(1)

    except Exception as e:
        click.echo(f"Error sending test email: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def validate_config(ctx):
    """Validate configuration file."""
    try:
        config_manager = ConfigManager(ctx.obj.get('config_path'))
        config_manager.load_config()

        click.echo("Configuration loaded successfully")

        # Display configuration summary
        click.echo("\nConfiguration Summary:")
        click.echo(f"   Base directory: {config_manager.get_base_dir()}")
        for line_id in config_manager.get_lines():
            click.echo(f"   Line {line_id}: {config_manager.get_line_dir(line_id)}")

        project_range = config_manager.get_project_range()
        if project_range:
            click.echo(f"   Project range: {project_range[0].isoformat()} to {project_range[1].isoformat()}")
        else:
            click.echo("   Project range: unknown (estimates and rankings disabled)")

        email_config = config_manager.get_email_config()
        if email_config:
            click.echo(f"   Email configured: {email_config.get('from_address', 'N/A')}")
            click.echo(f"   Recipients: {len(email_config.get('to_addresses', []))}")
        else:
            click.echo("   Email: Not configured")

    except Exception as e:
        click.echo(f"Configuration validation failed: {e}", err=True)
        sys.exit(1)


def main():
    """Main CLI entry point."""
    cli()


if __name__ == '__main__':
    main()
