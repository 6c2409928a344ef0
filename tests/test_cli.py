import json
import logging

import pytest
from click.testing import CliRunner

from archive_audit.cli import acquire_lock, cli, release_lock


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def runner():
    return CliRunner()


def test_validate_config(runner, config_file, archive_root):
    result = runner.invoke(cli, ["--config", str(config_file), "validate-config"])

    assert result.exit_code == 0
    assert "Configuration loaded successfully" in result.output
    assert f"Line A: {archive_root / 'Line A'}" in result.output
    assert "Project range: 2024-07-29 to 2024-08-09" in result.output
    assert "Email: Not configured" in result.output


def test_validate_config_missing_file(runner, tmp_path):
    result = runner.invoke(cli, ["--config", str(tmp_path / "nope.yaml"), "validate-config"])
    assert result.exit_code == 1


def test_audit_text(runner, config_file):
    result = runner.invoke(cli, ["--config", str(config_file), "audit", "a", "--no-speed"])

    assert result.exit_code == 0
    assert "AUDIT REPORT FOR LINE A" in result.output
    assert "2024-07-30 (Tuesday) - Archive not found" in result.output


def test_audit_json(runner, config_file):
    result = runner.invoke(cli, ["--config", str(config_file), "audit", "B", "--no-speed",
                                 "--output", "json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["line_id"] == "B"
    assert data["total_files"] == 6
    assert data["gap_report"]["missing_weekdays"] == ["2024-07-30"]
    assert data["estimates_report"]["progress_percent"] >= 0
    assert data["bad_files_report"] is None


def test_audit_unknown_line(runner, config_file):
    result = runner.invoke(cli, ["--config", str(config_file), "audit", "C", "--no-speed"])
    assert result.exit_code == 1


def test_dashboard_writes_file_and_releases_lock(runner, config_file, tmp_path):
    output = tmp_path / "dashboard.txt"
    result = runner.invoke(cli, ["--config", str(config_file), "dashboard", str(output)])

    assert result.exit_code == 0
    assert "Dashboard written to" in result.output
    content = output.read_text()
    assert "AUDIT REPORT FOR LINE A" in content
    assert "COMBINED MONTHLY RANKING" in content
    assert not (tmp_path / "dashboard.lock").exists()


def test_dashboard_json(runner, config_file, tmp_path):
    output = tmp_path / "dashboard.json"
    result = runner.invoke(cli, ["--config", str(config_file), "dashboard", str(output),
                                 "--format", "json"])

    assert result.exit_code == 0
    data = json.loads(output.read_text())
    assert set(data["lines"]) == {"A", "B"}
    assert data["combined_rankings"]["line_b_id"] == "B"


def test_dashboard_refuses_concurrent_run(runner, config_file, tmp_path):
    lock = tmp_path / "dashboard.lock"
    lock.write_text("12345")
    output = tmp_path / "dashboard.txt"

    result = runner.invoke(cli, ["--config", str(config_file), "dashboard", str(output)])

    assert result.exit_code == 1
    assert not output.exists()
    assert lock.read_text() == "12345"


def test_rankings(runner, config_file):
    result = runner.invoke(cli, ["--config", str(config_file), "rankings"])

    assert result.exit_code == 0
    assert "COMBINED MONTHLY RANKING" in result.output
    assert "2024-07" in result.output


def test_test_email_without_configuration(runner, config_file):
    result = runner.invoke(cli, ["--config", str(config_file), "test-email"])
    assert result.exit_code == 1


def test_lock_roundtrip(tmp_path):
    lock = str(tmp_path / "run.lock")
    acquire_lock(lock)
    with pytest.raises(RuntimeError):
        acquire_lock(lock)
    release_lock(lock)
    acquire_lock(lock)
    release_lock(lock)
    release_lock(lock)
