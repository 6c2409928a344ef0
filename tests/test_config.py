from datetime import date
from pathlib import Path

import pytest
import yaml

from archive_audit.config import ConfigManager, ConfigValidator, parse_transfer_script
from archive_audit.config.config_manager import extract_quoted_date


def load(data):
    manager = ConfigManager()
    manager.load_dict(data)
    return manager


def test_defaults_are_applied(tmp_path):
    manager = load({"base_dir": str(tmp_path)})

    assert manager.get_lines() == ["A", "B"]
    assert manager.get_line_dir("A") == str(tmp_path / "Line A")
    assert manager.get_monitoring_config()["tiny_threshold_bytes"] == 1000
    assert manager.get_monitoring_config()["lock_file"] == "/tmp/archive_audit_dashboard.lock"
    assert manager.get_anomaly_config() == {"low_threshold": 0.8, "high_threshold": 1.2}
    assert manager.get_scoring_config()["missing_day"] == 10
    assert manager.get_email_config() == {}


def test_partial_section_keeps_user_values(tmp_path):
    manager = load({"base_dir": str(tmp_path), "monitoring": {"recent_minutes": 15}})

    monitoring = manager.get_monitoring_config()
    assert monitoring["recent_minutes"] == 15
    assert monitoring["speed_sample_seconds"] == 10


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"base_dir": ""},
        {"base_dir": "/data", "lines": ["AB"]},
        {"base_dir": "/data", "lines": []},
        {"base_dir": "/data", "project": {"start_date": "2024-13-01"}},
        {"base_dir": "/data", "project": {"start_date": "2024-08-01", "end_date": "2024-07-01"}},
        {"base_dir": "/data", "monitoring": {"tiny_threshold_bytes": -1}},
        {"base_dir": "/data", "scoring": {"missing_day": "ten"}},
        {"base_dir": "/data", "anomalies": {"low_threshold": 1.5, "high_threshold": 1.2}},
        {"base_dir": "/data", "email": {"smtp_server": "smtp.example.com"}},
        {"base_dir": "/data", "email": {"smtp_server": "s", "from_address": "a@b.com",
                                        "to_addresses": [], "smtp_port": 25}},
        {"base_dir": "/data", "email": {"smtp_server": "s", "from_address": "a@b.com",
                                        "to_addresses": ["c@d.com"], "smtp_port": 70000}},
    ],
)
def test_invalid_configuration_is_rejected(data):
    with pytest.raises(ValueError):
        ConfigValidator().validate(data)


def test_load_config_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "base_dir: /mnt/archive\n"
        "lines: [a]\n"
        "project:\n"
        "  start_date: 2024-07-29\n"
        "  end_date: 2024-12-20\n"
    )
    manager = ConfigManager(str(path))
    manager.load_config()

    assert manager.get_lines() == ["A"]
    assert manager.get_project_range() == (date(2024, 7, 29), date(2024, 12, 20))


def test_invalid_yaml_raises_value_error(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("base_dir: [unclosed\n")

    with pytest.raises(ValueError):
        ConfigManager(str(path)).load_config()


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigManager(str(tmp_path / "missing.yaml")).load_config()


def test_extract_quoted_date():
    assert extract_quoted_date('$startDate = "2024-07-29"') == date(2024, 7, 29)
    assert extract_quoted_date('$endDate = Get-Date "2024-12-20"') == date(2024, 12, 20)
    assert extract_quoted_date('$startDate = "soon"') is None
    assert extract_quoted_date('$startDate = 2024-07-29') is None


def test_parse_transfer_script(tmp_path):
    script = tmp_path / "Transfer.ps1"
    script.write_text(
        "# copy nightly archives\n"
        '$startDate = "2024-07-29"\n'
        '$endDate   = "2024-12-20"\n'
        "robocopy $src $dst /E\n"
    )
    assert parse_transfer_script(str(script)) == (date(2024, 7, 29), date(2024, 12, 20))
    assert parse_transfer_script(str(tmp_path / "missing.ps1")) is None


def test_project_range_falls_back_to_transfer_script(tmp_path):
    manager = load({"base_dir": str(tmp_path)})
    assert manager.get_project_range() is None

    (tmp_path / "Transfer.ps1").write_text('$startDate = "2024-07-29"\n$endDate = "2024-08-30"\n')
    assert manager.get_project_range() == (date(2024, 7, 29), date(2024, 8, 30))


def test_explicit_transfer_script_path(tmp_path):
    script = tmp_path / "scripts" / "copy.ps1"
    script.parent.mkdir()
    script.write_text('$startDate = "2024-01-02"\n$endDate = "2024-03-29"\n')

    manager = load({"base_dir": str(tmp_path), "project": {"transfer_script": str(script)}})
    assert manager.get_project_range() == (date(2024, 1, 2), date(2024, 3, 29))


def test_example_config_is_valid():
    with open(Path(__file__).parent.parent / "config.example.yaml", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    manager = load(data)
    assert manager.get_lines() == ["A", "B"]
    assert manager.get_email_config()["subject_prefix"] == "[Beam Alert]"
