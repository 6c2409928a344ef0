import zipfile
from datetime import datetime

import pytest
import yaml

from archive_audit.core.models import FileRecord


@pytest.fixture
def make_record():
    def _make(name="data.zip", size=5000, folder="Archive_Beam_A_2024-07-29",
              valid=True, modified=datetime(2024, 1, 1), reason=None):
        if not valid and reason is None:
            reason = "Missing ZIP signature (corrupted or incomplete transfer)"
        return FileRecord(
            name=name,
            size_bytes=size,
            is_valid=valid,
            modified_at=modified,
            parent_dir=folder,
            invalid_reason=reason
        )
    return _make


@pytest.fixture
def write_zip():
    def _write(path, payload=b"x" * 2000, comment=b""):
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr("payload.bin", payload)
            zf.comment = comment
        return path
    return _write


@pytest.fixture
def archive_root(tmp_path, write_zip):
    """Two lines with three dated folders each, one corrupt archive on line A."""
    base = tmp_path / "archive"
    for line_id in ("A", "B"):
        for day in ("2024-07-29", "2024-07-31", "2024-08-01"):
            folder = base / f"Line {line_id}" / f"Archive_Beam_{line_id}_{day}"
            write_zip(folder / "data.zip")
            write_zip(folder / "meta.zip", payload=b"")

    broken = base / "Line A" / "Archive_Beam_A_2024-07-31" / "broken.zip"
    broken.write_bytes(b"\x00" * 4096)
    return base


@pytest.fixture
def config_file(tmp_path, archive_root):
    config = {
        "base_dir": str(archive_root),
        "project": {"start_date": "2024-07-29", "end_date": "2024-08-09"},
        "monitoring": {
            "speed_sample_seconds": 0,
            "lock_file": str(tmp_path / "dashboard.lock"),
        },
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(config))
    return path
