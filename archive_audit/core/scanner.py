"""Directory scanning functionality for archive auditing."""

import os
import stat
import logging
from datetime import datetime, timedelta
from typing import Generator, List, Optional, Tuple

from .models import FileRecord
from .validity import check_archive
from ..utils.formatters import format_date, format_file_size, relative_display_path


class DirectoryScanner:
    """Walks an archive tree and collects per-file records."""

    def __init__(self, extension: str = '.zip', display_anchor: str = 'Line '):
        """Initialize directory scanner.

        Args:
            extension: Archive extension to scan, matched case-insensitively.
            display_anchor: Path segment recent-file paths are shown from.
        """
        self.extension = extension.lower() if extension.startswith('.') else f".{extension.lower()}"
        self.display_anchor = display_anchor
        self.logger = logging.getLogger(__name__)

    def scan_files(self, base_path: str) -> List[FileRecord]:
        """Scan a tree and return one record per archive file.

        Files whose metadata cannot be read are skipped.

        Args:
            base_path: Root directory to scan.

        Returns:
            List of FileRecord objects ordered by path.
        """
        self.logger.info(f"Starting scan of {base_path}")

        # Ordered by full path, not walk order
        candidates = sorted(
            ((path, st) for path, st in self._walk_regular_files(base_path)
             if os.path.splitext(path)[1].lower() == self.extension),
            key=lambda item: item[0]
        )
        total = len(candidates)
        records = []

        for processed, (path, st) in enumerate(candidates, 1):
            is_valid, reason = check_archive(path)
            parent_dir = os.path.basename(os.path.dirname(path)) or "Unknown"

            records.append(FileRecord(
                name=os.path.basename(path),
                size_bytes=st.st_size,
                is_valid=is_valid,
                invalid_reason=reason,
                modified_at=datetime.fromtimestamp(st.st_mtime),
                parent_dir=parent_dir
            ))

            if processed % 50 == 0 or processed == total:
                self.logger.info(f"Verified {processed}/{total} files...")

        self.logger.info(f"Completed scan of {base_path}, found {len(records)} archives")
        return records

    def get_total_size(self, base_path: str) -> int:
        """Get allocated disk usage of a tree in bytes.

        Uses allocated 512-byte blocks rather than apparent length so that a
        file still being written shows growth immediately.

        Args:
            base_path: Root directory.

        Returns:
            Total allocated bytes.
        """
        return sum(st.st_blocks * 512 for _, st in self._walk_regular_files(base_path))

    def get_recent_files(self, base_path: str, minutes: int,
                         now: Optional[datetime] = None) -> List[str]:
        """List files modified within the last ``minutes`` minutes.

        Args:
            base_path: Root directory.
            minutes: Recency window in minutes.
            now: Reference time, defaults to the current time.

        Returns:
            Display lines of the form ``"  - <path> (<size>) at <time>"``.
        """
        now = now or datetime.now()
        recent = []

        for path, modified, size in self._iter_recent(base_path, minutes, now):
            display_path = relative_display_path(path, self.display_anchor)
            recent.append(
                f"  - {display_path} ({format_file_size(size)}) at {format_date(modified, short=True)}"
            )

        return recent

    def _iter_recent(self, base_path: str, minutes: int,
                     now: datetime) -> Generator[Tuple[str, datetime, int], None, None]:
        """Yield ``(path, modified, size)`` for recently modified files."""
        window = timedelta(minutes=minutes)
        for path, st in self._walk_regular_files(base_path):
            try:
                modified = datetime.fromtimestamp(st.st_mtime)
            except (OverflowError, OSError, ValueError) as e:
                self.logger.debug(f"Skipping {path}: unreadable timestamp ({e})")
                continue

            if now - modified < window:
                yield path, modified, st.st_size

    def _walk_regular_files(self, base_path: str) -> Generator[Tuple[str, os.stat_result], None, None]:
        """Yield ``(path, stat)`` for every regular file under ``base_path``.

        Symlinks are not followed and unreadable entries are skipped.
        """
        if not os.path.isdir(base_path):
            self.logger.warning(f"Path is not a directory: {base_path}")
            return

        for root, dirs, files in os.walk(base_path, onerror=self._log_walk_error):
            dirs.sort()
            for name in sorted(files):
                path = os.path.join(root, name)
                try:
                    st = os.stat(path, follow_symlinks=False)
                except OSError as e:
                    self.logger.debug(f"Skipping {path}: {e}")
                    continue

                if stat.S_ISREG(st.st_mode):
                    yield path, st

    def _log_walk_error(self, error: OSError):
        self.logger.debug(f"Skipping unreadable directory: {error}")
