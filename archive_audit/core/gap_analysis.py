"""Business-day gap detection over dated archive folders."""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from .models import FileRecord, GapReport

FOLDER_PREFIX = "Archive_Beam_"


def folder_prefix(line_id: str) -> str:
    return f"{FOLDER_PREFIX}{line_id}_"


def extract_folder_date(folder_name: str, line_id: str) -> Optional[date]:
    """Extract the date from a folder name such as ``Archive_Beam_B_2024-10-15``.

    Args:
        folder_name: Directory name.
        line_id: Line identifier the folder must belong to.

    Returns:
        The encoded date, or None when the name does not match.
    """
    prefix = folder_prefix(line_id)
    if not folder_name.startswith(prefix):
        return None

    date_str = folder_name[len(prefix):len(prefix) + 10]
    if len(date_str) < 10:
        return None

    try:
        return datetime.strptime(date_str, '%Y-%m-%d').date()
    except ValueError:
        return None


def get_folder_dates(files: Iterable[FileRecord], line_id: str) -> List[date]:
    """Sorted, de-duplicated folder dates of a line."""
    dates = {extract_folder_date(f.parent_dir, line_id) for f in files}
    dates.discard(None)
    return sorted(dates)


def is_weekday(day: date) -> bool:
    return day.isoweekday() <= 5


def find_gaps(files: List[FileRecord], line_id: str) -> GapReport:
    """Find weekdays without a dated folder between the first and last folder.

    Weekend days without a folder are counted but not reported as missing.
    The last observed date is never reported.

    Args:
        files: Scanned records.
        line_id: Line identifier.

    Returns:
        GapReport; ``is_empty`` is set when no dated folders exist.
    """
    dates = get_folder_dates(files, line_id)
    if not dates:
        return GapReport(start_date=None, end_date=None, is_empty=True)

    start, end = dates[0], dates[-1]
    existing = set(dates)
    missing_weekdays = []
    skipped_weekends = 0

    current = start
    while current < end:
        if current not in existing:
            if is_weekday(current):
                missing_weekdays.append(current)
            else:
                skipped_weekends += 1
        current += timedelta(days=1)

    return GapReport(
        start_date=start,
        end_date=end,
        missing_weekdays=missing_weekdays,
        skipped_weekends=skipped_weekends,
        is_empty=False
    )
