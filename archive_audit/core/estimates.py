"""Transfer progress and remaining-work estimates."""

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from .gap_analysis import extract_folder_date, get_folder_dates, is_weekday
from .models import EstimatesReport, FileRecord
from .stats import median


def count_weekdays(start: date, end: date) -> int:
    """Count Monday-Friday dates in ``[start, end]``."""
    count = 0
    current = start
    while current <= end:
        if is_weekday(current):
            count += 1
        current += timedelta(days=1)
    return count


def get_current_copy_date(files: List[FileRecord], line_id: str, now: datetime,
                          recent_minutes: int = 5) -> Optional[date]:
    """Find the day currently being copied.

    The folder of a recently modified file wins; otherwise the latest folder.

    Args:
        files: Scanned records.
        line_id: Line identifier.
        now: Reference time.
        recent_minutes: Window in which a modification counts as in progress.

    Returns:
        The in-progress date, or None when no dated folder exists.
    """
    window = timedelta(minutes=recent_minutes)
    recent_dates = [
        d for d in (extract_folder_date(f.parent_dir, line_id)
                    for f in files if now - f.modified_at < window)
        if d is not None
    ]
    if recent_dates:
        return max(recent_dates)

    dates = get_folder_dates(files, line_id)
    return dates[-1] if dates else None


def calculate_estimates(files: List[FileRecord], line_id: str, start_date: date,
                        end_date: date, speed_bps: int, free_bytes: int,
                        now: datetime, recent_minutes: int = 5) -> EstimatesReport:
    """Estimate how much of the project range is left to copy.

    Args:
        files: Scanned records.
        line_id: Line identifier.
        start_date: First day of the project range.
        end_date: Last day of the project range.
        speed_bps: Current transfer speed in bytes per second.
        free_bytes: Free space on the target filesystem.
        now: Reference time.
        recent_minutes: Window used to detect the in-progress day.

    Returns:
        EstimatesReport.
    """
    current = get_current_copy_date(files, line_id, now, recent_minutes) or start_date

    folder_sizes: Dict[str, int] = defaultdict(int)
    for record in files:
        folder_sizes[record.parent_dir] += record.size_bytes
    median_daily = int(median(folder_sizes.values())) if folder_sizes else 0

    total_weekdays = count_weekdays(start_date, end_date)
    weekdays_completed = count_weekdays(start_date, current - timedelta(days=1))
    weekdays_remaining = count_weekdays(current + timedelta(days=1), end_date)
    remaining_bytes = weekdays_remaining * median_daily

    report = EstimatesReport(
        current_copy_date=current,
        median_daily_bytes=median_daily,
        weekdays_remaining=weekdays_remaining,
        weekdays_completed=weekdays_completed,
        total_weekdays=total_weekdays,
        remaining_bytes=remaining_bytes,
        free_bytes=free_bytes,
        disk_status_ok=free_bytes > remaining_bytes,
        start_date=start_date,
        end_date=end_date
    )

    if speed_bps > 0:
        hours_left = remaining_bytes // speed_bps // 3600
        report.estimated_hours_eta = hours_left
        report.estimated_days_eta = hours_left // 24

    return report
