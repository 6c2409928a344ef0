"""Daily folder size anomaly detection."""

from collections import defaultdict
from datetime import date
from typing import Dict, List, Mapping, Optional

from .gap_analysis import extract_folder_date
from .models import TOO_LARGE, TOO_SMALL, Anomaly, AnomalyReport, FileRecord
from .stats import median

DEFAULT_LOW_THRESHOLD = 0.8
DEFAULT_HIGH_THRESHOLD = 1.2


def daily_folder_sizes(files: List[FileRecord], line_id: str,
                       exclude_date: Optional[date] = None) -> Dict[str, int]:
    """Total archive bytes per dated folder of a line.

    Args:
        files: Scanned records.
        line_id: Line identifier; folders of other lines are ignored.
        exclude_date: Folders dated this day are left out, typically the day
            still being copied. Suffixed folder names are matched by date too.

    Returns:
        Mapping of folder name to total bytes.
    """
    sizes: Dict[str, int] = defaultdict(int)
    for record in files:
        folder_date = extract_folder_date(record.parent_dir, line_id)
        if folder_date is None or folder_date == exclude_date:
            continue
        sizes[record.parent_dir] += record.size_bytes
    return dict(sizes)


def calculate_anomalies(day_sizes: Mapping[str, int],
                        low_threshold: float = DEFAULT_LOW_THRESHOLD,
                        high_threshold: float = DEFAULT_HIGH_THRESHOLD) -> Optional[AnomalyReport]:
    """Flag days whose total size is far below or above the median.

    Args:
        day_sizes: Mapping of day identifier to total bytes.
        low_threshold: Fraction of the median below which a day is too small.
        high_threshold: Fraction of the median above which a day is too large.

    Returns:
        AnomalyReport ordered by day identifier, or None without data.
    """
    if not day_sizes:
        return None

    median_size = median(day_sizes.values())
    anomalies = []

    for name in sorted(day_sizes):
        size = day_sizes[name]
        if size < median_size * low_threshold:
            anomalies.append(Anomaly(name=name, size=size, category=TOO_SMALL))
        elif size > median_size * high_threshold:
            anomalies.append(Anomaly(name=name, size=size, category=TOO_LARGE))

    return AnomalyReport(median_daily_size=median_size, anomalies=anomalies)
