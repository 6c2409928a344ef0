"""Integrity statistics and bad-file collection for scanned archives."""

import logging
import math
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from .models import BadFile, BadFilesReport, FileRecord, IntegrityRow, IntegrityStats

logger = logging.getLogger(__name__)


def median(values: Iterable[float]) -> float:
    """Median of a non-empty collection; even counts use the midpoint."""
    ordered = sorted(values)
    count = len(ordered)
    if count == 0:
        raise ValueError("median() of an empty collection")
    mid = count // 2
    if count % 2 == 1:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def population_std_dev(values: List[float]) -> float:
    mean = sum(values) / len(values)
    return math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))


def calculate_integrity_stats(files: List[FileRecord],
                              tiny_threshold: int) -> Optional[IntegrityStats]:
    """Group records by filename and compute size distributions.

    Size statistics only consider records at or above ``tiny_threshold``.
    The grand median and standard deviation are medians of the per-name
    values, so a name with many records cannot dominate the summary.

    Args:
        files: Scanned records.
        tiny_threshold: Size in bytes below which a record counts as empty.

    Returns:
        IntegrityStats, or None when there are no records.
    """
    if not files:
        return None

    groups: Dict[str, List[FileRecord]] = defaultdict(list)
    for record in files:
        groups[record.name].append(record)

    rows = []
    grand_total = grand_empty = grand_bad = 0
    grand_min: Optional[int] = None
    grand_max = 0
    all_medians = []
    all_std_devs = []

    for name in sorted(groups):
        entries = groups[name]
        row = IntegrityRow(
            name=name,
            total=len(entries),
            empty=sum(1 for e in entries if e.size_bytes < tiny_threshold),
            bad=sum(1 for e in entries if not e.is_valid)
        )

        grand_total += row.total
        grand_empty += row.empty
        grand_bad += row.bad

        sizes = [e.size_bytes for e in entries if e.size_bytes >= tiny_threshold]
        if sizes:
            row.min_size = min(sizes)
            row.max_size = max(sizes)
            row.median_size = median(sizes)
            row.std_dev = population_std_dev(sizes)
            row.valid_stats = True

            grand_min = row.min_size if grand_min is None else min(grand_min, row.min_size)
            grand_max = max(grand_max, row.max_size)
            all_medians.append(row.median_size)
            all_std_devs.append(row.std_dev)

        rows.append(row)

    logger.debug(f"Integrity stats: {len(rows)} filenames, {len(all_medians)} with valid sizes")

    return IntegrityStats(
        rows=rows,
        grand_total=grand_total,
        grand_empty=grand_empty,
        grand_bad=grand_bad,
        grand_min=grand_min or 0,
        grand_max=grand_max,
        grand_median=median(all_medians) if all_medians else 0.0,
        grand_std_dev=median(all_std_devs) if all_std_devs else 0.0
    )


def collect_bad_files(files: List[FileRecord], line_id: str,
                      max_per_archive: int = 10) -> Optional[BadFilesReport]:
    """Group structurally invalid records by folder.

    Args:
        files: Scanned records.
        line_id: Line identifier used to build relative paths.
        max_per_archive: Maximum files listed per folder.

    Returns:
        BadFilesReport, or None when every record is valid.
    """
    by_folder: Dict[str, List[BadFile]] = defaultdict(list)
    total_count = 0

    for record in files:
        if record.is_valid:
            continue
        total_count += 1
        by_folder[record.parent_dir].append(BadFile(
            relative_path=f"Line {line_id}/{record.parent_dir}/{record.name}",
            size=record.size_bytes,
            reason=record.invalid_reason or "Unknown error"
        ))

    if not total_count:
        return None

    files_by_folder = []
    for folder in sorted(by_folder):
        bad_files = sorted(by_folder[folder], key=lambda f: f.relative_path)
        files_by_folder.append((folder, bad_files[:max_per_archive], len(bad_files)))

    return BadFilesReport(total_count=total_count, files_by_folder=files_by_folder)
