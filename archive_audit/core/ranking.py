"""Monthly health scoring and cross-line ranking."""

import calendar
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple, TypeVar

from .gap_analysis import extract_folder_date, is_weekday
from .models import (AnomalyReport, CombinedMonthlyMetrics, CombinedRankingReport,
                     FileRecord, GapReport, MonthlyMetrics, MonthlyRankingReport)

logger = logging.getLogger(__name__)

T = TypeVar('T')
MonthKey = Tuple[int, int]


@dataclass(frozen=True)
class ScoreWeights:
    """Penalty weights per defect type."""
    missing_day: float = 10.0
    invalid_file: float = 3.0
    anomaly: float = 2.0
    empty_file: float = 1.0


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def count_expected_weekdays_in_month(year: int, month: int, range_start: date,
                                     range_end: date, today: date) -> int:
    """Count Monday-Friday dates of a month inside the project range and up to today."""
    month_start, month_end = month_bounds(year, month)
    effective_start = max(month_start, range_start)
    effective_end = min(month_end, range_end, today)

    count = 0
    current = effective_start
    while current <= effective_end:
        if is_weekday(current):
            count += 1
        current += timedelta(days=1)
    return count


def find_always_empty_files(files: List[FileRecord], tiny_threshold: int) -> Set[str]:
    """Names whose every record is below ``tiny_threshold``."""
    totals: Dict[str, int] = defaultdict(int)
    empties: Dict[str, int] = defaultdict(int)
    for record in files:
        totals[record.name] += 1
        if record.size_bytes < tiny_threshold:
            empties[record.name] += 1
    return {name for name, total in totals.items() if total > 0 and empties[name] == total}


def calculate_health_score(metrics: MonthlyMetrics,
                           weights: ScoreWeights = ScoreWeights()) -> float:
    """Score a month from 0 to 100.

    The maximum penalty is every expected weekday missing.
    """
    if metrics.expected_weekdays == 0:
        return 0.0

    penalty = (metrics.missing_days * weights.missing_day
               + metrics.invalid_files * weights.invalid_file
               + metrics.anomaly_count * weights.anomaly
               + metrics.empty_files * weights.empty_file)
    max_penalty = metrics.expected_weekdays * weights.missing_day
    if max_penalty <= 0:
        return 0.0

    score = 100.0 * (1.0 - penalty / max_penalty)
    return max(0.0, min(100.0, score))


def select_best_worst(ranked: Sequence[T],
                      preferred: Callable[[T], bool]) -> Tuple[Optional[T], Optional[T]]:
    """Pick first and last of an already ranked sequence.

    Items matching ``preferred`` are used when any exist, otherwise all items.
    """
    candidates = [item for item in ranked if preferred(item)] or list(ranked)
    if not candidates:
        return None, None
    return candidates[0], candidates[-1]


def calculate_monthly_rankings(files: List[FileRecord],
                               gap_report: Optional[GapReport],
                               anomaly_report: Optional[AnomalyReport],
                               line_id: str,
                               start_date: date,
                               end_date: date,
                               today: date,
                               tiny_threshold: int,
                               weights: ScoreWeights = ScoreWeights()) -> MonthlyRankingReport:
    """Compute per-month health metrics for one line and rank them.

    Args:
        files: Scanned records of the line.
        gap_report: Missing weekdays, if gap analysis ran.
        anomaly_report: Daily size anomalies, if available.
        line_id: Line identifier.
        start_date: First day of the project range.
        end_date: Last day of the project range.
        today: Reference date; later days are not expected yet.
        tiny_threshold: Size in bytes below which a record counts as empty.
        weights: Penalty weights.

    Returns:
        MonthlyRankingReport with months sorted best first.
    """
    # Filenames that are empty everywhere are not penalised
    always_empty = find_always_empty_files(files, tiny_threshold)

    # Group dated records by month
    monthly_files: Dict[MonthKey, List[FileRecord]] = defaultdict(list)
    monthly_dates: Dict[MonthKey, Set[date]] = defaultdict(set)
    for record in files:
        folder_date = extract_folder_date(record.parent_dir, line_id)
        if folder_date is None:
            continue
        key = (folder_date.year, folder_date.month)
        monthly_files[key].append(record)
        monthly_dates[key].add(folder_date)

    # Missing days and anomalies per month
    missing_by_month: Dict[MonthKey, int] = defaultdict(int)
    if gap_report is not None:
        for missing in gap_report.missing_weekdays:
            missing_by_month[(missing.year, missing.month)] += 1

    anomalies_by_month: Dict[MonthKey, int] = defaultdict(int)
    if anomaly_report is not None:
        for anomaly in anomaly_report.anomalies:
            folder_date = extract_folder_date(anomaly.name, line_id)
            if folder_date is not None:
                anomalies_by_month[(folder_date.year, folder_date.month)] += 1

    # Score only months with at least one expected weekday
    months = []
    for year, month in set(monthly_files) | set(missing_by_month):
        expected = count_expected_weekdays_in_month(year, month, start_date, end_date, today)
        if expected == 0:
            logger.debug(f"Skipping {year}-{month:02d}: no expected weekdays")
            continue

        records = monthly_files.get((year, month), [])
        metrics = MonthlyMetrics(
            year=year,
            month=month,
            missing_days=missing_by_month.get((year, month), 0),
            anomaly_count=anomalies_by_month.get((year, month), 0),
            invalid_files=sum(1 for r in records if not r.is_valid),
            empty_files=sum(1 for r in records
                            if r.size_bytes < tiny_threshold and r.name not in always_empty),
            expected_weekdays=expected,
            actual_archives=len(monthly_dates.get((year, month), ())),
            is_complete=today > month_bounds(year, month)[1]
        )
        metrics.health_score = calculate_health_score(metrics, weights)
        months.append(metrics)

    # Best first, ties by calendar order
    months.sort(key=lambda m: (-m.health_score, m.year, m.month))
    best, worst = select_best_worst(months, lambda m: m.is_complete)
    average = sum(m.health_score for m in months) / len(months) if months else 0.0

    return MonthlyRankingReport(
        line_id=line_id,
        months=months,
        best_month=best,
        worst_month=worst,
        average_score=average
    )


def combine_rankings(line_a: MonthlyRankingReport,
                     line_b: MonthlyRankingReport) -> CombinedRankingReport:
    """Merge two lines' monthly rankings.

    A month seen by only one line keeps that line's score. The combined
    average is the mean of the averages of lines that produced months, so
    a line without any scored month does not pull it toward zero (a plain
    mean of both averages would).

    Args:
        line_a: Ranking of the first line.
        line_b: Ranking of the second line.

    Returns:
        CombinedRankingReport with months sorted best first.
    """
    a_map = {(m.year, m.month): m for m in line_a.months}
    b_map = {(m.year, m.month): m for m in line_b.months}

    months = []
    for year, month in set(a_map) | set(b_map):
        a_metrics = a_map.get((year, month))
        b_metrics = b_map.get((year, month))
        # Mean of whichever lines have the month
        scores = [m.health_score for m in (a_metrics, b_metrics) if m is not None]

        months.append(CombinedMonthlyMetrics(
            year=year,
            month=month,
            line_a_score=a_metrics.health_score if a_metrics else None,
            line_b_score=b_metrics.health_score if b_metrics else None,
            combined_score=sum(scores) / len(scores),
            line_a_metrics=a_metrics,
            line_b_metrics=b_metrics
        ))

    months.sort(key=lambda m: (-m.combined_score, m.year, m.month))
    # Prefer months both lines observed
    best, worst = select_best_worst(
        months, lambda m: m.line_a_score is not None and m.line_b_score is not None
    )

    averages = [r.average_score for r in (line_a, line_b) if r.months]
    combined_average = sum(averages) / len(averages) if averages else 0.0

    return CombinedRankingReport(
        months=months,
        best_month=best,
        worst_month=worst,
        line_a_average=line_a.average_score,
        line_b_average=line_b.average_score,
        combined_average=combined_average,
        line_a_id=line_a.line_id,
        line_b_id=line_b.line_id
    )
