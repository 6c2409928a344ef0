"""Data models for archive auditing."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Tuple


TOO_SMALL = "Too Small"
TOO_LARGE = "Too Large"


@dataclass(frozen=True)
class FileRecord:
    """One packaged file found on disk."""
    name: str
    size_bytes: int
    is_valid: bool
    modified_at: datetime
    parent_dir: str
    invalid_reason: Optional[str] = None


@dataclass
class IntegrityRow:
    """Size and integrity statistics for all files sharing a name."""
    name: str
    total: int
    empty: int
    bad: int
    min_size: int = 0
    max_size: int = 0
    median_size: float = 0.0
    std_dev: float = 0.0
    valid_stats: bool = False


@dataclass
class IntegrityStats:
    """Per-filename rows plus grand totals."""
    rows: List[IntegrityRow]
    grand_total: int
    grand_empty: int
    grand_bad: int
    grand_min: int
    grand_max: int
    grand_median: float
    grand_std_dev: float


@dataclass
class GapReport:
    """Business days with no dated folder inside the observed range."""
    start_date: Optional[date]
    end_date: Optional[date]
    missing_weekdays: List[date] = field(default_factory=list)
    skipped_weekends: int = 0
    is_empty: bool = False


@dataclass
class Anomaly:
    """A dated folder whose total size is far from the median."""
    name: str
    size: int
    category: str


@dataclass
class AnomalyReport:
    """Daily size anomalies relative to the median daily size."""
    median_daily_size: float
    anomalies: List[Anomaly]


@dataclass
class BadFile:
    """A structurally damaged archive."""
    relative_path: str
    size: int
    reason: str


@dataclass
class BadFilesReport:
    """Damaged archives grouped by folder.

    Each entry of ``files_by_folder`` is ``(folder, displayed_files, total_in_folder)``.
    """
    total_count: int
    files_by_folder: List[Tuple[str, List[BadFile], int]]


@dataclass
class EstimatesReport:
    """Progress and remaining-work estimates for a transfer."""
    current_copy_date: date
    median_daily_bytes: int
    weekdays_remaining: int
    weekdays_completed: int
    total_weekdays: int
    remaining_bytes: int
    free_bytes: int
    disk_status_ok: bool
    start_date: date
    end_date: date
    estimated_days_eta: Optional[int] = None
    estimated_hours_eta: Optional[int] = None

    @property
    def progress_percent(self) -> int:
        if self.total_weekdays <= 0:
            return 0
        return int(min(self.weekdays_completed / self.total_weekdays * 100.0, 100.0))


@dataclass
class MonthlyMetrics:
    """One calendar month's rollup for a single line."""
    year: int
    month: int
    missing_days: int
    anomaly_count: int
    invalid_files: int
    empty_files: int
    expected_weekdays: int
    actual_archives: int
    health_score: float = 0.0
    is_complete: bool = False


@dataclass
class MonthlyRankingReport:
    """Months of one line ranked by health score."""
    line_id: str
    months: List[MonthlyMetrics]
    best_month: Optional[MonthlyMetrics]
    worst_month: Optional[MonthlyMetrics]
    average_score: float


@dataclass
class CombinedMonthlyMetrics:
    """The same month observed from two independent lines."""
    year: int
    month: int
    line_a_score: Optional[float]
    line_b_score: Optional[float]
    combined_score: float
    line_a_metrics: Optional[MonthlyMetrics] = None
    line_b_metrics: Optional[MonthlyMetrics] = None


@dataclass
class CombinedRankingReport:
    """Monthly ranking merged across two lines."""
    months: List[CombinedMonthlyMetrics]
    best_month: Optional[CombinedMonthlyMetrics]
    worst_month: Optional[CombinedMonthlyMetrics]
    line_a_average: float
    line_b_average: float
    combined_average: float
    line_a_id: str = "A"
    line_b_id: str = "B"


@dataclass
class TransferStatus:
    """Outcome of comparing the current transfer state with the stored one."""
    current_state: str
    previous_state: str
    since: str
    changed: bool
    alert_due: bool = False
    minutes_in_state: int = 0


@dataclass
class LineAuditReport:
    """Everything gathered for one line during an audit run."""
    line_id: str
    search_dir: str
    generated_at: datetime
    total_size: int
    total_files: int
    speed_bps: int
    transfer_status: Optional[TransferStatus]
    recent_files: List[str]
    integrity_stats: Optional[IntegrityStats]
    gap_report: GapReport
    anomaly_report: Optional[AnomalyReport]
    bad_files_report: Optional[BadFilesReport]
    estimates_report: Optional[EstimatesReport]
    rankings: Optional[MonthlyRankingReport]
