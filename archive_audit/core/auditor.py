"""Main archive audit coordinator."""

import logging
import os
import shutil
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Dict, List, Optional

from .anomalies import calculate_anomalies, daily_folder_sizes
from .estimates import calculate_estimates, get_current_copy_date
from .gap_analysis import find_gaps
from .models import CombinedRankingReport, LineAuditReport
from .ranking import ScoreWeights, calculate_monthly_rankings, combine_rankings
from .scanner import DirectoryScanner
from .stats import calculate_integrity_stats, collect_bad_files
from .transfer_state import ACTIVE, IDLE, TransferStateTracker
from ..config.config_manager import ConfigManager
from ..reporters.email_reporter import EmailReporter
from ..reporters.text_reporter import TextReporter


class LineAuditor:
    """Runs audits of the configured transfer lines."""

    def __init__(self, config_path: Optional[str] = None,
                 config_manager: Optional[ConfigManager] = None):
        """Initialize line auditor.

        Args:
            config_path: Optional path to configuration file.
            config_manager: Already loaded configuration, used instead of
                ``config_path`` when given.
        """
        if config_manager is None:
            config_manager = ConfigManager(config_path)
            config_manager.load_config()
        self.config_manager = config_manager
        self.logger = logging.getLogger(__name__)

        self.monitoring = self.config_manager.get_monitoring_config()
        self.scanner = None
        self.email_reporter = None
        self.reporter = None
        self.weights = ScoreWeights()

        self._initialize_components()

    def _initialize_components(self):
        """Initialize audit components."""
        self.scanner = DirectoryScanner(extension=self.monitoring.get('archive_extension', '.zip'))

        scoring = self.config_manager.get_scoring_config()
        self.weights = ScoreWeights(
            missing_day=scoring.get('missing_day', 10),
            invalid_file=scoring.get('invalid_file', 3),
            anomaly=scoring.get('anomaly', 2),
            empty_file=scoring.get('empty_file', 1)
        )

        self.email_reporter = EmailReporter.from_config(self.config_manager.get_email_config())

        self.reporter = TextReporter(
            bad_files_display_threshold=self.monitoring.get('bad_files_display_threshold', 0)
        )

    def measure_speed(self, search_dir: str) -> Dict[str, int]:
        """Measure transfer speed from two allocated-size snapshots.

        Returns:
            Dictionary with ``total_size`` and ``speed_bps``.
        """
        interval = self.monitoring.get('speed_sample_seconds', 10)
        size_t1 = self.scanner.get_total_size(search_dir)
        if interval <= 0:
            return {'total_size': size_t1, 'speed_bps': 0}

        self.logger.debug(f"Sampling transfer speed of {search_dir} for {interval}s")
        time.sleep(interval)
        size_t2 = self.scanner.get_total_size(search_dir)
        return {'total_size': size_t2, 'speed_bps': int(max(0, size_t2 - size_t1) // interval)}

    def audit_line(self, line_id: str, now: Optional[datetime] = None,
                   sample_speed: bool = True, track_state: bool = True) -> LineAuditReport:
        """Audit one line.

        Args:
            line_id: Line identifier.
            now: Reference time, defaults to the current time.
            sample_speed: Whether to wait and measure transfer speed.
            track_state: Whether to update state files and send alerts.

        Returns:
            LineAuditReport for the line.
        """
        now = now or datetime.now()
        line_id = line_id.upper()
        search_dir = self.config_manager.get_line_dir(line_id)
        tiny_threshold = self.monitoring.get('tiny_threshold_bytes', 1000)
        recent_minutes = self.monitoring.get('recent_minutes', 5)

        self.logger.info(f"Auditing line {line_id} at {search_dir}")

        # Measure transfer speed
        if sample_speed:
            sizes = self.measure_speed(search_dir)
        else:
            sizes = {'total_size': self.scanner.get_total_size(search_dir), 'speed_bps': 0}
        speed_bps = sizes['speed_bps']

        # Scan and verify archives
        files = self.scanner.scan_files(search_dir)

        # Update transfer state and send any due alert
        status = None
        if track_state:
            status = self._update_transfer_state(line_id, speed_bps, now)

        # Find missing business days
        gap_report = find_gaps(files, line_id)

        # Size anomalies, skipping the day still being copied
        current_date = get_current_copy_date(files, line_id, now, recent_minutes)
        anomalies_config = self.config_manager.get_anomaly_config()
        anomaly_report = calculate_anomalies(
            daily_folder_sizes(files, line_id, exclude_date=current_date),
            low_threshold=anomalies_config.get('low_threshold', 0.8),
            high_threshold=anomalies_config.get('high_threshold', 1.2)
        )

        # Estimates and rankings need the project date range
        estimates_report = None
        rankings = None
        project_range = self.config_manager.get_project_range()
        if project_range is None:
            self.logger.warning("Project date range unknown; skipping estimates and rankings")
        else:
            start_date, end_date = project_range
            estimates_report = calculate_estimates(
                files, line_id, start_date, end_date, speed_bps,
                self._get_free_bytes(search_dir), now, recent_minutes
            )
            rankings = calculate_monthly_rankings(
                files, gap_report, anomaly_report, line_id,
                start_date, end_date, now.date(), tiny_threshold, self.weights
            )

        report = LineAuditReport(
            line_id=line_id,
            search_dir=search_dir,
            generated_at=now,
            total_size=sizes['total_size'],
            total_files=len(files),
            speed_bps=speed_bps,
            transfer_status=status,
            recent_files=self.scanner.get_recent_files(search_dir, recent_minutes, now),
            integrity_stats=calculate_integrity_stats(files, tiny_threshold),
            gap_report=gap_report,
            anomaly_report=anomaly_report,
            bad_files_report=collect_bad_files(
                files, line_id, self.monitoring.get('max_bad_files_per_archive', 10)
            ),
            estimates_report=estimates_report,
            rankings=rankings
        )

        self.logger.info(f"Line {line_id}: {len(files)} archives, "
                         f"{len(gap_report.missing_weekdays)} missing weekdays")
        return report

    def audit_all_lines(self, now: Optional[datetime] = None, sample_speed: bool = True,
                        track_state: bool = True) -> Dict[str, LineAuditReport]:
        """Audit every configured line in parallel.

        Returns:
            Dictionary mapping line identifiers to their reports.
        """
        lines = self.config_manager.get_lines()
        now = now or datetime.now()

        # Lines share no state, one worker each
        with ThreadPoolExecutor(max_workers=len(lines)) as executor:
            futures = {
                line_id: executor.submit(self.audit_line, line_id, now, sample_speed, track_state)
                for line_id in lines
            }
            return {line_id: future.result() for line_id, future in futures.items()}

    def combine(self, reports: Dict[str, LineAuditReport]) -> Optional[CombinedRankingReport]:
        """Combine the monthly rankings of the first two lines that have one."""
        ranked = [r.rankings for r in reports.values() if r.rankings is not None]
        if len(ranked) < 2:
            return None
        if len(ranked) > 2:
            self.logger.warning(f"Combining only lines {ranked[0].line_id} and {ranked[1].line_id}")
        return combine_rankings(ranked[0], ranked[1])

    def generate_report(self, reports: Dict[str, LineAuditReport],
                        combined: Optional[CombinedRankingReport] = None) -> str:
        """Render line reports, followed by the combined ranking if any."""
        sections: List[str] = [self.reporter.render_line_report(r) for r in reports.values()]
        if combined is not None:
            sections.append(self.reporter.render_combined_rankings(combined))
        return "\n\n".join(sections)

    def _update_transfer_state(self, line_id: str, speed_bps: int, now: datetime):
        tracker = TransferStateTracker(
            self.config_manager.get_base_dir(), line_id,
            self.monitoring.get('alert_threshold_minutes', 20)
        )
        status = tracker.update(ACTIVE if speed_bps > 0 else IDLE, speed_bps, now)

        # Alert only once the new state has persisted
        if status.alert_due:
            if self.email_reporter:
                self.email_reporter.send_transfer_alert(
                    line_id, status.current_state, speed_bps, status.minutes_in_state
                )
            else:
                self.logger.warning(f"Line {line_id} transfer is {status.current_state}; "
                                    f"email not configured, alert not sent")
        return status

    def _get_free_bytes(self, path: str) -> int:
        # Line folder may not exist yet
        target = path if os.path.exists(path) else self.config_manager.get_base_dir()
        try:
            return shutil.disk_usage(target).free
        except OSError as e:
            self.logger.warning(f"Could not read free space of {target}: {e}")
            return 0
