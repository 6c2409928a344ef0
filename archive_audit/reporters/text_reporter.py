"""Plain text rendering of audit results."""

from typing import List, Optional

from ..core.models import (BadFilesReport, CombinedRankingReport, EstimatesReport,
                           GapReport, IntegrityStats, LineAuditReport, MonthlyRankingReport,
                           AnomalyReport)
from ..utils.formatters import (format_date, format_day, format_file_size, format_month,
                                format_score, get_score_indicator, truncate_string)

RULE = "=" * 80


class TextReporter:
    """Renders audit reports as plain text."""

    def __init__(self, recent_limit: int = 3, bad_files_display_threshold: int = 0):
        """Initialize text reporter.

        Args:
            recent_limit: Number of recent file writes listed.
            bad_files_display_threshold: Only folders with more bad files than
                this are listed in detail.
        """
        self.recent_limit = recent_limit
        self.bad_files_display_threshold = bad_files_display_threshold

    def render_line_report(self, report: LineAuditReport) -> str:
        """Render the full audit report of one line."""
        lines = [
            RULE,
            f"                    AUDIT REPORT FOR LINE {report.line_id}",
            f"                    Generated: {format_date(report.generated_at, short=True)}",
            RULE,
            "",
            f"Archive Status:  {format_file_size(report.total_size)} across "
            f"{report.total_files} zip files.",
        ]

        lines.extend(self._section("Active Transfer Detection"))
        status = report.transfer_status
        since = f" (since {status.since})" if status else ""
        if report.speed_bps > 0:
            lines.append(f"Status:                 ACTIVE TRANSFER DETECTED{since}")
            lines.append(f"Current Transfer Speed: {report.speed_bps / 1024 / 1024:.1f} MiB/s")
        else:
            lines.append(f"Status:                 IDLE{since}")

        lines.append("Active/Recent File Writes:")
        for recent in report.recent_files[:self.recent_limit]:
            lines.append(recent)
        if len(report.recent_files) > self.recent_limit:
            lines.append(f"  ... and {len(report.recent_files) - self.recent_limit} more files.")

        lines.extend(self._section("Transfer Estimates"))
        lines.extend(self._render_estimates(report.estimates_report))

        lines.extend(self._section("File Integrity & Heuristics"))
        lines.extend(self._render_integrity(report.integrity_stats))

        lines.extend(self._section("Missing Daily Archives"))
        lines.extend(self._render_gaps(report.gap_report))

        lines.extend(self._section("Directory Size Anomalies"))
        lines.extend(self._render_anomalies(report.anomaly_report))

        if report.bad_files_report:
            lines.extend(self._section("Bad ZIP Files"))
            lines.extend(self._render_bad_files(report.bad_files_report))

        lines.extend(self._section("Monthly Performance Ranking"))
        lines.extend(self.render_monthly_rankings(report.rankings))

        lines.extend(["", RULE, "Audit Complete", RULE])
        return "\n".join(lines)

    def _section(self, title: str) -> List[str]:
        return ["", f"=== {title} ===", ""]

    def _render_estimates(self, estimates: Optional[EstimatesReport]) -> List[str]:
        if estimates is None:
            return ["Project date range unknown; no estimates available."]

        pct = estimates.progress_percent
        filled = pct * 20 // 100
        lines = [
            f"Transfer Progress: [{'#' * filled}{'.' * (20 - filled)}] {pct}%",
            f"Current Progress:  Copying {estimates.current_copy_date.isoformat()}",
            f"Data to Copy:      {estimates.weekdays_remaining} daily archives "
            f"({estimates.start_date.strftime('%b %Y')} - {estimates.end_date.strftime('%b %Y')})",
            f"Est. Data Left:    {format_file_size(estimates.remaining_bytes)} "
            f"(Free: {format_file_size(estimates.free_bytes)})",
            f"Disk Status:       {'OK' if estimates.disk_status_ok else 'CRITICAL - Insufficient Space!'}",
        ]
        if estimates.estimated_days_eta is not None:
            lines.append(f"Time to Complete:  ~{estimates.estimated_days_eta} days "
                         f"({estimates.estimated_hours_eta} hours) at current speed")
        return lines

    def _render_integrity(self, stats: Optional[IntegrityStats]) -> List[str]:
        if stats is None:
            return ["No zip files found."]

        header = (f"{'Filename':<30} {'Total':>6} {'Empty':>6} {'Bad':>5} "
                  f"{'Min':>10} {'Max':>10} {'Median':>10} {'StdDev':>10}")
        lines = [header, "-" * len(header)]

        for row in stats.rows:
            if row.valid_stats:
                sizes = [format_file_size(v) for v in
                         (row.min_size, row.max_size, row.median_size, row.std_dev)]
            else:
                sizes = ["-"] * 4
            lines.append(f"{truncate_string(row.name, 30):<30} {row.total:>6} {row.empty:>6} "
                         f"{row.bad:>5} {sizes[0]:>10} {sizes[1]:>10} {sizes[2]:>10} {sizes[3]:>10}")

        lines.append("-" * len(header))
        lines.append(
            f"{'TOTALS / SUMMARY':<30} {stats.grand_total:>6} {stats.grand_empty:>6} "
            f"{stats.grand_bad:>5} {format_file_size(stats.grand_min):>10} "
            f"{format_file_size(stats.grand_max):>10} {format_file_size(stats.grand_median):>10} "
            f"{format_file_size(stats.grand_std_dev):>10}"
        )
        return lines

    def _render_gaps(self, gaps: GapReport) -> List[str]:
        if gaps.is_empty:
            return ["No dated folders found for gap analysis."]

        lines = [f"! {format_day(day)} - Archive not found" for day in gaps.missing_weekdays]
        lines.append(f"Range checked: {gaps.start_date.isoformat()} to {gaps.end_date.isoformat()}")
        if gaps.missing_weekdays:
            lines.append(f"Found {len(gaps.missing_weekdays)} unexpected weekday gaps.")
        else:
            lines.append(f"No weekday gaps found. ({gaps.skipped_weekends} weekends skipped)")
        return lines

    def _render_anomalies(self, anomalies: Optional[AnomalyReport]) -> List[str]:
        if anomalies is None:
            return ["No completed directories."]

        lines = [f"Median Size: {format_file_size(anomalies.median_daily_size)}", "-" * 79]
        if not anomalies.anomalies:
            lines.append("No significant size anomalies found.")
        for anomaly in anomalies.anomalies:
            lines.append(f"! {anomaly.name:<35} | {format_file_size(anomaly.size):<10} "
                         f"| ({anomaly.category})")
        return lines

    def _render_bad_files(self, report: BadFilesReport) -> List[str]:
        lines = [
            f"Found {report.total_count} bad ZIP files across {len(report.files_by_folder)} "
            f"archives (showing archives with >{self.bad_files_display_threshold} bad files):"
        ]
        for folder, files, total_in_folder in report.files_by_folder:
            if total_in_folder <= self.bad_files_display_threshold:
                continue
            if total_in_folder > len(files):
                lines.append(f"\n{folder} ({total_in_folder} bad files, showing first {len(files)})")
            else:
                lines.append(f"\n{folder} ({total_in_folder} bad files)")
            for bad in files:
                lines.append(f"  ! {bad.relative_path}")
                lines.append(f"     Size: {format_file_size(bad.size)}")
                lines.append(f"     Reason: {bad.reason}")
            if total_in_folder > len(files):
                lines.append(f"  ... {total_in_folder - len(files)} more bad files in this archive")
        return lines

    def render_monthly_rankings(self, report: Optional[MonthlyRankingReport]) -> List[str]:
        """Render one line's monthly ranking table."""
        if report is None:
            return ["Project date range unknown; no monthly ranking available."]
        if not report.months:
            return ["No monthly data available for ranking."]

        lines = []
        if report.best_month:
            lines.append(f"Best Month:  {format_month(report.best_month.year, report.best_month.month)} "
                         f"(Score: {format_score(report.best_month.health_score)})")
        if report.worst_month:
            lines.append(f"Worst Month: {format_month(report.worst_month.year, report.worst_month.month)} "
                         f"(Score: {format_score(report.worst_month.health_score)})")
        lines.append(f"Average Score: {format_score(report.average_score)}")

        header = (f"{'Month':<8} {'Score':>7} {'Health':<7} {'Missing':>7} {'Anomalies':>9} "
                  f"{'Invalid':>7} {'Empty':>6} {'Archives':>9} {'Status':<8}")
        lines.extend(["", header, "-" * len(header)])
        for m in report.months:
            archives = f"{m.actual_archives}/{m.expected_weekdays}"
            status = "Complete" if m.is_complete else "Partial"
            lines.append(
                f"{format_month(m.year, m.month):<8} {format_score(m.health_score):>7} "
                f"{get_score_indicator(m.health_score):<7} {m.missing_days:>7} {m.anomaly_count:>9} "
                f"{m.invalid_files:>7} {m.empty_files:>6} {archives:>9} {status:<8}"
            )
        return lines

    def render_combined_rankings(self, report: CombinedRankingReport) -> str:
        """Render the cross-line monthly ranking."""
        a, b = report.line_a_id, report.line_b_id
        lines = [RULE, "                    COMBINED MONTHLY RANKING", RULE, ""]

        if not report.months:
            lines.append("No monthly data available for combined ranking.")
            return "\n".join(lines)

        lines.extend([
            f"Line {a} Average: {format_score(report.line_a_average)}",
            f"Line {b} Average: {format_score(report.line_b_average)}",
            f"Combined Average: {format_score(report.combined_average)}",
            "",
        ])
        if report.best_month:
            lines.append(f"Best Month (Combined):  "
                         f"{format_month(report.best_month.year, report.best_month.month)} "
                         f"(Score: {format_score(report.best_month.combined_score)})")
        if report.worst_month:
            lines.append(f"Worst Month (Combined): "
                         f"{format_month(report.worst_month.year, report.worst_month.month)} "
                         f"(Score: {format_score(report.worst_month.combined_score)})")

        header = (f"{'Month':<8} {'Combined':>8} {'Line ' + a:>7} {'Line ' + b:>7} "
                  f"{a + ' Invalid':>9} {b + ' Invalid':>9} {a + ' Missing':>9} {b + ' Missing':>9}")
        lines.extend(["", header, "-" * len(header)])

        for m in report.months:
            counts = []
            for metrics in (m.line_a_metrics, m.line_b_metrics):
                counts.append(str(metrics.invalid_files) if metrics else "-")
            for metrics in (m.line_a_metrics, m.line_b_metrics):
                counts.append(str(metrics.missing_days) if metrics else "-")
            lines.append(
                f"{format_month(m.year, m.month):<8} {format_score(m.combined_score):>8} "
                f"{format_score(m.line_a_score):>7} {format_score(m.line_b_score):>7} "
                f"{counts[0]:>9} {counts[1]:>9} {counts[2]:>9} {counts[3]:>9}"
            )
        return "\n".join(lines)
