from datetime import date, datetime, timedelta

from archive_audit.core.estimates import calculate_estimates, count_weekdays, get_current_copy_date
from archive_audit.core.models import EstimatesReport

NOW = datetime(2024, 8, 1, 12, 0)


def dated_records(make_record, size=360000):
    return [make_record("data.zip", size, folder=f"Archive_Beam_A_{day}")
            for day in ("2024-07-29", "2024-07-30", "2024-07-31", "2024-08-01")]


def test_count_weekdays():
    assert count_weekdays(date(2024, 7, 29), date(2024, 8, 4)) == 5
    assert count_weekdays(date(2024, 8, 3), date(2024, 8, 4)) == 0
    assert count_weekdays(date(2024, 8, 2), date(2024, 8, 1)) == 0


def test_current_copy_date_prefers_recent_writes(make_record):
    files = dated_records(make_record)
    files.append(make_record("late.zip", folder="Archive_Beam_A_2024-07-30",
                             modified=NOW - timedelta(minutes=2)))
    assert get_current_copy_date(files, "A", NOW) == date(2024, 7, 30)


def test_current_copy_date_falls_back_to_latest_folder(make_record):
    assert get_current_copy_date(dated_records(make_record), "A", NOW) == date(2024, 8, 1)
    assert get_current_copy_date([make_record(folder="misc")], "A", NOW) is None


def test_estimates_progress_and_disk(make_record):
    report = calculate_estimates(dated_records(make_record), "A", date(2024, 7, 29),
                                 date(2024, 8, 9), speed_bps=0, free_bytes=10_000_000, now=NOW)

    assert report.current_copy_date == date(2024, 8, 1)
    assert report.total_weekdays == 10
    assert report.weekdays_completed == 3
    assert report.weekdays_remaining == 6
    assert report.median_daily_bytes == 360000
    assert report.remaining_bytes == 6 * 360000
    assert report.disk_status_ok
    assert report.progress_percent == 30
    assert report.estimated_hours_eta is None


def test_estimates_eta_and_low_disk(make_record):
    report = calculate_estimates(dated_records(make_record), "A", date(2024, 7, 29),
                                 date(2024, 8, 9), speed_bps=10, free_bytes=1000, now=NOW)

    # 2,160,000 bytes at 10 B/s is 60 hours
    assert report.estimated_hours_eta == 60
    assert report.estimated_days_eta == 2
    assert not report.disk_status_ok


def test_estimates_without_folders_start_at_project_start():
    report = calculate_estimates([], "A", date(2024, 7, 29), date(2024, 8, 9),
                                 speed_bps=0, free_bytes=0, now=NOW)

    assert report.current_copy_date == date(2024, 7, 29)
    assert report.median_daily_bytes == 0
    assert report.weekdays_completed == 0
    assert report.weekdays_remaining == 9


def test_progress_percent_is_capped():
    report = EstimatesReport(
        current_copy_date=date(2024, 8, 1), median_daily_bytes=0, weekdays_remaining=0,
        weekdays_completed=12, total_weekdays=10, remaining_bytes=0, free_bytes=0,
        disk_status_ok=False, start_date=date(2024, 7, 29), end_date=date(2024, 8, 9)
    )
    assert report.progress_percent == 100
    report.total_weekdays = 0
    assert report.progress_percent == 0
