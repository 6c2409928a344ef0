from datetime import datetime, timedelta

from archive_audit.core.transfer_state import ACTIVE, IDLE, TransferStateTracker

T0 = datetime(2024, 8, 1, 12, 0)


def test_first_idle_run_is_not_a_change(tmp_path):
    tracker = TransferStateTracker(str(tmp_path), "A")
    status = tracker.update(IDLE, now=T0)

    assert not status.changed
    assert not status.alert_due
    assert status.since == "2024-08-01 12:00"
    assert (tmp_path / ".transfer_state_A").read_text() == IDLE
    assert not (tmp_path / ".transfer_state_changed_A").exists()


def test_state_change_alerts_after_threshold(tmp_path):
    tracker = TransferStateTracker(str(tmp_path), "A", alert_threshold_minutes=20)
    tracker.update(IDLE, now=T0)

    started = tracker.update(ACTIVE, speed_bps=5 * 1024 * 1024, now=T0 + timedelta(minutes=1))
    assert started.changed
    assert started.previous_state == IDLE
    assert not started.alert_due
    assert (tmp_path / ".transfer_state_changed_A").exists()

    waiting = tracker.update(ACTIVE, now=T0 + timedelta(minutes=10))
    assert not waiting.alert_due

    due = tracker.update(ACTIVE, now=T0 + timedelta(minutes=21))
    assert due.alert_due
    assert due.minutes_in_state == 20
    assert not (tmp_path / ".transfer_state_changed_A").exists()

    assert not tracker.update(ACTIVE, now=T0 + timedelta(minutes=40)).alert_due


def test_flip_back_cancels_pending_alert(tmp_path):
    tracker = TransferStateTracker(str(tmp_path), "B", alert_threshold_minutes=20)
    tracker.update(ACTIVE, now=T0)
    tracker.update(ACTIVE, now=T0 + timedelta(minutes=30))

    tracker.update(IDLE, now=T0 + timedelta(minutes=31))
    assert (tmp_path / ".transfer_state_changed_B").exists()

    resumed = tracker.update(ACTIVE, now=T0 + timedelta(minutes=33))
    assert resumed.changed
    assert not (tmp_path / ".transfer_state_changed_B").exists()

    assert not tracker.update(ACTIVE, now=T0 + timedelta(minutes=60)).alert_due


def test_interruptions_are_logged(tmp_path):
    tracker = TransferStateTracker(str(tmp_path), "A")
    tracker.update(ACTIVE, speed_bps=2 * 1024 * 1024, now=T0)
    tracker.update(IDLE, now=T0 + timedelta(minutes=5))

    lines = (tmp_path / ".transfer_interruptions_A").read_text().splitlines()
    assert lines == [
        "2024-08-01 12:00:00,IDLE,ACTIVE,2.0",
        "2024-08-01 12:05:00,ACTIVE,IDLE,0.0",
    ]


def test_malformed_pending_file_is_ignored(tmp_path):
    (tmp_path / ".transfer_state_A").write_text(ACTIVE)
    (tmp_path / ".transfer_state_changed_A").write_text("garbage")

    status = TransferStateTracker(str(tmp_path), "A").update(ACTIVE, now=T0)
    assert not status.alert_due
