"""Persistent transfer state tracking with alert debouncing."""

import logging
import os
from datetime import datetime
from typing import Optional, Tuple

from .models import TransferStatus
from ..utils.formatters import format_date

ACTIVE = "ACTIVE"
IDLE = "IDLE"


class TransferStateTracker:
    """Tracks ACTIVE/IDLE transitions of one line across runs.

    A state change only becomes an alert once the new state has lasted for
    ``alert_threshold_minutes``. Flipping back to the previous state before
    then cancels the pending alert.
    """

    def __init__(self, state_dir: str, line_id: str, alert_threshold_minutes: int = 20):
        """Initialize state tracker.

        Args:
            state_dir: Directory holding the state files.
            line_id: Line identifier used in state file names.
            alert_threshold_minutes: Minutes a new state must persist before alerting.
        """
        self.state_dir = state_dir
        self.line_id = line_id
        self.alert_threshold_minutes = alert_threshold_minutes
        self.logger = logging.getLogger(__name__)

        self.state_file = self._path('transfer_state')
        self.since_file = self._path('transfer_since')
        self.change_file = self._path('transfer_state_changed')
        self.interruptions_file = self._path('transfer_interruptions')

    def _path(self, kind: str) -> str:
        return os.path.join(self.state_dir, f".{kind}_{self.line_id}")

    def update(self, current_state: str, speed_bps: int = 0,
               now: Optional[datetime] = None) -> TransferStatus:
        """Record the current state and decide whether an alert is due.

        Args:
            current_state: ``ACTIVE`` or ``IDLE``.
            speed_bps: Measured speed, written to the interruption log.
            now: Reference time, defaults to the current time.

        Returns:
            TransferStatus for this run.
        """
        now = now or datetime.now()
        previous_state = self._read(self.state_file) or IDLE
        changed = current_state != previous_state

        if changed or not os.path.exists(self.since_file):
            self._write(self.since_file, format_date(now, short=True))
        since = self._read(self.since_file) or format_date(now, short=True)

        if changed:
            self.logger.info(f"Line {self.line_id} transfer state changed: "
                             f"{previous_state} -> {current_state}")
            self._log_interruption(previous_state, current_state, speed_bps, now)

            pending = self._read_pending()
            if pending is not None and pending[1] == current_state:
                self.logger.info(f"Line {self.line_id} returned to {current_state}, "
                                 f"pending alert cancelled")
                self._remove(self.change_file)
            elif pending is None:
                self._write(self.change_file, f"{int(now.timestamp())},{previous_state}")

        self._write(self.state_file, current_state)

        alert_due = False
        pending = self._read_pending()
        if pending is not None:
            elapsed = int((now.timestamp() - pending[0]) // 60)
            if elapsed >= self.alert_threshold_minutes:
                alert_due = True
                self._remove(self.change_file)

        return TransferStatus(
            current_state=current_state,
            previous_state=previous_state,
            since=since,
            changed=changed,
            alert_due=alert_due,
            minutes_in_state=self._minutes_since(since, now)
        )

    def _read_pending(self) -> Optional[Tuple[int, str]]:
        """Read ``(change_timestamp, state_before_change)`` if an alert is pending."""
        content = self._read(self.change_file)
        if not content:
            return None
        try:
            timestamp, state_before = content.split(',', 1)
            return int(timestamp), state_before
        except ValueError:
            self.logger.warning(f"Ignoring malformed state change file {self.change_file}")
            return None

    def _minutes_since(self, since: str, now: datetime) -> int:
        try:
            since_dt = datetime.strptime(since, '%Y-%m-%d %H:%M')
        except ValueError:
            return 0
        return max(0, int((now - since_dt).total_seconds() // 60))

    def _log_interruption(self, old_state: str, new_state: str, speed_bps: int, now: datetime):
        speed_mib = speed_bps / 1024 / 1024
        entry = f"{format_date(now)},{old_state},{new_state},{speed_mib:.1f}\n"
        try:
            with open(self.interruptions_file, 'a', encoding='utf-8') as f:
                f.write(entry)
        except OSError as e:
            self.logger.warning(f"Could not append to {self.interruptions_file}: {e}")

    def _read(self, path: str) -> Optional[str]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read().strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            self.logger.warning(f"Could not read {path}: {e}")
            return None

    def _write(self, path: str, content: str):
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            self.logger.warning(f"Could not write {path}: {e}")

    def _remove(self, path: str):
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not remove {path}: {e}")
