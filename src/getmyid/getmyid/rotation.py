"""Background log rotation and retention.

RotationScheduler wakes up every ``interval`` seconds and:

1. Rotates the sink to a fresh ``bot-YYYY-MM-DD.log`` when the active file no
   longer belongs to today.
2. During the first minutes after local midnight, deletes dated log files
   older than the retention threshold.

Deletion is idempotent, so the sweep window may fire more than once per night.
"""

import re
import threading
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Callable

from loguru import logger

from .sink import DATE_FORMAT, LogDestination, LogSink, filename_for

DEFAULT_INTERVAL = 600.0
DEFAULT_RETENTION = timedelta(days=7)
DEFAULT_SWEEP_WINDOW = timedelta(minutes=15)

_LOG_NAME_PATTERN = re.compile(r"^bot-(.+)\.log$")

Clock = Callable[[], datetime]


# ---------------------------------------------------------------------------
# Retention sweep
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RetentionEntry:
    """A dated log file found during a sweep."""

    path: Path
    day: date
    age: timedelta


def parse_log_date(name: str) -> date | None:
    """Extract the date from a ``bot-YYYY-MM-DD.log`` file name.

    Returns None for names that don't follow the pattern or carry an
    unparsable date.
    """
    match = _LOG_NAME_PATTERN.match(name)
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), DATE_FORMAT).date()
    except ValueError:
        return None


def scan_log_dir(log_dir: str | Path, now: datetime) -> list[RetentionEntry]:
    """List the dated log files in ``log_dir`` with their age at ``now``.

    Raises OSError if the directory cannot be listed.
    """
    entries = []
    for path in sorted(Path(log_dir).iterdir()):
        if not path.is_file():
            continue
        day = parse_log_date(path.name)
        if day is None:
            continue
        age = now - datetime.combine(day, time.min, tzinfo=now.tzinfo)
        entries.append(RetentionEntry(path=path, day=day, age=age))
    return entries


def sweep_old_logs(
    log_dir: str | Path,
    now: datetime,
    max_age: timedelta = DEFAULT_RETENTION,
) -> list[Path]:
    """Delete dated log files older than ``max_age``.

    Files whose names can't be classified are left alone. A failed delete is
    logged and the sweep moves on to the next file.

    Returns:
        Paths that were deleted by this call.
    """
    try:
        entries = scan_log_dir(log_dir, now)
    except OSError as exc:
        logger.warning("Error during log cleanup of {}: {}", log_dir, exc)
        return []

    deleted = []
    for entry in entries:
        if entry.age <= max_age:
            continue
        try:
            entry.path.unlink()
        except FileNotFoundError:
            continue
        except OSError as exc:
            logger.warning("Failed to delete old log {}: {}", entry.path, exc)
            continue
        logger.info("Deleted old log: {}", entry.path)
        deleted.append(entry.path)
    return deleted


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


class RotationScheduler:
    """Periodic task that keeps the sink on today's file and prunes old logs.

    The scheduler is the only component that calls ``LogSink.install``.
    """

    def __init__(
        self,
        sink: LogSink,
        log_dir: str | Path,
        *,
        interval: float = DEFAULT_INTERVAL,
        retention: timedelta = DEFAULT_RETENTION,
        sweep_window: timedelta = DEFAULT_SWEEP_WINDOW,
        clock: Clock = datetime.now,
    ):
        self.sink = sink
        self.log_dir = Path(log_dir)
        self.interval = interval
        self.retention = retention
        self.sweep_window = sweep_window
        self._clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def rotate_if_new_day(self) -> bool:
        """Switch the sink to today's file if the active one is from another day.

        Returns True if a rotation happened.
        """
        current = self.sink.current()
        try:
            modified = current.modified_date()
        except (OSError, ValueError) as exc:
            logger.warning("Cannot stat current log file {}: {}", current.path, exc)
            return False

        today = self._clock().date()
        if modified == today and current.day == today:
            return False
        if self.log_dir / filename_for(today) == current.path:
            # Already on today's file; reopening it would change nothing
            logger.debug("Log file {} is current despite mtime {}", current.path.name, modified)
            return False

        logger.info("Date changed, rotating log file...")
        try:
            fresh = LogDestination.open(self.log_dir, today)
        except OSError as exc:
            logger.warning("Failed to open new log file for {}: {}", today, exc)
            return False

        # New file must be visible to writers before the old one goes away.
        previous = self.sink.install(fresh)
        previous.close()
        logger.info("Rotated log file: {} -> {}", previous.path.name, fresh.path.name)
        return True

    def in_sweep_window(self, now: datetime) -> bool:
        midnight = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
        return now - midnight < self.sweep_window

    def tick(self) -> None:
        """Run one rotation check and, inside the sweep window, one sweep."""
        self.rotate_if_new_day()
        now = self._clock()
        if self.in_sweep_window(now):
            logger.debug("Inside retention window, sweeping {}", self.log_dir)
            sweep_old_logs(self.log_dir, now, self.retention)

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Log maintenance tick failed")

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="log-rotation", daemon=True
        )
        self._thread.start()
        logger.debug(
            "Log rotation scheduler started (interval={}s, retention={})",
            self.interval,
            self.retention,
        )

    def stop(self, timeout: float | None = 5.0) -> None:
        """Signal the loop to exit and wait for the thread to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
