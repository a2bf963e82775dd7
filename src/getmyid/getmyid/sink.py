"""Date-partitioned log destinations and the swappable sink that writes to them.

The LogSink is registered as a loguru sink. Every record resolves the current
destination at write time, so a rotation performed by the scheduler is picked
up by the very next log call without anyone holding a stale file handle.
"""

import os
import sys
import threading
from datetime import date, datetime
from pathlib import Path
from typing import TextIO

LOG_PREFIX = "bot-"
LOG_SUFFIX = ".log"
DATE_FORMAT = "%Y-%m-%d"


class LogSetupError(RuntimeError):
    """The log directory or the initial log file could not be set up."""


def filename_for(day: date) -> str:
    """Return the log file name for a calendar day, e.g. ``bot-2024-05-01.log``."""
    return f"{LOG_PREFIX}{day.strftime(DATE_FORMAT)}{LOG_SUFFIX}"


# ---------------------------------------------------------------------------
# Destination
# ---------------------------------------------------------------------------


class LogDestination:
    """An append-mode log file opened for one calendar day."""

    def __init__(self, path: Path, day: date, stream: TextIO):
        self.path = path
        self.day = day
        self._stream = stream

    @classmethod
    def open(cls, log_dir: str | Path, day: date) -> "LogDestination":
        """Open (or create) the log file for ``day`` inside ``log_dir``.

        Raises OSError if the file cannot be opened.
        """
        path = Path(log_dir) / filename_for(day)
        stream = open(path, "a", encoding="utf-8")
        return cls(path, day, stream)

    @property
    def closed(self) -> bool:
        return self._stream.closed

    def write(self, message: str) -> None:
        self._stream.write(message)
        self._stream.flush()

    def modified_date(self) -> date:
        """Local calendar date of the open file's last modification.

        Raises OSError (or ValueError once closed) if the file cannot be stat'ed.
        """
        st = os.fstat(self._stream.fileno())
        return datetime.fromtimestamp(st.st_mtime).date()

    def close(self) -> None:
        if not self._stream.closed:
            self._stream.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"LogDestination({str(self.path)!r}, {state})"


# ---------------------------------------------------------------------------
# Sink
# ---------------------------------------------------------------------------


class LogSink:
    """Single write target for all log output: current file plus console mirror.

    ``install`` and ``write`` share one lock, so once ``install`` returns every
    later write lands in the new destination and the previous destination can
    be closed without racing an in-flight write.
    """

    def __init__(self, destination: LogDestination, console: TextIO | None = None):
        self._lock = threading.Lock()
        self._current = destination
        self._console = console if console is not None else sys.stderr

    def current(self) -> LogDestination:
        with self._lock:
            return self._current

    def install(self, destination: LogDestination) -> LogDestination:
        """Make ``destination`` current and return the one it replaced.

        The caller owns the returned destination and is responsible for
        closing it.
        """
        with self._lock:
            previous, self._current = self._current, destination
        return previous

    def write(self, message: str) -> None:
        with self._lock:
            self._current.write(message)
            self._console.write(message)

    def flush(self) -> None:
        self._console.flush()

    def close(self) -> None:
        """Close the active destination. Used once, at shutdown."""
        with self._lock:
            self._current.close()
