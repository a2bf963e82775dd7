"""Telegram ID bot with daily-rotated, self-pruning log files."""

from .logging import initialize, shutdown
from .rotation import RetentionEntry, RotationScheduler, sweep_old_logs
from .sink import LogDestination, LogSetupError, LogSink, filename_for

__all__ = [
    "LogDestination",
    "LogSetupError",
    "LogSink",
    "RetentionEntry",
    "RotationScheduler",
    "filename_for",
    "initialize",
    "shutdown",
    "sweep_old_logs",
]
