"""Loguru logging configuration.

Call initialize() once at application startup, before anything else logs,
and shutdown() once at exit. All other modules simply do
`from loguru import logger` and log normally; they never see the file handle.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TextIO

from loguru import logger

from .config import Settings, get_settings
from .rotation import Clock, RotationScheduler
from .sink import LogDestination, LogSetupError, LogSink

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


@dataclass
class LoggingRuntime:
    """Handles to the live logging machinery, returned by initialize()."""

    sink: LogSink
    scheduler: RotationScheduler
    handler_id: int


_runtime: LoggingRuntime | None = None


def setup_logging(sink: LogSink, level: str = "DEBUG") -> int:
    """Route all loguru output through ``sink``.

    Args:
        sink: The file + console sink.
        level: Minimum log level (default DEBUG).

    Returns:
        The loguru handler id, for later removal.
    """
    # Remove the default stderr handler; the sink mirrors to the console itself
    logger.remove()
    return logger.add(sink, level=level, format=LOG_FORMAT, colorize=False)


def initialize(
    settings: Settings | None = None,
    *,
    console: TextIO | None = None,
    clock: Clock = datetime.now,
) -> LoggingRuntime:
    """Open today's log file, install the sink and start the rotation scheduler.

    Raises:
        LogSetupError: the log directory or today's file can't be created, or
            logging is already initialized.
    """
    global _runtime
    if _runtime is not None:
        raise LogSetupError("Logging is already initialized")

    settings = settings or get_settings()
    log_dir = Path(settings.log_dir)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise LogSetupError(f"Failed to create logs directory {log_dir}: {exc}") from exc

    try:
        destination = LogDestination.open(log_dir, clock().date())
    except OSError as exc:
        raise LogSetupError(f"Failed to open log file in {log_dir}: {exc}") from exc

    sink = LogSink(destination, console=console)
    handler_id = setup_logging(sink, level=settings.log_level)

    scheduler = RotationScheduler(
        sink,
        log_dir,
        interval=settings.log_rotation_interval,
        retention=settings.retention,
        sweep_window=settings.sweep_window,
        clock=clock,
    )
    scheduler.start()

    _runtime = LoggingRuntime(sink=sink, scheduler=scheduler, handler_id=handler_id)
    logger.info("Logging to {}", destination.path)
    return _runtime


def shutdown() -> None:
    """Stop the scheduler and close the active log file. Safe to call twice."""
    global _runtime
    if _runtime is None:
        return
    runtime, _runtime = _runtime, None

    logger.info("Shutting down logging")
    runtime.scheduler.stop()
    logger.remove(runtime.handler_id)
    runtime.sink.close()
