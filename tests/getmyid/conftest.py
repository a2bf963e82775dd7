"""Shared pytest fixtures for getmyid tests."""

import os
from datetime import date, datetime
from pathlib import Path

import pytest
from loguru import logger

from getmyid.sink import filename_for


@pytest.fixture
def now() -> datetime:
    """A fixed midday timestamp, well outside the post-midnight sweep window."""
    return datetime(2024, 5, 10, 12, 0, 0)


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    """An empty, existing log directory."""
    path = tmp_path / "logs"
    path.mkdir()
    return path


@pytest.fixture
def make_log(log_dir: Path):
    """Factory creating a dated log file in log_dir."""

    def _make(day: date, content: str = "old line\n") -> Path:
        path = log_dir / filename_for(day)
        path.write_text(content, encoding="utf-8")
        return path

    return _make


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda m: messages.append(m.record["message"]), level="DEBUG"
    )
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def set_mtime():
    """Set a file's access and modification time to a local datetime."""

    def _set(path: Path, when: datetime) -> None:
        ts = when.timestamp()
        os.utime(path, (ts, ts))

    return _set
