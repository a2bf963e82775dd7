"""JSON persistence for the registry of users the bot has seen.

The file is a JSON object keyed by user ID:

    {"42": {"user_id": 42, "first_name": "Ada", "first_seen": 1700000000}}
"""

import json
import time
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from .models import TelegramUser, UserRecord


def load_users(path: str | Path) -> dict[int, UserRecord]:
    """Load the user registry. Returns an empty registry if it can't be read."""
    path = Path(path)
    if not path.exists():
        logger.info("{} not found, will be created.", path)
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return {int(key): UserRecord(**value) for key, value in data.items()}
    except (OSError, ValueError, AttributeError, TypeError, ValidationError) as exc:
        logger.error("Error loading {}: {}", path, exc)
        return {}


def save_users(users: dict[int, UserRecord], path: str | Path) -> bool:
    """Write the user registry as indented JSON.

    Returns False (after logging) if the file couldn't be written.
    """
    path = Path(path)
    data = {
        str(user_id): record.model_dump(exclude_none=True)
        for user_id, record in users.items()
    }
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
    except OSError as exc:
        logger.error("Failed to save {}: {}", path, exc)
        return False

    logger.debug("Saved {} users to {}", len(users), path)
    return True


def register_user(
    users: dict[int, UserRecord],
    user: TelegramUser,
    now: float | None = None,
) -> bool:
    """Record ``user`` the first time it is seen.

    Returns True if a new record was added.
    """
    if user.id in users:
        return False

    users[user.id] = UserRecord(
        user_id=user.id,
        username=user.username or None,
        first_name=user.first_name,
        last_name=user.last_name or None,
        first_seen=int(now if now is not None else time.time()),
    )
    logger.info(
        "New user registered: ID={}, Name={} {}, Username=@{}",
        user.id,
        user.first_name,
        user.last_name or "",
        user.username or "",
    )
    return True
