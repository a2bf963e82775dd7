"""Telegram bot that replies with the sender's user ID and the chat ID.

Long-polls the Bot API with httpx. Every message registers its sender in the
user registry and gets an HTML reply; forwarded messages also report where
they were forwarded from.
"""

import html
import threading
from pathlib import Path
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from .models import Message, Update, UserRecord
from .storage import register_user, save_users

RETRY_DELAY = 5.0  # seconds to wait after a failed poll


class TelegramAPIError(RuntimeError):
    """The Bot API rejected a request."""

    def __init__(self, method: str, error_code: int | None, description: str):
        super().__init__(f"{method} failed: code={error_code}, description={description}")
        self.method = method
        self.error_code = error_code
        self.description = description


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


class TelegramClient:
    """Minimal synchronous Bot API client."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = "https://api.telegram.org",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._timeout = timeout
        self._http = httpx.Client(
            base_url=f"{base_url.rstrip('/')}/bot{token}/",
            timeout=timeout,
            transport=transport,
        )

    def _call(self, method: str, payload: dict[str, Any] | None = None, **kwargs) -> Any:
        response = self._http.post(method, json=payload or {}, **kwargs)
        try:
            body = response.json()
        except ValueError:
            raise TelegramAPIError(
                method, response.status_code, response.text[:200]
            ) from None
        if not response.is_success or not body.get("ok"):
            raise TelegramAPIError(
                method,
                body.get("error_code", response.status_code),
                body.get("description", "Unknown error"),
            )
        return body["result"]

    def get_me(self) -> dict:
        return self._call("getMe")

    def get_updates(self, offset: int = 0, timeout: int = 60) -> list[dict]:
        """Return the raw update objects; callers validate them one at a time."""
        result = self._call(
            "getUpdates",
            {"offset": offset, "timeout": timeout, "allowed_updates": ["message"]},
            # Long poll: the HTTP timeout must outlast the server-side one
            timeout=timeout + self._timeout,
        )
        return list(result)

    def send_message(self, chat_id: int, text: str, parse_mode: str = "HTML") -> dict:
        return self._call(
            "sendMessage",
            {"chat_id": chat_id, "text": text, "parse_mode": parse_mode},
        )

    def close(self) -> None:
        self._http.close()


# ---------------------------------------------------------------------------
# Bot
# ---------------------------------------------------------------------------


def build_reply(message: Message) -> str:
    """Format the HTML reply for ``message``."""
    user_id = message.from_user.id if message.from_user else message.chat.id
    reply = (
        f"<b>Your user ID:</b> <code>{user_id}</code>\n"
        f"<b>Current chat ID:</b> <code>{message.chat.id}</code>"
    )

    if message.forward_sender_name:
        name = html.escape(message.forward_sender_name)
        reply += f"\n<b>Forwarded from:</b> [hidden name] {name}"
    elif message.forward_from is not None:
        reply += f"\n<b>Forwarded from:</b> <code>{message.forward_from.id}</code>"
    elif message.forward_from_chat is not None:
        reply += f"\n<b>Forwarded from chat:</b> <code>{message.forward_from_chat.id}</code>"
    return reply


class IDBot:
    """Polling loop plus per-update handling."""

    def __init__(
        self,
        client: TelegramClient,
        users: dict[int, UserRecord],
        users_file: str | Path,
        *,
        poll_timeout: int = 60,
    ):
        self.client = client
        self.users = users
        self.users_file = Path(users_file)
        self.poll_timeout = poll_timeout
        self.offset = 0

    def handle_update(self, update: Update) -> None:
        message = update.message
        if message is None:
            return

        if message.from_user is not None:
            if register_user(self.users, message.from_user):
                save_users(self.users, self.users_file)

        try:
            self.client.send_message(message.chat.id, build_reply(message))
        except (httpx.HTTPError, TelegramAPIError) as exc:
            logger.error("Failed to send message to {}: {}", message.chat.id, exc)

    def poll_once(self) -> int:
        """Fetch one batch of updates and handle them.

        Malformed updates are logged and skipped, but still advance the
        offset so they are not fetched again. Returns the number handled.
        """
        items = self.client.get_updates(offset=self.offset, timeout=self.poll_timeout)
        handled = 0
        for item in items:
            update_id = item.get("update_id") if isinstance(item, dict) else None
            if isinstance(update_id, int):
                self.offset = max(self.offset, update_id + 1)
            try:
                update = Update.model_validate(item)
            except ValidationError as exc:
                logger.warning("Skipping malformed update {}: {}", update_id, exc)
                continue
            self.handle_update(update)
            handled += 1
        return handled

    def run(self, stop_event: threading.Event | None = None) -> None:
        """Poll until ``stop_event`` is set (or forever)."""
        stop_event = stop_event or threading.Event()

        me = self.client.get_me()
        logger.info("Bot is running as @{}", me.get("username"))
        logger.info("Bot is listening for messages...")

        while not stop_event.is_set():
            try:
                self.poll_once()
            except (httpx.HTTPError, TelegramAPIError) as exc:
                logger.warning("Polling failed: {}; retrying in {}s", exc, RETRY_DELAY)
                stop_event.wait(RETRY_DELAY)
