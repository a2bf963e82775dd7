"""CLI entry point for the Telegram ID bot.

Usage:
    python -m getmyid.main
"""

import sys

from loguru import logger

from .bot import IDBot, TelegramClient
from .config import get_settings
from .logging import initialize, shutdown
from .sink import LogSetupError
from .storage import load_users


def main() -> int:
    """Run the bot until interrupted. Returns the process exit status."""
    settings = get_settings()

    # Logging first: nothing else may log before the file sink is in place
    try:
        initialize(settings)
    except LogSetupError as exc:
        print(f"Failed to set up logging: {exc}", file=sys.stderr)
        return 1

    try:
        if not settings.bot_token:
            logger.error("BOT_TOKEN is not set in environment")
            return 1

        users = load_users(settings.users_file)
        logger.info("Loaded {} users from storage", len(users))

        client = TelegramClient(settings.bot_token, base_url=settings.telegram_api_url)
        try:
            IDBot(
                client,
                users,
                settings.users_file,
                poll_timeout=settings.poll_timeout,
            ).run()
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping bot")
        except Exception:
            # Must reach the log file before shutdown removes the sink
            logger.exception("Bot stopped with an error")
            return 1
        finally:
            client.close()
        return 0
    finally:
        shutdown()


if __name__ == "__main__":
    sys.exit(main())
