from pydantic import BaseModel, ConfigDict, Field


class UserRecord(BaseModel):
    """A user the bot has seen at least once."""

    user_id: int
    username: str | None = None
    first_name: str = ""
    last_name: str | None = None
    first_seen: int  # Unix seconds


# ---------------------------------------------------------------------------
# Telegram Bot API objects (only the fields the bot reads)
# ---------------------------------------------------------------------------


class TelegramUser(BaseModel):
    id: int
    is_bot: bool = False
    first_name: str = ""
    last_name: str | None = None
    username: str | None = None


class Chat(BaseModel):
    id: int
    type: str = "private"
    title: str | None = None


class Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id: int
    from_user: TelegramUser | None = Field(default=None, alias="from")
    chat: Chat
    text: str | None = None
    forward_sender_name: str | None = None
    forward_from: TelegramUser | None = None
    forward_from_chat: Chat | None = None


class Update(BaseModel):
    update_id: int
    message: Message | None = None
