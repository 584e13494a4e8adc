"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.recurrence import Recurrence

PRIVATE = "private"
GROUP = "group"
SUPERGROUP = "supergroup"
CHANNEL = "channel"


@dataclass(frozen=True)
class Reminder:
    """Persisted reminder row."""

    id: int
    due: datetime
    recurrence: Optional[Recurrence]
    chat_id: int
    message: str

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None


@dataclass(frozen=True)
class NewReminder:
    """Reminder waiting to be inserted; the store assigns its id."""

    due: datetime
    recurrence: Optional[Recurrence]
    chat_id: int
    message: str


@dataclass(frozen=True)
class TrustedChat:
    """Conversation that passed the password challenge."""

    chat_id: int
    username: Optional[str]
    title: Optional[str]


@dataclass(frozen=True)
class ChatInfo:
    """Minimal description of the conversation an update came from."""

    chat_id: int
    kind: str
    username: Optional[str] = None
    title: Optional[str] = None

    def to_trusted(self) -> TrustedChat:
        return TrustedChat(chat_id=self.chat_id, username=self.username, title=self.title)


@dataclass(frozen=True)
class InboundEvent:
    """Transport-neutral view of one inbound update.

    ``text`` is the raw message text (None for service messages and media),
    and ``bot_added`` is set when the update announces that the bot joined
    or created the conversation.
    """

    chat: ChatInfo
    text: Optional[str]
    sender_name: Optional[str] = None
    sender_username: Optional[str] = None
    bot_added: bool = False
