from __future__ import annotations

from datetime import datetime
from typing import Optional

from core.config import AuthenticationConfig, CommandsConfig, MessagesConfig
from core.errors import SendError, StoreError
from core.models import NewReminder, Reminder, TrustedChat

COMMANDS = CommandsConfig(list_command="chora", remove_command="cancela")

AUTH = AuthenticationConfig(prompt="password?", password="open sesame", authorized="welcome")

MESSAGES = MessagesConfig(
    added=("added",),
    removed=("removed",),
    not_found=("not found",),
    empty=("empty",),
    list_header=("header",),
    misunderstood=("what?", "huh?"),
)


class FakeStorage:
    """In-memory StoragePort with switches to simulate failures."""

    def __init__(self) -> None:
        self.trusted: dict[int, TrustedChat] = {}
        self.reminders: dict[int, Reminder] = {}
        self._next_id = 1
        self.fail_on: set[str] = set()

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise StoreError(f"{operation} failed")

    def list_trusted_ids(self) -> list[int]:
        self._check("list_trusted_ids")
        return list(self.trusted)

    def insert_trusted(self, chat: TrustedChat) -> None:
        self._check("insert_trusted")
        self.trusted.setdefault(chat.chat_id, chat)

    def list_reminders(self, chat_id: int) -> list[Reminder]:
        self._check("list_reminders")
        return [r for _, r in sorted(self.reminders.items()) if r.chat_id == chat_id]

    def list_due(self, now: datetime) -> list[Reminder]:
        self._check("list_due")
        return [r for _, r in sorted(self.reminders.items()) if r.due < now]

    def insert_reminder(self, reminder: NewReminder) -> int:
        self._check("insert_reminder")
        reminder_id = self._next_id
        self._next_id += 1
        self.reminders[reminder_id] = Reminder(
            id=reminder_id,
            due=reminder.due,
            recurrence=reminder.recurrence,
            chat_id=reminder.chat_id,
            message=reminder.message,
        )
        return reminder_id

    def update_due(self, reminder_id: int, due: datetime) -> bool:
        self._check("update_due")
        current = self.reminders.get(reminder_id)
        if current is None:
            return False
        self.reminders[reminder_id] = Reminder(
            id=current.id,
            due=due,
            recurrence=current.recurrence,
            chat_id=current.chat_id,
            message=current.message,
        )
        return True

    def delete_reminder(self, reminder_id: int) -> bool:
        self._check("delete_reminder")
        return self.reminders.pop(reminder_id, None) is not None

    def delete_reminder_for_chat(self, reminder_id: int, chat_id: int) -> bool:
        self._check("delete_reminder_for_chat")
        current = self.reminders.get(reminder_id)
        if current is None or current.chat_id != chat_id:
            return False
        del self.reminders[reminder_id]
        return True


class FakeSender:
    def __init__(self, failing_chats: Optional[set[int]] = None) -> None:
        self.sent: list[tuple[int, str]] = []
        self.left: list[int] = []
        self.failing_chats = failing_chats or set()

    async def send(self, chat_id: int, text: str) -> None:
        if chat_id in self.failing_chats:
            raise SendError(f"chat {chat_id} unreachable")
        self.sent.append((chat_id, text))

    async def leave(self, chat_id: int) -> None:
        self.left.append(chat_id)
