"""Executes parsed actions against the store and replies to the chat."""

from __future__ import annotations

import logging

from core.actions import Action, AddReminder, ListReminders, RemoveReminder
from core.config import MessagesConfig
from core.formatting import format_added_reply, format_list_reply
from core.models import NewReminder
from core.ports import SenderPort, StoragePort

LOGGER = logging.getLogger(__name__)


class ActionExecutor:
    """Runs one action end to end.

    StoreError and SendError propagate to the caller. A send failure after a
    successful write leaves the write in place.
    """

    def __init__(self, storage: StoragePort, sender: SenderPort, messages: MessagesConfig) -> None:
        self._storage = storage
        self._sender = sender
        self._messages = messages

    async def execute(self, action: Action) -> None:
        if isinstance(action, AddReminder):
            await self._add(action)
        elif isinstance(action, RemoveReminder):
            await self._remove(action)
        elif isinstance(action, ListReminders):
            await self._list(action)
        else:
            raise TypeError(f"Unsupported action: {action!r}")

    async def _add(self, action: AddReminder) -> None:
        reminder = NewReminder(
            due=action.due,
            recurrence=action.recurrence,
            chat_id=action.chat_id,
            message=action.message,
        )
        reminder_id = self._storage.insert_reminder(reminder)
        LOGGER.info("Added reminder %s for chat %s", reminder_id, action.chat_id)
        reply = format_added_reply(self._messages.added_message(), reminder)
        await self._sender.send(action.chat_id, reply)

    async def _remove(self, action: RemoveReminder) -> None:
        # Scoped to the chat so one conversation can't cancel another's reminders.
        removed = self._storage.delete_reminder_for_chat(action.reminder_id, action.chat_id)
        if removed:
            LOGGER.info("Removed reminder %s for chat %s", action.reminder_id, action.chat_id)
            reply = self._messages.removed_message()
        else:
            reply = self._messages.not_found_message()
        await self._sender.send(action.chat_id, reply)

    async def _list(self, action: ListReminders) -> None:
        reminders = self._storage.list_reminders(action.chat_id)
        if not reminders:
            reply = self._messages.empty_message()
        else:
            reply = format_list_reply(self._messages.list_header_message(), reminders)
        await self._sender.send(action.chat_id, reply)
