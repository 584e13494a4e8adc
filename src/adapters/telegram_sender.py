"""Telegram delivery adapter.

Sends replies and reminders through the bot's Telethon client.
"""

from __future__ import annotations

import logging

from telethon.errors import RPCError

from core.errors import SendError

LOGGER = logging.getLogger(__name__)

# Telethon raises ValueError when it cannot resolve a chat id to an entity.
_DELIVERY_ERRORS = (RPCError, ConnectionError, ValueError)


class TelegramSender:
    """SenderPort adapter backed by a connected Telethon client."""

    def __init__(self, client) -> None:
        self._client = client

    async def send(self, chat_id: int, text: str) -> None:
        """Send plain text to a chat."""

        try:
            await self._client.send_message(chat_id, text)
        except _DELIVERY_ERRORS as exc:
            raise SendError(f"Failed to send message to chat {chat_id}: {exc}") from exc

    async def leave(self, chat_id: int) -> None:
        """Leave a group or channel. Private chats can't be left; that failure is only logged."""

        try:
            await self._client.kick_participant(chat_id, "me")
        except _DELIVERY_ERRORS as exc:
            LOGGER.warning("Failed to leave chat %s: %s", chat_id, exc)
        else:
            LOGGER.info("Left chat %s", chat_id)
