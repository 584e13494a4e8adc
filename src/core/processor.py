"""Core inbound message pipeline.

This module is integration-agnostic. It only relies on ports for storage and
delivery, enabling other transports or adapters without changes here.

Each event goes through, in order:
1) the trust gate (challenge, grant or eject)
2) command text extraction (mention prefix in groups)
3) the command parser
4) the action executor
"""

from __future__ import annotations

import logging
from typing import Optional

from core.config import CommandsConfig, MessagesConfig
from core.errors import SendError, StoreError
from core.executor import ActionExecutor
from core.models import CHANNEL, GROUP, PRIVATE, SUPERGROUP, InboundEvent
from core.parser import ParseError, parse
from core.ports import SenderPort, StoragePort
from core.trust import TrustGate

LOGGER = logging.getLogger(__name__)


def command_text(event: InboundEvent, bot_username: str) -> Optional[str]:
    """Return the command part of a message, or None if it isn't addressed to the bot.

    Private chats use the whole text. In groups the text has to start with
    ``@<bot_username> ``; everything else there is chatter between members.
    """

    if event.text is None:
        return None
    text = event.text.strip()

    kind = event.chat.kind
    if kind == PRIVATE:
        return text
    if kind in (GROUP, SUPERGROUP):
        prefix = f"@{bot_username} "
        if not text.startswith(prefix):
            LOGGER.debug("Unrelated message in %s: %s", event.chat.chat_id, text)
            return None
        return text[len(prefix) :].lstrip()
    if kind == CHANNEL:
        LOGGER.warning("Unsupported chat for commands: %s", event.chat)
        return None
    LOGGER.warning("Unknown chat kind %r for %s", kind, event.chat)
    return None


class MessageProcessor:
    """Orchestrates the trust gate, parsing, execution and replies."""

    def __init__(
        self,
        gate: TrustGate,
        storage: StoragePort,
        sender: SenderPort,
        commands: CommandsConfig,
        messages: MessagesConfig,
        bot_username: str,
    ) -> None:
        self._gate = gate
        self._sender = sender
        self._commands = commands
        self._messages = messages
        self._bot_username = bot_username
        self._executor = ActionExecutor(storage, sender, messages)

    async def handle(self, event: InboundEvent) -> None:
        """Process one inbound event through the pipeline."""

        if not await self._gate.admit(event):
            return

        text = command_text(event, self._bot_username)
        if text is None:
            return

        LOGGER.info(
            "Message from %s (%s) in %s: %s",
            event.sender_name or "?",
            event.sender_username or "?",
            event.chat.chat_id,
            text,
        )

        chat_id = event.chat.chat_id
        try:
            action = parse(self._commands, chat_id, text)
        except ParseError as exc:
            LOGGER.debug("Misunderstood %r: %s", text, exc.reason)
            try:
                await self._sender.send(chat_id, self._messages.misunderstood_message())
            except SendError as send_exc:
                LOGGER.warning("Error when sending message: %s", send_exc)
            return

        try:
            await self._executor.execute(action)
        except (StoreError, SendError) as exc:
            LOGGER.warning("Error when executing action: %s", exc)
