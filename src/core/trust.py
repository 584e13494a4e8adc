"""Per-chat trust gate.

A conversation is unknown until someone in it sends the configured password.
When the bot is added to a conversation it asks for the password; any other
message from an untrusted conversation makes the bot leave it. Trusted chat
ids are cached in memory and the cache never gets ahead of the store.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Set

from core.config import AuthenticationConfig
from core.errors import SendError, StoreError
from core.models import InboundEvent
from core.ports import SenderPort, StoragePort

LOGGER = logging.getLogger(__name__)


class TrustedChatCache:
    """Set of trusted chat ids, safe to share between threads."""

    def __init__(self, chat_ids: Iterable[int] = ()) -> None:
        self._lock = threading.Lock()
        self._chat_ids: Set[int] = set(chat_ids)

    def __contains__(self, chat_id: object) -> bool:
        with self._lock:
            return chat_id in self._chat_ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._chat_ids)

    def add(self, chat_id: int) -> None:
        with self._lock:
            self._chat_ids.add(chat_id)

    def replace(self, chat_ids: Iterable[int]) -> None:
        fresh = set(chat_ids)
        with self._lock:
            self._chat_ids = fresh

    def snapshot(self) -> Set[int]:
        with self._lock:
            return set(self._chat_ids)


class TrustGate:
    """Admission control in front of the command parser."""

    def __init__(
        self,
        storage: StoragePort,
        sender: SenderPort,
        authentication: AuthenticationConfig,
    ) -> None:
        self._storage = storage
        self._sender = sender
        self._auth = authentication
        self._cache = TrustedChatCache()

    @property
    def cache(self) -> TrustedChatCache:
        return self._cache

    def load(self) -> int:
        """Warm the cache from the store and return the number of trusted chats."""

        self._cache.replace(self._storage.list_trusted_ids())
        return len(self._cache)

    async def admit(self, event: InboundEvent) -> bool:
        """Return True when the event's chat was already trusted.

        The password message itself is consumed here: the call that grants
        trust still returns False, so only later messages reach the parser.
        """

        chat = event.chat

        if event.bot_added:
            LOGGER.warning("I've been added to a new chat: %s", chat)
            LOGGER.info("Requesting password...")
            await self._send(chat.chat_id, self._auth.prompt)
            return False

        trusted = chat.chat_id in self._cache
        if trusted:
            return True

        if event.text is not None and event.text == self._auth.password:
            try:
                self._storage.insert_trusted(chat.to_trusted())
            except StoreError as exc:
                # Leave the cache alone so it never claims more than the store.
                LOGGER.warning("Failed to add trusted chat %s: %s", chat, exc)
                return False
            self._cache.add(chat.chat_id)
            LOGGER.info("Added trusted chat: %s", chat)
            await self._send(chat.chat_id, self._auth.authorized)
        else:
            await self._sender.leave(chat.chat_id)

        return trusted

    async def _send(self, chat_id: int, text: str) -> None:
        try:
            await self._sender.send(chat_id, text)
        except SendError as exc:
            LOGGER.warning("Failed to send message to chat %s: %s", chat_id, exc)
