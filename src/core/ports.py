"""Ports (interfaces) used by the core.

Ports define the minimal contracts for storage and delivery adapters so
that the core can be reused with different backends.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Protocol

from core.models import NewReminder, Reminder, TrustedChat


class StoragePort(Protocol):
    """Storage operations required by the core.

    Every call is atomic and raises StoreError on failure. The boolean
    results report whether a matching row existed.
    """

    def list_trusted_ids(self) -> List[int]:
        ...

    def insert_trusted(self, chat: TrustedChat) -> None:
        ...

    def list_reminders(self, chat_id: int) -> List[Reminder]:
        ...

    def list_due(self, now: datetime) -> List[Reminder]:
        ...

    def insert_reminder(self, reminder: NewReminder) -> int:
        ...

    def update_due(self, reminder_id: int, due: datetime) -> bool:
        ...

    def delete_reminder(self, reminder_id: int) -> bool:
        ...

    def delete_reminder_for_chat(self, reminder_id: int, chat_id: int) -> bool:
        ...


class SenderPort(Protocol):
    """Outbound operations on conversations."""

    async def send(self, chat_id: int, text: str) -> None:
        """Deliver text to a conversation; raises SendError on failure."""
        ...

    async def leave(self, chat_id: int) -> None:
        """Leave a conversation. Best effort: failures are logged, not raised."""
        ...
