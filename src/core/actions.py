"""Actions produced by the command parser."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from core.recurrence import Recurrence


@dataclass(frozen=True)
class AddReminder:
    due: datetime
    recurrence: Optional[Recurrence]
    message: str
    chat_id: int


@dataclass(frozen=True)
class RemoveReminder:
    reminder_id: int
    chat_id: int


@dataclass(frozen=True)
class ListReminders:
    chat_id: int


Action = Union[AddReminder, RemoveReminder, ListReminders]
