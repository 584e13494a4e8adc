"""Reply formatting helpers.

Keeping formatting here prevents drift between the executor and the scheduler
and keeps replies consistent regardless of delivery channel.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Union

from core.models import NewReminder, Reminder
from core.recurrence import Recurrence

DUE_FORMAT = "%Y-%m-%d %H:%M"


def format_due(due: datetime) -> str:
    return due.strftime(DUE_FORMAT)


def _summary(due: datetime, recurrence: Optional[Recurrence], message: str) -> str:
    if recurrence is None:
        return f"{format_due(due)}: {message}"
    return f"{format_due(due)} {recurrence}: {message}"


def format_reminder(reminder: Union[Reminder, NewReminder]) -> str:
    """Render one reminder line; persisted reminders are prefixed with their id."""

    line = _summary(reminder.due, reminder.recurrence, reminder.message)
    if isinstance(reminder, Reminder):
        return f"({reminder.id}) {line}"
    return line


def format_added_reply(phrase: str, reminder: NewReminder) -> str:
    return f"{phrase}\n{format_reminder(reminder)}"


def format_list_reply(header: str, reminders: Iterable[Reminder]) -> str:
    lines = [header]
    lines.extend(format_reminder(reminder) for reminder in reminders)
    return "\n".join(lines)
