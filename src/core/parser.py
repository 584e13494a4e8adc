"""Command grammar (core domain).

Three productions are tried in order, each one through the end of the input,
and the first full match wins:

- list:   ``<list keyword>``
- remove: ``<remove keyword> <id>``
- add:    ``YYYY-MM-DD [HH:MM] [+N<unit>] <message>``

Keywords are matched ASCII case-insensitively. Recurrence units are case
sensitive: ``m`` is minutes and ``M`` is months.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Callable, List, Optional

from core.actions import Action, AddReminder, ListReminders, RemoveReminder
from core.config import CommandsConfig
from core.recurrence import UNIT_LETTERS, InvalidPeriodError, Recurrence, RecurrenceUnit

# Reminder ids are SQLite integers.
MAX_REMINDER_ID = 2**63 - 1

_UNIT_CHARS = frozenset(UNIT_LETTERS.values())


class ParseError(ValueError):
    """Raised when text does not match any command production."""

    def __init__(self, text: str, position: int, reason: str, reached: Optional[int] = None) -> None:
        super().__init__(f"{reason} at position {position}: {text!r}")
        self.text = text
        self.position = position
        self.reason = reason
        # How far the failing production read, used to pick among alternatives.
        self.reached = position if reached is None else reached


def _ascii_lower(text: str) -> str:
    return "".join(ch.lower() if ch.isascii() else ch for ch in text)


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


class _Cursor:
    """Position over the input with the small set of moves the grammar needs."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def error(self, reason: str, position: Optional[int] = None) -> ParseError:
        return ParseError(self.text, self.pos if position is None else position, reason, reached=self.pos)

    def peek(self) -> Optional[str]:
        if self.pos < len(self.text):
            return self.text[self.pos]
        return None

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def rest(self) -> str:
        remaining = self.text[self.pos :]
        self.pos = len(self.text)
        return remaining

    def skip_spaces(self) -> int:
        start = self.pos
        while not self.at_end() and self.text[self.pos].isspace():
            self.pos += 1
        return self.pos - start

    def take_space(self) -> bool:
        ch = self.peek()
        if ch is None or not ch.isspace():
            return False
        self.pos += 1
        return True

    def take_char(self, expected: str) -> bool:
        if self.peek() != expected:
            return False
        self.pos += 1
        return True

    def take_digits(self, minimum: int, maximum: Optional[int]) -> Optional[str]:
        """Consume up to ``maximum`` ASCII digits; None (and no move) if fewer than ``minimum``."""

        start = self.pos
        while not self.at_end() and _is_digit(self.text[self.pos]):
            if maximum is not None and self.pos - start >= maximum:
                break
            self.pos += 1
        if self.pos - start < minimum:
            self.pos = start
            return None
        return self.text[start : self.pos]

    def expect_digits(self, width: int, what: str) -> int:
        digits = self.take_digits(width, width)
        if digits is None:
            raise self.error(f"expected {width} digit {what}")
        return int(digits)

    def expect_char(self, expected: str) -> None:
        if not self.take_char(expected):
            raise self.error(f"expected {expected!r}")

    def expect_keyword(self, keyword: str) -> None:
        candidate = self.text[self.pos : self.pos + len(keyword)]
        if _ascii_lower(candidate) != _ascii_lower(keyword):
            raise self.error(f"expected {keyword!r}")
        self.pos += len(keyword)

    def expect_end(self) -> None:
        self.skip_spaces()
        if not self.at_end():
            raise self.error("unexpected trailing input")


def _date(cursor: _Cursor) -> date:
    start = cursor.pos
    year = cursor.expect_digits(4, "year")
    cursor.expect_char("-")
    month = cursor.expect_digits(2, "month")
    cursor.expect_char("-")
    day = cursor.expect_digits(2, "day")
    try:
        return date(year, month, day)
    except ValueError:
        raise cursor.error("invalid date", start) from None


def _optional_time(cursor: _Cursor) -> Optional[time]:
    """Parse `` HH:MM`` or return None with the cursor untouched.

    A token shaped like a time but out of range is an error, not message text.
    """

    start = cursor.pos
    if not cursor.skip_spaces():
        return None
    token_start = cursor.pos
    hours = cursor.take_digits(2, 2)
    if hours is None or not cursor.take_char(":"):
        cursor.pos = start
        return None
    minutes = cursor.take_digits(2, 2)
    if minutes is None:
        cursor.pos = start
        return None
    try:
        return time(int(hours), int(minutes))
    except ValueError:
        raise cursor.error("invalid time", token_start) from None


def _recurrence(cursor: _Cursor) -> Optional[Recurrence]:
    """Parse ``+N<unit>`` at the cursor or return None with the cursor untouched."""

    start = cursor.pos
    if not cursor.take_char("+"):
        return None
    digits = cursor.take_digits(0, 2)
    letter = cursor.peek()
    if letter is None or letter not in _UNIT_CHARS:
        cursor.pos = start
        return None
    cursor.pos += 1
    amount = int(digits) if digits else 1
    try:
        return Recurrence(amount, RecurrenceUnit.from_letter(letter))
    except InvalidPeriodError:
        raise cursor.error("invalid period", start) from None


def _optional_recurrence(cursor: _Cursor) -> Optional[Recurrence]:
    start = cursor.pos
    if not cursor.skip_spaces():
        return None
    recurrence = _recurrence(cursor)
    if recurrence is None:
        cursor.pos = start
    return recurrence


def _list_command(cursor: _Cursor, commands: CommandsConfig, chat_id: int) -> Action:
    cursor.skip_spaces()
    cursor.expect_keyword(commands.list_command)
    cursor.expect_end()
    return ListReminders(chat_id=chat_id)


def _remove_command(cursor: _Cursor, commands: CommandsConfig, chat_id: int) -> Action:
    cursor.skip_spaces()
    cursor.expect_keyword(commands.remove_command)
    if not cursor.skip_spaces():
        raise cursor.error("expected whitespace")
    start = cursor.pos
    digits = cursor.take_digits(1, None)
    if digits is None:
        raise cursor.error("expected reminder id")
    reminder_id = int(digits)
    if reminder_id > MAX_REMINDER_ID:
        raise cursor.error("reminder id out of range", start)
    cursor.expect_end()
    return RemoveReminder(reminder_id=reminder_id, chat_id=chat_id)


def _add_command(cursor: _Cursor, commands: CommandsConfig, chat_id: int) -> Action:
    cursor.skip_spaces()
    day = _date(cursor)
    at = _optional_time(cursor) or time(0, 0)
    recurrence = _optional_recurrence(cursor)
    if not cursor.take_space():
        raise cursor.error("expected whitespace before the message")
    message = cursor.rest().rstrip()
    if not message.strip():
        raise cursor.error("expected a message")
    return AddReminder(
        due=datetime.combine(day, at),
        recurrence=recurrence,
        message=message,
        chat_id=chat_id,
    )


_PRODUCTIONS: List[Callable[[_Cursor, CommandsConfig, int], Action]] = [
    _list_command,
    _remove_command,
    _add_command,
]


def parse(commands: CommandsConfig, chat_id: int, text: str) -> Action:
    """Parse command text into an action for ``chat_id``.

    Raises ParseError carrying the error of the alternative that got furthest.
    """

    errors: List[ParseError] = []
    for production in _PRODUCTIONS:
        try:
            return production(_Cursor(text), commands, chat_id)
        except ParseError as exc:
            errors.append(exc)
    raise max(errors, key=lambda error: error.reached)


def parse_recurrence(token: str) -> Recurrence:
    """Parse a standalone ``+N<unit>`` suffix, as rendered by ``str(Recurrence)``."""

    cursor = _Cursor(token)
    cursor.skip_spaces()
    recurrence = _recurrence(cursor)
    if recurrence is None:
        raise cursor.error("expected recurrence")
    cursor.expect_end()
    return recurrence
