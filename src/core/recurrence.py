"""Repeat intervals for recurring reminders (core domain)."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import IntEnum


class RecurrenceUnit(IntEnum):
    """Recurrence units, ordered by granularity."""

    MINUTES = 1
    HOURS = 2
    DAYS = 3
    WEEKS = 4
    MONTHS = 5
    YEARS = 6

    @property
    def letter(self) -> str:
        return UNIT_LETTERS[self]

    @classmethod
    def from_letter(cls, letter: str) -> "RecurrenceUnit":
        """Return the unit for a command letter. Case matters: m is minutes, M is months."""

        for unit, unit_letter in UNIT_LETTERS.items():
            if unit_letter == letter:
                return unit
        raise ValueError(f"Unknown recurrence unit: {letter!r}")


UNIT_LETTERS = {
    RecurrenceUnit.MINUTES: "m",
    RecurrenceUnit.HOURS: "h",
    RecurrenceUnit.DAYS: "d",
    RecurrenceUnit.WEEKS: "w",
    RecurrenceUnit.MONTHS: "M",
    RecurrenceUnit.YEARS: "y",
}

# Amounts must be strictly below these ceilings.
AMOUNT_CEILINGS = {
    RecurrenceUnit.MINUTES: 90,
    RecurrenceUnit.HOURS: 24,
    RecurrenceUnit.DAYS: 99,
    RecurrenceUnit.WEEKS: 10,
    RecurrenceUnit.MONTHS: 64,
    RecurrenceUnit.YEARS: 10,
}

_LINEAR_STEPS = {
    RecurrenceUnit.MINUTES: timedelta(minutes=1),
    RecurrenceUnit.HOURS: timedelta(hours=1),
    RecurrenceUnit.DAYS: timedelta(days=1),
    RecurrenceUnit.WEEKS: timedelta(weeks=1),
}

# Last minute a due timestamp can take.
LATEST_DUE = datetime.max.replace(second=0, microsecond=0)


class InvalidPeriodError(ValueError):
    """Raised when a recurrence amount is outside the allowed range."""


@dataclass(frozen=True)
class Recurrence:
    """A repeat interval reapplied to a reminder's due time after it fires."""

    amount: int
    unit: RecurrenceUnit

    def __post_init__(self) -> None:
        object.__setattr__(self, "unit", RecurrenceUnit(self.unit))
        ceiling = AMOUNT_CEILINGS[self.unit]
        if not 0 < self.amount < ceiling:
            raise InvalidPeriodError(
                f"invalid period: {self.amount} {self.unit.name.lower()} (must be 1 to {ceiling - 1})"
            )

    def __str__(self) -> str:
        return f"+{self.amount}{self.unit.letter}"

    def advance(self, due: datetime) -> datetime:
        """Return the next due time after ``due``.

        Month and year steps keep the day of month and the time of day. When
        the target month is shorter than the source day (Jan 31 + 1 month,
        Feb 29 + 1 year) the day is clamped to the last day of that month.
        Results past the end of the calendar saturate at ``LATEST_DUE``.
        """

        try:
            if self.unit in _LINEAR_STEPS:
                return due + _LINEAR_STEPS[self.unit] * self.amount
            if self.unit is RecurrenceUnit.MONTHS:
                months = due.month - 1 + self.amount
                return _with_year_month(due, due.year + months // 12, months % 12 + 1)
            return _with_year_month(due, due.year + self.amount, due.month)
        except OverflowError:
            return LATEST_DUE


def _with_year_month(due: datetime, year: int, month: int) -> datetime:
    if year > datetime.max.year:
        raise OverflowError("date value out of range")
    last_day = calendar.monthrange(year, month)[1]
    return due.replace(year=year, month=month, day=min(due.day, last_day))
