"""SQLite storage adapter.

Implements the core StoragePort using a simple SQLite database.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Iterator, List, Optional

from core.errors import StoreError
from core.models import NewReminder, Reminder, TrustedChat
from core.recurrence import Recurrence

# Due times are naive local wall-clock values. They are stored as seconds since
# this epoch without any timezone conversion, so loading gives back the same
# wall-clock value.
_EPOCH = datetime(1970, 1, 1)


def _to_epoch(value: datetime) -> int:
    return int((value.replace(microsecond=0) - _EPOCH).total_seconds())


def _from_epoch(seconds: int) -> datetime:
    return _EPOCH + timedelta(seconds=seconds)


def _row_to_reminder(row: sqlite3.Row) -> Reminder:
    recurrence: Optional[Recurrence] = None
    if row["recurrence_amount"] is not None:
        try:
            recurrence = Recurrence(int(row["recurrence_amount"]), int(row["recurrence_unit"]))
        except (TypeError, ValueError) as exc:
            raise StoreError(f"Invalid recurrence for reminder {row['id']}: {exc}") from exc
    return Reminder(
        id=int(row["id"]),
        due=_from_epoch(int(row["due"])),
        recurrence=recurrence,
        chat_id=int(row["chat"]),
        message=row["message"],
    )


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the StoragePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection for one call; commit on success, raise StoreError on failure."""

        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to open database {self._db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - reminders: scheduled messages, one row per pending reminder
        - trusted_chats: conversations that passed the password challenge
        """

        with self._connect() as conn:
            # reminders holds everything the scheduler needs to deliver and
            # reschedule a reminder.
            # Fields:
            # - id: auto-increment primary key, shown to users for removal
            # - due: wall-clock due time as epoch seconds
            # - recurrence_amount / recurrence_unit: NULL for one-shot reminders,
            #   unit is the RecurrenceUnit integer value
            # - chat: conversation the reminder belongs to
            # - message: text delivered when due
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS reminders (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    due INTEGER NOT NULL,
                    recurrence_amount INTEGER,
                    recurrence_unit INTEGER,
                    chat INTEGER NOT NULL,
                    message TEXT NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS reminders_due ON reminders (due)")
            conn.execute("CREATE INDEX IF NOT EXISTS reminders_chat ON reminders (chat)")
            # trusted_chats is written once per chat and only ever read back
            # at startup. Removing a row is an operator task.
            # Fields:
            # - id: chat id (PRIMARY KEY)
            # - username / title: best-effort labels for the operator
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS trusted_chats (
                    id INTEGER PRIMARY KEY,
                    username TEXT,
                    title TEXT
                )
                """
            )

    def list_trusted_ids(self) -> List[int]:
        """Return the ids of all trusted chats."""

        with self._connect() as conn:
            rows = conn.execute("SELECT id FROM trusted_chats").fetchall()
        return [int(row["id"]) for row in rows]

    def list_trusted(self) -> List[TrustedChat]:
        """Return all trusted chats ordered by id."""

        with self._connect() as conn:
            rows = conn.execute("SELECT id, username, title FROM trusted_chats ORDER BY id").fetchall()
        return [TrustedChat(chat_id=int(row["id"]), username=row["username"], title=row["title"]) for row in rows]

    def insert_trusted(self, chat: TrustedChat) -> None:
        """Record a trusted chat; a chat that is already trusted is left as is."""

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO trusted_chats (id, username, title)
                VALUES (?, ?, ?)
                ON CONFLICT(id) DO NOTHING
                """,
                (chat.chat_id, chat.username, chat.title),
            )

    def list_reminders(self, chat_id: int) -> List[Reminder]:
        """Return the reminders of one chat in id order."""

        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM reminders WHERE chat = ? ORDER BY id",
                (chat_id,),
            ).fetchall()
        return [_row_to_reminder(row) for row in rows]

    def list_due(self, now: datetime) -> List[Reminder]:
        """Return reminders due strictly before ``now``."""

        # Stored dues are whole seconds, so a fractional now rounds up.
        threshold = _to_epoch(now) + (1 if now.microsecond else 0)
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM reminders WHERE due < ? ORDER BY due, id",
                (threshold,),
            ).fetchall()
        return [_row_to_reminder(row) for row in rows]

    def insert_reminder(self, reminder: NewReminder) -> int:
        """Insert a reminder and return its id."""

        recurrence = reminder.recurrence
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO reminders (due, recurrence_amount, recurrence_unit, chat, message)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    _to_epoch(reminder.due),
                    recurrence.amount if recurrence else None,
                    int(recurrence.unit) if recurrence else None,
                    reminder.chat_id,
                    reminder.message,
                ),
            )
            return int(cur.lastrowid)

    def update_due(self, reminder_id: int, due: datetime) -> bool:
        """Move a reminder to a new due time; False if it no longer exists."""

        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE reminders SET due = ? WHERE id = ?",
                (_to_epoch(due), reminder_id),
            )
            return cur.rowcount == 1

    def delete_reminder(self, reminder_id: int) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM reminders WHERE id = ?", (reminder_id,))
            return cur.rowcount == 1

    def delete_reminder_for_chat(self, reminder_id: int, chat_id: int) -> bool:
        """Delete a reminder only if it belongs to ``chat_id``."""

        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM reminders WHERE id = ? AND chat = ?",
                (reminder_id, chat_id),
            )
            return cur.rowcount == 1
