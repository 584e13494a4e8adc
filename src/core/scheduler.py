"""Due-reminder delivery loop.

Every tick selects reminders whose due time is before now, sends each one,
then advances recurring reminders or deletes one-shot reminders. A reminder
whose delivery fails stays due and is picked up again on the next tick, so
delivery is at-least-once: a reminder that was sent but could not be
rescheduled will be sent again.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from core.errors import SendError, StoreError
from core.models import Reminder
from core.ports import SenderPort, StoragePort

LOGGER = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 5 * 60

STAGE_QUERY = "query"
STAGE_SEND = "send"
STAGE_RESCHEDULE = "reschedule"


@dataclass(frozen=True)
class DeliveryFailure:
    """One failure inside a tick."""

    stage: str
    error: Exception
    reminder_id: Optional[int] = None
    chat_id: Optional[int] = None

    def __str__(self) -> str:
        if self.reminder_id is None:
            return f"{self.stage} failed: {self.error}"
        return f"{self.stage} failed for reminder {self.reminder_id} (chat {self.chat_id}): {self.error}"


@dataclass
class BatchReport:
    """Outcome of one tick."""

    delivered: int = 0
    failures: List[DeliveryFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class ReminderScheduler:
    """Polls the store on a fixed interval and delivers due reminders."""

    def __init__(
        self,
        storage: StoragePort,
        sender: SenderPort,
        interval_seconds: int = DEFAULT_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._storage = storage
        self._sender = sender
        self._interval = interval_seconds
        self._clock = clock

    async def run_forever(self) -> None:
        """Tick now and then every interval. Never returns on its own."""

        LOGGER.info("Scheduler online, checking every %s seconds", self._interval)
        while True:
            try:
                report = await self.run_once()
                for failure in report.failures:
                    LOGGER.error("Failed to run reminder: %s", failure)
            except Exception:
                LOGGER.exception("Unexpected error in scheduler tick")
            await asyncio.sleep(self._interval)

    async def run_once(self, now: Optional[datetime] = None) -> BatchReport:
        """Deliver everything due before ``now`` and report what failed."""

        LOGGER.info("Running reminders...")
        report = BatchReport()
        if now is None:
            now = self._clock()

        try:
            reminders = self._storage.list_due(now)
        except StoreError as exc:
            report.failures.append(DeliveryFailure(stage=STAGE_QUERY, error=exc))
            return report

        for reminder in reminders:
            LOGGER.info("Sending reminder %s to %s: %s", reminder.id, reminder.chat_id, reminder.message)
            try:
                await self._sender.send(reminder.chat_id, reminder.message)
            except SendError as exc:
                # Leave the row untouched so the next tick retries it.
                report.failures.append(self._failure(STAGE_SEND, exc, reminder))
                continue
            report.delivered += 1

            try:
                self._reminder_done(reminder)
            except StoreError as exc:
                report.failures.append(self._failure(STAGE_RESCHEDULE, exc, reminder))

        return report

    def _reminder_done(self, reminder: Reminder) -> None:
        if reminder.recurrence is not None:
            next_due = reminder.recurrence.advance(reminder.due)
            if not self._storage.update_due(reminder.id, next_due):
                LOGGER.warning("Failed to update reminder %s: no such reminder.", reminder.id)
        elif not self._storage.delete_reminder(reminder.id):
            LOGGER.warning("Failed to delete reminder %s: no such reminder.", reminder.id)

    @staticmethod
    def _failure(stage: str, error: Exception, reminder: Reminder) -> DeliveryFailure:
        return DeliveryFailure(stage=stage, error=error, reminder_id=reminder.id, chat_id=reminder.chat_id)
