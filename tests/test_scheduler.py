from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from core.models import NewReminder
from core.recurrence import Recurrence, RecurrenceUnit
from core.scheduler import STAGE_QUERY, STAGE_RESCHEDULE, STAGE_SEND, ReminderScheduler
from fakes import FakeSender, FakeStorage

NOW = datetime(2024, 5, 10, 12, 0)


class StopLoop(Exception):
    pass


def _insert(storage: FakeStorage, due: datetime, chat_id: int = 1, recurrence=None, message: str = "ping") -> int:
    return storage.insert_reminder(NewReminder(due=due, recurrence=recurrence, chat_id=chat_id, message=message))


def _scheduler(storage: FakeStorage, sender: FakeSender) -> ReminderScheduler:
    return ReminderScheduler(storage, sender, interval_seconds=300, clock=lambda: NOW)


def test_recurring_reminder_is_delivered_and_advanced() -> None:
    storage = FakeStorage()
    sender = FakeSender()
    reminder_id = _insert(storage, datetime(2024, 5, 10, 9, 0), recurrence=Recurrence(1, RecurrenceUnit.DAYS))

    report = asyncio.run(_scheduler(storage, sender).run_once())

    assert report.ok
    assert report.delivered == 1
    assert sender.sent == [(1, "ping")]
    assert storage.reminders[reminder_id].due == datetime(2024, 5, 11, 9, 0)
    assert storage.list_due(NOW) == []


def test_one_shot_reminder_is_delivered_and_deleted() -> None:
    storage = FakeStorage()
    sender = FakeSender()
    _insert(storage, datetime(2024, 5, 1))

    asyncio.run(_scheduler(storage, sender).run_once())

    assert sender.sent == [(1, "ping")]
    assert storage.list_due(NOW) == []
    assert storage.reminders == {}


def test_future_and_exactly_due_reminders_wait() -> None:
    storage = FakeStorage()
    sender = FakeSender()
    _insert(storage, NOW)
    _insert(storage, datetime(2024, 5, 10, 12, 1))

    report = asyncio.run(_scheduler(storage, sender).run_once())

    assert report.delivered == 0
    assert sender.sent == []
    assert len(storage.reminders) == 2


def test_send_failure_is_isolated_and_retried_next_tick() -> None:
    storage = FakeStorage()
    sender = FakeSender(failing_chats={2})
    failing_id = _insert(storage, datetime(2024, 5, 1), chat_id=2, message="blocked")
    _insert(storage, datetime(2024, 5, 2), chat_id=3, message="fine")
    scheduler = _scheduler(storage, sender)

    report = asyncio.run(scheduler.run_once())

    assert report.delivered == 1
    assert [(f.stage, f.reminder_id, f.chat_id) for f in report.failures] == [(STAGE_SEND, failing_id, 2)]
    assert sender.sent == [(3, "fine")]
    assert [r.id for r in storage.list_due(NOW)] == [failing_id]

    sender.failing_chats.clear()
    report = asyncio.run(scheduler.run_once())

    assert report.ok
    assert sender.sent[-1] == (2, "blocked")
    assert storage.reminders == {}


def test_reschedule_failure_is_reported_after_delivery() -> None:
    storage = FakeStorage()
    storage.fail_on.add("delete_reminder")
    sender = FakeSender()
    reminder_id = _insert(storage, datetime(2024, 5, 1))

    report = asyncio.run(_scheduler(storage, sender).run_once())

    assert sender.sent == [(1, "ping")]
    assert [(f.stage, f.reminder_id) for f in report.failures] == [(STAGE_RESCHEDULE, reminder_id)]
    assert reminder_id in storage.reminders


def test_query_failure_is_a_single_batch_failure() -> None:
    storage = FakeStorage()
    storage.fail_on.add("list_due")

    report = asyncio.run(_scheduler(storage, FakeSender()).run_once())

    assert [f.stage for f in report.failures] == [STAGE_QUERY]
    assert "list_due failed" in str(report.failures[0])


def test_vanished_row_is_not_a_failure() -> None:
    storage = FakeStorage()
    sender = FakeSender()
    reminder_id = _insert(storage, datetime(2024, 5, 1), recurrence=Recurrence(1, RecurrenceUnit.HOURS))
    scheduler = _scheduler(storage, sender)

    async def send_and_remove(chat_id: int, text: str) -> None:
        storage.reminders.pop(reminder_id)

    sender.send = send_and_remove
    report = asyncio.run(scheduler.run_once())

    assert report.ok
    assert report.delivered == 1


def test_explicit_now_overrides_clock() -> None:
    storage = FakeStorage()
    sender = FakeSender()
    _insert(storage, datetime(2024, 6, 1))

    asyncio.run(_scheduler(storage, sender).run_once(now=datetime(2024, 6, 2)))

    assert sender.sent == [(1, "ping")]


def test_run_forever_survives_failures(monkeypatch: pytest.MonkeyPatch) -> None:
    storage = FakeStorage()
    storage.fail_on.add("list_due")
    scheduler = _scheduler(storage, FakeSender())
    ticks = []

    async def fake_sleep(seconds: float) -> None:
        ticks.append(seconds)
        if len(ticks) == 3:
            raise StopLoop

    monkeypatch.setattr("core.scheduler.asyncio.sleep", fake_sleep)

    with pytest.raises(StopLoop):
        asyncio.run(scheduler.run_forever())
    assert ticks == [300, 300, 300]
