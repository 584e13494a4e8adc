from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional

from core.models import CHANNEL, GROUP, PRIVATE, SUPERGROUP, ChatInfo, InboundEvent
from core.processor import MessageProcessor, command_text
from core.trust import TrustGate
from fakes import AUTH, COMMANDS, MESSAGES, FakeSender, FakeStorage

BOT = "nudge_bot"


def _event(text: Optional[str], *, chat_id: int = 5, kind: str = PRIVATE) -> InboundEvent:
    return InboundEvent(
        chat=ChatInfo(chat_id=chat_id, kind=kind),
        text=text,
        sender_name="Ana",
        sender_username="ana",
    )


def _processor(storage: FakeStorage, sender: FakeSender) -> MessageProcessor:
    gate = TrustGate(storage, sender, AUTH)
    gate.load()
    return MessageProcessor(
        gate=gate,
        storage=storage,
        sender=sender,
        commands=COMMANDS,
        messages=MESSAGES,
        bot_username=BOT,
    )


def test_command_text_in_private_chat_is_trimmed() -> None:
    assert command_text(_event("  chora  "), BOT) == "chora"


def test_command_text_in_groups_needs_mention() -> None:
    for kind in (GROUP, SUPERGROUP):
        assert command_text(_event(f"@{BOT}   chora", kind=kind), BOT) == "chora"
        assert command_text(_event("chora", kind=kind), BOT) is None
        assert command_text(_event(f"@{BOT}chora", kind=kind), BOT) is None


def test_command_text_ignores_channels_and_non_text() -> None:
    assert command_text(_event("chora", kind=CHANNEL), BOT) is None
    assert command_text(_event(None), BOT) is None


def test_full_flow_from_password_to_reminder() -> None:
    storage = FakeStorage()
    sender = FakeSender()
    processor = _processor(storage, sender)

    asyncio.run(processor.handle(_event(AUTH.password)))
    asyncio.run(processor.handle(_event("2030-02-03 23:59 +2w hey ho")))
    asyncio.run(processor.handle(_event("chora")))

    assert storage.reminders[1].message == "hey ho"
    assert storage.reminders[1].due == datetime(2030, 2, 3, 23, 59)
    assert [text for _, text in sender.sent] == [
        AUTH.authorized,
        "added\n2030-02-03 23:59 +2w: hey ho",
        "header\n(1) 2030-02-03 23:59 +2w: hey ho",
    ]


def test_password_message_never_reaches_parser() -> None:
    storage = FakeStorage()
    sender = FakeSender()
    processor = _processor(storage, sender)

    asyncio.run(processor.handle(_event(AUTH.password)))

    # No "misunderstood" reply for the password itself.
    assert sender.sent == [(5, AUTH.authorized)]


def test_untrusted_chat_is_left_without_parsing() -> None:
    storage = FakeStorage()
    sender = FakeSender()
    processor = _processor(storage, sender)

    asyncio.run(processor.handle(_event("2030-02-03 hey")))

    assert sender.left == [5]
    assert sender.sent == []
    assert storage.reminders == {}


def test_misunderstood_reply_uses_pool() -> None:
    storage = FakeStorage()
    sender = FakeSender()
    processor = _processor(storage, sender)
    asyncio.run(processor.handle(_event(AUTH.password)))

    asyncio.run(processor.handle(_event("what is this")))

    assert sender.sent[-1][1] in MESSAGES.misunderstood


def test_store_error_is_contained_to_one_update() -> None:
    storage = FakeStorage()
    sender = FakeSender()
    processor = _processor(storage, sender)
    asyncio.run(processor.handle(_event(AUTH.password)))
    storage.fail_on.add("list_reminders")

    asyncio.run(processor.handle(_event("chora")))
    storage.fail_on.clear()
    asyncio.run(processor.handle(_event("chora")))

    assert sender.sent[-1] == (5, "empty")


def test_group_chatter_is_ignored_once_trusted() -> None:
    storage = FakeStorage()
    sender = FakeSender()
    processor = _processor(storage, sender)
    asyncio.run(processor.handle(_event(AUTH.password, kind=GROUP)))

    asyncio.run(processor.handle(_event("lunch anyone?", kind=GROUP)))
    asyncio.run(processor.handle(_event(f"@{BOT} chora", kind=GROUP)))

    assert [text for _, text in sender.sent] == [AUTH.authorized, "empty"]
