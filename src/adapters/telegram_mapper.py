"""Telegram-to-core event mapping adapter.

This keeps Telethon-specific details out of the core pipeline.
"""

from __future__ import annotations

from typing import Any, Optional

from telethon.tl.types import Channel, User

from core.models import CHANNEL, GROUP, PRIVATE, SUPERGROUP, ChatInfo, InboundEvent


def chat_info_from_entity(chat_id: int, entity: Any) -> ChatInfo:
    """Describe a chat from its Telethon entity.

    Private chats are labelled with the user's username and first name,
    basic groups with their title, supergroups and channels with both.
    """

    if isinstance(entity, User):
        return ChatInfo(chat_id=chat_id, kind=PRIVATE, username=entity.username, title=entity.first_name)
    if isinstance(entity, Channel):
        kind = SUPERGROUP if entity.megagroup else CHANNEL
        return ChatInfo(chat_id=chat_id, kind=kind, username=entity.username, title=entity.title)
    if entity is None:
        # Entity not cached: positive ids are users, negative ones groups.
        return ChatInfo(chat_id=chat_id, kind=PRIVATE if chat_id > 0 else GROUP)
    return ChatInfo(chat_id=chat_id, kind=GROUP, title=getattr(entity, "title", None))


def _sender_labels(sender: Any) -> tuple[Optional[str], Optional[str]]:
    if sender is None:
        return None, None
    name = getattr(sender, "first_name", None) or getattr(sender, "title", None)
    return name, getattr(sender, "username", None)


def is_bot_added(event: Any, bot_id: int) -> bool:
    """True for chat creation, or members added/joined when the bot is among them."""

    if getattr(event, "created", False):
        return True
    if getattr(event, "user_added", False) or getattr(event, "user_joined", False):
        return bot_id in (getattr(event, "user_ids", None) or [])
    return False


async def build_message_event(event: Any) -> InboundEvent:
    """Build an InboundEvent from a Telethon NewMessage event."""

    chat = await event.get_chat()
    sender = await event.get_sender()
    sender_name, sender_username = _sender_labels(sender)
    # Media without a caption has empty raw text; only real text counts.
    text = event.raw_text or None
    return InboundEvent(
        chat=chat_info_from_entity(event.chat_id, chat),
        text=text,
        sender_name=sender_name,
        sender_username=sender_username,
    )


async def build_action_event(event: Any, bot_id: int) -> InboundEvent:
    """Build an InboundEvent from a Telethon ChatAction event."""

    chat = await event.get_chat()
    return InboundEvent(
        chat=chat_info_from_entity(event.chat_id, chat),
        text=None,
        bot_added=is_bot_added(event, bot_id),
    )
