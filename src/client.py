"""Telegram client factory for nudge.

The bot logs in with a bot token, so there is no interactive login flow:
credentials come from the environment (python-dotenv) and the caller starts
the client explicitly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv
from telethon import TelegramClient

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    api_id: int
    api_hash: str
    bot_token: str
    session_name: str = "nudge"


def load_credentials() -> Credentials:
    """Read API_ID, API_HASH, BOT_TOKEN and SESSION_NAME from the environment."""

    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")
    token = os.getenv("BOT_TOKEN")
    missing = [
        name
        for name, value in (("API_ID", api_id), ("API_HASH", api_hash), ("BOT_TOKEN", token))
        if not value
    ]
    if missing:
        raise RuntimeError(f"Missing {', '.join(missing)} in environment")

    try:
        numeric_id = int(api_id)
    except ValueError as exc:
        raise RuntimeError("API_ID must be an integer") from exc

    return Credentials(
        api_id=numeric_id,
        api_hash=api_hash,
        bot_token=token,
        session_name=os.getenv("SESSION_NAME") or "nudge",
    )


def build_client(credentials: Credentials) -> TelegramClient:
    """Create the Telethon client; updates are dispatched one at a time, in arrival order."""

    LOGGER.info("Initializing Telegram client (session %s)", credentials.session_name)
    return TelegramClient(
        credentials.session_name,
        credentials.api_id,
        credentials.api_hash,
        sequential_updates=True,
    )
