"""Application entry point for the nudge reminder bot."""

from __future__ import annotations

import argparse
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv
from telethon import events

import settings
from adapters.sqlite_storage import SQLiteStorage
from adapters.telegram_mapper import build_action_event, build_message_event
from adapters.telegram_sender import TelegramSender
from client import build_client, load_credentials
from core.processor import MessageProcessor
from core.scheduler import ReminderScheduler
from core.trust import TrustGate

NAME = "NUDGE"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    """Mask secrets (password, tokens) in every formatted record."""

    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        # Longest first so a secret containing another is masked whole.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact") or {}
    if not redact_cfg.get("enabled", False):
        return []
    values = [os.getenv(name) or "" for name in redact_cfg.get("patterns", [])]
    values.append(settings.AUTHENTICATION.password)
    return values


def _log_file_path(file_cfg: dict) -> str:
    path = file_cfg.get("path") or "logs/nudge.log"
    if not os.path.isabs(path):
        path = os.path.join(settings.PROJECT_ROOT, path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    return path


def _build_handlers(config: dict) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())

    file_cfg = config.get("file") or {}
    if file_cfg.get("enabled", False):
        handlers.append(
            RotatingFileHandler(
                _log_file_path(file_cfg),
                maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
                backupCount=int(file_cfg.get("backup_count", 5)),
                encoding="utf-8",
            )
        )
    return handlers


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    # Redaction reads secrets from the environment, so load .env first.
    load_dotenv()
    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    formatter = _RedactingFormatter(
        _collect_redaction_values(config),
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers = _build_handlers(config)
    if not handlers:
        return
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=handlers)

    # Telethon is chatty at INFO about connections and reconnects.
    telethon_level = str(config.get("telethon_level", "WARNING")).upper()
    logging.getLogger("telethon").setLevel(getattr(logging, telethon_level, logging.WARNING))


def _open_storage() -> SQLiteStorage:
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    return storage


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting nudge")

    storage = _open_storage()

    credentials = load_credentials()
    client = build_client(credentials)
    client.start(bot_token=credentials.bot_token)
    me = client.loop.run_until_complete(client.get_me())
    bot_username = settings.BOT_USERNAME or me.username
    if not bot_username:
        raise RuntimeError("bot.username is required when the bot has no Telegram username")

    sender = TelegramSender(client)
    gate = TrustGate(storage, sender, settings.AUTHENTICATION)
    logger.info("%s trusted chats are loaded", gate.load())

    processor = MessageProcessor(
        gate=gate,
        storage=storage,
        sender=sender,
        commands=settings.COMMANDS,
        messages=settings.MESSAGES,
        bot_username=bot_username,
    )
    scheduler = ReminderScheduler(
        storage=storage,
        sender=sender,
        interval_seconds=settings.SCHEDULER.interval_seconds,
    )

    # Both handlers funnel into the same processor; the client delivers
    # updates sequentially so one event is fully handled before the next.
    @client.on(events.NewMessage(incoming=True))
    async def on_message(event) -> None:
        try:
            inbound = await build_message_event(event)
            await processor.handle(inbound)
        except Exception:
            logger.exception("Error while processing message")

    @client.on(events.ChatAction())
    async def on_chat_action(event) -> None:
        try:
            inbound = await build_action_event(event, me.id)
            await processor.handle(inbound)
        except Exception:
            logger.exception("Error while processing chat action")

    client.loop.create_task(scheduler.run_forever())
    logger.info("Bot online as @%s. Listening for incoming messages...", bot_username)
    client.run_until_disconnected()


def _list_trusted() -> None:
    storage = _open_storage()
    chats = storage.list_trusted()
    if not chats:
        print("No trusted chats yet.")
        return

    for index, chat in enumerate(chats, start=1):
        print(f"{index}. {chat.chat_id} | {chat.username or '-'} | {chat.title or '-'}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="nudge")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot and the reminder scheduler")
    subparsers.add_parser("trusted", help="List chats that passed the password challenge")

    args = parser.parse_args(argv)
    if args.command == "trusted":
        _list_trusted()
        return
    _run()


if __name__ == "__main__":
    main()
