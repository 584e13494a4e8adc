"""Static configuration for nudge.

All user-editable settings (bot, commands, reply phrases, scheduler, logging)
live in a single JSON file for quick edits without touching Python.
"""

import json
import os

from core.config import (
    build_authentication_config,
    build_commands_config,
    build_messages_config,
    build_scheduler_config,
)

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# config.json sits at the project root unless NUDGE_CONFIG points elsewhere.
CONFIG_PATH = os.getenv("NUDGE_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

_bot = _CONFIG.get("bot", {})

# Where to store the SQLite database, relative paths are under the project root.
DB_PATH = _resolve_path(_bot.get("db_path", "nudge.db"))

# Username used for @mentions in groups. Empty means "ask Telegram at startup".
BOT_USERNAME = str(_bot.get("username", "")).lstrip("@")

# Challenge strings for the trust gate.
AUTHENTICATION = build_authentication_config(_bot.get("authentication", {}))

# Command keywords and reply phrase pools.
COMMANDS = build_commands_config(_CONFIG.get("commands", {}))
MESSAGES = build_messages_config(_CONFIG.get("messages", {}))

# How often the scheduler looks for due reminders.
SCHEDULER = build_scheduler_config(_CONFIG.get("scheduler", {}))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
