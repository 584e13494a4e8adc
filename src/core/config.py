"""Validated configuration sections for the bot.

``settings`` reads config.json and hands each raw section to a ``build_*``
function here, which validates it and returns a frozen dataclass. Invalid
sections raise ValueError at startup.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

PHRASE_POOLS = ("added", "removed", "not_found", "empty", "list_header", "misunderstood")


@dataclass(frozen=True)
class CommandsConfig:
    """Keywords for the list and remove commands."""

    list_command: str
    remove_command: str


@dataclass(frozen=True)
class AuthenticationConfig:
    """Strings used by the trust gate challenge."""

    prompt: str
    password: str
    authorized: str


@dataclass(frozen=True)
class SchedulerConfig:
    interval_seconds: int


@dataclass(frozen=True)
class MessagesConfig:
    """Reply phrase pools. Every reply picks one variant at random."""

    added: Sequence[str]
    removed: Sequence[str]
    not_found: Sequence[str]
    empty: Sequence[str]
    list_header: Sequence[str]
    misunderstood: Sequence[str]

    def added_message(self) -> str:
        return random.choice(self.added)

    def removed_message(self) -> str:
        return random.choice(self.removed)

    def not_found_message(self) -> str:
        return random.choice(self.not_found)

    def empty_message(self) -> str:
        return random.choice(self.empty)

    def list_header_message(self) -> str:
        return random.choice(self.list_header)

    def misunderstood_message(self) -> str:
        return random.choice(self.misunderstood)


def _require_text(raw: Mapping[str, Any], key: str, section: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{section}.{key} must be a non-empty string")
    return value


def build_commands_config(raw: Mapping[str, Any]) -> CommandsConfig:
    """Validate the ``commands`` section.

    Keywords are stripped because the parser matches them as whole tokens.
    """

    list_command = _require_text(raw, "list_command", "commands").strip()
    remove_command = _require_text(raw, "remove_command", "commands").strip()
    if any(ch.isspace() for ch in list_command + remove_command):
        raise ValueError("command keywords must be single words")
    if list_command.lower() == remove_command.lower():
        raise ValueError("list_command and remove_command must differ")
    return CommandsConfig(list_command=list_command, remove_command=remove_command)


def build_authentication_config(raw: Mapping[str, Any]) -> AuthenticationConfig:
    return AuthenticationConfig(
        prompt=_require_text(raw, "prompt", "bot.authentication"),
        password=_require_text(raw, "password", "bot.authentication"),
        authorized=_require_text(raw, "authorized", "bot.authentication"),
    )


def build_messages_config(raw: Mapping[str, Any]) -> MessagesConfig:
    """Validate the ``messages`` section; every pool needs at least one phrase."""

    pools: dict[str, tuple[str, ...]] = {}
    for name in PHRASE_POOLS:
        values = raw.get(name)
        if isinstance(values, str):
            values = [values]
        phrases = tuple(value for value in (values or []) if isinstance(value, str) and value.strip())
        if not phrases:
            raise ValueError(f"messages.{name} needs at least one phrase")
        pools[name] = phrases
    return MessagesConfig(**pools)


def build_scheduler_config(raw: Mapping[str, Any]) -> SchedulerConfig:
    interval = int(raw.get("interval_seconds", 5 * 60))
    if interval <= 0:
        raise ValueError("scheduler.interval_seconds must be positive")
    return SchedulerConfig(interval_seconds=interval)
