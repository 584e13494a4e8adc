"""Error types shared by the core and its adapters."""

from __future__ import annotations


class NudgeError(Exception):
    """Base class for operational failures raised through the ports."""


class StoreError(NudgeError):
    """A storage adapter failed to read or persist data."""


class SendError(NudgeError):
    """A sender adapter failed to deliver a message."""
