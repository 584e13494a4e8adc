"""Core domain package for nudge.

Core contains the command grammar, recurrence arithmetic, trust gate and
scheduling logic without any Telegram or storage-specific code, keeping the
business logic portable.
"""
