"""Logging-related constants."""

from typing import Final


class LogEmoji:
    """Emoji constants for consistent logging."""

    SUCCESS: Final[str] = "✅"
    START: Final[str] = "🚀"
    FOUND: Final[str] = "🎯"
    CALENDAR: Final[str] = "📅"
