"""Timing-related constants (timeouts, debounce delays)."""

from typing import Final


class Timeouts:
    """Timeout and delay values in SECONDS."""

    HTTP_REQUEST_SECONDS: Final[int] = 30
    HTTP_CONNECT_SECONDS: Final[int] = 10
    EMAIL_CHECK_DEBOUNCE_SECONDS: Final[float] = 0.5
