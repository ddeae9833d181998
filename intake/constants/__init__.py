"""Constants for the appointment intake package.

All classes and constants can be imported directly from this package:
    from intake.constants import Scheduling, Timeouts, SERVICE_AREAS, etc.
"""

from .intake import (
    AFTERCARE_OPTIONS,
    DEFAULT_PRACTICE_ID,
    DOCTOR_PREFIX,
    MAILING_DIFFERENT,
    MAILING_SAME,
    NO,
    NO_DOCTOR_PREFERENCE,
    SERVICE_AREA_HIGH_PEAKS,
    SERVICE_AREA_PORTLAND,
    SERVICE_AREAS,
    YES,
    Scheduling,
)
from .logging import LogEmoji
from .timing import Timeouts

__all__ = [
    "AFTERCARE_OPTIONS",
    "DEFAULT_PRACTICE_ID",
    "DOCTOR_PREFIX",
    "MAILING_DIFFERENT",
    "MAILING_SAME",
    "NO",
    "NO_DOCTOR_PREFERENCE",
    "SERVICE_AREA_HIGH_PEAKS",
    "SERVICE_AREA_PORTLAND",
    "SERVICE_AREAS",
    "YES",
    "Scheduling",
    "LogEmoji",
    "Timeouts",
]
