"""Core infrastructure: configuration, logging, errors and cancellation."""

from .cancellation import Generation, GenerationToken
from .enums import AppointmentType, ClientType, MatchLevel, NavigationOutcome, Page
from .exceptions import (
    ApiError,
    ConfigurationError,
    IntakeError,
    NetworkError,
    SubmissionError,
)

__all__ = [
    "Generation",
    "GenerationToken",
    "AppointmentType",
    "ClientType",
    "MatchLevel",
    "NavigationOutcome",
    "Page",
    "ApiError",
    "ConfigurationError",
    "IntakeError",
    "NetworkError",
    "SubmissionError",
]
