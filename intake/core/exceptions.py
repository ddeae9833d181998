"""Custom exception classes for the appointment intake package."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class IntakeError(Exception):
    """Base exception for the intake package."""

    def __init__(
        self, message: str, recoverable: bool = True, details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize intake error.

        Args:
            message: Error message
            recoverable: Whether the error is recoverable with retry
            details: Additional error details
        """
        self.message = message
        self.recoverable = recoverable
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "recoverable": self.recoverable,
            "details": self.details,
            "timestamp": self.timestamp,
        }


class ConfigurationError(IntakeError):
    """Configuration error occurred."""

    def __init__(
        self,
        message: str = "Configuration error",
        recoverable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)


class NetworkError(IntakeError):
    """Network connection error occurred."""

    def __init__(self, message: str = "Network error occurred", recoverable: bool = True):
        super().__init__(message, recoverable)


class ApiError(IntakeError):
    """Portal API returned a non-success response."""

    def __init__(
        self,
        message: str = "Portal API error occurred",
        status: Optional[int] = None,
        endpoint: Optional[str] = None,
        server_message: Optional[str] = None,
    ):
        """
        Initialize API error.

        Args:
            message: Error message (the server's message when it sent one)
            status: HTTP status code
            endpoint: Endpoint path that failed
            server_message: The ``message`` field of the error body, if any
        """
        self.status = status
        self.endpoint = endpoint
        self.server_message = server_message
        recoverable = status is None or status >= 500 or status == 429
        super().__init__(
            message, recoverable=recoverable, details={"status": status, "endpoint": endpoint}
        )


class SubmissionError(IntakeError):
    """Appointment request submission failed."""

    DEFAULT_MESSAGE = "Failed to submit form. Please try again."

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None):
        super().__init__(
            message or self.DEFAULT_MESSAGE, recoverable=True, details={"status": status}
        )
