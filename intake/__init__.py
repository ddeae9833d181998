"""Appointment intake - client portal appointment-request wizard."""

__version__ = "1.0.0"
__license__ = "MIT"

__all__ = ["__version__"]
