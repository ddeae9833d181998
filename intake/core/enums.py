"""Centralized enum definitions for the intake wizard."""

from enum import Enum


class Page(str, Enum):
    """Wizard screens."""

    INTRO = "intro"
    NEW_CLIENT = "new-client"
    EXISTING_CLIENT = "existing-client"
    EUTHANASIA_INTRO = "euthanasia-intro"
    EUTHANASIA_SERVICE_AREA = "euthanasia-service-area"
    EUTHANASIA_PORTLAND = "euthanasia-portland"
    EUTHANASIA_HIGH_PEAKS = "euthanasia-high-peaks"
    EUTHANASIA_CONTINUED = "euthanasia-continued"
    REQUEST_VISIT_CONTINUED = "request-visit-continued"
    SUCCESS = "success"

    @classmethod
    def values(cls) -> list:
        """Return list of all enum values."""
        return [e.value for e in cls]

    @property
    def is_slot_page(self) -> bool:
        """Whether the page offers recommended date/time slots."""
        return self in (Page.EUTHANASIA_CONTINUED, Page.REQUEST_VISIT_CONTINUED)


class AppointmentType(str, Enum):
    """Submitted appointment request types."""

    EUTHANASIA = "euthanasia"
    REGULAR_VISIT = "regular_visit"


class ClientType(str, Enum):
    """Whether the requester is already a client of the practice."""

    NEW = "new"
    EXISTING = "existing"


class MatchLevel(str, Enum):
    """Geocoder match precision, ordered by rank."""

    STREET = "street"
    PARTIAL = "partial"
    CITY = "city"

    @property
    def rank(self) -> int:
        """Numeric precision rank (higher is more precise)."""
        return {MatchLevel.STREET: 3, MatchLevel.PARTIAL: 2, MatchLevel.CITY: 1}[self]


class NavigationOutcome(str, Enum):
    """Result of a wizard navigation request."""

    MOVED = "moved"
    BLOCKED = "blocked"
    INVALID = "invalid"
    SUBMITTED = "submitted"
    SUBMIT_FAILED = "submit_failed"
