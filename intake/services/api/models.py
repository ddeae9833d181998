"""Portal API models - TypedDict and dataclass definitions."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TypedDict

from ...core.enums import MatchLevel


class NewAppointmentInput(TypedDict, total=False):
    """The ``newAppt`` block of a routing request."""

    serviceMinutes: int
    lat: float
    lon: float
    address: str


class RoutingRequest(TypedDict):
    """Type definition for a POST /routing/v2 body."""

    doctorId: str
    startDate: str
    numDays: int
    newAppt: NewAppointmentInput


class AvailabilityRequest(TypedDict, total=False):
    """Type definition for a POST /public/appointments/availability body."""

    practiceId: int
    startDate: str
    numDays: int
    serviceMinutes: int
    address: str
    allowOtherDoctors: bool
    doctorId: Any


class AvailabilityResponse(TypedDict, total=False):
    """Availability payload after shape normalization by the client."""

    slots: List[Dict[str, Any]]
    winner: Optional[Dict[str, Any]]
    alternates: List[Dict[str, Any]]


@dataclass(frozen=True)
class Provider:
    """A veterinarian from either the authenticated or the public directory."""

    id: str
    name: str
    email: Optional[str] = None
    pims_id: Optional[str] = None

    @property
    def backend_id(self) -> str:
        """Identifier the scheduling backends expect (PIMS id first)."""
        return self.pims_id if self.pims_id else self.id


@dataclass(frozen=True)
class Pet:
    """A pet owned by the logged-in client."""

    id: str
    name: str
    db_id: Optional[str] = None
    client_id: Optional[str] = None
    species: Optional[str] = None
    breed: Optional[str] = None
    dob: Optional[str] = None
    primary_provider_name: Optional[str] = None
    photo_url: Optional[str] = None
    subscription: Optional[Dict[str, Any]] = None
    wellness_plans: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ClientProfile:
    """Contact details recovered from the client's appointment history."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None


@dataclass(frozen=True)
class EmailCheckResult:
    """Whether an email is already known to the practice."""

    exists: bool
    has_account: bool
    practice_id: Optional[int] = None


@dataclass(frozen=True)
class GeocodeResult:
    """Forward geocoding result."""

    lat: float
    lon: float
    address: str
    match_level: Optional[MatchLevel] = None
    source: Optional[str] = None


@dataclass(frozen=True)
class AddressValidation:
    """
    Outcome of validating a free-text address.

    ``reason`` is one of ``not_found``, ``too_vague`` or ``error`` when
    ``ok`` is False.
    """

    ok: bool
    result: Optional[GeocodeResult] = None
    reason: Optional[str] = None
    message: Optional[str] = None
