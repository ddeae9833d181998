"""Portal API client package."""

from .client import PortalApiClient
from .directory import ClientDirectoryApi
from .geo import GeoApi
from .models import (
    AddressValidation,
    AvailabilityRequest,
    AvailabilityResponse,
    ClientProfile,
    EmailCheckResult,
    GeocodeResult,
    Pet,
    Provider,
    RoutingRequest,
)
from .public import PublicAppointmentsApi
from .routing import RoutingApi

__all__ = [
    "PortalApiClient",
    "ClientDirectoryApi",
    "GeoApi",
    "PublicAppointmentsApi",
    "RoutingApi",
    "AddressValidation",
    "AvailabilityRequest",
    "AvailabilityResponse",
    "ClientProfile",
    "EmailCheckResult",
    "GeocodeResult",
    "Pet",
    "Provider",
    "RoutingRequest",
]
