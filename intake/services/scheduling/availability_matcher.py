"""Availability matching - turns wizard answers into candidate slots."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from ...constants import LogEmoji, Scheduling
from ...core.config import IntakeSettings, get_settings
from ...core.exceptions import IntakeError
from ..api.models import AvailabilityRequest, Provider
from ..api.routing import RoutingApi
from .provider_resolver import public_doctor_id, resolve_provider
from .slot_normalizer import CandidateSlot, normalize_availability


def compute_service_minutes(selected_pet_count: int, is_logged_in: bool) -> int:
    """
    Estimate appointment length from the number of pets seen.

    Only a logged-in client's explicit pet selection counts; everyone else
    is treated as bringing one pet.
    """
    pets = selected_pet_count if is_logged_in and selected_pet_count > 0 else 1
    return Scheduling.BASE_SERVICE_MINUTES + Scheduling.ADDITIONAL_PET_MINUTES * max(0, pets - 1)


def join_address_parts(*parts: Optional[str]) -> Optional[str]:
    """Join the non-empty parts with ``", "``; None when all are empty."""
    cleaned = [p.strip() for p in parts if p and p.strip()]
    return ", ".join(cleaned) if cleaned else None


@dataclass
class AvailabilityQuery:
    """Everything the matcher needs from the wizard session."""

    preferred_doctor: Optional[str]
    providers: Sequence[Provider]
    is_logged_in: bool
    selected_pet_count: int = 0
    address: Optional[str] = None


@dataclass
class MatchResult:
    """Matcher output; ``service_minutes`` is None when no provider resolved."""

    slots: List[CandidateSlot] = field(default_factory=list)
    service_minutes: Optional[int] = None
    provider: Optional[Provider] = None


class AvailabilityMatcher:
    """
    Query the right scheduling backend for a preferred doctor.

    Logged-in clients go through the routing backend; everyone else uses
    the public availability endpoint. Failures never propagate: the caller
    gets an empty slot list and falls back to free-text date entry.
    """

    def __init__(
        self,
        api: Any,
        settings: Optional[IntakeSettings] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        """
        Initialize matcher.

        Args:
            api: Object exposing ``geo``, ``routing`` and ``public`` endpoint groups
            settings: Settings instance (defaults to the global singleton)
            today: Clock returning the current date
        """
        self.api = api
        self.settings = settings or get_settings()
        self._today = today or date.today

    async def find_slots(self, query: AvailabilityQuery) -> MatchResult:
        """
        Find up to ``max_candidate_slots`` recommended slots.

        Args:
            query: Doctor, directory, login state, pet count and address

        Returns:
            MatchResult (empty slots on any failure)
        """
        provider = resolve_provider(query.preferred_doctor, query.providers)
        if provider is None:
            logger.info(
                f"No provider matches {query.preferred_doctor!r} "
                f"({len(query.providers)} in directory); skipping availability search"
            )
            return MatchResult()

        service_minutes = compute_service_minutes(query.selected_pet_count, query.is_logged_in)
        result = MatchResult(service_minutes=service_minutes, provider=provider)

        try:
            lat, lon, address = await self._resolve_address(query.address)
            start_date = self._today() + timedelta(days=1)
            if query.is_logged_in:
                data = await self._query_routing(
                    provider, start_date, service_minutes, lat, lon, address
                )
            else:
                data = await self._query_public(provider, start_date, service_minutes, address)
            result.slots = normalize_availability(data, limit=self.settings.max_candidate_slots)
        except (IntakeError, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Availability search for {provider.name} failed: {e}")
            result.slots = []
            return result

        logger.info(
            f"{LogEmoji.CALENDAR} {len(result.slots)} candidate slot(s) for "
            f"Dr. {provider.name} ({service_minutes} min)"
        )
        return result

    async def _resolve_address(
        self, address: Optional[str]
    ) -> Tuple[Optional[float], Optional[float], Optional[str]]:
        """Geocode the address; degrade to the raw string on any failure."""
        if not address:
            return None, None, None
        try:
            validation = await self.api.geo.validate_address(
                address, min_level=self.settings.address_min_match_level
            )
        except IntakeError as e:
            logger.warning(f"Address validation error, continuing without coordinates: {e}")
            return None, None, address

        if validation.ok and validation.result is not None:
            return validation.result.lat, validation.result.lon, validation.result.address

        logger.warning(
            f"Address validation failed ({validation.reason}): {validation.message or 'no detail'}"
        )
        return None, None, address

    async def _query_routing(
        self,
        provider: Provider,
        start_date: date,
        service_minutes: int,
        lat: Optional[float],
        lon: Optional[float],
        address: Optional[str],
    ) -> Dict[str, Any]:
        request = RoutingApi.build_request(
            doctor_id=provider.backend_id,
            start_date=start_date,
            num_days=self.settings.slot_search_days,
            service_minutes=service_minutes,
            lat=lat,
            lon=lon,
            address=address,
        )
        return await self.api.routing.suggest_slots(request)

    async def _query_public(
        self,
        provider: Provider,
        start_date: date,
        service_minutes: int,
        address: Optional[str],
    ) -> Dict[str, Any]:
        request: AvailabilityRequest = {
            "practiceId": self.settings.practice_id,
            "startDate": start_date.isoformat(),
            "numDays": self.settings.slot_search_days,
            "serviceMinutes": service_minutes,
            "address": address or "",
            "allowOtherDoctors": False,
            "doctorId": public_doctor_id(provider.backend_id),
        }
        response = await self.api.public.fetch_availability(
            request, limit=self.settings.max_candidate_slots
        )
        return dict(response)
