"""Forward geocoding and address precision checks."""

from typing import Any, Dict, Optional

from loguru import logger

from ...constants import Scheduling
from ...core.enums import MatchLevel
from ...core.exceptions import ApiError, NetworkError
from .models import AddressValidation, GeocodeResult
from .transport import EndpointGroup


def _parse_match_level(raw: Any) -> Optional[MatchLevel]:
    try:
        return MatchLevel(str(raw).lower()) if raw else None
    except ValueError:
        return None


class GeoApi(EndpointGroup):
    """Wrapper around ``GET /geo/forward``."""

    async def forward_geocode(
        self,
        query: str,
        country: Optional[str] = None,
        admin_area: Optional[str] = None,
    ) -> GeocodeResult:
        """
        Geocode a free-text address.

        Args:
            query: One-line address
            country: Optional country hint
            admin_area: Optional state/province hint

        Returns:
            GeocodeResult with coordinates and match level

        Raises:
            ApiError: On an error status (404 when nothing matched)
            NetworkError: When the geocoder could not be reached
        """
        params: Dict[str, str] = {"q": query}
        if country:
            params["country"] = country
        if admin_area:
            params["adminArea"] = admin_area

        data = await self._get("/geo/forward", params=params) or {}
        try:
            lat = float(data["lat"])
            lon = float(data["lon"])
        except (KeyError, TypeError, ValueError):
            raise ApiError("Geocoder returned no coordinates", endpoint="/geo/forward")

        return GeocodeResult(
            lat=lat,
            lon=lon,
            address=str(data.get("address") or query),
            match_level=_parse_match_level(data.get("matchLevel")),
            source=data.get("source"),
        )

    async def validate_address(
        self,
        address: str,
        min_level: str = Scheduling.ADDRESS_MIN_MATCH_LEVEL,
        country: Optional[str] = None,
        admin_area: Optional[str] = None,
    ) -> AddressValidation:
        """
        Check that an address geocodes at least as precisely as ``min_level``.

        Never raises; failures come back as ``ok=False`` with a reason.
        """
        try:
            result = await self.forward_geocode(address, country=country, admin_area=admin_area)
        except ApiError as e:
            if e.status == 404:
                return AddressValidation(ok=False, reason="not_found")
            return AddressValidation(ok=False, reason="error", message=e.message)
        except NetworkError as e:
            return AddressValidation(ok=False, reason="error", message=e.message)

        required = MatchLevel(min_level).rank
        actual = result.match_level.rank if result.match_level else 0
        if actual < required:
            level = result.match_level.value if result.match_level else "unknown"
            logger.debug(f"Address matched only at {level} level (need {min_level})")
            return AddressValidation(
                ok=False,
                result=result,
                reason="too_vague",
                message=f"Address matched only at {level} level; please include a street address.",
            )
        return AddressValidation(ok=True, result=result)
