"""Authenticated routing backend."""

from datetime import date
from typing import Any, Dict, Optional

from loguru import logger

from .models import NewAppointmentInput, RoutingRequest
from .transport import EndpointGroup


class RoutingApi(EndpointGroup):
    """Wrapper around ``POST /routing/v2``."""

    @staticmethod
    def build_request(
        doctor_id: str,
        start_date: date,
        num_days: int,
        service_minutes: int,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
        address: Optional[str] = None,
    ) -> RoutingRequest:
        """Build a routing request; coordinates are sent only as a pair."""
        new_appt: NewAppointmentInput = {"serviceMinutes": service_minutes}
        if lat is not None and lon is not None:
            new_appt["lat"] = lat
            new_appt["lon"] = lon
        if address:
            new_appt["address"] = address
        return {
            "doctorId": doctor_id,
            "startDate": start_date.isoformat(),
            "numDays": num_days,
            "newAppt": new_appt,
        }

    async def suggest_slots(self, request: RoutingRequest) -> Dict[str, Any]:
        """
        Ask the router for the best insertion slots.

        Args:
            request: Routing request body

        Returns:
            Raw response with ``winner`` and ``alternates`` (or ``slots``)
        """
        logger.debug(
            f"Routing request for doctor {request['doctorId']} from {request['startDate']} "
            f"({request['newAppt'].get('serviceMinutes')} min)"
        )
        data = await self._post("/routing/v2", json=request)
        return data if isinstance(data, dict) else {}
