"""Unauthenticated appointment-request endpoints."""

from typing import Any, Dict, List, Optional

from loguru import logger

from ...constants import DEFAULT_PRACTICE_ID
from ...core.exceptions import ApiError, NetworkError, SubmissionError
from ...utils.masking import mask_email
from .models import AvailabilityRequest, AvailabilityResponse, EmailCheckResult, Provider
from .transport import EndpointGroup


def _rows(data: Any, *keys: str) -> List[Dict[str, Any]]:
    """Accept a bare list or a list nested under one of ``keys``."""
    rows: List[Any] = []
    if isinstance(data, list):
        rows = data
    elif isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                rows = value
                break
    return [row for row in rows if isinstance(row, dict)]


def _first_present(row: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if row.get(key) is not None:
            return row[key]
    return None


def _veterinarian_name(row: Dict[str, Any], vet_id: Any) -> str:
    parts = [row[key] for key in ("title", "firstName", "lastName", "designation") if row.get(key)]
    if parts:
        return " ".join(str(p) for p in parts)
    return f"Veterinarian {vet_id if vet_id is not None else ''}".strip()


def _candidates_to_slots(candidates: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Convert the ``candidates`` response shape into plain slot dicts."""
    slots = []
    for candidate in candidates:
        if not isinstance(candidate, dict):
            logger.debug(f"Skipping malformed availability candidate: {candidate!r}")
            continue
        slots.append(
            {
                "date": candidate.get("date"),
                "iso": candidate.get("suggestedStartIso"),
                "doctorId": candidate.get("doctorId"),
                "doctorName": candidate.get("doctorName"),
            }
        )
    return slots


class PublicAppointmentsApi(EndpointGroup):
    """Endpoints under ``/public/appointments`` usable without a login."""

    async def check_email(
        self, email: str, practice_id: int = DEFAULT_PRACTICE_ID
    ) -> EmailCheckResult:
        """
        Check whether an email belongs to a known client.

        Args:
            email: Address as typed; trimmed and lowercased before sending
            practice_id: Practice identifier

        Returns:
            EmailCheckResult
        """
        data = await self._get(
            "/public/appointments/check-email",
            params={"email": email.strip().lower(), "practiceId": practice_id},
        )
        data = data or {}
        result = EmailCheckResult(
            exists=bool(data.get("exists")),
            has_account=bool(data.get("hasAccount")),
            practice_id=data.get("practiceId"),
        )
        logger.debug(f"Email check for {mask_email(email)}: exists={result.exists}")
        return result

    async def fetch_veterinarians(
        self, practice_id: int = DEFAULT_PRACTICE_ID, address: Optional[str] = None
    ) -> List[Provider]:
        """
        Fetch veterinarians, optionally filtered to those serving ``address``.

        Names are built from title, first name, last name and designation.
        """
        params: Dict[str, Any] = {"practiceId": practice_id}
        if address:
            params["address"] = address

        data = await self._get("/public/appointments/veterinarians", params=params)
        veterinarians = []
        for row in _rows(data, "items", "veterinarians"):
            vet_id = _first_present(row, "id", "pimsId", "employeeId")
            vet_id = str(vet_id) if vet_id is not None else ""
            # The public directory's id is already the scheduling id
            veterinarians.append(
                Provider(
                    id=vet_id,
                    name=_veterinarian_name(row, vet_id or None),
                    email=row.get("email"),
                    pims_id=vet_id or None,
                )
            )
        logger.info(f"Loaded {len(veterinarians)} public veterinarians")
        return veterinarians

    async def fetch_availability(
        self, request: AvailabilityRequest, limit: int = 3
    ) -> AvailabilityResponse:
        """
        Fetch candidate slots and normalize the three known response shapes.

        Args:
            request: Availability request body
            limit: Maximum slots to keep

        Returns:
            AvailabilityResponse with ``slots``, ``winner`` and ``alternates``
        """
        data = await self._post("/public/appointments/availability", json=request)
        if not isinstance(data, dict):
            return {"slots": [], "winner": None, "alternates": []}

        candidates = data.get("candidates")
        if isinstance(candidates, list):
            slots = _candidates_to_slots(candidates[:limit])
            return {
                "slots": slots,
                "winner": slots[0] if slots else None,
                "alternates": slots[1:limit],
            }

        if isinstance(data.get("slots"), list):
            return {
                "slots": data["slots"],
                "winner": data.get("winner"),
                "alternates": data.get("alternates") or [],
            }

        alternates = data.get("alternates")
        if data.get("winner") or isinstance(alternates, list):
            slots = []
            if data.get("winner"):
                slots.append(data["winner"])
            if isinstance(alternates, list):
                slots.extend(alternates)
            return {
                "slots": slots[:limit],
                "winner": data.get("winner"),
                "alternates": (alternates or [])[: limit - 1],
            }

        return {"slots": [], "winner": None, "alternates": []}

    async def submit_form(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Submit the assembled appointment request.

        Not retried: a duplicate submission would create a second request.

        Raises:
            SubmissionError: With the server's message when it sent one
        """
        try:
            data = await self._post("/public/appointments/form", json=payload)
        except ApiError as e:
            logger.error(f"Form submission rejected (status={e.status}): {e.message}")
            raise SubmissionError(e.server_message, status=e.status) from e
        except NetworkError as e:
            logger.error(f"Form submission failed: {e.message}")
            raise SubmissionError() from e
        return data if isinstance(data, dict) else {}
