"""Authenticated client directory: pets, veterinarians, alerts and contact info."""

import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from loguru import logger

from ...core.retry import get_network_retry
from .models import ClientProfile, Pet, Provider
from .transport import EndpointGroup

_PHONE_FIELDS = (
    "phone1",
    "phone",
    "secondPhone",
    "phoneNumber",
    "phone_number",
    "primaryPhone",
    "primary_phone",
    "mobilePhone",
    "mobile_phone",
)

_COUNTRY_CODE_RE = re.compile(r"^\+1\s*")


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def _provider_name(row: Dict[str, Any], provider_id: Any) -> str:
    """First name, middle initial and last name; falls back to ``name``."""
    parts = []
    if row.get("firstName"):
        parts.append(row["firstName"])
    middle = row.get("middleInitial") or (
        row["middleName"][0].upper() if row.get("middleName") else ""
    )
    if middle:
        parts.append(middle)
    if row.get("lastName"):
        parts.append(row["lastName"])
    if parts:
        return " ".join(parts).strip()
    return row.get("name") or f"Provider {provider_id if provider_id is not None else ''}".strip()


def _pet_from_row(row: Dict[str, Any]) -> Pet:
    primary = row.get("primaryProviderName")
    if not primary and isinstance(row.get("primaryProvider"), dict):
        primary = row["primaryProvider"].get("name")
    dob = row.get("dob") or row.get("dateOfBirth")
    if not dob and isinstance(row.get("birthDate"), str):
        dob = row["birthDate"]
    return Pet(
        id=str(row.get("pimsId") if row.get("pimsId") is not None else row.get("id", "")),
        db_id=_optional_str(row.get("id")),
        client_id=_optional_str(row.get("clientId")),
        name=str(row.get("name") or "Pet"),
        species=row.get("species") or row.get("speciesName"),
        breed=row.get("breed") or row.get("breedName"),
        dob=dob,
        primary_provider_name=primary,
        photo_url=row.get("photoUrl"),
        subscription=row.get("subscription"),
        wellness_plans=list(row.get("wellnessPlans") or []),
    )


def normalize_phone(raw: Any) -> Optional[str]:
    """Strip a leading ``+1`` country code."""
    if not raw:
        return None
    return _COUNTRY_CODE_RE.sub("", str(raw)).strip() or None


class ClientDirectoryApi(EndpointGroup):
    """Endpoints that require the client's bearer token."""

    @get_network_retry()
    async def fetch_client_pets(self) -> List[Pet]:
        """Fetch the logged-in client's pets."""
        data = await self._get("/patients/client/mine")
        rows = data if isinstance(data, list) else (data or {}).get("rows") or []
        pets = [_pet_from_row(row) for row in rows if isinstance(row, dict)]
        logger.info(f"Loaded {len(pets)} pets for logged-in client")
        return pets

    @get_network_retry()
    async def fetch_veterinarians(self, address: Optional[str] = None) -> List[Provider]:
        """
        Fetch veterinarians, optionally filtered by the client's address.

        Args:
            address: Comma-joined address used for service-area filtering

        Returns:
            List of providers with their PIMS identifiers
        """
        params = {"address": address} if address else None
        data = await self._get("/employees/veterinarians", params=params)
        rows = data if isinstance(data, list) else (data or {}).get("items") or []

        providers = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            provider_id = next(
                (row[k] for k in ("id", "pimsId", "employeeId") if row.get(k) is not None), None
            )
            employee = row.get("employee") if isinstance(row.get("employee"), dict) else {}
            pims_id = next(
                (
                    v
                    for v in (row.get("pimsId"), employee.get("pimsId"), provider_id)
                    if v is not None
                ),
                None,
            )
            providers.append(
                Provider(
                    id=str(provider_id) if provider_id is not None else "",
                    name=_provider_name(row, provider_id),
                    email=row.get("email"),
                    pims_id=_optional_str(pims_id),
                )
            )
        return providers

    @get_network_retry()
    async def fetch_pet_alerts(self, pims_id: str) -> Optional[str]:
        """
        Fetch the free-text alerts recorded on a patient.

        Only string values are kept; anything else yields None.
        """
        data = await self._get(f"/patients/pims/{quote(str(pims_id), safe='')}")
        if not isinstance(data, dict):
            return None
        alerts = data.get("alerts")
        if alerts is None and isinstance(data.get("patient"), dict):
            alerts = data["patient"].get("alerts")
        return alerts if isinstance(alerts, str) and alerts else None

    @get_network_retry()
    async def fetch_client_profile(self) -> Optional[ClientProfile]:
        """
        Recover the client's name, phone and address from their first appointment.

        Returns:
            ClientProfile, or None when there is no appointment with client data
        """
        data = await self._get("/appointments/client")
        if isinstance(data, list):
            appointments = data
        else:
            appointments = (data or {}).get("appointments") or []
        if not appointments:
            return None

        first = appointments[0] if isinstance(appointments[0], dict) else {}
        client = first.get("client") or first.get("Client")
        if not isinstance(client, dict):
            return None

        raw_phone = next((client[k] for k in _PHONE_FIELDS if client.get(k)), None)
        return ClientProfile(
            first_name=client.get("firstName") or client.get("first_name"),
            last_name=client.get("lastName") or client.get("last_name"),
            phone=normalize_phone(raw_phone),
            address1=client.get("address1") or client.get("address_1"),
            address2=client.get("address2") or client.get("address_2"),
            city=client.get("city"),
            state=client.get("state"),
            zip=_optional_str(client.get("zip")) if client.get("zip") else None,
        )
