"""Resolve a free-text preferred doctor to a provider record."""

from typing import Optional, Sequence, Union

from ...constants import DOCTOR_PREFIX, NO_DOCTOR_PREFERENCE
from ..api.models import Provider


def strip_doctor_prefix(value: str) -> str:
    """Remove a leading ``Dr. `` and surrounding whitespace."""
    value = value.strip()
    if value.startswith(DOCTOR_PREFIX):
        value = value[len(DOCTOR_PREFIX) :]
    return value.strip()


def resolve_provider(
    preferred_doctor: Optional[str], providers: Sequence[Provider]
) -> Optional[Provider]:
    """
    Find the provider a preferred-doctor answer refers to.

    Exact name (or ``Dr. <name>``) matches are tried across the whole
    directory before falling back to a case-insensitive substring match in
    either direction. Ties go to the first provider in directory order.

    Args:
        preferred_doctor: Answer as entered, possibly prefixed with ``Dr. ``
        providers: Active provider directory

    Returns:
        Matching provider, or None when nothing matches
    """
    if not preferred_doctor or preferred_doctor == NO_DOCTOR_PREFERENCE:
        return None

    raw = preferred_doctor.strip()
    name = strip_doctor_prefix(raw)
    if not name:
        return None

    for provider in providers:
        if provider.name == name or f"{DOCTOR_PREFIX}{provider.name}" == raw:
            return provider

    needle = name.lower()
    for provider in providers:
        candidate = provider.name.lower()
        if candidate and (needle in candidate or candidate in needle):
            return provider

    return None


def public_doctor_id(doctor_id: str) -> Union[int, str]:
    """Numeric ids go to the public backend as integers."""
    try:
        return int(doctor_id)
    except (TypeError, ValueError):
        return doctor_id
