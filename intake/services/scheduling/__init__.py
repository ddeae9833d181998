"""Availability matching: provider resolution, backend queries and slot normalization."""

from .availability_matcher import (
    AvailabilityMatcher,
    AvailabilityQuery,
    MatchResult,
    compute_service_minutes,
    join_address_parts,
)
from .provider_resolver import resolve_provider, strip_doctor_prefix
from .slot_normalizer import (
    CandidateSlot,
    format_display,
    normalize_availability,
    round_to_nearest_5_minutes,
)

__all__ = [
    "AvailabilityMatcher",
    "AvailabilityQuery",
    "MatchResult",
    "compute_service_minutes",
    "join_address_parts",
    "resolve_provider",
    "strip_doctor_prefix",
    "CandidateSlot",
    "format_display",
    "normalize_availability",
    "round_to_nearest_5_minutes",
]
