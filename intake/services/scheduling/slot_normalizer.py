"""Candidate slot normalization for both scheduling backends."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from ...constants import Scheduling


@dataclass(frozen=True)
class CandidateSlot:
    """A rounded appointment-time suggestion offered to the client."""

    date: str
    time: str
    display: str
    iso: str

    def to_dict(self) -> Dict[str, str]:
        return {"date": self.date, "time": self.time, "display": self.display, "iso": self.iso}


def parse_instant(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp, accepting a trailing ``Z``.

    Returns:
        datetime, or None when the value is missing or unparseable
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def round_to_nearest_5_minutes(dt: datetime) -> datetime:
    """
    Round to the nearest 5-minute boundary, zeroing seconds.

    Minute 60 rolls over into the next hour (and day), so 12:58 becomes
    13:00 rather than an invalid 12:60.
    """
    step = Scheduling.ROUNDING_MINUTES
    minute = ((dt.minute + step // 2) // step) * step
    return dt.replace(minute=0, second=0, microsecond=0) + timedelta(minutes=minute)


def format_display(dt: datetime) -> str:
    """Format like ``Sat, Oct 17 at 1:00 PM``."""
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return f"{dt:%a, %b} {dt.day} at {hour}:{dt:%M} {meridiem}"


def _entry_instant(entry: Dict[str, Any]) -> Optional[datetime]:
    instant = parse_instant(entry.get("suggestedStartIso") or entry.get("iso"))
    if instant is None and entry.get("date"):
        time_part = entry.get("time") or Scheduling.DEFAULT_SLOT_TIME
        instant = parse_instant(f"{entry['date']}T{time_part}")
    return instant


def slot_from_entry(entry: Any) -> Optional[CandidateSlot]:
    """
    Build a CandidateSlot from one backend entry.

    The date, time and iso are all taken from the rounded instant; a
    backend-supplied ``display`` string is kept as-is.
    """
    if not isinstance(entry, dict):
        return None
    instant = _entry_instant(entry)
    if instant is None:
        return None
    rounded = round_to_nearest_5_minutes(instant)
    return CandidateSlot(
        date=rounded.date().isoformat(),
        time=f"{rounded:%H:%M}",
        display=entry.get("display") or format_display(rounded),
        iso=rounded.isoformat(),
    )


def _collect(entries: Iterable[Any], limit: int) -> List[CandidateSlot]:
    slots: List[CandidateSlot] = []
    for entry in entries:
        if len(slots) >= limit:
            break
        slot = slot_from_entry(entry)
        if slot is None:
            logger.debug(f"Skipping slot entry without a usable instant: {entry!r}")
            continue
        slots.append(slot)
    return slots


def normalize_availability(
    data: Optional[Dict[str, Any]], limit: int = Scheduling.MAX_CANDIDATE_SLOTS
) -> List[CandidateSlot]:
    """
    Normalize a backend response into at most ``limit`` candidate slots.

    A non-empty flat ``slots`` list wins and keeps its order; otherwise the
    ``winner`` comes first, followed by ``alternates`` in order.

    Args:
        data: Raw or client-normalized response body
        limit: Maximum number of slots returned

    Returns:
        Ordered list of rounded candidate slots
    """
    if not data or limit <= 0:
        return []

    flat = data.get("slots")
    if isinstance(flat, list) and flat:
        return _collect(flat, limit)

    ordered: List[Any] = []
    if data.get("winner"):
        ordered.append(data["winner"])
    alternates = data.get("alternates")
    if isinstance(alternates, list):
        ordered.extend(alternates)
    return _collect(ordered, limit)
