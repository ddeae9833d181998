"""Answer values and scheduling constants used by the intake wizard."""

from typing import Final, Tuple

YES: Final[str] = "Yes"
NO: Final[str] = "No"

DEFAULT_PRACTICE_ID: Final[int] = 1

DOCTOR_PREFIX: Final[str] = "Dr. "
NO_DOCTOR_PREFERENCE: Final[str] = "I have no preference"

SERVICE_AREA_PORTLAND: Final[str] = "Kennebunk / Greater Portland / Augusta Area"
SERVICE_AREA_HIGH_PEAKS: Final[str] = "Maine High Peaks Area"
SERVICE_AREAS: Final[Tuple[str, ...]] = (SERVICE_AREA_PORTLAND, SERVICE_AREA_HIGH_PEAKS)

MAILING_DIFFERENT: Final[str] = "Yes, it is different."
MAILING_SAME: Final[str] = "No, it is the same."

AFTERCARE_OPTIONS: Final[Tuple[str, ...]] = (
    "I will handle my pet's remains (e.g. bury at home)",
    "Private Cremation (Cremation WITH return of ashes)",
    "Burial At Sea (Cremation WITHOUT return of ashes)",
    "I am not sure yet.",
)


class Scheduling:
    """Availability search parameters."""

    BASE_SERVICE_MINUTES: Final[int] = 40
    ADDITIONAL_PET_MINUTES: Final[int] = 20
    SEARCH_DAYS: Final[int] = 42
    MAX_CANDIDATE_SLOTS: Final[int] = 3
    ROUNDING_MINUTES: Final[int] = 5
    DEFAULT_SLOT_TIME: Final[str] = "12:00"
    ADDRESS_MIN_MATCH_LEVEL: Final[str] = "street"
