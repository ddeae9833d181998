"""Appointment-request wizard: session state, navigation, validation and submission."""

from .controller import IntakeController
from .form_data import Address, FormData, FullName, IntakeSession
from .preferences import EMPTY_PREFERENCES, SlotPreferenceSet
from .progress import ProgressStep, progress_steps
from .submission import UNSET, build_date_time_preferences, build_submission_payload, prune_unset
from .transitions import SUBMIT, next_destination, previous_page
from .validation import validate_page

__all__ = [
    "IntakeController",
    "Address",
    "FormData",
    "FullName",
    "IntakeSession",
    "EMPTY_PREFERENCES",
    "SlotPreferenceSet",
    "ProgressStep",
    "progress_steps",
    "UNSET",
    "build_date_time_preferences",
    "build_submission_payload",
    "prune_unset",
    "SUBMIT",
    "next_destination",
    "previous_page",
    "validate_page",
]
