"""Wizard answers and per-session runtime state."""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Mapping, Optional, Set

from ...constants import YES
from ...core.enums import ClientType, Page
from ..api.models import EmailCheckResult, Pet, Provider
from ..scheduling.slot_normalizer import CandidateSlot
from .preferences import EMPTY_PREFERENCES, SlotPreferenceSet


@dataclass(frozen=True)
class FullName:
    first: str = ""
    last: str = ""
    middle: str = ""
    prefix: str = ""
    suffix: str = ""


@dataclass(frozen=True)
class Address:
    line1: str = ""
    line2: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""

    @property
    def is_complete(self) -> bool:
        """Street, city, state and zip are all filled in."""
        return all(part.strip() for part in (self.line1, self.city, self.state, self.zip))


@dataclass
class FormData:
    """Every answer the wizard collects, across all branches."""

    # Intro
    email: str = ""
    full_name: FullName = field(default_factory=FullName)
    have_used_services_before: str = ""
    selected_pet_ids: List[str] = field(default_factory=list)

    # New client
    phone_numbers: str = ""
    physical_address: Address = field(default_factory=Address)
    mailing_address_same: str = ""
    mailing_address: Optional[Address] = None
    other_persons_on_account: str = ""
    condo_apartment_info: str = ""
    pet_info: str = ""
    previous_veterinary_practices: str = ""
    okay_to_contact_previous_vets: str = ""
    pet_behavior_at_previous_visits: str = ""
    preferred_doctor: str = ""
    looking_for_euthanasia: str = ""
    needs_calming_medications: str = ""
    has_calming_medications: str = ""
    needs_muzzle_or_special_handling: str = ""

    # Existing client
    best_phone_number: str = ""
    what_pets: str = ""
    previous_veterinary_hospitals: str = ""
    preferred_doctor_existing: str = ""
    looking_for_euthanasia_existing: str = ""
    moved_since_last_visit: str = ""
    new_physical_address: Optional[Address] = None
    different_mailing_address: str = ""
    new_mailing_address: Optional[Address] = None
    had_vet_care_elsewhere: str = ""
    may_we_ask_for_records: str = ""
    have_we_seen_pet_before: str = ""
    new_pet_info: str = ""
    previous_veterinary_practices_existing: str = ""
    okay_to_contact_previous_vets_existing: str = ""
    pet_behavior_at_previous_visits_existing: str = ""
    can_we_text: str = ""

    # Euthanasia
    euthanasia_reason: str = ""
    been_to_vet_last_three_months: str = ""
    interested_in_other_options: str = ""
    service_area: str = ""
    urgency: str = ""
    preferred_date_time: str = ""
    selected_date_time_slots: SlotPreferenceSet = EMPTY_PREFERENCES
    none_of_work_for_me: bool = False
    aftercare_preference: str = ""

    # Regular visit
    service_area_visit: str = ""
    visit_details: str = ""
    needs_urgent_scheduling: str = ""
    preferred_date_time_visit: str = ""
    selected_date_time_slots_visit: SlotPreferenceSet = EMPTY_PREFERENCES
    none_of_work_for_me_visit: bool = False

    # Other
    how_did_you_hear_about_us: str = ""
    anything_else: str = ""


_NESTED_TYPES = {
    "full_name": FullName,
    "physical_address": Address,
    "mailing_address": Address,
    "new_physical_address": Address,
    "new_mailing_address": Address,
}
_PREFERENCE_FIELDS = {"selected_date_time_slots", "selected_date_time_slots_visit"}
_FIELD_NAMES = {f.name for f in fields(FormData)}


def _coerce(name: str, value: Any) -> Any:
    if name in _NESTED_TYPES and isinstance(value, Mapping):
        return _NESTED_TYPES[name](**value)
    if name in _PREFERENCE_FIELDS and isinstance(value, Mapping):
        return SlotPreferenceSet.from_ranks(value)
    if name == "selected_pet_ids":
        return [str(v) for v in value]
    return value


@dataclass
class IntakeSession:
    """
    Session context shared by the wizard controller and its collaborators.

    Answers live in ``form`` and change only through :meth:`update`. The
    remaining attributes are runtime state owned by the controller.
    """

    is_logged_in: bool = False
    user_email: Optional[str] = None
    form: FormData = field(default_factory=FormData)
    page: Page = Page.INTRO

    pets: List[Pet] = field(default_factory=list)
    pet_alerts: Dict[str, Optional[str]] = field(default_factory=dict)
    providers: List[Provider] = field(default_factory=list)
    public_providers: List[Provider] = field(default_factory=list)
    primary_provider_name: Optional[str] = None

    candidate_slots: List[CandidateSlot] = field(default_factory=list)
    service_minutes_used: Optional[int] = None

    errors: Dict[str, str] = field(default_factory=dict)
    loading_slots: bool = False
    loading_client_data: bool = False
    checking_email: bool = False
    submitting: bool = False

    email_check_result: Optional[EmailCheckResult] = None
    email_check_for_modal: Optional[EmailCheckResult] = None
    show_existing_client_modal: bool = False
    submitted_payload: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if self.is_logged_in and self.page == Page.INTRO:
            self.page = Page.EXISTING_CLIENT

    @property
    def is_existing_client(self) -> bool:
        return self.is_logged_in or self.form.have_used_services_before == YES

    @property
    def client_type(self) -> ClientType:
        return ClientType.EXISTING if self.is_existing_client else ClientType.NEW

    def for_client_type(self, new_value: Any, existing_value: Any) -> Any:
        """Answer from the active client branch (new vs existing)."""
        return existing_value if self.is_existing_client else new_value

    @property
    def selected_doctor(self) -> str:
        form = self.form
        return self.for_client_type(form.preferred_doctor, form.preferred_doctor_existing)

    @property
    def euthanasia_answer(self) -> str:
        form = self.form
        return self.for_client_type(
            form.looking_for_euthanasia, form.looking_for_euthanasia_existing
        )

    @property
    def is_euthanasia(self) -> bool:
        return self.euthanasia_answer == YES

    @property
    def active_providers(self) -> List[Provider]:
        """Directory used for doctor matching."""
        if self.is_logged_in:
            return self.providers
        return self.public_providers or self.providers

    def update(self, changes: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Set[str]:
        """
        Merge answers into the form.

        Keys are form field names; a dotted key such as
        ``physical_address.city`` merges into the nested record. Updating a
        field clears its validation error.

        Returns:
            Top-level field names whose value actually changed

        Raises:
            KeyError: For an unknown field
        """
        merged: Dict[str, Any] = dict(changes or {})
        merged.update(kwargs)

        changed: Set[str] = set()
        for key, value in merged.items():
            top, _, nested = key.partition(".")
            if top not in _FIELD_NAMES:
                raise KeyError(f"Unknown form field: {key}")

            current = getattr(self.form, top)
            if nested:
                record_type = _NESTED_TYPES.get(top)
                if record_type is None or nested not in {f.name for f in fields(record_type)}:
                    raise KeyError(f"Unknown form field: {key}")
                base = current if current is not None else record_type()
                new_value = replace(base, **{nested: value})
            else:
                new_value = _coerce(top, value)

            if new_value != current:
                setattr(self.form, top, new_value)
                changed.add(top)
            self.errors.pop(key, None)
        return changed
