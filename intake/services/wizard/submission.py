"""Assemble the outbound appointment-request payload."""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from loguru import logger

from ...constants import MAILING_DIFFERENT, YES
from ...core.enums import AppointmentType
from ..api.models import Pet
from ..scheduling.slot_normalizer import CandidateSlot
from .form_data import Address, FormData, IntakeSession
from .preferences import SlotPreferenceSet


class _Unset:
    """Marker for a payload key that must not be sent at all."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


def prune_unset(value: Any) -> Any:
    """
    Recursively drop dict keys whose value is ``UNSET``.

    ``None`` and empty strings are kept. Inside lists an ``UNSET`` element
    becomes ``None`` so positions are preserved.
    """
    if isinstance(value, dict):
        return {k: prune_unset(v) for k, v in value.items() if v is not UNSET}
    if isinstance(value, (list, tuple)):
        return [None if item is UNSET else prune_unset(item) for item in value]
    return value


def _or_unset(value: Any) -> Any:
    """Empty answers are omitted rather than sent blank."""
    return value if value else UNSET


def _address_payload(address: Address) -> Dict[str, Any]:
    return {
        "line1": address.line1 or "",
        "line2": _or_unset(address.line2),
        "city": address.city or "",
        "state": address.state or "",
        "zip": address.zip or "",
        "country": address.country or "US",
    }


def _physical_address(session: IntakeSession) -> Any:
    form = session.form
    if (
        session.is_existing_client
        and form.moved_since_last_visit == YES
        and form.new_physical_address is not None
    ):
        return _address_payload(form.new_physical_address)
    return _address_payload(form.physical_address)


def _mailing_address(session: IntakeSession) -> Any:
    form = session.form
    if session.is_existing_client:
        if form.different_mailing_address == YES and form.new_mailing_address is not None:
            return _address_payload(form.new_mailing_address)
        return UNSET
    if form.mailing_address_same == MAILING_DIFFERENT and form.mailing_address is not None:
        return _address_payload(form.mailing_address)
    return UNSET


def _pet_payload(pet: Pet, alerts: Optional[str]) -> Dict[str, Any]:
    return {
        "id": pet.id,
        "dbId": _or_unset(pet.db_id),
        "clientId": _or_unset(pet.client_id),
        "name": pet.name,
        "species": _or_unset(pet.species),
        "breed": _or_unset(pet.breed),
        "dob": _or_unset(pet.dob),
        "subscription": _or_unset(pet.subscription),
        "primaryProviderName": _or_unset(pet.primary_provider_name),
        "photoUrl": _or_unset(pet.photo_url),
        "wellnessPlans": _or_unset(pet.wellness_plans),
        "alerts": alerts,
    }


def _pets(session: IntakeSession) -> Any:
    selected = set(session.form.selected_pet_ids)
    if not session.is_logged_in or not selected:
        return UNSET
    return [
        _pet_payload(pet, session.pet_alerts.get(pet.id))
        for pet in session.pets
        if pet.id in selected
    ]


def _all_pets(session: IntakeSession) -> Any:
    if not session.is_logged_in or not session.pets:
        return UNSET
    selected = set(session.form.selected_pet_ids)
    return [
        dict(_pet_payload(pet, session.pet_alerts.get(pet.id)), isSelected=pet.id in selected)
        for pet in session.pets
    ]


def build_date_time_preferences(
    preferences: SlotPreferenceSet, candidates: Sequence[CandidateSlot]
) -> Optional[List[Dict[str, Any]]]:
    """
    Resolve ranked slots to display strings, ordered by rank.

    A slot that is no longer among the candidates falls back to its ISO
    string as the display value.

    Returns:
        List of ``{preference, dateTime, display}``, or None when nothing is ranked
    """
    if not preferences:
        return None
    by_iso = {slot.iso: slot for slot in candidates}
    result = []
    for iso, rank in preferences.ranked():
        slot = by_iso.get(iso)
        if slot is None:
            logger.warning(f"Ranked slot {iso} is no longer offered; sending ISO as display")
        result.append(
            {"preference": rank, "dateTime": iso, "display": slot.display if slot else iso}
        )
    return result


def _euthanasia_fields(session: IntakeSession) -> Dict[str, Any]:
    form = session.form
    fields = {
        "euthanasiaReason": _or_unset(form.euthanasia_reason),
        "beenToVetLastThreeMonths": _or_unset(form.been_to_vet_last_three_months),
        "interestedInOtherOptions": _or_unset(form.interested_in_other_options),
        "urgency": _or_unset(form.urgency),
        "preferredDateTime": _or_unset(form.preferred_date_time),
        "selectedDateTimePreferences": build_date_time_preferences(
            form.selected_date_time_slots, session.candidate_slots
        ),
        "noneOfWorkForMe": bool(form.none_of_work_for_me),
        "aftercarePreference": _or_unset(form.aftercare_preference),
    }
    if form.selected_date_time_slots and session.service_minutes_used is not None:
        fields["serviceMinutes"] = session.service_minutes_used
    return fields


def _visit_fields(session: IntakeSession) -> Dict[str, Any]:
    form = session.form
    fields = {
        "visitDetails": _or_unset(form.visit_details),
        "needsUrgentScheduling": _or_unset(form.needs_urgent_scheduling),
        "preferredDateTime": _or_unset(form.preferred_date_time_visit),
        "selectedDateTimePreferences": build_date_time_preferences(
            form.selected_date_time_slots_visit, session.candidate_slots
        ),
        "noneOfWorkForMe": bool(form.none_of_work_for_me_visit),
    }
    if form.selected_date_time_slots_visit and session.service_minutes_used is not None:
        fields["serviceMinutes"] = session.service_minutes_used
    return fields


def _new_client_fields(form: FormData) -> Dict[str, Any]:
    return {
        "petInfoText": _or_unset(form.pet_info),
        "otherPersonsOnAccount": _or_unset(form.other_persons_on_account),
        "condoApartmentInfo": _or_unset(form.condo_apartment_info),
        "previousVeterinaryPractices": _or_unset(form.previous_veterinary_practices),
        "okayToContactPreviousVets": _or_unset(form.okay_to_contact_previous_vets),
        "petBehaviorAtPreviousVisits": _or_unset(form.pet_behavior_at_previous_visits),
        "needsCalmingMedications": _or_unset(form.needs_calming_medications),
        "hasCalmingMedications": _or_unset(form.has_calming_medications),
        "needsMuzzleOrSpecialHandling": _or_unset(form.needs_muzzle_or_special_handling),
    }


def _existing_client_fields(session: IntakeSession) -> Dict[str, Any]:
    form = session.form
    return {
        "canWeText": _or_unset(form.can_we_text),
        # Logged-in clients send structured pets instead
        "petInfoText": UNSET if session.is_logged_in else _or_unset(form.what_pets),
        "newPetInfo": _or_unset(form.new_pet_info),
        "previousVeterinaryHospitals": _or_unset(form.previous_veterinary_hospitals),
        "hadVetCareElsewhere": _or_unset(form.had_vet_care_elsewhere),
        "mayWeAskForRecords": _or_unset(form.may_we_ask_for_records),
        "previousVeterinaryPractices": _or_unset(form.previous_veterinary_practices_existing),
        "okayToContactPreviousVets": _or_unset(form.okay_to_contact_previous_vets_existing),
        "petBehaviorAtPreviousVisits": _or_unset(form.pet_behavior_at_previous_visits_existing),
    }


def build_submission_payload(
    session: IntakeSession,
    now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> Dict[str, Any]:
    """
    Build the pruned request body for ``POST /public/appointments/form``.

    Only the active branch's fields are included, and every omitted answer
    is absent from the result rather than null.

    Args:
        session: Wizard session
        now: Clock used for ``submittedAt``

    Returns:
        JSON-serializable payload
    """
    form = session.form
    is_euthanasia = session.is_euthanasia

    payload: Dict[str, Any] = {
        "clientType": session.client_type.value,
        "isLoggedIn": session.is_logged_in,
        "email": form.email or session.user_email or "",
        "fullName": {
            "first": form.full_name.first or "",
            "last": form.full_name.last or "",
            "middle": _or_unset(form.full_name.middle),
            "prefix": _or_unset(form.full_name.prefix),
            "suffix": _or_unset(form.full_name.suffix),
        },
        "phoneNumber": session.for_client_type(form.phone_numbers, form.best_phone_number) or "",
        "physicalAddress": _physical_address(session),
        "mailingAddress": _mailing_address(session),
        "pets": _pets(session),
        "allPets": _all_pets(session),
    }

    payload.update(
        _existing_client_fields(session) if session.is_existing_client else _new_client_fields(form)
    )

    payload.update(
        {
            "appointmentType": (
                AppointmentType.EUTHANASIA.value
                if is_euthanasia
                else AppointmentType.REGULAR_VISIT.value
            ),
            "preferredDoctor": _or_unset(session.selected_doctor),
            "serviceArea": _or_unset(form.service_area or form.service_area_visit),
        }
    )

    payload.update(_euthanasia_fields(session) if is_euthanasia else _visit_fields(session))

    payload.update(
        {
            "howDidYouHearAboutUs": _or_unset(form.how_did_you_hear_about_us),
            "anythingElse": _or_unset(form.anything_else),
            "submittedAt": now().isoformat().replace("+00:00", "Z"),
            "formFlow": {
                "startedAsLoggedIn": session.is_logged_in,
                "startedAsExistingClient": form.have_used_services_before == YES,
            },
        }
    )
    return prune_unset(payload)
