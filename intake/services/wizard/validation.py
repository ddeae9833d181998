"""Per-page validation predicates.

Validation never raises: each check returns a field-keyed map of
user-facing messages, empty when the page may be left.
"""

from typing import Callable, Dict, Optional

from ...constants import NO
from ...core.enums import Page
from .form_data import IntakeSession

Errors = Dict[str, str]


def _blank(value: str) -> bool:
    return not value or not value.strip()


def _validate_intro(session: IntakeSession) -> Errors:
    errors: Errors = {}
    if session.is_logged_in:
        return errors
    form = session.form
    if _blank(form.email):
        errors["email"] = "Email is required"
    if _blank(form.full_name.first):
        errors["full_name.first"] = "First name is required"
    if _blank(form.full_name.last):
        errors["full_name.last"] = "Last name is required"
    if not form.have_used_services_before:
        errors["have_used_services_before"] = "Please select an option"
    return errors


def _validate_new_client(session: IntakeSession) -> Errors:
    errors: Errors = {}
    if session.is_logged_in:
        return errors
    form = session.form
    address = form.physical_address
    if _blank(form.phone_numbers):
        errors["phone_numbers"] = "Phone numbers are required"
    if _blank(address.line1):
        errors["physical_address.line1"] = "Street address is required"
    if _blank(address.city):
        errors["physical_address.city"] = "City is required"
    if _blank(address.state):
        errors["physical_address.state"] = "State is required"
    if _blank(address.zip):
        errors["physical_address.zip"] = "Zip code is required"
    if _blank(form.pet_info):
        errors["pet_info"] = "Pet information is required"
    if _blank(form.previous_veterinary_practices):
        errors["previous_veterinary_practices"] = "Previous veterinary practices are required"
    if _blank(form.pet_behavior_at_previous_visits):
        errors["pet_behavior_at_previous_visits"] = "Pet behavior information is required"
    if not form.preferred_doctor:
        errors["preferred_doctor"] = "Please select a preferred doctor"
    if not form.looking_for_euthanasia:
        errors["looking_for_euthanasia"] = "Please select an option"
    return errors


def _validate_existing_client(session: IntakeSession) -> Errors:
    errors: Errors = {}
    form = session.form
    if _blank(form.best_phone_number):
        errors["best_phone_number"] = "Phone number is required"
    if session.is_logged_in:
        if not form.selected_pet_ids:
            errors["selected_pet_ids"] = "Please select at least one pet"
    elif _blank(form.what_pets):
        errors["what_pets"] = "Pet information is required"
    if not form.preferred_doctor_existing:
        errors["preferred_doctor_existing"] = "Please select a preferred doctor"
    if not form.looking_for_euthanasia_existing:
        errors["looking_for_euthanasia_existing"] = "Please select an option"
    return errors


def _validate_euthanasia_intro(session: IntakeSession) -> Errors:
    errors: Errors = {}
    form = session.form
    if _blank(form.euthanasia_reason):
        errors["euthanasia_reason"] = "Please let us know what is going on with your pet"
    if _blank(form.been_to_vet_last_three_months):
        errors["been_to_vet_last_three_months"] = (
            "Please let us know if your pet has been to the veterinarian in the last three months"
        )
    if not form.interested_in_other_options:
        errors["interested_in_other_options"] = "Please select an option"
    return errors


def _validate_service_area(session: IntakeSession) -> Errors:
    if not session.form.service_area:
        return {"service_area": "Please select a service area"}
    return {}


def _validate_euthanasia_continued(session: IntakeSession) -> Errors:
    errors: Errors = {}
    form = session.form
    if not form.selected_date_time_slots and _blank(form.preferred_date_time):
        errors["preferred_date_time"] = "Please enter your preferred date and time"
    if not form.aftercare_preference:
        errors["aftercare_preference"] = "Please select an aftercare preference"
    return errors


def _validate_request_visit(session: IntakeSession) -> Errors:
    errors: Errors = {}
    form = session.form
    if _blank(form.visit_details):
        errors["visit_details"] = "Please provide details about the services you need"
    if not form.needs_urgent_scheduling:
        errors["needs_urgent_scheduling"] = "Please select whether this is urgent"
    if form.needs_urgent_scheduling == NO:
        if session.candidate_slots:
            if not form.selected_date_time_slots_visit and not form.none_of_work_for_me_visit:
                errors["selected_date_time_slots_visit"] = (
                    "Please select your preferred times or indicate that none of these work for you"
                )
        elif not session.loading_slots and _blank(form.preferred_date_time_visit):
            errors["preferred_date_time_visit"] = "Please enter your preferred date and time"
    return errors


PAGE_VALIDATORS: Dict[Page, Callable[[IntakeSession], Errors]] = {
    Page.INTRO: _validate_intro,
    Page.NEW_CLIENT: _validate_new_client,
    Page.EXISTING_CLIENT: _validate_existing_client,
    Page.EUTHANASIA_INTRO: _validate_euthanasia_intro,
    Page.EUTHANASIA_SERVICE_AREA: _validate_service_area,
    Page.EUTHANASIA_CONTINUED: _validate_euthanasia_continued,
    Page.REQUEST_VISIT_CONTINUED: _validate_request_visit,
}


def validate_page(session: IntakeSession, page: Optional[Page] = None) -> Errors:
    """
    Validate one page (the current page by default).

    Returns:
        Field-keyed error messages; empty when valid
    """
    page = page or session.page
    validator = PAGE_VALIDATORS.get(page)
    return validator(session) if validator else {}
