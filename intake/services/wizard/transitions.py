"""Forward and back transition tables for the intake wizard.

Each table maps ``(page, answer key)`` to a destination. The answer key is
derived from the session by a per-page function, so navigating back and
then forward again always re-derives the same page from the current
answers rather than from history.
"""

from typing import Callable, Dict, Final, Optional, Tuple, Union

from ...constants import NO, SERVICE_AREA_HIGH_PEAKS, SERVICE_AREA_PORTLAND, YES
from ...core.enums import ClientType, Page
from .form_data import IntakeSession

SUBMIT: Final[str] = "submit"

Destination = Union[Page, str]
AnswerKey = Optional[str]

AUTHENTICATED: Final[str] = "authenticated"
ANONYMOUS: Final[str] = "anonymous"


def _yes_no(value: str) -> str:
    return YES if value == YES else NO


FORWARD_TABLE: Dict[Tuple[Page, AnswerKey], Destination] = {
    (Page.INTRO, YES): Page.EXISTING_CLIENT,
    # Reached only after the email check clears the address
    (Page.INTRO, NO): Page.NEW_CLIENT,
    (Page.NEW_CLIENT, YES): Page.EUTHANASIA_INTRO,
    (Page.NEW_CLIENT, NO): Page.REQUEST_VISIT_CONTINUED,
    (Page.EXISTING_CLIENT, YES): Page.EUTHANASIA_INTRO,
    (Page.EXISTING_CLIENT, NO): Page.REQUEST_VISIT_CONTINUED,
    (Page.EUTHANASIA_INTRO, None): Page.EUTHANASIA_SERVICE_AREA,
    (Page.EUTHANASIA_SERVICE_AREA, SERVICE_AREA_PORTLAND): Page.EUTHANASIA_PORTLAND,
    (Page.EUTHANASIA_SERVICE_AREA, SERVICE_AREA_HIGH_PEAKS): Page.EUTHANASIA_HIGH_PEAKS,
    (Page.EUTHANASIA_PORTLAND, None): Page.EUTHANASIA_CONTINUED,
    (Page.EUTHANASIA_HIGH_PEAKS, None): Page.EUTHANASIA_CONTINUED,
    (Page.EUTHANASIA_CONTINUED, None): SUBMIT,
    (Page.REQUEST_VISIT_CONTINUED, None): SUBMIT,
}

FORWARD_KEYS: Dict[Page, Callable[[IntakeSession], AnswerKey]] = {
    Page.INTRO: lambda s: _yes_no(s.form.have_used_services_before),
    Page.NEW_CLIENT: lambda s: _yes_no(s.form.looking_for_euthanasia),
    Page.EXISTING_CLIENT: lambda s: _yes_no(s.form.looking_for_euthanasia_existing),
    Page.EUTHANASIA_SERVICE_AREA: lambda s: s.form.service_area or None,
}

BACK_TABLE: Dict[Tuple[Page, AnswerKey], Optional[Page]] = {
    (Page.NEW_CLIENT, None): Page.INTRO,
    (Page.EXISTING_CLIENT, ANONYMOUS): Page.INTRO,
    (Page.EXISTING_CLIENT, AUTHENTICATED): None,
    (Page.EUTHANASIA_INTRO, ClientType.EXISTING.value): Page.EXISTING_CLIENT,
    (Page.EUTHANASIA_INTRO, ClientType.NEW.value): Page.NEW_CLIENT,
    (Page.REQUEST_VISIT_CONTINUED, ClientType.EXISTING.value): Page.EXISTING_CLIENT,
    (Page.REQUEST_VISIT_CONTINUED, ClientType.NEW.value): Page.NEW_CLIENT,
    (Page.EUTHANASIA_SERVICE_AREA, None): Page.EUTHANASIA_INTRO,
    (Page.EUTHANASIA_PORTLAND, None): Page.EUTHANASIA_SERVICE_AREA,
    (Page.EUTHANASIA_HIGH_PEAKS, None): Page.EUTHANASIA_SERVICE_AREA,
    (Page.EUTHANASIA_CONTINUED, SERVICE_AREA_PORTLAND): Page.EUTHANASIA_PORTLAND,
    (Page.EUTHANASIA_CONTINUED, SERVICE_AREA_HIGH_PEAKS): Page.EUTHANASIA_HIGH_PEAKS,
}

BACK_KEYS: Dict[Page, Callable[[IntakeSession], AnswerKey]] = {
    Page.EXISTING_CLIENT: lambda s: AUTHENTICATED if s.is_logged_in else ANONYMOUS,
    Page.EUTHANASIA_INTRO: lambda s: s.client_type.value,
    Page.REQUEST_VISIT_CONTINUED: lambda s: s.client_type.value,
    # Anything but Portland goes back to the High Peaks page
    Page.EUTHANASIA_CONTINUED: lambda s: (
        SERVICE_AREA_PORTLAND
        if s.form.service_area == SERVICE_AREA_PORTLAND
        else SERVICE_AREA_HIGH_PEAKS
    ),
}


def next_destination(session: IntakeSession) -> Optional[Destination]:
    """
    Destination of ``next`` from the current page.

    Returns:
        A Page, ``SUBMIT``, or None when no transition applies
    """
    key_fn = FORWARD_KEYS.get(session.page)
    key = key_fn(session) if key_fn else None
    return FORWARD_TABLE.get((session.page, key))


def previous_page(session: IntakeSession) -> Optional[Page]:
    """Destination of ``back`` from the current page, or None to stay put."""
    key_fn = BACK_KEYS.get(session.page)
    key = key_fn(session) if key_fn else None
    return BACK_TABLE.get((session.page, key))
