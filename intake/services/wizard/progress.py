"""Progress indicator steps for the active branch."""

from dataclasses import dataclass
from typing import List

from ...constants import NO, YES
from ...core.enums import Page
from .form_data import IntakeSession

COMPLETED = "completed"
CURRENT = "current"
UPCOMING = "upcoming"

# Service-area variants share one step
_STEP_ALIASES = {
    Page.EUTHANASIA_PORTLAND: Page.EUTHANASIA_SERVICE_AREA,
    Page.EUTHANASIA_HIGH_PEAKS: Page.EUTHANASIA_SERVICE_AREA,
}

_EUTHANASIA_PAGES = (
    Page.EUTHANASIA_INTRO,
    Page.EUTHANASIA_SERVICE_AREA,
    Page.EUTHANASIA_PORTLAND,
    Page.EUTHANASIA_HIGH_PEAKS,
    Page.EUTHANASIA_CONTINUED,
)


@dataclass(frozen=True)
class ProgressStep:
    page: Page
    label: str
    status: str


def _step_pages(session: IntakeSession) -> List[tuple]:
    form = session.form
    page = session.page
    steps = []

    if not session.is_logged_in and (page == Page.INTRO or not form.have_used_services_before):
        steps.append((Page.INTRO, "Introduction"))

    if session.is_logged_in or form.have_used_services_before == YES or page == Page.EXISTING_CLIENT:
        steps.append((Page.EXISTING_CLIENT, "Request an Appointment"))
    elif form.have_used_services_before == NO or page == Page.NEW_CLIENT:
        steps.append((Page.NEW_CLIENT, "New Client Information"))

    if session.is_euthanasia or page in _EUTHANASIA_PAGES:
        steps.append((Page.EUTHANASIA_INTRO, "Euthanasia Details"))
        steps.append((Page.EUTHANASIA_SERVICE_AREA, "Service Area"))
        steps.append((Page.EUTHANASIA_CONTINUED, "Euthanasia Preferences"))
    elif page == Page.REQUEST_VISIT_CONTINUED or session.euthanasia_answer == NO:
        steps.append((Page.REQUEST_VISIT_CONTINUED, "Visit Details"))

    return steps


def progress_steps(session: IntakeSession) -> List[ProgressStep]:
    """
    Steps shown in the progress indicator, each marked completed, current or upcoming.

    Empty on the success page.
    """
    if session.page == Page.SUCCESS:
        return []

    pages = _step_pages(session)
    current = _STEP_ALIASES.get(session.page, session.page)
    ids = [p for p, _ in pages]
    current_index = ids.index(current) if current in ids else -1

    result = []
    for index, (page, label) in enumerate(pages):
        if index < current_index:
            status = COMPLETED
        elif index == current_index:
            status = CURRENT
        else:
            status = UPCOMING
        result.append(ProgressStep(page=page, label=label, status=status))
    return result
