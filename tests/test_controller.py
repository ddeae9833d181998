"""Tests for the wizard controller."""

import asyncio
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from intake.core.enums import NavigationOutcome, Page
from intake.core.exceptions import ApiError, NetworkError, SubmissionError
from intake.services.api.models import ClientProfile, EmailCheckResult
from intake.services.scheduling.availability_matcher import AvailabilityQuery, MatchResult
from intake.services.scheduling.slot_normalizer import CandidateSlot
from intake.services.wizard.controller import IntakeController
from intake.services.wizard.form_data import Address, IntakeSession

SLOTS = [
    CandidateSlot("2026-10-20", "10:00", "Tue, Oct 20 at 10:00 AM", "2026-10-20T10:00:00-04:00"),
    CandidateSlot("2026-10-21", "13:00", "Wed, Oct 21 at 1:00 PM", "2026-10-21T13:00:00-04:00"),
    CandidateSlot("2026-10-22", "15:05", "Thu, Oct 22 at 3:05 PM", "2026-10-22T15:05:00-04:00"),
]

ADDRESS = {"line1": "1 Main St", "city": "Portland", "state": "ME", "zip": "04101"}


@pytest.fixture
def matcher():
    """Availability matcher double."""
    fake = MagicMock()

    async def find_slots(query):
        return MatchResult(slots=list(SLOTS), service_minutes=60)

    fake.find_slots = MagicMock(side_effect=find_slots)
    return fake


@pytest_asyncio.fixture
async def make_controller(mock_api, settings, matcher):
    """Factory building controllers that are closed after the test."""
    created = []

    def factory(session=None, **kwargs):
        controller = IntakeController(
            mock_api, session=session, settings=settings, matcher=matcher, **kwargs
        )
        created.append(controller)
        return controller

    yield factory

    for controller in created:
        await controller.close()


def _existing_client_session(**answers):
    """Anonymous existing client ready to leave the existing-client page."""
    session = IntakeSession(page=Page.EXISTING_CLIENT)
    session.update(
        {
            "email": "jane@example.com",
            "full_name": {"first": "Jane", "last": "Doe"},
            "have_used_services_before": "Yes",
            "best_phone_number": "207-555-1234",
            "what_pets": "Biscuit",
            "preferred_doctor_existing": "Dr. Jane Smith",
            "looking_for_euthanasia_existing": "No",
            "visit_details": "Annual exam",
            "needs_urgent_scheduling": "No",
        }
    )
    session.update(answers)
    return session


def _fill_intro(controller, have_used):
    controller.update(
        {
            "email": "jane@example.com",
            "full_name.first": "Jane",
            "full_name.last": "Doe",
            "have_used_services_before": have_used,
        }
    )


class TestInitialState:
    """Tests for controller construction."""

    @pytest.mark.asyncio
    async def test_anonymous_starts_on_intro(self, make_controller):
        """Test anonymous sessions start on intro."""
        controller = make_controller()

        assert controller.page == Page.INTRO
        assert controller.session.is_logged_in is False

    @pytest.mark.asyncio
    async def test_authenticated_starts_on_existing_client(self, make_controller, mock_api):
        """Test authenticated clients skip the intro."""
        mock_api.is_authenticated = True

        controller = make_controller()

        assert controller.page == Page.EXISTING_CLIENT

    @pytest.mark.asyncio
    async def test_progress(self, make_controller):
        """Test the progress indicator is exposed."""
        steps = make_controller().progress()

        assert [s.page for s in steps] == [Page.INTRO]


class TestIntroNavigation:
    """Tests for leaving the intro page."""

    @pytest.mark.asyncio
    async def test_invalid_intro(self, make_controller):
        """Test validation blocks navigation."""
        controller = make_controller()

        outcome = await controller.next()

        assert outcome == NavigationOutcome.INVALID
        assert controller.page == Page.INTRO
        assert controller.errors["email"] == "Email is required"

    @pytest.mark.asyncio
    async def test_returning_client(self, make_controller, mock_api):
        """Test a returning client goes to existing-client without a blocking check."""
        controller = make_controller()
        _fill_intro(controller, "Yes")

        outcome = await controller.next()

        assert outcome == NavigationOutcome.MOVED
        assert controller.page == Page.EXISTING_CLIENT
        assert controller.errors == {}

    @pytest.mark.asyncio
    async def test_new_client_with_unknown_email(self, make_controller):
        """Test a new client proceeds when the email is not on file."""
        controller = make_controller()
        _fill_intro(controller, "No")

        outcome = await controller.next()

        assert outcome == NavigationOutcome.MOVED
        assert controller.page == Page.NEW_CLIENT

    @pytest.mark.asyncio
    async def test_new_client_with_known_email_is_blocked(self, make_controller, mock_api):
        """Test a known email raises the existing-client notice."""
        known = EmailCheckResult(exists=True, has_account=True, practice_id=1)
        mock_api.public.check_email.return_value = known
        controller = make_controller()
        _fill_intro(controller, "No")

        outcome = await controller.next()

        assert outcome == NavigationOutcome.BLOCKED
        assert controller.page == Page.INTRO
        assert controller.session.show_existing_client_modal is True
        assert controller.session.email_check_for_modal == known
        assert controller.session.checking_email is False

        controller.dismiss_existing_client_modal()
        assert controller.session.show_existing_client_modal is False

    @pytest.mark.asyncio
    async def test_email_check_failure_does_not_block(self, make_controller, mock_api):
        """Test a failed email check lets the client continue."""
        mock_api.public.check_email.side_effect = NetworkError("down")
        controller = make_controller()
        _fill_intro(controller, "No")

        outcome = await controller.next()

        assert outcome == NavigationOutcome.MOVED
        assert controller.page == Page.NEW_CLIENT


class TestBackNavigation:
    """Tests for back()."""

    @pytest.mark.asyncio
    async def test_anonymous_existing_client_back(self, make_controller):
        """Test back to intro."""
        controller = make_controller(session=IntakeSession(page=Page.EXISTING_CLIENT))

        assert await controller.back() == NavigationOutcome.MOVED
        assert controller.page == Page.INTRO

    @pytest.mark.asyncio
    async def test_logged_in_existing_client_back_is_blocked(self, make_controller):
        """Test logged-in clients cannot go back past existing-client."""
        controller = make_controller(session=IntakeSession(is_logged_in=True))

        assert await controller.back() == NavigationOutcome.BLOCKED
        assert controller.page == Page.EXISTING_CLIENT

    @pytest.mark.asyncio
    async def test_leaving_slot_page_clears_slots(self, make_controller):
        """Test candidate slots are dropped when leaving the slot page."""
        controller = make_controller(session=_existing_client_session())
        await controller.next()
        await controller.settle()
        assert controller.session.candidate_slots

        await controller.back()

        assert controller.page == Page.EXISTING_CLIENT
        assert controller.session.candidate_slots == []


class TestSlotSearch:
    """Tests for background availability searches."""

    @pytest.mark.asyncio
    async def test_entering_slot_page_searches(self, make_controller, matcher):
        """Test slots load when the visit page is entered."""
        controller = make_controller(session=_existing_client_session())

        outcome = await controller.next()
        assert controller.session.loading_slots is True
        await controller.settle()

        assert outcome == NavigationOutcome.MOVED
        assert controller.page == Page.REQUEST_VISIT_CONTINUED
        assert controller.session.candidate_slots == SLOTS
        assert controller.session.service_minutes_used == 60
        assert controller.session.loading_slots is False

        query = matcher.find_slots.call_args.args[0]
        assert isinstance(query, AvailabilityQuery)
        assert query.preferred_doctor == "Dr. Jane Smith"
        assert query.is_logged_in is False

    @pytest.mark.asyncio
    async def test_urgent_request_clears_slots(self, make_controller, matcher):
        """Test switching to urgent drops the offered slots."""
        controller = make_controller(session=_existing_client_session())
        await controller.next()
        await controller.settle()

        controller.update(needs_urgent_scheduling="Yes")
        await controller.settle()

        assert controller.session.candidate_slots == []
        assert matcher.find_slots.call_count == 1

    @pytest.mark.asyncio
    async def test_urgent_request_never_searches(self, make_controller, matcher):
        """Test no search runs for urgent visits."""
        controller = make_controller(
            session=_existing_client_session(needs_urgent_scheduling="Yes")
        )

        await controller.next()
        await controller.settle()

        matcher.find_slots.assert_not_called()

    @pytest.mark.asyncio
    async def test_stale_search_result_is_discarded(self, make_controller, matcher):
        """Test a slow search for a previous doctor cannot overwrite newer slots."""
        release = asyncio.Event()

        async def find_slots(query):
            if query.preferred_doctor == "Dr. Jane Smith":
                await release.wait()
                return MatchResult(slots=[SLOTS[0]], service_minutes=40)
            return MatchResult(slots=SLOTS[1:], service_minutes=60)

        matcher.find_slots.side_effect = find_slots
        controller = make_controller(session=_existing_client_session())
        await controller.next()

        controller.update(preferred_doctor_existing="Dr. Robert Jones")
        release.set()
        await controller.settle()

        assert matcher.find_slots.call_count == 2
        assert controller.session.candidate_slots == SLOTS[1:]
        assert controller.session.service_minutes_used == 60

    @pytest.mark.asyncio
    async def test_failed_search_clears_loading_flag(self, make_controller, matcher):
        """Test an exception from the matcher does not leave slots loading."""
        matcher.find_slots.side_effect = AttributeError("'str' object has no attribute 'get'")
        controller = make_controller(session=_existing_client_session())

        await controller.next()
        assert controller.session.loading_slots is True
        await controller.settle()

        assert controller.page == Page.REQUEST_VISIT_CONTINUED
        assert controller.session.loading_slots is False
        assert controller.session.candidate_slots == []

    @pytest.mark.asyncio
    async def test_public_providers_load_for_complete_address(self, make_controller, mock_api):
        """Test the public directory is fetched once the address is complete."""
        vets = [MagicMock(name="vet")]
        mock_api.public.fetch_veterinarians.return_value = vets
        controller = make_controller(session=IntakeSession(page=Page.NEW_CLIENT))

        controller.update({"physical_address.line1": "1 Main St"})
        await controller.settle()
        mock_api.public.fetch_veterinarians.assert_not_awaited()

        controller.update({"physical_address": ADDRESS})
        await controller.settle()

        mock_api.public.fetch_veterinarians.assert_awaited_once_with(
            1, "1 Main St, Portland, ME, 04101"
        )
        assert controller.session.public_providers == vets


class TestSlotSelection:
    """Tests for ranking candidate slots."""

    @pytest_asyncio.fixture
    async def on_slot_page(self, make_controller):
        controller = make_controller(session=_existing_client_session())
        await controller.next()
        await controller.settle()
        return controller

    @pytest.mark.asyncio
    async def test_toggle_ranks_in_order(self, on_slot_page):
        """Test toggling assigns increasing ranks and unranking renumbers."""
        controller = on_slot_page

        assert controller.toggle_slot(SLOTS[2].iso) == 1
        assert controller.toggle_slot(SLOTS[0].iso) == 2
        assert controller.toggle_slot(SLOTS[2].iso) is None

        prefs = controller.session.form.selected_date_time_slots_visit
        assert prefs.as_dict() == {SLOTS[0].iso: 1}

    @pytest.mark.asyncio
    async def test_none_work_and_ranking_are_exclusive(self, on_slot_page):
        """Test none-work clears ranks and ranking clears none-work."""
        controller = on_slot_page
        form = controller.session.form
        controller.toggle_slot(SLOTS[0].iso)

        controller.set_none_work(True)
        assert form.none_of_work_for_me_visit is True
        assert not form.selected_date_time_slots_visit

        controller.toggle_slot(SLOTS[1].iso)
        assert form.none_of_work_for_me_visit is False
        assert form.selected_date_time_slots_visit.rank_of(SLOTS[1].iso) == 1

    @pytest.mark.asyncio
    async def test_toggle_outside_slot_page(self, make_controller):
        """Test slot selection is rejected on other pages."""
        controller = make_controller()

        with pytest.raises(ValueError):
            controller.toggle_slot(SLOTS[0].iso)


class TestSubmission:
    """Tests for submitting the request."""

    @pytest_asyncio.fixture
    async def ready(self, make_controller):
        controller = make_controller(
            session=_existing_client_session(needs_urgent_scheduling="Yes")
        )
        await controller.next()
        return controller

    @pytest.mark.asyncio
    async def test_submit_failure_then_retry(self, ready, mock_api):
        """Test a rejected submission keeps the page and can be retried."""
        mock_api.public.submit_form.side_effect = [
            SubmissionError("Email address is invalid", status=400),
            {"ok": True},
        ]

        outcome = await ready.next()

        assert outcome == NavigationOutcome.SUBMIT_FAILED
        assert ready.page == Page.REQUEST_VISIT_CONTINUED
        assert ready.errors == {"submit": "Email address is invalid"}
        assert ready.session.submitting is False

        outcome = await ready.next()

        assert outcome == NavigationOutcome.SUBMITTED
        assert ready.page == Page.SUCCESS
        assert ready.session.submitted_payload["appointmentType"] == "regular_visit"
        assert mock_api.public.submit_form.await_count == 2

    @pytest.mark.asyncio
    async def test_nothing_after_success(self, ready, mock_api):
        """Test the success page is terminal."""
        await ready.submit()

        assert await ready.next() == NavigationOutcome.BLOCKED
        assert ready.progress() == []
        mock_api.public.submit_form.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_submit_validates_first(self, ready, mock_api):
        """Test an invalid page is not submitted."""
        ready.update(visit_details="")

        assert await ready.submit() == NavigationOutcome.INVALID
        mock_api.public.submit_form.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_submit_again_on_success_is_blocked(self, ready, mock_api):
        """Test calling submit directly on the success page does not post twice."""
        assert await ready.submit() == NavigationOutcome.SUBMITTED
        payload = ready.session.submitted_payload

        assert await ready.submit() == NavigationOutcome.BLOCKED
        assert ready.page == Page.SUCCESS
        assert ready.session.submitted_payload is payload
        mock_api.public.submit_form.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_submit_from_intro_is_blocked(self, make_controller, mock_api):
        """Test a partially answered form cannot be submitted from the first page."""
        controller = make_controller()
        _fill_intro(controller, "Yes")

        assert await controller.submit() == NavigationOutcome.BLOCKED
        assert controller.page == Page.INTRO
        assert controller.session.submitted_payload is None
        mock_api.public.submit_form.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_submit_from_middle_page_is_blocked(self, make_controller, mock_api):
        """Test submit is rejected on a page that still leads somewhere."""
        controller = make_controller(session=_existing_client_session())

        assert await controller.submit() == NavigationOutcome.BLOCKED
        assert controller.page == Page.EXISTING_CLIENT
        mock_api.public.submit_form.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_submit_while_in_flight_is_blocked(self, ready, mock_api):
        """Test a second submit is rejected while the first is pending."""
        release = asyncio.Event()

        async def submit_form(payload):
            await release.wait()
            return {"ok": True}

        mock_api.public.submit_form.side_effect = submit_form
        first = asyncio.create_task(ready.submit())
        await asyncio.sleep(0)
        assert ready.session.submitting is True

        assert await ready.submit() == NavigationOutcome.BLOCKED

        release.set()
        assert await first == NavigationOutcome.SUBMITTED
        mock_api.public.submit_form.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_switching_client_type_drops_other_branch(self, make_controller, mock_api):
        """Test answers left on the abandoned branch do not leak into the request."""
        controller = make_controller()
        _fill_intro(controller, "No")
        assert await controller.next() == NavigationOutcome.MOVED
        assert controller.page == Page.NEW_CLIENT
        controller.update(
            looking_for_euthanasia="Yes",
            phone_numbers="207-555-0000",
            previous_veterinary_practices="Harbor Animal Hospital",
            preferred_doctor="Dr. Robert Jones",
        )

        assert await controller.back() == NavigationOutcome.MOVED
        controller.update(have_used_services_before="Yes")
        assert await controller.next() == NavigationOutcome.MOVED
        assert controller.page == Page.EXISTING_CLIENT
        controller.update(
            best_phone_number="207-555-1234",
            what_pets="Biscuit",
            preferred_doctor_existing="Dr. Jane Smith",
            looking_for_euthanasia_existing="No",
            visit_details="Annual exam",
            needs_urgent_scheduling="Yes",
        )

        assert await controller.next() == NavigationOutcome.MOVED
        assert controller.page == Page.REQUEST_VISIT_CONTINUED
        assert await controller.next() == NavigationOutcome.SUBMITTED

        payload = mock_api.public.submit_form.await_args.args[0]
        assert payload["clientType"] == "existing"
        assert payload["appointmentType"] == "regular_visit"
        assert payload["visitDetails"] == "Annual exam"
        assert payload["phoneNumber"] == "207-555-1234"
        assert payload["preferredDoctor"] == "Dr. Jane Smith"
        assert "previousVeterinaryPractices" not in payload
        assert "euthanasiaReason" not in payload


class TestEmailCheck:
    """Tests for the debounced email-existence check."""

    @pytest.mark.asyncio
    async def test_check_is_debounced(self, make_controller, mock_api):
        """Test rapid edits produce a single check for the final value."""
        controller = make_controller()

        controller.update(email="jane@example.co")
        controller.update(email="jane@example.com")
        await controller.settle()

        mock_api.public.check_email.assert_awaited_once_with("jane@example.com", 1)
        assert controller.session.email_check_result.exists is False
        assert controller.session.checking_email is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", ["ja", "jane@", "jane@example"])
    async def test_incomplete_email_is_not_checked(self, make_controller, mock_api, email):
        """Test short or malformed addresses are not checked."""
        controller = make_controller()

        controller.update(email=email)
        await controller.settle()

        mock_api.public.check_email.assert_not_awaited()
        assert controller.session.email_check_result is None

    @pytest.mark.asyncio
    async def test_logged_in_is_not_checked(self, make_controller, mock_api):
        """Test logged-in sessions are never checked."""
        controller = make_controller(session=IntakeSession(is_logged_in=True))

        controller.update(email="jane@example.com")
        await controller.settle()

        mock_api.public.check_email.assert_not_awaited()


class TestClientPreload:
    """Tests for the logged-in preload."""

    @pytest.mark.asyncio
    async def test_prefill(self, make_controller, mock_api, pets, providers):
        """Test pets, alerts, doctor and contact details are prefilled."""
        mock_api.is_authenticated = True
        mock_api.directory.fetch_client_pets.return_value = pets
        mock_api.directory.fetch_veterinarians.return_value = providers

        def alerts(pims_id):
            if pims_id == "901":
                return "Bites when nervous"
            raise ApiError("Not found", status=404)

        mock_api.directory.fetch_pet_alerts.side_effect = alerts
        mock_api.directory.fetch_client_profile.return_value = ClientProfile(
            first_name="Jane",
            last_name="Doe",
            phone="207-555-1234",
            address1="1 Main St",
            city="Portland",
            state="ME",
            zip="04101",
        )
        controller = make_controller(user_email="jane@example.com")

        await controller.start()
        await controller.settle()

        session = controller.session
        form = session.form
        assert session.pets == pets
        assert session.providers == providers
        assert session.pet_alerts == {"901": "Bites when nervous", "902": None}
        assert session.primary_provider_name == "Jane Smith"
        assert session.loading_client_data is False
        assert form.email == "jane@example.com"
        assert form.have_used_services_before == "Yes"
        assert form.preferred_doctor_existing == "Dr. Jane Smith"
        assert form.full_name.first == "Jane"
        assert form.best_phone_number == "207-555-1234"
        assert form.physical_address == Address(
            line1="1 Main St", city="Portland", state="ME", zip="04101", country="United States"
        )
        assert form.new_physical_address == form.physical_address
        mock_api.directory.fetch_veterinarians.assert_awaited_once_with(None)

    @pytest.mark.asyncio
    async def test_partial_failure_is_not_fatal(self, make_controller, mock_api, providers):
        """Test a failed pet lookup still loads the rest."""
        mock_api.is_authenticated = True
        mock_api.directory.fetch_client_pets.side_effect = NetworkError("down")
        mock_api.directory.fetch_veterinarians.return_value = providers
        mock_api.directory.fetch_client_profile.side_effect = ApiError("Forbidden", status=403)
        controller = make_controller()

        await controller.start()
        await controller.settle()

        session = controller.session
        assert session.pets == []
        assert session.providers == providers
        assert session.form.have_used_services_before == "Yes"
        assert session.form.preferred_doctor_existing == ""
        assert session.page == Page.EXISTING_CLIENT

    @pytest.mark.asyncio
    async def test_anonymous_start_loads_nothing(self, make_controller, mock_api):
        """Test start() is a no-op for anonymous sessions."""
        controller = make_controller()

        await controller.start()
        await controller.settle()

        mock_api.directory.fetch_client_pets.assert_not_awaited()
