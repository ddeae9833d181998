"""Wizard controller - drives one appointment-request session."""

import asyncio
import re
import secrets
from typing import Any, Awaitable, Dict, List, Mapping, Optional, Set, Tuple

from loguru import logger

from ...constants import DOCTOR_PREFIX, NO, YES, LogEmoji
from ...core.cancellation import Generation, GenerationToken
from ...core.config import IntakeSettings, get_settings
from ...core.enums import NavigationOutcome, Page
from ...core.exceptions import IntakeError, SubmissionError
from ...core.logger import session_id_ctx
from ...utils.debounce import Debouncer
from ...utils.masking import mask_email, mask_phone
from ..api.models import ClientProfile, Pet, Provider
from ..scheduling.availability_matcher import (
    AvailabilityMatcher,
    AvailabilityQuery,
    join_address_parts,
)
from ..scheduling.provider_resolver import resolve_provider
from .form_data import Address, IntakeSession
from .preferences import EMPTY_PREFERENCES, SlotPreferenceSet
from .progress import ProgressStep, progress_steps
from .submission import build_submission_payload
from .transitions import SUBMIT, next_destination, previous_page
from .validation import validate_page

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_EMAIL_CHECK_LENGTH = 3

_DOCTOR_FIELDS = {"preferred_doctor", "preferred_doctor_existing"}
_ADDRESS_FIELDS = {"physical_address", "new_physical_address", "moved_since_last_visit"}

# page -> (ranked slots field, "none of these work" field)
_SLOT_FIELDS: Dict[Page, Tuple[str, str]] = {
    Page.EUTHANASIA_CONTINUED: ("selected_date_time_slots", "none_of_work_for_me"),
    Page.REQUEST_VISIT_CONTINUED: ("selected_date_time_slots_visit", "none_of_work_for_me_visit"),
}


def _address_text(address: Optional[Address]) -> Optional[str]:
    if address is None:
        return None
    return join_address_parts(address.line1, address.city, address.state, address.zip)


class IntakeController:
    """
    Page state machine for the appointment-request wizard.

    All answers go through :meth:`update`, which also schedules the
    background work an answer implies (email check, provider directory,
    slot search). Background results are tagged with a generation token
    and dropped if a dependency changed while they were in flight.
    """

    def __init__(
        self,
        api: Any,
        session: Optional[IntakeSession] = None,
        settings: Optional[IntakeSettings] = None,
        matcher: Optional[AvailabilityMatcher] = None,
        user_email: Optional[str] = None,
    ):
        """
        Initialize controller.

        Args:
            api: PortalApiClient (or an object exposing the same endpoint groups)
            session: Existing session; a fresh one matching the client's login state otherwise
            settings: Settings instance (defaults to the global singleton)
            matcher: Availability matcher (built from ``api`` by default)
            user_email: Email of the logged-in user, used for prefill
        """
        self.api = api
        self.settings = settings or get_settings()
        self.session = session or IntakeSession(
            is_logged_in=bool(getattr(api, "is_authenticated", False)),
            user_email=user_email,
        )
        self.matcher = matcher or AvailabilityMatcher(api, settings=self.settings)
        self.session_id = secrets.token_hex(4)
        session_id_ctx.set(self.session_id)

        self._slots_generation = Generation("slots")
        self._email_generation = Generation("email")
        self._providers_generation = Generation("providers")
        self._client_generation = Generation("client-data")
        self._email_debouncer = Debouncer(
            self.settings.email_check_debounce_seconds, name="email-check"
        )
        self._tasks: Set[asyncio.Task] = set()

        logger.info(
            f"{LogEmoji.START} Intake session {self.session_id} started "
            f"({'logged in' if self.session.is_logged_in else 'anonymous'}) on {self.session.page.value}"
        )

    # ------------------------------------------------------------------
    # Lifecycle

    async def start(self) -> None:
        """Kick off the logged-in preload; a no-op for anonymous sessions."""
        if self.session.is_logged_in:
            self._spawn(self.load_client_data(), "client-data")

    async def settle(self) -> None:
        """Wait until no background task is pending."""
        while self._tasks:
            pending = list(self._tasks)
            results = await asyncio.gather(*pending, return_exceptions=True)
            for result in results:
                # CancelledError is a BaseException and is skipped here
                if isinstance(result, Exception):
                    logger.error(f"Background task failed: {result!r}")

    async def close(self) -> None:
        """Cancel outstanding background work."""
        self._email_debouncer.cancel()
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

    def _spawn(self, coro: Awaitable[None], name: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=f"{self.session_id}:{name}")
        self._track(task)
        return task

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # ------------------------------------------------------------------
    # Answers

    @property
    def page(self) -> Page:
        return self.session.page

    @property
    def errors(self) -> Dict[str, str]:
        return self.session.errors

    def update(self, changes: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Set[str]:
        """
        Record answers and react to the ones that drive background work.

        Must be called from inside a running event loop.

        Returns:
            Top-level field names that changed
        """
        changed = self.session.update(changes, **kwargs)
        if not changed:
            return changed

        if "email" in changed:
            self._on_email_changed()
        if changed & _ADDRESS_FIELDS:
            self._on_address_changed()
        if self.page.is_slot_page and (
            changed & _DOCTOR_FIELDS
            or "selected_pet_ids" in changed
            or (self.page == Page.REQUEST_VISIT_CONTINUED and "needs_urgent_scheduling" in changed)
        ):
            self._refresh_slots()
        return changed

    def progress(self) -> List[ProgressStep]:
        return progress_steps(self.session)

    def dismiss_existing_client_modal(self) -> None:
        self.session.show_existing_client_modal = False

    # ------------------------------------------------------------------
    # Navigation

    async def next(self) -> NavigationOutcome:
        """
        Validate the current page and move forward (or submit).

        Returns:
            MOVED, INVALID, BLOCKED, SUBMITTED or SUBMIT_FAILED
        """
        session = self.session
        if session.page == Page.SUCCESS:
            return NavigationOutcome.BLOCKED

        session.errors = validate_page(session)
        if session.errors:
            logger.debug(f"Page {session.page.value} invalid: {sorted(session.errors)}")
            return NavigationOutcome.INVALID

        destination = next_destination(session)
        if destination == SUBMIT:
            return await self.submit()
        if destination is None:
            return NavigationOutcome.BLOCKED

        if session.page == Page.INTRO and destination == Page.NEW_CLIENT:
            if await self._email_already_known():
                return NavigationOutcome.BLOCKED

        self._go_to(destination)
        return NavigationOutcome.MOVED

    async def back(self) -> NavigationOutcome:
        destination = previous_page(self.session)
        if destination is None:
            return NavigationOutcome.BLOCKED
        self._go_to(destination)
        return NavigationOutcome.MOVED

    def _go_to(self, page: Page) -> None:
        previous = self.session.page
        self.session.page = page
        self.session.errors = {}
        logger.info(f"Page {previous.value} -> {page.value}")

        if page.is_slot_page:
            self._refresh_slots()
        elif previous.is_slot_page:
            self._clear_slots()

    async def _email_already_known(self) -> bool:
        """Block new-client registration for an email the practice already has."""
        session = self.session
        email = session.form.email.strip()
        if not email:
            return False

        session.checking_email = True
        try:
            result = await self.api.public.check_email(email, self.settings.practice_id)
        except IntakeError as e:
            logger.warning(f"Email check failed, continuing as new client: {e.message}")
            return False
        finally:
            session.checking_email = False

        if result.exists:
            logger.info(f"Email {mask_email(email)} already on file; showing existing-client notice")
            session.email_check_for_modal = result
            session.show_existing_client_modal = True
            return True
        return False

    # ------------------------------------------------------------------
    # Submission

    async def submit(self) -> NavigationOutcome:
        """
        Validate the current page and send the assembled request once.

        On failure the page is unchanged and ``errors["submit"]`` holds the
        message; calling again retries. Blocked anywhere but the last page of
        a branch and while a submission is already in flight.
        """
        session = self.session
        if session.submitting or next_destination(session) != SUBMIT:
            logger.debug(f"Submit blocked on {session.page.value} (submitting={session.submitting})")
            return NavigationOutcome.BLOCKED

        session.errors = validate_page(session)
        if session.errors:
            return NavigationOutcome.INVALID

        payload = build_submission_payload(session)
        session.submitting = True
        try:
            await self.api.public.submit_form(payload)
        except SubmissionError as e:
            session.errors = {"submit": e.message}
            return NavigationOutcome.SUBMIT_FAILED
        finally:
            session.submitting = False

        session.submitted_payload = payload
        session.page = Page.SUCCESS
        self._slots_generation.bump()
        logger.info(
            f"{LogEmoji.SUCCESS} Appointment request submitted "
            f"({payload['appointmentType']}, {payload['clientType']} client)"
        )
        return NavigationOutcome.SUBMITTED

    # ------------------------------------------------------------------
    # Slot selection

    def _slot_fields(self) -> Tuple[str, str]:
        try:
            return _SLOT_FIELDS[self.page]
        except KeyError:
            raise ValueError(f"Page {self.page.value} does not offer time slots")

    def toggle_slot(self, iso: str) -> Optional[int]:
        """
        Rank or unrank a candidate slot on the current page.

        Ranking a slot clears "none of these work for me".

        Returns:
            The slot's new rank, or None if it was unranked
        """
        ranked_field, none_field = self._slot_fields()
        preferences: SlotPreferenceSet = getattr(self.session.form, ranked_field)
        updated = preferences.toggle(iso)
        changes: Dict[str, Any] = {ranked_field: updated}
        if iso in updated:
            changes[none_field] = False
        self.update(changes)
        return updated.rank_of(iso)

    def set_none_work(self, value: bool = True) -> None:
        """Flag that no offered slot works; clears any ranked slots."""
        ranked_field, none_field = self._slot_fields()
        changes: Dict[str, Any] = {none_field: value}
        if value:
            changes[ranked_field] = EMPTY_PREFERENCES
        self.update(changes)

    # ------------------------------------------------------------------
    # Availability

    def _should_search(self) -> bool:
        session = self.session
        if not session.page.is_slot_page:
            return False
        doctor = session.selected_doctor
        if not doctor:
            return False
        if session.page == Page.REQUEST_VISIT_CONTINUED:
            return session.form.needs_urgent_scheduling == NO
        return True

    def _search_address(self) -> Optional[str]:
        form = self.session.form
        if (
            self.session.is_existing_client
            and form.moved_since_last_visit == YES
            and form.new_physical_address is not None
        ):
            return _address_text(form.new_physical_address)
        return _address_text(form.physical_address)

    def _refresh_slots(self) -> None:
        token = self._slots_generation.bump()
        if not self._should_search():
            self._clear_slots()
            return

        session = self.session
        query = AvailabilityQuery(
            preferred_doctor=session.selected_doctor,
            providers=list(session.active_providers),
            is_logged_in=session.is_logged_in,
            selected_pet_count=len(session.form.selected_pet_ids),
            address=self._search_address(),
        )
        session.loading_slots = True
        self._spawn(self._run_slot_search(token, query), "slots")

    def _clear_slots(self) -> None:
        self._slots_generation.bump()
        self.session.candidate_slots = []
        self.session.loading_slots = False

    async def _run_slot_search(self, token: GenerationToken, query: AvailabilityQuery) -> None:
        try:
            result = await self.matcher.find_slots(query)
            if not token.is_current:
                logger.debug(
                    f"Discarding stale slot search ({token.value} < {token.counter.current})"
                )
                return
            self.session.candidate_slots = result.slots
            if result.service_minutes is not None:
                self.session.service_minutes_used = result.service_minutes
        finally:
            if token.is_current:
                self.session.loading_slots = False

    # ------------------------------------------------------------------
    # Email existence check

    def _on_email_changed(self) -> None:
        token = self._email_generation.bump()
        self._email_debouncer.cancel()
        session = self.session
        if session.is_logged_in:
            return

        email = session.form.email.strip()
        if len(email) < MIN_EMAIL_CHECK_LENGTH or not EMAIL_PATTERN.match(email):
            session.email_check_result = None
            return

        task = self._email_debouncer.trigger(lambda: self._check_email_exists(token, email))
        self._track(task)

    async def _check_email_exists(self, token: GenerationToken, email: str) -> None:
        session = self.session
        session.checking_email = True
        try:
            result = await self.api.public.check_email(email, self.settings.practice_id)
        except IntakeError as e:
            logger.warning(f"Email check for {mask_email(email)} failed: {e.message}")
            if token.is_current:
                session.email_check_result = None
            return
        finally:
            if token.is_current:
                session.checking_email = False

        if token.is_current:
            session.email_check_result = result
            if result.exists and result.has_account:
                logger.info(f"Email {mask_email(email)} has a portal account; client should log in")

    # ------------------------------------------------------------------
    # Provider directories

    def _on_address_changed(self) -> None:
        if self.session.is_logged_in:
            token = self._providers_generation.bump()
            self._spawn(self._reload_veterinarians(token), "veterinarians")
            return

        token = self._providers_generation.bump()
        address = self.session.form.physical_address
        if not address.is_complete:
            self.session.public_providers = []
            self.session.providers = []
            return
        self._spawn(self._load_public_providers(token, _address_text(address)), "public-providers")

    async def _load_public_providers(self, token: GenerationToken, address: str) -> None:
        try:
            veterinarians = await self.api.public.fetch_veterinarians(
                self.settings.practice_id, address
            )
        except IntakeError as e:
            logger.warning(f"Failed to load public veterinarians: {e.message}")
            veterinarians = []
        if not token.is_current:
            return
        self.session.public_providers = veterinarians
        self.session.providers = list(veterinarians)
        if self.page.is_slot_page:
            self._refresh_slots()

    async def _reload_veterinarians(self, token: GenerationToken) -> None:
        try:
            providers = await self.api.directory.fetch_veterinarians(self._search_address())
        except IntakeError as e:
            logger.warning(f"Failed to reload veterinarians: {e.message}")
            return
        if not token.is_current:
            return
        self.session.providers = providers
        if self.page.is_slot_page:
            self._refresh_slots()

    # ------------------------------------------------------------------
    # Logged-in preload

    async def load_client_data(self) -> None:
        """
        Prefill the session for a logged-in client.

        Pets and veterinarians load in parallel, then each pet's alerts in
        parallel. Any part that fails is logged and left empty.
        """
        session = self.session
        token = self._client_generation.bump()
        providers_token = self._providers_generation.bump()
        session.loading_client_data = True
        try:
            pets, providers = await self._fetch_pets_and_providers()
            alerts = await asyncio.gather(*(self._fetch_alerts(pet) for pet in pets))
            profile = await self._fetch_profile()
            if not token.is_current:
                return

            session.pets = pets
            if providers_token.is_current:
                session.providers = providers
            session.pet_alerts = {pet.id: alert for pet, alert in zip(pets, alerts)}
            self._apply_prefill(pets, providers, profile)
            if session.page == Page.INTRO:
                session.page = Page.EXISTING_CLIENT
            logger.info(
                f"{LogEmoji.FOUND} Loaded {len(pets)} pet(s) and {len(providers)} veterinarian(s)"
            )
        finally:
            if token.is_current:
                session.loading_client_data = False

        if session.page.is_slot_page:
            self._refresh_slots()

    async def _fetch_pets_and_providers(self) -> Tuple[List[Pet], List[Provider]]:
        pets_result, providers_result = await asyncio.gather(
            self.api.directory.fetch_client_pets(),
            self.api.directory.fetch_veterinarians(self._search_address()),
            return_exceptions=True,
        )
        if isinstance(pets_result, BaseException):
            if not isinstance(pets_result, IntakeError):
                raise pets_result
            logger.warning(f"Failed to load pets: {pets_result.message}")
            pets_result = []
        if isinstance(providers_result, BaseException):
            if not isinstance(providers_result, IntakeError):
                raise providers_result
            logger.warning(f"Failed to load veterinarians: {providers_result.message}")
            providers_result = []
        return pets_result, providers_result

    async def _fetch_alerts(self, pet: Pet) -> Optional[str]:
        if not pet.id:
            return None
        try:
            return await self.api.directory.fetch_pet_alerts(pet.id)
        except IntakeError as e:
            logger.warning(f"Failed to fetch alerts for pet {pet.id}: {e.message}")
            return None

    async def _fetch_profile(self) -> Optional[ClientProfile]:
        try:
            return await self.api.directory.fetch_client_profile()
        except IntakeError as e:
            logger.warning(f"Failed to fetch client info from appointments: {e.message}")
            return None

    def _apply_prefill(
        self, pets: List[Pet], providers: List[Provider], profile: Optional[ClientProfile]
    ) -> None:
        session = self.session
        changes: Dict[str, Any] = {"have_used_services_before": YES}
        if session.user_email:
            changes["email"] = session.user_email

        primary = next((p.primary_provider_name for p in pets if p.primary_provider_name), None)
        session.primary_provider_name = primary
        if primary and providers:
            match = resolve_provider(primary, providers)
            if match is not None:
                changes["preferred_doctor_existing"] = f"{DOCTOR_PREFIX}{match.name}"

        if profile is not None:
            form = session.form
            changes["full_name.first"] = profile.first_name or form.full_name.first
            changes["full_name.last"] = profile.last_name or form.full_name.last
            if profile.phone:
                changes["best_phone_number"] = profile.phone
                logger.debug(f"Prefilled phone {mask_phone(profile.phone)}")
            for target in ("physical_address", "new_physical_address"):
                current = getattr(form, target) or Address()
                changes[target] = Address(
                    line1=profile.address1 or current.line1,
                    line2=profile.address2 or current.line2,
                    city=profile.city or current.city,
                    state=profile.state or current.state,
                    zip=profile.zip or current.zip,
                    country=current.country or "United States",
                )

        session.update(changes)
