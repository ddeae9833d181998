"""Pytest configuration and common fixtures."""

import os
import sys
import warnings
from pathlib import Path

from dotenv import load_dotenv

# Try to load test-specific environment file if it exists
test_env_file = Path(__file__).parent / ".env.test"
if test_env_file.exists():
    load_dotenv(test_env_file)

# Bootstrap variables for module-level imports; per-test isolation is
# provided by the setup_test_environment fixture using monkeypatch.
os.environ.setdefault("ENV", "testing")

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from intake.core.config import IntakeSettings, reset_settings
from intake.services.api.models import EmailCheckResult, Pet, Provider


def pytest_configure(config):
    """Configure pytest environment before tests run."""
    warnings.filterwarnings("ignore", message="coroutine.*was never awaited")


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Automatically set up test environment for all tests."""
    monkeypatch.setenv("ENV", "testing")
    monkeypatch.setenv("API_BASE_URL", "http://portal.test/api")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.delenv("API_TOKEN", raising=False)
    monkeypatch.delenv("PRACTICE_ID", raising=False)

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings() -> IntakeSettings:
    """Settings with a short email debounce so tests run quickly."""
    return IntakeSettings(email_check_debounce_seconds=0.01)


@pytest.fixture
def mock_api():
    """Portal API double exposing the four endpoint groups."""
    api = MagicMock()
    api.is_authenticated = False

    api.geo = MagicMock()
    api.geo.validate_address = AsyncMock()

    api.routing = MagicMock()
    api.routing.suggest_slots = AsyncMock(return_value={})

    api.public = MagicMock()
    api.public.check_email = AsyncMock(
        return_value=EmailCheckResult(exists=False, has_account=False, practice_id=1)
    )
    api.public.fetch_veterinarians = AsyncMock(return_value=[])
    api.public.fetch_availability = AsyncMock(return_value={"slots": [], "alternates": []})
    api.public.submit_form = AsyncMock(return_value={"ok": True})

    api.directory = MagicMock()
    api.directory.fetch_client_pets = AsyncMock(return_value=[])
    api.directory.fetch_veterinarians = AsyncMock(return_value=[])
    api.directory.fetch_pet_alerts = AsyncMock(return_value=None)
    api.directory.fetch_client_profile = AsyncMock(return_value=None)
    return api


@pytest.fixture
def providers():
    """A small veterinarian directory."""
    return [
        Provider(id="11", name="Jane Smith", email="jsmith@example.com", pims_id="P-11"),
        Provider(id="12", name="Robert Jones", pims_id=None),
        Provider(id="13", name="Smithers"),
    ]


@pytest.fixture
def pets():
    """Pets belonging to the logged-in client."""
    return [
        Pet(id="901", db_id="1", name="Biscuit", species="Dog", primary_provider_name="Jane Smith"),
        Pet(id="902", db_id="2", name="Pepper", species="Cat"),
    ]


def _make_response(status: int = 200, json_data: Any = None, text: Optional[str] = None):
    """Build an aiohttp response double usable with ``async with``."""
    response = AsyncMock()
    response.status = status
    response.json = AsyncMock(return_value=json_data)
    response.text = AsyncMock(return_value=text if text is not None else "")
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response


@pytest.fixture
def make_response():
    """Factory for aiohttp response doubles."""
    return _make_response


@pytest.fixture
def http_session():
    """aiohttp session double; set ``request.return_value`` or ``side_effect``."""
    session = MagicMock()
    session.request = MagicMock(return_value=_make_response(json_data={}))
    return session
