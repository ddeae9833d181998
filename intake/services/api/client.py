"""Portal API Client - Main client implementation."""

from typing import Optional

import aiohttp
from loguru import logger

from ...constants import Timeouts
from ...core.config import IntakeSettings, get_settings
from .directory import ClientDirectoryApi
from .geo import GeoApi
from .public import PublicAppointmentsApi
from .routing import RoutingApi


class PortalApiClient:
    """
    Async client for the practice portal API.

    The endpoint groups share one aiohttp session. A bearer token makes the
    client "logged in": the routing backend and the client directory are
    only usable with one.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        settings: Optional[IntakeSettings] = None,
    ):
        """
        Initialize portal API client.

        Args:
            base_url: API base URL (defaults to settings)
            token: Bearer token for the logged-in client (defaults to settings)
            timeout: Total request timeout in seconds (defaults to settings)
            settings: Settings instance (defaults to the global singleton)
        """
        settings = settings or get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        if token is None and settings.api_token is not None:
            token = settings.api_token.get_secret_value()
        self._token = token or None
        self.timeout = timeout or settings.request_timeout_seconds

        self._http_session: Optional[aiohttp.ClientSession] = None

        def session_getter() -> aiohttp.ClientSession:
            return self._session

        self.geo = GeoApi(session_getter, self.base_url)
        self.routing = RoutingApi(session_getter, self.base_url)
        self.public = PublicAppointmentsApi(session_getter, self.base_url)
        self.directory = ClientDirectoryApi(session_getter, self.base_url)

        logger.info(
            f"PortalApiClient initialized for {self.base_url} "
            f"({'authenticated' if self.is_authenticated else 'anonymous'})"
        )

    @property
    def is_authenticated(self) -> bool:
        """Whether requests carry a bearer token."""
        return self._token is not None

    async def __aenter__(self):
        """Async context manager entry."""
        await self._init_http_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _init_http_session(self) -> None:
        """Initialize HTTP session."""
        if self._http_session is None:
            headers = {
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"

            timeout = aiohttp.ClientTimeout(
                total=self.timeout,
                connect=Timeouts.HTTP_CONNECT_SECONDS,
            )
            self._http_session = aiohttp.ClientSession(headers=headers, timeout=timeout)
            logger.debug("HTTP session initialized")

    async def close(self) -> None:
        """Close HTTP session."""
        if self._http_session:
            await self._http_session.close()
            self._http_session = None

    @property
    def _session(self) -> aiohttp.ClientSession:
        """Get HTTP session, raising error if not initialized."""
        if self._http_session is None:
            raise RuntimeError("HTTP session not initialized. Use 'async with PortalApiClient()'.")
        return self._http_session
