"""Shared request plumbing for the portal API endpoint groups."""

import asyncio
from typing import Any, Callable, Dict, Optional

import aiohttp
from loguru import logger

from ...core.exceptions import ApiError, NetworkError


async def read_json(response: aiohttp.ClientResponse, endpoint: str) -> Any:
    """
    Read a response body once, raising on error statuses.

    Args:
        response: aiohttp response inside its context manager
        endpoint: Endpoint path, for error messages

    Returns:
        Parsed JSON body, or None for 204 responses

    Raises:
        ApiError: On a non-2xx status or a non-JSON body
    """
    if response.status >= 400:
        server_message: Optional[str] = None
        try:
            body = await response.json()
            if isinstance(body, dict):
                server_message = body.get("message") or body.get("error")
        except (aiohttp.ContentTypeError, ValueError):
            text = await response.text()
            logger.debug(f"{endpoint} error body: {text[:200]}")
        raise ApiError(
            server_message or f"Request to {endpoint} failed with status {response.status}",
            status=response.status,
            endpoint=endpoint,
            server_message=server_message,
        )

    if response.status == 204:
        return None

    try:
        return await response.json()
    except (aiohttp.ContentTypeError, ValueError):
        error_text = await response.text()
        logger.error(
            f"Unexpected non-JSON response from {endpoint} (status={response.status}): "
            f"{error_text[:200]}..."
        )
        raise ApiError(
            f"Non-JSON response from portal API: {response.status}",
            status=response.status,
            endpoint=endpoint,
        )


class EndpointGroup:
    """Base class for one family of portal endpoints sharing a session."""

    def __init__(
        self,
        http_session_getter: Callable[[], aiohttp.ClientSession],
        base_url: str,
    ):
        """
        Initialize endpoint group.

        Args:
            http_session_getter: Callable that returns the HTTP session
            base_url: Portal API base URL without trailing slash
        """
        self._http_session_getter = http_session_getter
        self.base_url = base_url.rstrip("/")

    @property
    def _session(self) -> aiohttp.ClientSession:
        """Get HTTP session from parent client."""
        return self._http_session_getter()

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
    ) -> Any:
        """
        Send one request and return the parsed body.

        Raises:
            ApiError: On an error status or unreadable body
            NetworkError: When the request could not be completed
        """
        url = f"{self.base_url}{path}"
        try:
            async with self._session.request(method, url, params=params, json=json) as response:
                return await read_json(response, path)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"{method} {path} failed: {e!r}")
            raise NetworkError(f"Could not reach portal API ({method} {path}): {e}") from e

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def _post(self, path: str, json: Any) -> Any:
        return await self._request("POST", path, json=json)
