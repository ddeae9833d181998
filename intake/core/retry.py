"""Retry strategies for idempotent portal API calls."""

import logging

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .exceptions import NetworkError

logger = logging.getLogger(__name__)


def get_network_retry():
    """
    Get retry strategy for read-only directory lookups.

    Only transport failures are retried; an HTTP error response is final.
    Submissions are never wrapped with this decorator.

    Returns:
        Retry decorator configured for network errors
    """
    return retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.25, min=0.25, max=2),
        retry=retry_if_exception_type(NetworkError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
